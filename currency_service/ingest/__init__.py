"""Ingest jobs."""

from .rates import PipelineError, RatesIngestor, normalize_rates

__all__ = ["PipelineError", "RatesIngestor", "normalize_rates"]
