"""API route factories."""

from .rates import get_rates_router

__all__ = ["get_rates_router"]
