"""HTTP API for the currency service."""
