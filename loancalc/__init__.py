"""Mortgage loan calculator: annuity calculations, an in-memory history and a Flask HTTP service."""

__version__ = "0.1.0"