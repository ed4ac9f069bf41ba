"""Evently: event and booking records with pre-save normalization."""

__version__ = "0.1.0"
