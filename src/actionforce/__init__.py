"""Actionforce - command extraction and dispatch for language model output."""

__version__ = "0.1.0"
