"""Core layer: domain models, grammar and backend protocols."""
