"""Application layer: dispatcher service and factory."""
