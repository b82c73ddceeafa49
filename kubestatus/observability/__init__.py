"""Logging and metrics for kubestatus."""
