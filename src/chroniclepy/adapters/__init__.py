"""Adapters connecting loggers to sinks, consoles and the logging module."""
