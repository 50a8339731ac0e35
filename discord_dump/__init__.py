"""Resumable Discord guild message exporter."""

__version__ = "0.1.0"
