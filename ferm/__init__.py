"""Farm backend: garden plot lifecycle and asynchronous fulfillment pipeline."""

__version__ = "0.1.0"
