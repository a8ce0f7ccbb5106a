"""Environmental-concern signals versus oil-company share prices."""

__version__ = "0.1.0"
