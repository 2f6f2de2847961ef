"""Self-healing temperature sensor fleet simulator."""

__version__ = "0.1.0"
