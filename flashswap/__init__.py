"""Flash-funded liquidation executor."""

__version__ = "0.1.0"
