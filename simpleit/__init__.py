"""SimpleIT asset, employee and ticket management backend."""

__version__ = "0.1.0"
