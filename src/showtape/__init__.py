"""showtape - record live radio streams into published episodes."""

__version__ = "0.1.0"
