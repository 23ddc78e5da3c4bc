"""Watch a real-estate agency page for newly published listings."""

__version__ = "0.1.0"
