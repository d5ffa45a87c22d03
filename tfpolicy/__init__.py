"""Framework for writing policy plugins that expose typed functions."""

__version__ = "0.1.0"