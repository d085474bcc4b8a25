"""WordPress posts to Canva bulk-create CSV pipeline."""

__version__ = "0.1.0"

__all__ = ["__version__"]
