"""A TCP database server that stores its tables in CSV files."""

__version__ = "0.1.0"
__all__ = ["__version__"]