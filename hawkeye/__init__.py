"""Watch web pages for content changes: monitors, filters, a manager and a command line."""

__version__ = "0.1.0"

__all__ = ["__version__"]