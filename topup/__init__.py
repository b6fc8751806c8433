"""Mobile top-up ordering service: configuration, models, caching, order handling and HTTP routes."""

__version__ = "0.1.0"