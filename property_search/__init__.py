"""Natural-language property search over ArcGIS feature services."""

__version__ = "0.1.0"
