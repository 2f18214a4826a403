"""GraphView CLI: interactive exploration of property graphs."""

__version__ = "0.1.0"
