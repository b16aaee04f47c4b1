"""schemagen - compile content-model schemas into typed Python API clients."""

__version__ = "0.1.0"
