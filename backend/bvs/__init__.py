"""BVS platform backend: user management and object storage services."""

__version__ = "1.0.0"
