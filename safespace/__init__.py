"""SafeSpace: peer-support discussion platform services."""

__version__ = "0.1.0"
