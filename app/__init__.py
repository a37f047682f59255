"""Franz/Ferdi-compatible account, service and recipe server."""

__version__ = "0.1.0"
