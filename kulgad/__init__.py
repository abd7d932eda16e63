"""Command-line client for toggling and querying kulgad device channels."""

__version__ = "0.1.0"
