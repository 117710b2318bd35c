"""Synchronize the private integration branch with the public webclient mirror."""

__version__ = "0.1.0"
