"""Multithreaded downloader for Pwned Passwords SHA1 hash ranges."""

__version__ = "1.0.0"

__all__ = ["__version__"]
