"""Concrete implementations of the core repository interfaces."""
