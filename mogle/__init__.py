"""Mogle core - mood/goal journal storage, analytics and feedback."""

__version__ = "0.1.0"
