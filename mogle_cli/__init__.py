"""Mogle command line."""
