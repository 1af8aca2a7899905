"""Calmish - wellness self-tracking state container and companion chat."""

__version__ = "1.0.0"
