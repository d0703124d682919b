"""Boardroom: governance backend for hierarchies of organizations."""

__version__ = "1.0.0"
