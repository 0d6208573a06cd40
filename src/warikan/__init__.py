"""Warikan - split event costs and settle up with as few transfers as possible."""

__version__ = "0.1.0"
