"""Diggers World claim bot: resilient WAX chain access and per-account task scheduling."""

__version__ = "0.1.0"
