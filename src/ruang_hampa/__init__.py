"""Ruang Hampa: a branching narrative engine."""

__version__ = "0.1.0"
