"""Household services REST backend (auth, verification codes, service categories)."""

__version__ = "0.1.0"
