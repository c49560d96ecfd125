"""Daycare records API: registration of owner, guardians and children, plus fee payments."""

__version__ = "0.1.0"
