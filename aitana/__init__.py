"""Aitana: booking assistant for Club Tattoo."""

__version__ = "1.0.0"
