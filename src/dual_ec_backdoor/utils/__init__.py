"""Shared constants, dataclasses and modular arithmetic."""
