"""Retro-Vision — dialogue to 8-bit Famicom scene generator."""

__version__ = "0.1.0"
