"""Clocks, random sources, tracking IDs and crash handling."""
