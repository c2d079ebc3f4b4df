"""Marker-to-expander registration."""
