"""Serializable reports."""
