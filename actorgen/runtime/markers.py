"""Markers read by the expander.

Both are inert at run time: ``gen_crud`` returns the class unchanged and
``persisted`` returns a descriptor-free placeholder that the storage engine
may inspect.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class PersistedField:
    primary_key: bool = False


def persisted(primary_key: bool = False) -> PersistedField:
    """Mark a class attribute as a persisted field."""
    return PersistedField(primary_key=primary_key)


def gen_crud(cls):
    """Mark a model class for CRUD and actor generation."""
    return cls
