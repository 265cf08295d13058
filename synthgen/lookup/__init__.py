"""Lookup registry - named categorical value lists."""

from .registry import LookupRegistry
from .constants import BUILTIN_LOOKUP_TABLES

__all__ = [
    "LookupRegistry",
    "BUILTIN_LOOKUP_TABLES",
]
