#!/usr/bin/env python3

"""Repositories holding per-analysis state."""

from .type_table import AliasChainEnd, TypeTable

__all__ = [
    "AliasChainEnd",
    "TypeTable",
]
