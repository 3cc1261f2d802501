#!/usr/bin/env python3

"""Pragma pack directive model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PragmaPackRecord:
    """A ``#pragma pack`` directive found while normalizing source text.

    Forms and their fields:
        pack(push, N)  -> is_push=True,  value=N
        pack(push)     -> is_push=True,  value=None
        pack(N)        -> is_push=False, value=N
        pack(pop)      -> is_pop=True
        pack()         -> is_push=False, value=None (reset)
    """

    position: int
    """Offset in the normalized text where the directive stood"""

    is_pop: bool
    value: int | None = None
    is_push: bool = False
