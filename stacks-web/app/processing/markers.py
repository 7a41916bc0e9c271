"""Marker types and the genotype codes legal for each of them.

The per-code lookup is derived once from ``MARKER_TYPES`` so that every
code maps to the full list of its marker type. ``--`` (no call) is legal
for every marker type; used as a lookup key it expands to every known code.
"""
from __future__ import annotations

from app.models import MarkerType

NO_CALL = "--"

MARKER_TYPES: dict[MarkerType, tuple[str, ...]] = {
    MarkerType.LMXLL: ("ll", "lm"),
    MarkerType.NNXNP: ("nn", "np"),
    MarkerType.HKXHK: ("hh", "hk", "kk"),
    MarkerType.EFXEG: ("ee", "ef", "eg", "fg"),
    MarkerType.ABXCD: ("ac", "ad", "bc", "bd"),
}

ALL_CODES: tuple[str, ...] = tuple(code for codes in MARKER_TYPES.values() for code in codes)

UNIVERSAL_ALTERNATIVES: tuple[str, ...] = ALL_CODES + (NO_CALL,)


def _flatten(table: dict[MarkerType, tuple[str, ...]]) -> tuple[dict[str, tuple[str, ...]], dict[str, MarkerType]]:
    alternatives: dict[str, tuple[str, ...]] = {NO_CALL: UNIVERSAL_ALTERNATIVES}
    owners: dict[str, MarkerType] = {}
    for marker_type, codes in table.items():
        legal = codes + (NO_CALL,)
        for code in codes:
            if code in owners:
                raise ValueError(f"Genotype code {code!r} listed under {owners[code].value} and {marker_type.value}")
            owners[code] = marker_type
            alternatives[code] = legal
    return alternatives, owners


_ALTERNATIVES, _OWNERS = _flatten(MARKER_TYPES)


def _key(code) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().lower()


def alternatives_for(code) -> tuple[str, ...]:
    """Codes selectable in place of ``code``, always ending with ``--``.

    Matching is case-insensitive. Unknown, blank or non-string input gets
    the universal list.
    """
    return _ALTERNATIVES.get(_key(code), UNIVERSAL_ALTERNATIVES)


def marker_type_for(code) -> MarkerType | None:
    return _OWNERS.get(_key(code))


def is_known_code(code) -> bool:
    return _key(code) in _ALTERNATIVES
