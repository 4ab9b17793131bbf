"""Province and city extraction from locality records."""

from __future__ import annotations

import re
from collections.abc import Mapping

_CITY_SUFFIX = re.compile(r"^(.+?)\s*City$", re.IGNORECASE)
_CITY_PREFIX = re.compile(r"^City of ", re.IGNORECASE)


def _clean(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def extract_province(lgu: object, province: object = None) -> str | None:
    """Explicit province wins; otherwise the part after the last comma of ``lgu``."""

    explicit = _clean(province)
    if explicit is not None:
        return explicit
    if isinstance(lgu, str):
        parts = lgu.split(",")
        if len(parts) > 1:
            return _clean(parts[-1])
    return None


def extract_city(lgu: object, city: object = None) -> str | None:
    """Explicit city wins; otherwise the first comma segment of ``lgu``, or all of it."""

    explicit = _clean(city)
    if explicit is not None:
        return explicit
    if isinstance(lgu, str):
        parts = lgu.split(",")
        if len(parts) > 1:
            return _clean(parts[0])
        return _clean(lgu)
    return None


def matches_any(value: str | None, selected: tuple[str, ...]) -> bool:
    """Case-insensitive, trimmed membership test."""

    if value is None:
        return False
    folded = value.strip().lower()
    return any(candidate.strip().lower() == folded for candidate in selected)


def display_city_name(name: str) -> str:
    """Render "Foo City" as "City of Foo"; other names are only trimmed."""

    if _CITY_PREFIX.match(name.strip()):
        return name
    match = _CITY_SUFFIX.match(name.strip())
    if match:
        return f"City of {match.group(1).strip()}"
    return name.strip()


def normalize_city_lists(cities_by_province: Mapping[str, list[str]]) -> dict[str, list[str]]:
    """Normalize a province -> ["City, Province", ...] listing into display names."""

    normalized: dict[str, list[str]] = {}
    for province, entries in cities_by_province.items():
        normalized[province] = [display_city_name(entry.split(",")[0].strip()) for entry in entries]
    return normalized
