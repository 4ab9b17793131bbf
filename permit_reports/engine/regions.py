"""Region code table and region-key resolution."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# Roman region code -> internal storage key.
REGION_CODE_TO_KEY: dict[str, str] = {
    "I": "region1",
    "II": "region2",
    "III": "region3",
    "IV-A": "region4a",
    "IV-B": "region4b",
    "V": "region5",
    "VI": "region6",
    "VII": "region7",
    "VIII": "region8",
    "IX": "region9",
    "X": "region10",
    "XI": "region11",
    "XII": "region12",
    "XIII": "region13",
    "CAR": "CAR",
    "NCR": "NCR",
    "NIR": "NIR",
    "BARMM1": "BARMM1",
    "BARMM2": "BARMM2",
    "BARMM I": "BARMM1",
    "BARMM II": "BARMM2",
}

# Internal storage key -> display code shown in tables and exports.
REGION_KEY_TO_DISPLAY: dict[str, str] = {
    "region1": "R1",
    "region2": "R2",
    "region3": "R3",
    "region4a": "R4-A",
    "region4b": "R4-B",
    "region5": "R5",
    "region6": "R6",
    "region7": "R7",
    "region8": "R8",
    "region9": "R9",
    "region10": "R10",
    "region11": "R11",
    "region12": "R12",
    "region13": "R13",
    "CAR": "CAR",
    "NCR": "NCR",
    "NIR": "NIR",
    "BARMM1": "BARMM I",
    "BARMM2": "BARMM II",
}

ISLAND_REGION_CODES: dict[str, tuple[str, ...]] = {
    "Luzon": ("I", "II", "III", "IV-A", "IV-B", "V", "CAR", "NCR"),
    "Visayas": ("VI", "VII", "VIII", "NIR"),
    "Mindanao": ("IX", "X", "XI", "XII", "XIII", "BARMM1", "BARMM2"),
}

_KEYS_BY_FOLDED: dict[str, str] = {key.lower(): key for key in REGION_KEY_TO_DISPLAY}
_DISPLAY_TO_KEY: dict[str, str] = {display.lower(): key for key, display in REGION_KEY_TO_DISPLAY.items()}
_CODES_BY_FOLDED: dict[str, str] = {code.lower(): key for code, key in REGION_CODE_TO_KEY.items()}


def to_internal_key(code: object) -> str | None:
    """Map a region code, display code or internal key to the internal key.

    Returns ``None`` for anything the table does not know.
    """

    if not isinstance(code, str):
        return None
    folded = code.strip().lower()
    if not folded:
        return None
    return _CODES_BY_FOLDED.get(folded) or _KEYS_BY_FOLDED.get(folded) or _DISPLAY_TO_KEY.get(folded)


def to_display_code(key: str) -> str:
    """Map an internal key to its display code, echoing unknown keys back."""

    canonical = _KEYS_BY_FOLDED.get(key.strip().lower()) if isinstance(key, str) else None
    if canonical is None:
        return key
    return REGION_KEY_TO_DISPLAY[canonical]


def regions_for_islands(islands: Iterable[str]) -> set[str]:
    """Expand island group names into the set of roman region codes."""

    codes: set[str] = set()
    for island in islands:
        for name, island_codes in ISLAND_REGION_CODES.items():
            if isinstance(island, str) and name.lower() == island.strip().lower():
                codes.update(island_codes)
    return codes


def internal_keys_for_islands(islands: Iterable[str]) -> set[str]:
    keys: set[str] = set()
    for code in regions_for_islands(islands):
        keys.add(to_internal_key(code) or code)
    return keys


class RegionResolver:
    """Resolve the internal region key of a locality.

    Priority: the record's ``region`` field, then its ``region_code`` field
    (both through the code table), then the caller-supplied locality lookup.
    """

    def __init__(self, lookup: Mapping[str, str] | None = None) -> None:
        self.lookup: dict[str, str] = {}
        for lgu, region in (lookup or {}).items():
            if isinstance(lgu, str) and isinstance(region, str) and region.strip():
                self.lookup[lgu] = region.strip()

    def resolve(self, *, lgu: str, region: str | None, region_code: str | None) -> str | None:
        direct = to_internal_key(region) or to_internal_key(region_code)
        if direct is not None:
            return direct
        looked_up = self.lookup.get(lgu)
        if looked_up is None:
            return None
        return to_internal_key(looked_up) or looked_up
