"""Canonical cabin identifiers and their mapping tables.

Internal code compares Cabin members only. External short codes (used by
the public availability endpoint) and display labels (used by the
dashboard and found in legacy records) are translated at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UnknownCabinError(ValueError):
    """Raised when a code or label does not name a known cabin."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unknown cabin: {value!r}")


@dataclass(frozen=True)
class CabinInfo:
    external_code: str
    label: str
    max_capacity: int

    @property
    def short_name(self) -> str:
        """Label without the capacity suffix, e.g. "Cabaña Grande"."""
        return self.label.split(" (")[0]


class Cabin(str, Enum):
    """Physical cabins in declared order. Iteration order is the display order."""

    SMALL = "small"
    MEDIUM_1 = "medium-1"
    MEDIUM_2 = "medium-2"
    LARGE = "large"

    @property
    def info(self) -> CabinInfo:
        return CABIN_INFO[self]

    @property
    def max_capacity(self) -> int:
        return CABIN_INFO[self].max_capacity

    @property
    def external_code(self) -> str:
        return CABIN_INFO[self].external_code

    @property
    def label(self) -> str:
        return CABIN_INFO[self].label

    @classmethod
    def from_external_code(cls, code: str) -> Cabin:
        try:
            return _BY_EXTERNAL_CODE[code.strip().lower()]
        except KeyError:
            raise UnknownCabinError(code) from None

    @classmethod
    def from_label(cls, label: str) -> Cabin:
        """Resolve a display label, short display name or internal id."""
        key = label.strip()
        try:
            return cls(key)
        except ValueError:
            pass
        try:
            return _BY_LABEL[key.casefold()]
        except KeyError:
            raise UnknownCabinError(label) from None


CABIN_INFO: dict[Cabin, CabinInfo] = {
    Cabin.SMALL: CabinInfo("pequeña", "Cabaña Pequeña (Max 3p)", 3),
    Cabin.MEDIUM_1: CabinInfo("mediana1", "Cabaña Mediana 1 (Max 4p)", 4),
    Cabin.MEDIUM_2: CabinInfo("mediana2", "Cabaña Mediana 2 (Max 4p)", 4),
    Cabin.LARGE: CabinInfo("grande", "Cabaña Grande (Max 6p)", 6),
}

_BY_EXTERNAL_CODE: dict[str, Cabin] = {
    info.external_code: cabin for cabin, info in CABIN_INFO.items()
}

_BY_LABEL: dict[str, Cabin] = {}
for _cabin, _info in CABIN_INFO.items():
    _BY_LABEL[_info.label.casefold()] = _cabin
    _BY_LABEL[_info.short_name.casefold()] = _cabin
del _cabin, _info
