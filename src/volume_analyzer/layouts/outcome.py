"""Wyniki negatywne klasyfikacji wspólne dla wszystkich rodzin układów."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UnrecognizedReason(str, Enum):
    """Powód odrzucenia; żaden z nich nie jest błędem wykonania."""

    NOT_RECOGNIZED = "not_recognized"
    GEOMETRY_TOO_SMALL = "geometry_too_small"
    # pole nie przeszło predykatu po wcześniejszej, zgrubnej weryfikacji
    INCONSISTENT_FIELD = "inconsistent_field"


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """Wynik negatywny: żadna reguła kaskady nie pasuje."""

    reason: UnrecognizedReason = UnrecognizedReason.NOT_RECOGNIZED
    detail: str = ""

    def __bool__(self) -> bool:
        return False


__all__ = ["Unrecognized", "UnrecognizedReason"]
