"""Interfejsy raportowania postępu analizy."""

from __future__ import annotations

from typing import Protocol


class ProgressReporter(Protocol):
    """Minimalny interfejs raportowania postępu zadań."""

    def update(self, message: str, *, percentage: int | None = None) -> None:
        """Przekazuje informację o postępie."""
