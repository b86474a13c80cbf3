"""Widoki sektorowe nad surowymi danymi."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from volume_analyzer.core.models import MediaKind
from .base import DriverError, SectorOutOfRangeError

Reader = Callable[[int, int], bytes]


@dataclass(slots=True)
class ReaderSectorSource:
    """Adapter zamieniający funkcję ``read(offset, size)`` w źródło sektorów."""

    reader: Reader
    sector_size: int
    total_sectors: int
    media_kind: MediaKind = MediaKind.BLOCK_MEDIA
    heads: int = 0
    sectors_per_track: int = 0

    def __post_init__(self) -> None:
        if self.sector_size <= 0:
            raise ValueError("Rozmiar sektora musi być dodatni")

    def read_sector(self, lba: int) -> bytes:
        return self.read_sectors(lba, 1)

    def read_sectors(self, lba: int, count: int) -> bytes:
        if lba < 0 or count < 0 or lba + count > self.total_sectors:
            raise SectorOutOfRangeError(lba, count, self.total_sectors)
        if count == 0:
            return b""

        expected = count * self.sector_size
        data = self.reader(lba * self.sector_size, expected)
        if len(data) != expected:
            raise DriverError(f"Niepełny odczyt z LBA {lba}: {len(data)} z {expected} bajtów")
        return data


class MemorySectorSource(ReaderSectorSource):
    """Źródło sektorów przechowywane w pamięci (obrazy syntetyczne, bufory)."""

    def __init__(
        self,
        data: bytes,
        *,
        sector_size: int = 512,
        media_kind: MediaKind = MediaKind.BLOCK_MEDIA,
        heads: int = 0,
        sectors_per_track: int = 0,
    ) -> None:
        if len(data) % sector_size:
            raise ValueError("Rozmiar danych musi być wielokrotnością rozmiaru sektora")
        self._data = bytes(data)
        super().__init__(
            reader=self._read,
            sector_size=sector_size,
            total_sectors=len(data) // sector_size,
            media_kind=media_kind,
            heads=heads,
            sectors_per_track=sectors_per_track,
        )

    def _read(self, offset: int, size: int) -> bytes:
        return self._data[offset : offset + size]


__all__ = ["MemorySectorSource", "ReaderSectorSource"]
