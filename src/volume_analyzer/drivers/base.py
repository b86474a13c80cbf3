"""Interfejs bazowy dla sterowników źródeł danych."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from volume_analyzer.core.models import DiskSource, MediaKind, Volume


class DriverError(RuntimeError):
    """Błąd specyficzny sterowników danych."""


class SectorOutOfRangeError(DriverError):
    """Żądanie odczytu sektorów spoza obrazu."""

    def __init__(self, lba: int, count: int, total_sectors: int) -> None:
        super().__init__(
            f"Odczyt {count} sektor(ów) od LBA {lba} wykracza poza obraz ({total_sectors} sektorów)"
        )
        self.lba = lba
        self.count = count
        self.total_sectors = total_sectors


@dataclass(slots=True)
class DriverCapabilities:
    """Opis obsługiwanych funkcji sterownika."""

    supports_disk_images: bool = False
    supports_partition_tables: bool = False
    supported_formats: tuple[str, ...] = ()


class SectorSource(Protocol):
    """Źródło sektorów o stałym rozmiarze adresowanych przez LBA."""

    sector_size: int
    total_sectors: int
    media_kind: MediaKind
    heads: int
    sectors_per_track: int

    def read_sector(self, lba: int) -> bytes:
        """Czyta pojedynczy sektor."""

    def read_sectors(self, lba: int, count: int) -> bytes:
        """Czyta ``count`` kolejnych sektorów."""


class DataSourceDriver(Protocol):
    """Minimalny interfejs dla implementacji sterowników."""

    name: str
    capabilities: DriverCapabilities

    def enumerate_sources(self) -> Iterable[DiskSource]:
        """Zwraca dostępne źródła danych."""

    def open_source(self, source: DiskSource) -> None:
        """Przygotowuje źródło do analizy (tylko do odczytu)."""

    def close(self) -> None:
        """Zwalnia zasoby sterownika."""

    def list_volumes(self) -> Iterable[Volume]:
        """Lista wolumenów dostępnych na otwartym źródle."""

    def sector_source(self) -> SectorSource:
        """Zwraca widok sektorowy całego otwartego źródła."""

    def read(self, offset: int, size: int) -> bytes:
        """Czyta surowe dane z bieżącego źródła."""
