"""Wykrywanie systemów plików na wolumenach źródła danych."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from structlog import get_logger

from volume_analyzer.core.models import FileSystemType, SectorGeometry, Volume, VolumeDescription
from volume_analyzer.drivers import DataSourceDriver, DriverError, SectorSource
from volume_analyzer.fat import FatVolumeDetector
from volume_analyzer.sysv import SysVVolumeDetector


class VolumeDetector(Protocol):
    """Interfejs detektora jednej rodziny systemów plików."""

    name: str

    def identify(self, source: SectorSource, geometry: SectorGeometry) -> bool:
        """Szybkie sprawdzenie, czy partycja należy do rodziny."""

    def describe(
        self,
        source: SectorSource,
        geometry: SectorGeometry,
        *,
        encoding: str | None = None,
    ) -> VolumeDescription | None:
        """Pełny opis wolumenu albo ``None``."""


@dataclass(frozen=True, slots=True)
class DetectionOutcome:
    """Opis wolumenu wraz z nazwą detektora, który go rozpoznał."""

    detector: str
    description: VolumeDescription

    @property
    def filesystem(self) -> FileSystemType:
        return self.description.metadata.type


class FileSystemDetector(Protocol):
    """Interfejs dla komponentów wykrywających systemy plików."""

    def supported_filesystems(self) -> Iterable[FileSystemType]:
        """Zwraca obsługiwane typy systemów plików."""

    def detect(self, volume: Volume) -> FileSystemType:
        """Określa typ systemu plików dla podanego wolumenu."""

    def describe(self, volume: Volume) -> DetectionOutcome | None:
        """Zwraca raport i metadane rozpoznanego wolumenu."""


def volume_geometry(volume: Volume, source: SectorSource) -> SectorGeometry:
    """Przelicza przesunięcie i rozmiar wolumenu na zakres LBA (włącznie)."""

    sector_size = source.sector_size
    start = volume.offset // sector_size
    end = min((volume.offset + volume.size) // sector_size, source.total_sectors) - 1
    return SectorGeometry(
        bytes_per_sector=sector_size,
        total_sectors=source.total_sectors,
        media_kind=source.media_kind,
        partition_start=start,
        partition_end=end,
        partition_type=volume.partition_type,
        heads=source.heads,
        sectors_per_track=source.sectors_per_track,
    )


class VolumeFamilyDetector:
    """Próbuje kolejno detektorów rodzin (FAT, potem System V)."""

    def __init__(
        self,
        driver: DataSourceDriver,
        detectors: Sequence[VolumeDetector] | None = None,
        *,
        encoding: str | None = None,
    ) -> None:
        self._driver = driver
        self._detectors: tuple[VolumeDetector, ...] = tuple(detectors) if detectors else (
            FatVolumeDetector(),
            SysVVolumeDetector(),
        )
        self._encoding = encoding
        self._logger = get_logger(__name__)

    @property
    def detectors(self) -> tuple[VolumeDetector, ...]:
        return self._detectors

    def supported_filesystems(self) -> Iterable[FileSystemType]:
        return tuple(fs_type for fs_type in FileSystemType if fs_type is not FileSystemType.UNKNOWN)

    def detect(self, volume: Volume) -> FileSystemType:
        outcome = self.describe(volume)
        return outcome.filesystem if outcome is not None else FileSystemType.UNKNOWN

    def describe(self, volume: Volume) -> Optional[DetectionOutcome]:
        source = self._driver.sector_source()
        try:
            geometry = volume_geometry(volume, source)
        except ValueError as exc:
            self._logger.warning("invalid-volume-geometry", volume=volume.identifier, error=str(exc))
            return None

        for detector in self._detectors:
            try:
                description = detector.describe(source, geometry, encoding=self._encoding)
            except DriverError as exc:
                self._logger.warning(
                    "detector-read-failed",
                    volume=volume.identifier,
                    detector=detector.name,
                    error=str(exc),
                )
                continue
            if description is not None:
                return DetectionOutcome(detector=detector.name, description=description)
        return None


__all__ = [
    "DetectionOutcome",
    "FileSystemDetector",
    "VolumeDetector",
    "VolumeFamilyDetector",
    "volume_geometry",
]
