"""Sterownik wykorzystujący pytsk3 do pracy z obrazami dysków."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List

import pytsk3
from structlog import get_logger

from volume_analyzer.core.models import DiskSource, MediaKind, SourceType, Volume
from .base import DriverCapabilities, DriverError
from .sectors import ReaderSectorSource

DEFAULT_SECTOR_SIZE = 512


class TskImageDriver:
    """Sterownik bazujący na The Sleuth Kit (pytsk3) dla obrazów dysków."""

    name = "tsk-image"
    capabilities = DriverCapabilities(
        supports_disk_images=True,
        supports_partition_tables=True,
        supported_formats=("raw", "img", "ima", "dd", "001", "e01", "vhd", "iso"),
    )

    def __init__(
        self,
        *,
        image_paths: Iterable[Path] | None = None,
        sector_size: int | None = None,
        media_kind: MediaKind = MediaKind.BLOCK_MEDIA,
    ) -> None:
        self._logger = get_logger(__name__)
        self._image_paths: List[Path] = [Path(path) for path in image_paths] if image_paths else []
        self._sector_size_override = sector_size
        self._media_kind = media_kind
        self._img: pytsk3.Img_Info | None = None
        self._volume_info: pytsk3.Volume_Info | None = None
        self._current_source: DiskSource | None = None

    # ------------------------------------------------------------------
    # Implementacja DataSourceDriver
    # ------------------------------------------------------------------

    def enumerate_sources(self) -> Iterator[DiskSource]:
        for path in self._image_paths:
            yield DiskSource(
                identifier=path.name,
                source_type=SourceType.DISK_IMAGE,
                display_name=path.name,
                path=path,
            )

    def open_source(self, source: DiskSource) -> None:
        if source.source_type is not SourceType.DISK_IMAGE:
            raise DriverError("TskImageDriver obsługuje wyłącznie obrazy dysków")
        if source.path is None:
            raise DriverError("Źródło obrazu dysku wymaga ścieżki do pliku")

        self._logger.info("opening-image", path=str(source.path))
        try:
            self._img = pytsk3.Img_Info(str(source.path))
        except (OSError, RuntimeError) as exc:  # pragma: no cover - zależne od środowiska
            self.close()
            raise DriverError(f"Nie udało się otworzyć obrazu dysku: {source.path}") from exc

        try:
            self._volume_info = pytsk3.Volume_Info(self._img)
        except (OSError, RuntimeError):
            # dyskietki i obrazy partycji nie mają tablicy partycji
            self._logger.debug("no-partition-table", path=str(source.path))
            self._volume_info = None
        self._current_source = source

    def close(self) -> None:
        self._img = None
        self._volume_info = None
        self._current_source = None

    def list_volumes(self) -> Iterator[Volume]:
        if self._img is None or self._current_source is None:
            raise DriverError("Źródło nie zostało otwarte")

        if self._volume_info is None:
            yield Volume(
                identifier=f"{self._current_source.identifier}:0",
                offset=0,
                size=int(self._img.get_size()),
            )
            return

        block_size = self._volume_info.info.block_size
        for index, partition in enumerate(self._volume_info, start=1):
            if partition.len <= 0:
                continue  # pomijamy puste partycje

            yield Volume(
                identifier=f"{self._current_source.identifier}:{index}",
                offset=partition.start * block_size,
                size=partition.len * block_size,
                partition_type=_partition_description(partition),
            )

    def sector_source(self) -> ReaderSectorSource:
        if self._img is None:
            raise DriverError("Brak otwartego źródła obrazu")

        sector_size = self._sector_size()
        return ReaderSectorSource(
            reader=self.read,
            sector_size=sector_size,
            total_sectors=int(self._img.get_size()) // sector_size,
            media_kind=self._media_kind,
        )

    def read(self, offset: int, size: int) -> bytes:
        if self._img is None:
            raise DriverError("Brak otwartego źródła obrazu")
        try:
            return self._img.read(offset, size)
        except (IOError, RuntimeError) as exc:  # pragma: no cover - zależne od środowiska
            raise DriverError("Nie udało się odczytać danych z obrazu") from exc

    # ------------------------------------------------------------------
    # Operacje pomocnicze
    # ------------------------------------------------------------------

    def _sector_size(self) -> int:
        if self._sector_size_override:
            return self._sector_size_override
        if self._volume_info is not None:
            return int(self._volume_info.info.block_size)
        return DEFAULT_SECTOR_SIZE


def _partition_description(partition: object) -> str | None:
    desc = getattr(partition, "desc", None)
    if desc is None:
        return None
    if isinstance(desc, bytes):
        desc = desc.decode("ascii", errors="replace")
    return str(desc).strip() or None


__all__ = ["TskImageDriver"]
