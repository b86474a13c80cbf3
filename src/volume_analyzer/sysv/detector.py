"""Punkt wejścia rodziny System V."""

from __future__ import annotations

from structlog import get_logger

from volume_analyzer.core.models import SectorGeometry, VolumeDescription
from volume_analyzer.drivers.base import SectorSource
from .classifier import SysVClassifier, SysVMatch
from .decoder import decode
from .reporter import build_report

DEFAULT_ENCODING = "iso-8859-15"


class SysVVolumeDetector:
    """Wykrywa i opisuje superbloki XENIX, System V, Coherent i V7."""

    name = "sysv"

    def __init__(self, *, encoding: str = DEFAULT_ENCODING) -> None:
        self._classifier = SysVClassifier()
        self._encoding = encoding
        self._logger = get_logger(__name__)

    def identify(self, source: SectorSource, geometry: SectorGeometry) -> bool:
        return bool(self._classifier.classify(source, geometry))

    def describe(
        self,
        source: SectorSource,
        geometry: SectorGeometry,
        *,
        encoding: str | None = None,
    ) -> VolumeDescription | None:
        match = self._classifier.classify(source, geometry)
        if not isinstance(match, SysVMatch):
            self._logger.debug("sysv-not-recognized", reason=match.reason.value)
            return None

        superblock = decode(match)
        description = build_report(superblock, source.sector_size, encoding=encoding or self._encoding)
        self._logger.info(
            "sysv-volume-described",
            variant=match.kind.value,
            byte_order=match.byte_order.value,
            zones=superblock.zones,
        )
        return description


__all__ = ["DEFAULT_ENCODING", "SysVVolumeDetector"]
