"""Punkt wejścia rodziny FAT: szybka identyfikacja i pełny opis wolumenu."""

from __future__ import annotations

from typing import Sequence

from structlog import get_logger

from volume_analyzer.core.models import SectorGeometry, VolumeDescription
from volume_analyzer.drivers.base import SectorSource
from volume_analyzer.layouts.catalog import BootCodeSignature, GeometryCatalog
from .classifier import ClassificationResult, FatClassifier, Unrecognized
from .decoder import decode
from .directory import scan_root_directory
from .reporter import build_report

DEFAULT_ENCODING = "cp437"


class FatVolumeDetector:
    """Wykrywa i opisuje wolumeny FAT12/16/32 i ich historyczne odmiany."""

    name = "fat"

    def __init__(
        self,
        *,
        catalog: GeometryCatalog | None = None,
        encoding: str = DEFAULT_ENCODING,
        boot_signatures: Sequence[BootCodeSignature] = (),
    ) -> None:
        self._classifier = FatClassifier(catalog)
        self._encoding = encoding
        self._boot_signatures = tuple(boot_signatures)
        self._logger = get_logger(__name__)

    def identify(self, source: SectorSource, geometry: SectorGeometry) -> bool:
        """Sprawdza, czy partycja zawiera rozpoznawalny BPB."""

        return bool(self._classifier.classify(source, geometry, collect_auxiliary=False))

    def classify(self, source: SectorSource, geometry: SectorGeometry) -> ClassificationResult | Unrecognized:
        return self._classifier.classify(source, geometry)

    def describe(
        self,
        source: SectorSource,
        geometry: SectorGeometry,
        *,
        encoding: str | None = None,
    ) -> VolumeDescription | None:
        """Zwraca raport i metadane albo ``None``, gdy to nie jest FAT."""

        result = self._classifier.classify(source, geometry)
        if not isinstance(result, ClassificationResult):
            self._logger.debug("fat-not-recognized", reason=result.reason.value, detail=result.detail)
            return None

        text_encoding = encoding or self._encoding
        descriptor = decode(result)
        directory = scan_root_directory(source, result, descriptor, text_encoding)
        description = build_report(
            descriptor,
            result,
            directory,
            encoding=text_encoding,
            boot_signatures=self._boot_signatures,
        )
        self._logger.info(
            "fat-volume-described",
            variant=result.kind.value,
            subtype=descriptor.subtype.value,
            clusters=descriptor.total_clusters,
        )
        return description


__all__ = ["DEFAULT_ENCODING", "FatVolumeDetector"]
