"""Zarządzanie pełnym cyklem analizy źródła danych."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import structlog
from structlog.stdlib import BoundLogger

from volume_analyzer.core.models import AnalysisResult, DiskSource, FileSystemType, Volume, VolumeAnalysis
from volume_analyzer.drivers import DataSourceDriver
from volume_analyzer.fs_detection import DetectionOutcome, FileSystemDetector
from volume_analyzer.reporting import ExportFormat, ReportExporter
from .session import AnalysisSession
from .tasks import ProgressReporter


@dataclass
class DefaultProgressReporter:
    """Prosty reporter postępu logujący zdarzenia do konsoli."""

    logger: BoundLogger = field(default_factory=lambda: structlog.get_logger(__name__))

    def update(self, message: str, *, percentage: int | None = None) -> None:
        if percentage is not None:
            self.logger.info("progress", message=message, percentage=percentage)
        else:
            self.logger.info("progress", message=message)


class AnalysisManager:
    """Orkiestrator analizujący źródło danych przy użyciu dostarczonych komponentów."""

    def __init__(
        self,
        *,
        driver: DataSourceDriver,
        filesystem_detector: FileSystemDetector,
        report_exporter: ReportExporter,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        self._driver = driver
        self._filesystem_detector = filesystem_detector
        self._report_exporter = report_exporter
        self._progress_reporter = progress_reporter or DefaultProgressReporter()
        self._logger = structlog.get_logger(__name__)
        self._session: AnalysisSession | None = None

    # ------------------------------------------------------------------
    # Zarządzanie sesją
    # ------------------------------------------------------------------

    def start_session(self, source: DiskSource) -> AnalysisSession:
        """Otwiera źródło i zapamiętuje listę jego wolumenów."""

        self._progress("Inicjalizacja sesji", percentage=5)
        self._driver.open_source(source)
        volumes = list(self._driver.list_volumes())
        self._session = AnalysisSession(source=source, volumes=volumes)
        self._progress(f"Wykryto {len(volumes)} wolumen(y)", percentage=15)
        return self._session

    def session(self) -> AnalysisSession:
        """Zwraca aktywną sesję lub zgłasza błąd, jeśli brak."""

        if self._session is None:
            raise RuntimeError("Sesja analizy nie została zainicjalizowana")
        return self._session

    def close(self) -> None:
        """Kończy pracę z bieżącym sterownikiem."""

        self._driver.close()
        self._session = None

    # ------------------------------------------------------------------
    # Analiza
    # ------------------------------------------------------------------

    def analyze(self, volume_ids: Sequence[str] | None = None) -> AnalysisResult:
        """Analizuje wybrane wolumeny (domyślnie wszystkie) i zwraca wyniki."""

        session = self.session()
        wanted = set(volume_ids) if volume_ids is not None else set(session.volume_ids())
        selected_volumes = [volume for volume in session.volumes if volume.identifier in wanted]
        if not selected_volumes:
            raise ValueError("Brak wybranych wolumenów do analizy")

        analysis = AnalysisResult(source=session.source)

        for index, volume in enumerate(selected_volumes, start=1):
            self._progress(
                f"Analiza wolumenu {volume.identifier}",
                percentage=self._progress_percentage(index, len(selected_volumes)),
            )
            analysis.volumes.append(self._analyze_volume(volume))

        self._logger.info(
            "analysis-summary",
            source=session.source.identifier,
            volumes=len(analysis.volumes),
            recognized=analysis.recognized_volumes(),
        )
        self._progress("Analiza zakończona", percentage=95)
        return analysis

    # ------------------------------------------------------------------
    # Raportowanie
    # ------------------------------------------------------------------

    def export_report(self, result: AnalysisResult, destination: Path, fmt: ExportFormat) -> Path:
        """Eksportuje raport do wskazanego pliku."""

        path = self._report_exporter.export(result, destination, fmt)
        self._progress("Raport został zapisany", percentage=100)
        return path

    # ------------------------------------------------------------------
    # Operacje pomocnicze
    # ------------------------------------------------------------------

    def _analyze_volume(self, volume: Volume) -> VolumeAnalysis:
        outcome = self._describe_volume(volume)
        if outcome is None:
            volume.filesystem = FileSystemType.UNKNOWN
            return VolumeAnalysis(volume=volume, filesystem=FileSystemType.UNKNOWN)

        volume.filesystem = outcome.filesystem
        return VolumeAnalysis(
            volume=volume,
            filesystem=outcome.filesystem,
            description=outcome.description,
            detector=outcome.detector,
        )

    def _describe_volume(self, volume: Volume) -> DetectionOutcome | None:
        try:
            return self._filesystem_detector.describe(volume)
        except Exception as exc:  # pragma: no cover - logowanie błędów środowiskowych
            self._logger.warning("filesystem-detection-failed", volume=volume.identifier, error=str(exc))
            return None

    def _progress(self, message: str, *, percentage: int | None = None) -> None:
        self._progress_reporter.update(message, percentage=percentage)

    @staticmethod
    def _progress_percentage(current: int, total: int) -> int:
        if total == 0:
            return 50
        return int((current / total) * 80) + 15


__all__ = ["AnalysisManager", "DefaultProgressReporter"]
