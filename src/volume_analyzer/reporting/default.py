"""Domyślna implementacja eksportu raportów (CSV/JSON/tekst)."""

from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional

from volume_analyzer.core.models import AnalysisResult, FileSystemMetadata, VolumeAnalysis
from .exporter import ExportFormat, ReportExporter

CSV_FIELDS = (
    "volume_id",
    "offset",
    "size",
    "partition_type",
    "detector",
    "filesystem",
    "cluster_size",
    "clusters",
    "free_clusters",
    "volume_name",
    "volume_serial",
    "system_identifier",
    "creation_date",
    "modification_date",
    "bootable",
    "dirty",
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class DefaultReportExporter(ReportExporter):
    """Eksporter zapisujący wyniki analizy do plików CSV, JSON lub tekstowych."""

    def export(self, result: AnalysisResult, destination: Path, fmt: ExportFormat) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)

        if fmt is ExportFormat.JSON:
            payload = self._build_json_payload(result)
            destination.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        elif fmt is ExportFormat.CSV:
            self._write_csv(result, destination)
        elif fmt is ExportFormat.TEXT:
            destination.write_text(self.render_text(result), encoding="utf-8")
        else:  # pragma: no cover - obsługa przyszłych formatów
            raise ValueError(f"Nieobsługiwany format eksportu: {fmt}")

        return destination

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def _build_json_payload(self, result: AnalysisResult) -> Dict[str, object]:
        return {
            "source": {
                "identifier": result.source.identifier,
                "type": result.source.source_type.value,
                "display_name": result.source.display_name,
                "path": str(result.source.path) if result.source.path else None,
            },
            "totals": {
                "volumes": len(result.volumes),
                "recognized": result.recognized_volumes(),
            },
            "volumes": [self._volume_to_dict(volume) for volume in result.volumes],
        }

    def _volume_to_dict(self, analysis: VolumeAnalysis) -> Dict[str, object]:
        description = analysis.description
        return {
            "identifier": analysis.volume.identifier,
            "filesystem": analysis.filesystem.value,
            "offset": analysis.volume.offset,
            "size": analysis.volume.size,
            "partition_type": analysis.volume.partition_type,
            "detector": analysis.detector,
            "metadata": self._metadata_to_dict(description.metadata) if description else None,
            "report": description.report.splitlines() if description else None,
        }

    @staticmethod
    def _metadata_to_dict(metadata: FileSystemMetadata) -> Dict[str, object]:
        return {
            "type": metadata.type.value,
            "cluster_size": metadata.cluster_size,
            "clusters": metadata.clusters,
            "free_clusters": metadata.free_clusters,
            "volume_name": metadata.volume_name,
            "volume_serial": metadata.volume_serial,
            "system_identifier": metadata.system_identifier,
            "creation_date": _iso(metadata.creation_date),
            "modification_date": _iso(metadata.modification_date),
            "bootable": metadata.bootable,
            "dirty": metadata.dirty,
        }

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def _write_csv(self, result: AnalysisResult, destination: Path) -> None:
        with destination.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(CSV_FIELDS))
            writer.writeheader()
            for row in self._iter_csv_rows(result):
                writer.writerow(row)

    def _iter_csv_rows(self, result: AnalysisResult) -> Iterator[Dict[str, object]]:
        for analysis in result.volumes:
            row: Dict[str, object] = {
                "volume_id": analysis.volume.identifier,
                "offset": analysis.volume.offset,
                "size": analysis.volume.size,
                "partition_type": analysis.volume.partition_type,
                "detector": analysis.detector,
                "filesystem": analysis.filesystem.value,
            }
            if analysis.description is not None:
                metadata = self._metadata_to_dict(analysis.description.metadata)
                metadata.pop("type")
                row.update(metadata)
            yield row

    # ------------------------------------------------------------------
    # Tekst
    # ------------------------------------------------------------------

    @staticmethod
    def render_text(result: AnalysisResult) -> str:
        """Skleja raporty tekstowe wszystkich wolumenów w jeden dokument."""

        sections = []
        for analysis in result.volumes:
            header = f"== {analysis.volume.identifier} (offset {analysis.volume.offset}, {analysis.volume.size} bytes) =="
            if analysis.description is None:
                sections.append(f"{header}\nUnrecognized filesystem\n")
            else:
                sections.append(f"{header}\n{analysis.description.report}")
        return "\n".join(sections)


__all__ = ["CSV_FIELDS", "DefaultReportExporter"]
