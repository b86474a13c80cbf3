"""Testy eksportu raportów."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path

from volume_analyzer.core.models import (
    AnalysisResult,
    DiskSource,
    FileSystemMetadata,
    FileSystemType,
    SourceType,
    Volume,
    VolumeAnalysis,
    VolumeDescription,
)
from volume_analyzer.reporting import DefaultReportExporter, ExportFormat


def _sample_analysis() -> AnalysisResult:
    source = DiskSource(identifier="image1", source_type=SourceType.DISK_IMAGE, display_name="Image 1", path=Path("disk.img"))
    fat_volume = Volume(identifier="image1:0", offset=0, size=1474560, filesystem=FileSystemType.FAT12)
    blank_volume = Volume(identifier="image1:1", offset=1474560, size=32768)
    metadata = FileSystemMetadata(
        type=FileSystemType.FAT12,
        cluster_size=1024,
        clusters=1440,
        volume_name="DOSDISK",
        volume_serial="1234ABCD",
        system_identifier="MSDOS5.0",
        creation_date=datetime(1994, 5, 1, 12, 30, tzinfo=timezone.utc),
        bootable=True,
    )
    description = VolumeDescription(report="DOS 4.0 extended BPB\nVolume label: DOSDISK\n", metadata=metadata, descriptor=None)
    analysis = AnalysisResult(source=source)
    analysis.volumes.append(
        VolumeAnalysis(volume=fat_volume, filesystem=FileSystemType.FAT12, description=description, detector="fat")
    )
    analysis.volumes.append(VolumeAnalysis(volume=blank_volume, filesystem=FileSystemType.UNKNOWN))
    return analysis


def test_export_json(tmp_path) -> None:
    analysis = _sample_analysis()
    destination = tmp_path / "report.json"

    DefaultReportExporter().export(analysis, destination, ExportFormat.JSON)

    payload = json.loads(destination.read_text(encoding="utf-8"))
    assert payload["source"]["identifier"] == "image1"
    assert payload["source"]["path"] == "disk.img"
    assert payload["totals"] == {"volumes": 2, "recognized": 1}

    fat_entry = payload["volumes"][0]
    assert fat_entry["detector"] == "fat"
    assert fat_entry["filesystem"] == FileSystemType.FAT12.value
    assert fat_entry["metadata"]["volume_serial"] == "1234ABCD"
    assert fat_entry["metadata"]["creation_date"] == "1994-05-01T12:30:00+00:00"
    assert fat_entry["metadata"]["modification_date"] is None
    assert fat_entry["report"] == ["DOS 4.0 extended BPB", "Volume label: DOSDISK"]

    blank_entry = payload["volumes"][1]
    assert blank_entry["metadata"] is None
    assert blank_entry["report"] is None


def test_export_csv(tmp_path) -> None:
    destination = tmp_path / "nested" / "report.csv"

    DefaultReportExporter().export(_sample_analysis(), destination, ExportFormat.CSV)

    with destination.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 2
    assert rows[0]["volume_id"] == "image1:0"
    assert rows[0]["cluster_size"] == "1024"
    assert rows[0]["bootable"] == "True"
    assert rows[1]["filesystem"] == FileSystemType.UNKNOWN.value
    assert rows[1]["cluster_size"] == ""


def test_export_text(tmp_path) -> None:
    destination = tmp_path / "report.txt"

    DefaultReportExporter().export(_sample_analysis(), destination, ExportFormat.TEXT)

    text = destination.read_text(encoding="utf-8")
    assert "== image1:0 (offset 0, 1474560 bytes) ==\nDOS 4.0 extended BPB\n" in text
    assert "== image1:1 (offset 1474560, 32768 bytes) ==\nUnrecognized filesystem\n" in text
