"""Testy interfejsu CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("pytsk3")

from synthetic_data import InMemoryDriver, boot_sector, fat12_image  # noqa: E402
from volume_analyzer import cli  # noqa: E402
from volume_analyzer.cli import _build_parser, _run_analysis  # noqa: E402
from volume_analyzer.core.models import MediaKind  # noqa: E402
from volume_analyzer.drivers import DriverError  # noqa: E402


def test_parser_defaults() -> None:
    args = _build_parser().parse_args(["floppy.img"])

    assert args.source == Path("floppy.img")
    assert args.format == "json"
    assert args.output == Path("report.json")
    assert args.sector_size is None
    assert args.optical is False
    assert args.encoding is None
    assert args.print_reports is False


def test_parser_custom_options() -> None:
    args = _build_parser().parse_args(
        ["cd.iso", "--optical", "--sector-size", "2352", "--format", "text", "--output", "out.txt", "--print"]
    )

    assert args.optical is True
    assert args.sector_size == 2352
    assert args.format == "text"
    assert args.output == Path("out.txt")
    assert args.print_reports is True


def test_run_analysis_nonexistent_image(tmp_path) -> None:
    args = _build_parser().parse_args([str(tmp_path / "nonexistent.img")])

    assert _run_analysis(args) == 1


def test_run_analysis_rejects_bad_encoding_configuration(monkeypatch, tmp_path) -> None:
    image = tmp_path / "floppy.img"
    image.write_bytes(bytes(512))
    monkeypatch.setenv("VOLUMEANALYZER_FAT_ENCODING", "no-such-codec")

    assert _run_analysis(_build_parser().parse_args([str(image)])) == 1


def test_run_analysis_writes_report_and_prints_text(monkeypatch, tmp_path, capsys) -> None:
    image = tmp_path / "floppy.img"
    image.write_bytes(bytes(fat12_image(boot_sector(), total_sectors=2880)))
    created: list[dict[str, object]] = []

    def _driver_factory(*, image_paths, sector_size, media_kind):
        created.append({"paths": list(image_paths), "sector_size": sector_size, "media_kind": media_kind})
        return InMemoryDriver(image.read_bytes())

    monkeypatch.setattr(cli, "TskImageDriver", _driver_factory)
    output = tmp_path / "report.json"

    exit_code = _run_analysis(_build_parser().parse_args([str(image), "--output", str(output), "--print"]))

    assert exit_code == 0
    assert created == [{"paths": [image], "sector_size": None, "media_kind": MediaKind.BLOCK_MEDIA}]
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["totals"] == {"volumes": 1, "recognized": 1}
    assert payload["volumes"][0]["detector"] == "fat"
    assert "== memory:0 (offset 0, 1474560 bytes) ==" in capsys.readouterr().out


def test_optical_flag_defaults_to_2048_byte_sectors(monkeypatch, tmp_path) -> None:
    image = tmp_path / "cd.iso"
    image.write_bytes(bytes(64 * 2048))
    created: list[tuple[int | None, MediaKind]] = []

    def _driver_factory(*, image_paths, sector_size, media_kind):
        created.append((sector_size, media_kind))
        return InMemoryDriver(image.read_bytes(), sector_size=sector_size, media_kind=media_kind)

    monkeypatch.setattr(cli, "TskImageDriver", _driver_factory)

    exit_code = _run_analysis(_build_parser().parse_args([str(image), "--optical", "--output", str(tmp_path / "r.csv"), "--format", "csv"]))

    assert exit_code == 0
    assert created == [(2048, MediaKind.OPTICAL_DISC)]
    assert (tmp_path / "r.csv").exists()


def test_failed_analysis_writes_error_report(monkeypatch, tmp_path) -> None:
    image = tmp_path / "broken.img"
    image.write_bytes(bytes(512))
    reports = tmp_path / "reports"
    monkeypatch.setenv("VOLUMEANALYZER_ERROR_DIR", str(reports))

    class _FailingDriver(InMemoryDriver):
        def open_source(self, source) -> None:
            raise DriverError("uszkodzony obraz")

    monkeypatch.setattr(cli, "TskImageDriver", lambda **_: _FailingDriver(image.read_bytes()))

    exit_code = _run_analysis(_build_parser().parse_args([str(image), "--output", str(tmp_path / "r.json")]))

    assert exit_code == 1
    written = list(reports.glob("error_*.txt"))
    assert len(written) == 1
    text = written[0].read_text(encoding="utf-8")
    assert "uszkodzony obraz" in text
    assert str(image) in text
    assert not (tmp_path / "r.json").exists()
