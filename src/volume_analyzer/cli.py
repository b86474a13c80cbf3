"""Interfejs wiersza poleceń do uruchamiania analiz."""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Sequence

import structlog

from volume_analyzer.core.analysis_manager import AnalysisManager
from volume_analyzer.core.models import MediaKind
from volume_analyzer.drivers.tsk import TskImageDriver
from volume_analyzer.fat import FatVolumeDetector
from volume_analyzer.fs_detection import VolumeFamilyDetector
from volume_analyzer.layouts import load_boot_signatures, load_default_geometry_catalog, load_geometry_catalog
from volume_analyzer.reporting import DefaultReportExporter, ExportFormat
from volume_analyzer.shared import AppConfig, configure_logging, install_crash_reporting, write_error_report
from volume_analyzer.sysv import SysVVolumeDetector


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="volume-analyzer",
        description="Rozpoznaje i opisuje wolumeny FAT oraz superbloki rodziny System V w obrazach dysków.",
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Ścieżka do obrazu dysku, dyskietki lub partycji",
    )
    parser.add_argument(
        "--sector-size",
        type=int,
        help="Wymusza rozmiar sektora (domyślnie: z tablicy partycji albo 512)",
    )
    parser.add_argument(
        "--optical",
        action="store_true",
        help="Traktuje obraz jak nośnik optyczny (sektory 2048 B, skalowanie pól BPB)",
    )
    parser.add_argument(
        "--encoding",
        help="Kodowanie znaków dla etykiet i nazw (domyślnie: cp437 dla FAT, iso-8859-15 dla System V)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("report.json"),
        help="Ścieżka do pliku wynikowego (domyślnie: report.json)",
    )
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in ExportFormat],
        default=ExportFormat.JSON.value,
        help="Format raportu (domyślnie: json)",
    )
    parser.add_argument(
        "--print",
        dest="print_reports",
        action="store_true",
        help="Wypisuje raporty tekstowe wolumenów na standardowe wyjście",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Wyświetla szczegółowe logi",
    )
    return parser


def _build_detector(driver: TskImageDriver, config: AppConfig, encoding: str | None) -> VolumeFamilyDetector:
    catalog = (
        load_geometry_catalog(config.geometries_path)
        if config.geometries_path is not None
        else load_default_geometry_catalog()
    )
    signatures = load_boot_signatures(config.boot_hashes_path) if config.boot_hashes_path is not None else ()
    detectors = (
        FatVolumeDetector(catalog=catalog, encoding=config.fat_encoding, boot_signatures=signatures),
        SysVVolumeDetector(encoding=config.sysv_encoding),
    )
    return VolumeFamilyDetector(driver, detectors, encoding=encoding)


def _run_analysis(args: Namespace) -> int:
    logger = structlog.get_logger(__name__)
    manager: AnalysisManager | None = None

    image_path = args.source
    if not image_path.exists():
        logger.error("image-not-found", path=str(image_path))
        return 1

    try:
        config = AppConfig.from_env()
    except ValueError as exc:
        logger.error("invalid-configuration", error=str(exc))
        return 1

    media_kind = MediaKind.OPTICAL_DISC if args.optical else MediaKind.BLOCK_MEDIA
    sector_size = args.sector_size or (2048 if args.optical else None)
    driver = TskImageDriver(image_paths=[image_path], sector_size=sector_size, media_kind=media_kind)

    try:
        exporter = DefaultReportExporter()
        manager = AnalysisManager(
            driver=driver,
            filesystem_detector=_build_detector(driver, config, args.encoding),
            report_exporter=exporter,
        )

        logger.info("starting-analysis", source=str(image_path), media=media_kind.value)
        sources = list(driver.enumerate_sources())
        session = manager.start_session(sources[0])
        if not session.volumes:
            logger.warning("no-volumes-detected")
            return 0

        logger.info("analyzing-volumes", count=len(session.volumes))
        result = manager.analyze()
        output_path = manager.export_report(result, args.output, ExportFormat(args.format))

        if args.print_reports:
            sys.stdout.write(exporter.render_text(result))

        logger.info(
            "analysis-complete",
            volumes=len(result.volumes),
            recognized=result.recognized_volumes(),
            report=str(output_path),
        )
        return 0

    except Exception as exc:
        logger.exception("analysis-failed", error=str(exc))
        context = {"image": str(image_path), "sector_size": sector_size, "media": media_kind.value}
        try:
            report = write_error_report(exc, where="cli.analyze", context=context)
        except OSError:
            logger.warning("error-report-not-written")
        else:
            logger.info("error-report-written", path=str(report.path))
        return 1
    finally:
        if manager is not None:
            manager.close()
        else:
            driver.close()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=10 if args.verbose else 20)
    install_crash_reporting()
    return _run_analysis(args)


if __name__ == "__main__":
    sys.exit(main())
