from __future__ import annotations

import json
import os
import platform
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from importlib import metadata
from pathlib import Path
from typing import Any, Mapping
from uuid import uuid4

ENV_ERROR_DIR = "VOLUMEANALYZER_ERROR_DIR"
ENV_DISABLE_CRASH_HOOKS = "VOLUMEANALYZER_DISABLE_CRASH_HOOKS"
ENV_ENABLE_CRASH_HOOKS = "VOLUMEANALYZER_ENABLE_CRASH_HOOKS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class ErrorReport:
    path: Path
    created_at: datetime


_ORIGINAL_SYS_EXCEPTHOOK = None


def _env_flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in _TRUTHY


def get_error_reports_dir() -> Path:
    """Returns a writable directory for error reports.

    Priority:
    1) `VOLUMEANALYZER_ERROR_DIR` env var
    2) Project root: `./error_reports` (next to `pyproject.toml`)
    3) Fallback: `~/.volume_analyzer/error_reports`
    """

    override = (os.getenv(ENV_ERROR_DIR) or "").strip()
    if override:
        base = Path(override)
    else:
        project_root = _find_project_root()
        base = project_root / "error_reports" if project_root is not None else Path.home() / ".volume_analyzer" / "error_reports"

    base.mkdir(parents=True, exist_ok=True)
    return base


def _find_project_root() -> Path | None:
    for start in (Path.cwd(), Path(__file__).resolve().parent):
        for candidate in (start, *start.parents):
            if (candidate / "pyproject.toml").is_file():
                return candidate
    return None


def _safe_app_version() -> str:
    try:
        return metadata.version("volume-analyzer")
    except metadata.PackageNotFoundError:
        return "unknown"


def _report_header(error: BaseException, where: str, context: Mapping[str, Any], created_at: datetime) -> dict[str, Any]:
    return {
        "created_at": created_at.isoformat(),
        "where": where,
        "app_version": _safe_app_version(),
        "python": sys.version.replace("\n", " "),
        "platform": platform.platform(),
        "byteorder": sys.byteorder,
        "cwd": str(Path.cwd()),
        "context": dict(context),
        "error_type": type(error).__name__,
        "error_message": str(error),
    }


def write_error_report(
    error: BaseException,
    *,
    where: str,
    context: Mapping[str, Any] | None = None,
) -> ErrorReport:
    """Writes a timestamped error report and returns its path.

    ``context`` usually carries the analysed image path, the sector size and
    the media kind so a failing image can be reproduced.
    """

    reports_dir = get_error_reports_dir()
    created_at = datetime.now(timezone.utc)
    path = reports_dir / f"error_{created_at:%Y%m%d_%H%M%S}_{uuid4().hex[:8]}.txt"

    header = _report_header(error, where, context or {}, created_at)
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    content = (
        "VolumeAnalyzer Error Report\n"
        "===========================\n\n"
        f"{json.dumps(header, ensure_ascii=False, indent=2, default=str)}\n\n"
        "Traceback\n---------\n"
        f"{tb}"
    )

    path.write_text(content, encoding="utf-8", errors="replace")
    return ErrorReport(path=path, created_at=created_at)


def install_crash_reporting() -> None:
    """Installs a `sys.excepthook` that writes an error report first.

    Disabled with `VOLUMEANALYZER_DISABLE_CRASH_HOOKS=1`; skipped under pytest
    unless `VOLUMEANALYZER_ENABLE_CRASH_HOOKS=1`.
    """

    if _env_flag(ENV_DISABLE_CRASH_HOOKS):
        return
    if os.getenv("PYTEST_CURRENT_TEST") and not _env_flag(ENV_ENABLE_CRASH_HOOKS):
        return

    global _ORIGINAL_SYS_EXCEPTHOOK
    if _ORIGINAL_SYS_EXCEPTHOOK is None:
        _ORIGINAL_SYS_EXCEPTHOOK = sys.excepthook

    def _sys_excepthook(exc_type, exc, tb):  # type: ignore[no-untyped-def]
        try:
            write_error_report(exc, where="sys.excepthook", context={"exc_type": exc_type.__name__})
        except OSError:
            pass
        _ORIGINAL_SYS_EXCEPTHOOK(exc_type, exc, tb)

    sys.excepthook = _sys_excepthook


__all__ = [
    "ENV_DISABLE_CRASH_HOOKS",
    "ENV_ENABLE_CRASH_HOOKS",
    "ENV_ERROR_DIR",
    "ErrorReport",
    "get_error_reports_dir",
    "install_crash_reporting",
    "write_error_report",
]
