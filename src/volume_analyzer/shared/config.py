"""Konfiguracja aplikacji."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

ENV_FAT_ENCODING = "VOLUMEANALYZER_FAT_ENCODING"
ENV_SYSV_ENCODING = "VOLUMEANALYZER_SYSV_ENCODING"
ENV_BOOT_HASHES = "VOLUMEANALYZER_BOOT_HASHES"
ENV_GEOMETRIES = "VOLUMEANALYZER_GEOMETRIES"


def _checked_encoding(name: str) -> str:
    try:
        codecs.lookup(name)
    except LookupError as exc:
        raise ValueError(f"Nieznane kodowanie znaków: {name}") from exc
    return name


@dataclass(slots=True)
class AppConfig:
    """Konfiguracja ogólna aplikacji.

    ``fat_encoding`` dotyczy etykiet i nazw OEM w BPB, ``sysv_encoding``
    nazw wolumenu i paczki w superblokach System V.
    """

    workspace_dir: Path
    fat_encoding: str = "cp437"
    sysv_encoding: str = "iso-8859-15"
    boot_hashes_path: Optional[Path] = None
    geometries_path: Optional[Path] = None

    def __post_init__(self) -> None:
        _checked_encoding(self.fat_encoding)
        _checked_encoding(self.sysv_encoding)

    @classmethod
    def default(cls) -> "AppConfig":
        """Tworzy domyślną konfigurację."""

        return cls(workspace_dir=Path.cwd())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Domyślna konfiguracja nadpisana zmiennymi ``VOLUMEANALYZER_*``."""

        env = os.environ if environ is None else environ
        config = cls.default()
        fat_encoding = (env.get(ENV_FAT_ENCODING) or "").strip()
        sysv_encoding = (env.get(ENV_SYSV_ENCODING) or "").strip()
        boot_hashes = (env.get(ENV_BOOT_HASHES) or "").strip()
        geometries = (env.get(ENV_GEOMETRIES) or "").strip()
        return replace(
            config,
            fat_encoding=fat_encoding or config.fat_encoding,
            sysv_encoding=sysv_encoding or config.sysv_encoding,
            boot_hashes_path=Path(boot_hashes) if boot_hashes else None,
            geometries_path=Path(geometries) if geometries else None,
        )


__all__ = ["AppConfig", "ENV_BOOT_HASHES", "ENV_FAT_ENCODING", "ENV_GEOMETRIES", "ENV_SYSV_ENCODING"]
