"""Tabele geometrii nośników bez BPB oraz znane sygnatury kodu rozruchowego."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

_DATA_PACKAGE = "volume_analyzer.data"
_DEFAULT_FILE = "floppy_geometries.json"


@dataclass(frozen=True, slots=True)
class PresetGeometry:
    """Zakodowana na sztywno geometria FAT12 dla nośników bez BPB."""

    name: str
    media_descriptor: int
    total_sectors: int
    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    fat_count: int
    root_entries: int
    sectors_per_track: int
    heads: int
    sectors_per_fat: int
    second_fat_lba: Optional[int] = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class GeometryCatalog:
    """Niezmienny katalog geometrii wczytywany raz z pliku danych."""

    dec_rainbow: PresetGeometry
    dec_fat_lbas: Tuple[int, ...]
    dec_root_directory_lbas: Tuple[int, ...]
    legacy: Mapping[Tuple[int, int, int], PresetGeometry]

    def lookup(self, fat_id: int, total_sectors: int, bytes_per_sector: int) -> Optional[PresetGeometry]:
        """Zwraca geometrię dla identyfikatora FAT i rozmiaru nośnika."""

        return self.legacy.get((fat_id, total_sectors, bytes_per_sector))


@dataclass(frozen=True, slots=True)
class BootCodeSignature:
    """Znany kod rozruchowy identyfikowany skrótem SHA-1."""

    name: str
    sha1: str


def _hex(value: str | int) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def _parse_preset(raw: dict) -> PresetGeometry:
    second_fat = raw.get("second_fat_lba")
    return PresetGeometry(
        name=raw["name"],
        media_descriptor=_hex(raw["media_descriptor"]),
        total_sectors=raw["total_sectors"],
        bytes_per_sector=raw["bytes_per_sector"],
        sectors_per_cluster=raw["sectors_per_cluster"],
        reserved_sectors=raw["reserved_sectors"],
        fat_count=raw["fat_count"],
        root_entries=raw["root_entries"],
        sectors_per_track=raw["sectors_per_track"],
        heads=raw["heads"],
        sectors_per_fat=raw["sectors_per_fat"],
        second_fat_lba=second_fat if second_fat is None else int(second_fat),
        description=raw.get("description", ""),
    )


def _load_raw_config(path: Path | None = None) -> dict:
    if path is not None:
        with Path(path).open("r", encoding="utf-8") as handle:
            return json.load(handle)
    with resources.files(_DATA_PACKAGE).joinpath(_DEFAULT_FILE).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def _parse_catalog(raw: dict) -> GeometryCatalog:
    dec = raw["dec_rainbow"]
    legacy: Dict[Tuple[int, int, int], PresetGeometry] = {}
    for entry in raw.get("legacy", []):
        preset = _parse_preset(entry)
        key = (preset.media_descriptor, preset.total_sectors, preset.bytes_per_sector)
        if key in legacy:
            raise ValueError(f"Zduplikowany wpis geometrii: {preset.name}")
        legacy[key] = preset
    return GeometryCatalog(
        dec_rainbow=_parse_preset(dec),
        dec_fat_lbas=tuple(_hex(value) for value in dec["fat_lbas"]),
        dec_root_directory_lbas=tuple(_hex(value) for value in dec["root_directory_lbas"]),
        legacy=MappingProxyType(legacy),
    )


def load_geometry_catalog(path: Path | None = None) -> GeometryCatalog:
    """Wczytuje katalog geometrii z domyślnego zasobu lub wskazanego pliku."""

    return _parse_catalog(_load_raw_config(path))


@lru_cache(maxsize=1)
def load_default_geometry_catalog() -> GeometryCatalog:
    """Wczytuje i cache'uje katalog geometrii z zasobu pakietu."""

    return load_geometry_catalog()


def load_boot_signatures(path: Path) -> List[BootCodeSignature]:
    """Wczytuje listę znanych kodów rozruchowych (``[{"name", "sha1"}]``)."""

    with Path(path).open("r", encoding="utf-8") as handle:
        raw_config: Sequence[dict] = json.load(handle)
    return [BootCodeSignature(name=entry["name"], sha1=entry["sha1"].lower()) for entry in raw_config]


__all__ = [
    "BootCodeSignature",
    "GeometryCatalog",
    "PresetGeometry",
    "load_boot_signatures",
    "load_default_geometry_catalog",
    "load_geometry_catalog",
]
