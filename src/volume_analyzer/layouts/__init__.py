"""Opisy układów binarnych, predykaty wiarygodności i tabele geometrii."""

from .catalog import (
    BootCodeSignature,
    GeometryCatalog,
    PresetGeometry,
    load_boot_signatures,
    load_default_geometry_catalog,
    load_geometry_catalog,
)
from .fields import ByteOrder, Field, FieldKind, FieldReader
from .outcome import Unrecognized, UnrecognizedReason
from .registry import LAYOUTS, LayoutDescriptor, LayoutFamily, LayoutKind, layout

__all__ = [
	"BootCodeSignature",
	"ByteOrder",
	"Field",
	"FieldKind",
	"FieldReader",
	"GeometryCatalog",
	"LAYOUTS",
	"LayoutDescriptor",
	"LayoutFamily",
	"LayoutKind",
	"PresetGeometry",
	"Unrecognized",
	"UnrecognizedReason",
	"layout",
	"load_boot_signatures",
	"load_default_geometry_catalog",
	"load_geometry_catalog",
]
