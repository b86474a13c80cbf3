"""Adaptery źródeł danych (obrazy dysków, bufory w pamięci)."""

from .base import DataSourceDriver, DriverCapabilities, DriverError, SectorOutOfRangeError, SectorSource
from .sectors import MemorySectorSource, ReaderSectorSource

__all__ = [
	"DataSourceDriver",
	"DriverCapabilities",
	"DriverError",
	"SectorOutOfRangeError",
	"SectorSource",
	"MemorySectorSource",
	"ReaderSectorSource",
]
