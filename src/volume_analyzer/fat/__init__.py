"""Rozpoznawanie i dekodowanie wariantów sektora rozruchowego FAT."""

from .classifier import ClassificationResult, FatClassifier, Unrecognized, UnrecognizedReason
from .decoder import FatSubtype, NormalizedVolumeDescriptor, decode
from .detector import FatVolumeDetector
from .directory import DirectoryTimestampFields

__all__ = [
	"ClassificationResult",
	"DirectoryTimestampFields",
	"FatClassifier",
	"FatSubtype",
	"FatVolumeDetector",
	"NormalizedVolumeDescriptor",
	"Unrecognized",
	"UnrecognizedReason",
	"decode",
]
