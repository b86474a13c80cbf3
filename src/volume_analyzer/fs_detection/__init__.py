"""Logika wykrywania systemów plików i wolumenów."""

from .detector import DetectionOutcome, FileSystemDetector, VolumeDetector, VolumeFamilyDetector, volume_geometry

__all__ = [
	"DetectionOutcome",
	"FileSystemDetector",
	"VolumeDetector",
	"VolumeFamilyDetector",
	"volume_geometry",
]
