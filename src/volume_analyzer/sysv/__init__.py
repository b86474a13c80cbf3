"""Rozpoznawanie superbloków rodziny System V."""

from .classifier import SysVClassifier, SysVMatch
from .decoder import SysVSuperblock, decode
from .detector import SysVVolumeDetector

__all__ = [
	"SysVClassifier",
	"SysVMatch",
	"SysVSuperblock",
	"SysVVolumeDetector",
	"decode",
]
