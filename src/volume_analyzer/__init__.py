"""VolumeAnalyzer package initialisation."""

__all__ = [
    "core",
    "drivers",
    "fat",
    "fs_detection",
    "layouts",
    "reporting",
    "shared",
    "sysv",
]
