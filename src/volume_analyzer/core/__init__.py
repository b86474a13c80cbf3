"""Warstwa logiki domenowej: modele, sesja i orkiestracja analizy."""

from . import models, session, tasks

__all__ = [
	"models",
	"session",
	"tasks",
]
