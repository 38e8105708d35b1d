"""Persistence for generated projects."""

from ui_vispro.storage.projects import ProjectStore, StoredProject

__all__ = ["ProjectStore", "StoredProject"]
