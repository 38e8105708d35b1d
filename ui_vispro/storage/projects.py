"""JSON-file store for generated projects."""

from __future__ import annotations

import json
import logging
import time
import zipfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any
from uuid import uuid4

from ui_vispro.ai.models import GeneratedFile

logger = logging.getLogger(__name__)

MAX_PROJECTS = 50


@dataclass(frozen=True)
class StoredProject:
    """A saved set of generated files with provenance."""

    id: str
    name: str
    timestamp: int
    files: tuple[GeneratedFile, ...]
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "timestamp": self.timestamp,
            "files": [file.to_dict() for file in self.files],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> StoredProject:
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            description=payload.get("description"),
            timestamp=int(payload.get("timestamp", 0)),
            files=tuple(GeneratedFile.from_dict(item) for item in payload.get("files", [])),
            metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
        )


class ProjectStore:
    """Most-recent-first project list persisted to a single JSON file."""

    def __init__(self, path: Path, *, max_projects: int = MAX_PROJECTS) -> None:
        if max_projects <= 0:
            raise ValueError("max_projects must be greater than zero.")
        self.path = path.expanduser()
        self.max_projects = max_projects

    def list_projects(self) -> list[StoredProject]:
        """Return stored projects; an unreadable file counts as empty."""
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [StoredProject.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Could not load projects from %s: %s", self.path, exc)
            return []

    def save_project(
        self,
        files: list[GeneratedFile],
        name: str,
        *,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> StoredProject:
        """Store a new project at the head of the list."""
        if not name.strip():
            raise ValueError("name must be non-empty.")
        project = StoredProject(
            id=str(uuid4()),
            name=name.strip(),
            description=description,
            timestamp=_now_millis(),
            files=tuple(files),
            metadata=metadata or {"provider": "unknown", "model": "unknown"},
        )
        projects = [project, *self.list_projects()][: self.max_projects]
        self._write(projects)
        logger.info("Saved project %s (%s files)", project.id, len(project.files))
        return project

    def get_project(self, project_id: str) -> StoredProject:
        for project in self.list_projects():
            if project.id == project_id:
                return project
        raise KeyError("project not found")

    def update_project(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        files: list[GeneratedFile] | None = None,
    ) -> StoredProject:
        """Apply updates and refresh the timestamp."""
        projects = self.list_projects()
        for index, project in enumerate(projects):
            if project.id != project_id:
                continue
            updated = replace(
                project,
                name=name.strip() if name else project.name,
                description=description if description is not None else project.description,
                files=tuple(files) if files is not None else project.files,
                timestamp=_now_millis(),
            )
            projects[index] = updated
            self._write(projects)
            return updated
        raise KeyError("project not found")

    def save_file(self, project_id: str, file: GeneratedFile) -> StoredProject:
        """Replace the file with the same id or append it."""
        project = self.get_project(project_id)
        files = list(project.files)
        for index, existing in enumerate(files):
            if existing.id == file.id:
                files[index] = file
                break
        else:
            files.append(file)
        return self.update_project(project_id, files=files)

    def delete_project(self, project_id: str) -> bool:
        projects = self.list_projects()
        remaining = [project for project in projects if project.id != project_id]
        if len(remaining) == len(projects):
            return False
        self._write(remaining)
        return True

    def export_zip(self, project_id: str, destination: Path) -> Path:
        """Write the project's files into a ZIP archive at ``destination``."""
        project = self.get_project(project_id)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for file in project.files:
                archive.writestr(file.path.lstrip("/") or file.name, file.content)
        return destination

    def _write(self, projects: list[StoredProject]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(
            json.dumps([project.to_dict() for project in projects], indent=2),
            encoding="utf-8",
        )
        temp_path.replace(self.path)


def _now_millis() -> int:
    return int(time.time() * 1000)
