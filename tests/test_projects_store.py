"""Tests for the JSON project store."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from ui_vispro.ai.models import GeneratedFile
from ui_vispro.storage.projects import ProjectStore


def _file(name: str, content: str = "code") -> GeneratedFile:
    return GeneratedFile(name=name, content=content, path=f"/generated/{name}", kind="tsx")


def test_save_and_reload_project(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")

    saved = store.save_project([_file("App.tsx")], " Landing ", description="Hero page")
    reloaded = ProjectStore(tmp_path / "projects.json").get_project(saved.id)

    assert reloaded == saved
    assert reloaded.name == "Landing"
    assert reloaded.metadata == {"provider": "unknown", "model": "unknown"}


def test_projects_are_listed_newest_first_and_capped(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json", max_projects=2)

    store.save_project([_file("A.tsx")], "first")
    store.save_project([_file("B.tsx")], "second")
    store.save_project([_file("C.tsx")], "third")

    assert [project.name for project in store.list_projects()] == ["third", "second"]


def test_missing_or_corrupt_file_lists_nothing(tmp_path: Path) -> None:
    path = tmp_path / "projects.json"
    store = ProjectStore(path)
    assert store.list_projects() == []

    path.write_text("{not json", encoding="utf-8")
    assert store.list_projects() == []


def test_get_unknown_project_raises_key_error(tmp_path: Path) -> None:
    with pytest.raises(KeyError):
        ProjectStore(tmp_path / "projects.json").get_project("missing")


def test_update_project_replaces_files(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")
    saved = store.save_project([_file("App.tsx")], "Landing")

    updated = store.update_project(saved.id, files=[_file("App.tsx", "new")], name="Renamed")

    assert updated.name == "Renamed"
    assert updated.files[0].content == "new"
    assert updated.timestamp >= saved.timestamp
    assert store.get_project(saved.id) == updated


def test_save_file_replaces_by_id_or_appends(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")
    original = _file("App.tsx")
    saved = store.save_project([original], "Landing")

    edited = GeneratedFile(
        name="App.tsx", content="edited", path=original.path, kind="tsx", id=original.id
    )
    store.save_file(saved.id, edited)
    project = store.save_file(saved.id, _file("Footer.tsx"))

    assert [(file.name, file.content) for file in project.files] == [
        ("App.tsx", "edited"),
        ("Footer.tsx", "code"),
    ]


def test_delete_project(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")
    saved = store.save_project([_file("App.tsx")], "Landing")

    assert store.delete_project(saved.id) is True
    assert store.delete_project(saved.id) is False
    assert store.list_projects() == []


def test_export_zip_uses_file_paths(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")
    saved = store.save_project([_file("App.tsx", "export default App;")], "Landing")

    archive_path = store.export_zip(saved.id, tmp_path / "out" / "landing.zip")

    with zipfile.ZipFile(archive_path) as archive:
        assert archive.namelist() == ["generated/App.tsx"]
        assert archive.read("generated/App.tsx").decode("utf-8") == "export default App;"


def test_save_project_requires_name(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        ProjectStore(tmp_path / "projects.json").save_project([], "  ")
