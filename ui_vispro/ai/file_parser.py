"""Split one model response into named files.

Heading format, version 1: a line made of ``#``, whitespace and a bare
filename with a recognized extension, e.g. ``# Header.tsx``. Everything
between two headings belongs to the first. Text before the first heading is
not part of any file. A response without headings is spread over a fixed
list of default markdown files in equal character chunks.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable
from pathlib import PurePosixPath

from ui_vispro.ai.models import GeneratedFile

logger = logging.getLogger(__name__)

HEADING_FORMAT_VERSION = 1

RECOGNIZED_EXTENSIONS: tuple[str, ...] = (
    "md",
    "mdx",
    "tsx",
    "ts",
    "jsx",
    "js",
    "css",
    "scss",
    "json",
    "html",
    "py",
    "txt",
    "yml",
    "yaml",
)

DEFAULT_FILENAMES: tuple[str, ...] = (
    "project-setup.md",
    "folder-structure.md",
    "components.md",
    "styling.md",
    "implementation-plan.md",
)

GENERATED_ROOT = "/generated"

HEADING_PATTERN = re.compile(
    r"^#[ \t]+([\w.-]+\.(?:" + "|".join(RECOGNIZED_EXTENSIONS) + r"))[ \t]*\r?$",
    re.MULTILINE,
)

_KIND_BY_EXTENSION = {"md": "markdown", "mdx": "markdown", "json": "json"}

FILE_SEPARATOR = "\n\n"


def kind_for(name: str) -> str:
    """Classify a file by extension."""
    extension = PurePosixPath(name).suffix.lstrip(".").lower()
    return _KIND_BY_EXTENSION.get(extension, extension or "text")


def generated_path(name: str) -> str:
    return f"{GENERATED_ROOT}/{name}"


def _new_file(name: str, content: str) -> GeneratedFile:
    return GeneratedFile(name=name, content=content, path=generated_path(name), kind=kind_for(name))


def parse_generated_files(raw_text: str) -> list[GeneratedFile]:
    """Parse ``raw_text`` into files; never returns an empty list."""
    matches = list(HEADING_PATTERN.finditer(raw_text))
    if not matches:
        return _partition_default(raw_text)

    if raw_text[: matches[0].start()].strip():
        logger.debug("Discarding text before first file heading.")
    files: list[GeneratedFile] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(raw_text)
        content = raw_text[match.end() : end].strip()
        files.append(_new_file(match.group(1), content))
    return files


def _partition_default(raw_text: str) -> list[GeneratedFile]:
    """Spread text over the default filenames without losing characters."""
    logger.debug("No file headings found; using default partition.")
    size = math.ceil(len(raw_text) / len(DEFAULT_FILENAMES)) if raw_text else 0
    files: list[GeneratedFile] = []
    for index, name in enumerate(DEFAULT_FILENAMES):
        start = index * size
        files.append(_new_file(name, raw_text[start : start + size]))
    return files


def serialize_files(files: Iterable[GeneratedFile]) -> str:
    """Render files back into the heading format."""
    return FILE_SEPARATOR.join(f"# {file.name}\n\n{file.content}" for file in files)
