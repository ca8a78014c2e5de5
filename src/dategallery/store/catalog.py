"""Catalog of date buckets to image paths and its browser script rendering.

The catalog is stored as a JSON document (``catalog.json``) and the script
consumed by the gallery page is regenerated from it after every change. The
document records a digest of the script it last rendered; when the script on
disk no longer matches, it was edited by hand and its entries are imported back
before the next change. A legacy script is imported the same way when no JSON
document exists.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from .buckets import validate_date
from .errors import PersistenceError
from .fileio import atomic_write_text, read_text, store_lock

LOGGER = logging.getLogger(__name__)

CatalogMode = Literal["replace", "append"]

SCRIPT_HEADER = (
    "// This file contains all image locations for the gallery slideshow\n"
    "// Organized by date for easy reference\n"
    "// Generated from catalog.json; hand-added date entries are imported on the next update.\n"
)

_HEADER_COMMENTS = frozenset(SCRIPT_HEADER.splitlines())

_ENTRY_PATTERN = re.compile(r"[\"'](\d{4}-\d{2}-\d{2})[\"']\s*:\s*\[([^\]]*)\]", re.DOTALL)
_STRING_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"|\'((?:[^\'\\]|\\.)*)\'', re.DOTALL)
_COMMENT_PATTERN = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)
_DECLARATION_PATTERN = re.compile(r"(?:(?:const|let|var)\s+)?[A-Za-z_$][\w$.]*\s*=\s*\{")
_PUNCTUATION_PATTERN = re.compile(r"[\s,;{}]")


class CatalogDocument(BaseModel):
    """Ordered mapping of date bucket to image paths, newest insertions first."""

    version: int = 1
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    script_sha256: Optional[str] = None
    entries: Dict[str, List[str]] = Field(default_factory=dict)


def render_catalog_script(entries: Dict[str, List[str]], variable: str = "imageLocations") -> str:
    """Render ``entries`` as a script assigning an object literal to ``variable``."""
    blocks = []
    for date, paths in entries.items():
        items = ",\n".join(f"    {json.dumps(path)}" for path in paths)
        body = f"\n{items}\n  " if items else ""
        blocks.append(f"  {json.dumps(date)}: [{body}]")
    inner = ",\n".join(blocks)
    if inner:
        inner += "\n"
    return f"{SCRIPT_HEADER}\nconst {variable} = {{\n{inner}}};\n"


def parse_catalog_script(text: str) -> Dict[str, List[str]]:
    """Extract date entries from a script's object literal.

    Only quoted date keys mapped to arrays of quoted strings are recognised; a
    repeated key keeps its first position and its last value.
    """
    entries: Dict[str, List[str]] = {}
    for match in _ENTRY_PATTERN.finditer(text):
        paths = []
        for item in _STRING_PATTERN.finditer(match.group(2)):
            if item.group(1) is not None:
                try:
                    paths.append(json.loads(f'"{item.group(1)}"'))
                except json.JSONDecodeError:
                    paths.append(item.group(1))
            else:
                paths.append(item.group(2).replace("\\'", "'"))
        entries[match.group(1)] = paths
    return entries


def unrecognised_script_content(text: str) -> str:
    """Return what remains of ``text`` once date entries and comments are removed.

    The variable declaration and structural punctuation are discarded as well,
    so an empty result means :func:`parse_catalog_script` captures everything
    the script assigns.
    """
    residue = _ENTRY_PATTERN.sub("", text)
    residue = _COMMENT_PATTERN.sub("", residue)
    residue = _DECLARATION_PATTERN.sub("", residue, count=1)
    return _PUNCTUATION_PATTERN.sub("", residue)


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class CatalogStore:
    """Persist the catalog document and keep the rendered script in sync."""

    def __init__(
        self,
        data_path: Path,
        script_path: Path,
        *,
        lock_root: Path,
        variable: str = "imageLocations",
    ) -> None:
        self._data_path = data_path
        self._script_path = script_path
        self._lock_root = lock_root
        self._variable = variable

    @property
    def data_path(self) -> Path:
        return self._data_path

    @property
    def script_path(self) -> Path:
        return self._script_path

    def load(self) -> CatalogDocument:
        """Return the catalog, importing script entries edited outside this store.

        When no document exists the script's entries seed a new one. When the
        script differs from the one last rendered, its entries replace the
        document's, so hand-added, hand-edited and hand-removed dates survive
        the next save.

        Raises:
            PersistenceError: If stored data cannot be read or parsed, or the
                script holds content that re-rendering would discard.
        """
        document = self._read_document()
        if not self._script_path.exists():
            return document if document is not None else CatalogDocument()

        script = read_text(self._script_path)
        if document is not None and document.script_sha256 == _digest(script):
            return document

        entries = self._import_script(script)
        if document is None:
            LOGGER.info(
                "Imported %d catalog entries from existing script %s",
                len(entries),
                self._script_path,
            )
            return CatalogDocument(entries=entries)

        LOGGER.warning(
            "Catalog script %s was edited outside dategallery; importing its %d entries",
            self._script_path,
            len(entries),
        )
        document.entries = entries
        return document

    def save(self, document: CatalogDocument) -> None:
        """Regenerate the script and write the document recording its digest."""
        script = render_catalog_script(document.entries, self._variable)
        document.updated_at = datetime.now(timezone.utc)
        document.script_sha256 = _digest(script)
        # Script first: a crash before the document lands is seen as a hand edit.
        atomic_write_text(self._script_path, script)
        atomic_write_text(self._data_path, document.model_dump_json(indent=2) + "\n")

    def _read_document(self) -> CatalogDocument | None:
        if not self._data_path.exists():
            return None
        try:
            return CatalogDocument.model_validate_json(read_text(self._data_path))
        except ValidationError as exc:
            raise PersistenceError(f"Invalid catalog data in {self._data_path}: {exc}") from exc

    def _import_script(self, script: str) -> Dict[str, List[str]]:
        residue = unrecognised_script_content(script)
        if residue:
            raise PersistenceError(
                f"Catalog script {self._script_path} has content outside date entries "
                f"({residue[:40]!r}); move it elsewhere before the script is regenerated."
            )
        extra_comments = [
            comment
            for comment in _COMMENT_PATTERN.findall(script)
            if comment.strip() not in _HEADER_COMMENTS
        ]
        if extra_comments:
            LOGGER.warning(
                "Dropping %d comment(s) from catalog script %s",
                len(extra_comments),
                self._script_path,
            )
        return parse_catalog_script(script)

    def entries(self) -> Dict[str, List[str]]:
        """Return a copy of the current date to paths mapping."""
        return {date: list(paths) for date, paths in self.load().entries.items()}

    def get(self, date: str) -> List[str] | None:
        """Return the paths listed for ``date`` or None when absent."""
        paths = self.load().entries.get(date)
        return list(paths) if paths is not None else None

    def upsert(self, date: str, paths: Sequence[str], mode: CatalogMode = "replace") -> List[str]:
        """Set the catalog entry for ``date``.

        ``replace`` makes the entry equal ``paths``; ``append`` extends the
        existing entry with paths it does not already list. New dates are placed
        first. Other entries are left untouched.

        Returns:
            List[str]: The entry for ``date`` after the update.
        """
        date = validate_date(date)
        with store_lock(self._lock_root):
            document = self.load()
            existing = document.entries.get(date)
            if existing is None:
                document.entries = {date: list(paths), **document.entries}
            elif mode == "append":
                document.entries[date] = existing + [path for path in paths if path not in existing]
            else:
                document.entries[date] = list(paths)
            self.save(document)
            return list(document.entries[date])

    def render(self) -> Path:
        """Regenerate the script from the stored document and return its path."""
        with store_lock(self._lock_root):
            self.save(self.load())
        return self._script_path


__all__ = [
    "CatalogDocument",
    "CatalogMode",
    "CatalogStore",
    "SCRIPT_HEADER",
    "parse_catalog_script",
    "render_catalog_script",
    "unrecognised_script_content",
]
