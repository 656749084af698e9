"""
Artifact store — list, read, and delete generated files.

Channel-independent: no Flask or HTTP dependency.  Artifacts are
addressed by name without extension; the store appends the
generation extension (``.tf``) when reading.

Deletes are best effort: every matching file is attempted, and the
DeleteReport says which went and which did not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from iacgraph.core.errors import ArtifactIOError

logger = logging.getLogger(__name__)


_MIME_TYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".json": "application/json",
    ".css": "text/css",
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".pdf": "application/pdf",
    ".tf": "text/plain",
}
_DEFAULT_MIME = "application/octet-stream"


def content_type(filename: str) -> str:
    """Content type for a file name, by extension."""
    return _MIME_TYPES.get(Path(filename).suffix.lower(), _DEFAULT_MIME)


@dataclass(frozen=True)
class Artifact:
    name: str
    extension: str
    path: Path
    size: int

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def content_type(self) -> str:
        return content_type(self.path.name)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "filename": self.filename,
            "size": self.size,
            "content_type": self.content_type,
        }


@dataclass
class DeleteReport:
    """Outcome of a (possibly partial) multi-file delete."""

    target: str = ""
    match_mode: bool = False  # True for delete-by-fragment; zero matches is not_found
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)   # file → error

    @property
    def matched(self) -> int:
        return len(self.deleted) + len(self.failed)

    @property
    def count(self) -> int:
        return len(self.deleted)

    @property
    def status(self) -> str:
        if self.failed and self.deleted:
            return "partial"
        if self.failed:
            return "failed"
        if self.match_mode and not self.deleted:
            return "not_found"
        return "ok"

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "status": self.status,
            "deleted": self.deleted,
            "failed": self.failed,
            "count": self.count,
        }


class ArtifactStore:
    """Operations over one output directory.

    Args:
        root: The output directory.
        extension: Extension appended to artifact names on lookup.
    """

    def __init__(self, root: Path, extension: str = ".tf"):
        self.root = Path(root)
        self.extension = extension

    # ── Listing ─────────────────────────────────────────────────

    def _files(self) -> list[Path]:
        if not self.root.exists():
            return []
        try:
            return sorted(p for p in self.root.iterdir() if p.is_file())
        except OSError as e:
            logger.error("Error reading output directory %s: %s", self.root, e)
            raise ArtifactIOError(f"Could not list files: {e}", path=str(self.root)) from e

    def list_names(self) -> list[str]:
        """Artifact names (file stems), sorted.

        Raises:
            ArtifactIOError: The directory exists but cannot be read.
        """
        return sorted({p.stem for p in self._files()})

    def list_artifacts(self) -> list[Artifact]:
        return [self._artifact(p) for p in self._files()]

    # ── Reading ─────────────────────────────────────────────────

    def get(self, name: str) -> Artifact | None:
        """Look up ``name + extension``; None when absent."""
        path = self._resolve(name)
        if path is None or not path.is_file():
            return None
        return self._artifact(path)

    def read(self, name: str) -> bytes | None:
        """File content for ``name``, or None when it does not exist."""
        artifact = self.get(name)
        if artifact is None:
            return None
        try:
            return artifact.path.read_bytes()
        except FileNotFoundError:
            return None  # deleted between lookup and read

    # ── Deleting ────────────────────────────────────────────────

    def delete_matching(self, fragment: str) -> DeleteReport:
        """Delete every file whose name contains ``fragment``.

        Returns:
            DeleteReport; status ``not_found`` when nothing matched.
        """
        report = DeleteReport(target=fragment, match_mode=True)
        if not fragment:
            return report
        self._delete_each([p for p in self._files() if fragment in p.name], report)
        logger.info(
            "Deleted %d/%d artifact(s) matching '%s'",
            report.count, report.matched, fragment,
        )
        return report

    def delete_all(self) -> DeleteReport:
        """Delete every file in the output directory."""
        report = DeleteReport()
        self._delete_each(self._files(), report)
        logger.info("Deleted %d/%d artifact(s)", report.count, report.matched)
        return report

    # ── Internal helpers ────────────────────────────────────────

    def _delete_each(self, paths: list[Path], report: DeleteReport) -> None:
        for path in paths:
            try:
                path.unlink()
                report.deleted.append(path.name)
            except OSError as e:
                logger.error("Error deleting file %s: %s", path.name, e)
                report.failed[path.name] = str(e)

    def _resolve(self, name: str) -> Path | None:
        """Path for an artifact name, refusing anything outside the root."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.root / f"{name}{self.extension}"

    def _artifact(self, path: Path) -> Artifact:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return Artifact(name=path.stem, extension=path.suffix, path=path, size=size)
