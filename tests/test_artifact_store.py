"""
Tests for the artifact store — listing, lookup, best-effort deletes.
"""

from pathlib import Path

import pytest

from iacgraph.core.errors import ArtifactIOError
from iacgraph.core.services.artifact_store import ArtifactStore, DeleteReport, content_type


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "output"
    d.mkdir()
    for name in ("foo-a.tf", "foo-b.tf", "bar.tf"):
        (d / name).write_text(f"# {name}\n")
    return d


@pytest.fixture
def store(out_dir: Path) -> ArtifactStore:
    return ArtifactStore(out_dir)


class TestListing:
    def test_list_names(self, store: ArtifactStore):
        assert store.list_names() == ["bar", "foo-a", "foo-b"]

    def test_missing_directory_is_empty(self, tmp_path: Path):
        assert ArtifactStore(tmp_path / "nope").list_names() == []

    def test_unreadable_directory(self, tmp_path: Path):
        not_a_dir = tmp_path / "file"
        not_a_dir.write_text("x")
        with pytest.raises(ArtifactIOError):
            ArtifactStore(not_a_dir).list_names()

    def test_list_artifacts(self, store: ArtifactStore):
        items = store.list_artifacts()
        bar = items[0]
        assert bar.name == "bar"
        assert bar.filename == "bar.tf"
        assert bar.size == len("# bar.tf\n")
        assert bar.to_dict()["content_type"] == "text/plain"


class TestReading:
    def test_read(self, store: ArtifactStore):
        assert store.read("bar") == b"# bar.tf\n"

    def test_read_missing(self, store: ArtifactStore):
        assert store.read("missing") is None
        assert store.get("missing") is None

    @pytest.mark.parametrize("name", ["../secret", "a/b", "..", ".", "", "a\\b"])
    def test_path_escape_rejected(self, store: ArtifactStore, name: str):
        assert store.get(name) is None


class TestDeleting:
    def test_delete_matching(self, store: ArtifactStore, out_dir: Path):
        report = store.delete_matching("foo")
        assert report.count == 2
        assert report.status == "ok"
        assert sorted(report.deleted) == ["foo-a.tf", "foo-b.tf"]
        assert [p.name for p in out_dir.iterdir()] == ["bar.tf"]

    def test_delete_no_match(self, store: ArtifactStore):
        report = store.delete_matching("zzz")
        assert report.status == "not_found"
        assert report.count == 0

    def test_delete_empty_fragment(self, store: ArtifactStore):
        report = store.delete_matching("")
        assert report.status == "not_found"
        assert report.count == 0
        assert report.to_dict()["status"] == "not_found"
        assert store.list_names() == ["bar", "foo-a", "foo-b"]

    def test_delete_all(self, store: ArtifactStore, out_dir: Path):
        report = store.delete_all()
        assert report.count == 3
        assert report.status == "ok"
        assert list(out_dir.iterdir()) == []

    def test_delete_all_when_empty(self, tmp_path: Path):
        report = ArtifactStore(tmp_path).delete_all()
        assert report.status == "ok"
        assert report.count == 0

    def test_partial_failure_continues(self, store: ArtifactStore, monkeypatch: pytest.MonkeyPatch):
        real_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "foo-a.tf":
                raise PermissionError("read-only")
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)
        report = store.delete_matching("foo")

        assert report.status == "partial"
        assert report.deleted == ["foo-b.tf"]
        assert "read-only" in report.failed["foo-a.tf"]
        assert report.matched == 2


class TestDeleteReport:
    def test_match_without_hits_is_not_found(self):
        assert DeleteReport(target="", match_mode=True).status == "not_found"
        assert DeleteReport(target="foo", match_mode=True).status == "not_found"

    def test_delete_all_without_files_is_ok(self):
        assert DeleteReport().status == "ok"

    def test_failed_only(self):
        report = DeleteReport(target="x", failed={"x.tf": "denied"})
        assert report.status == "failed"

    def test_to_dict(self):
        report = DeleteReport(target="foo", deleted=["foo.tf"])
        assert report.to_dict() == {
            "target": "foo",
            "status": "ok",
            "deleted": ["foo.tf"],
            "failed": {},
            "count": 1,
        }


class TestContentType:
    @pytest.mark.parametrize("filename,expected", [
        ("main.tf", "text/plain"),
        ("index.html", "text/html"),
        ("data.JSON", "application/json"),
        ("image.png", "image/png"),
        ("archive.zip", "application/octet-stream"),
        ("noext", "application/octet-stream"),
    ])
    def test_mapping(self, filename: str, expected: str):
        assert content_type(filename) == expected
