import pytest

from folio.cancel import CancelToken
from folio.emitter import Artifact, Emitter, collect_static
from folio.errors import BuildCancelled, EmitError


def test_emit_writes_artifacts(tmp_path):
    out = tmp_path / "public"
    report = Emitter(out).emit(
        [Artifact.text("index.html", "home"), Artifact.text("a/b/index.html", "deep")]
    )
    assert (out / "index.html").read_text(encoding="utf-8") == "home"
    assert (out / "a" / "b" / "index.html").read_text(encoding="utf-8") == "deep"
    assert report.written == ["a/b/index.html", "index.html"]
    assert not list(out.rglob("*.folio-tmp"))


def test_unchanged_files_are_not_rewritten(tmp_path):
    out = tmp_path / "public"
    emitter = Emitter(out)
    emitter.emit([Artifact.text("index.html", "home")])
    mtime = (out / "index.html").stat().st_mtime_ns

    report = emitter.emit([Artifact.text("index.html", "home")])

    assert report.written == []
    assert report.unchanged == ["index.html"]
    assert (out / "index.html").stat().st_mtime_ns == mtime


def test_duplicate_paths_rejected(tmp_path):
    out = tmp_path / "public"
    with pytest.raises(EmitError, match="share the output path x.txt"):
        Emitter(out).emit([Artifact.text("x.txt", "first"), Artifact.text("x.txt", "second")])
    assert not out.exists()


def test_stale_files_and_empty_dirs_removed(tmp_path):
    out = tmp_path / "public"
    emitter = Emitter(out)
    emitter.emit([Artifact.text("keep.html", "k"), Artifact.text("old/index.html", "o")])

    report = emitter.emit([Artifact.text("keep.html", "k")])

    assert report.removed == ["old/index.html"]
    assert not (out / "old").exists()
    assert (out / "keep.html").exists()


@pytest.mark.parametrize("path", ["../escape.html", "/etc/passwd", "a/../../b"])
def test_paths_outside_output_rejected(tmp_path, path):
    with pytest.raises(EmitError):
        Emitter(tmp_path / "public").emit([Artifact.text(path, "x")])


def test_cancel_stops_before_writing(tmp_path):
    out = tmp_path / "public"
    out.mkdir()
    (out / "stale.html").write_text("s", encoding="utf-8")
    token = CancelToken()
    token.cancel()

    with pytest.raises(BuildCancelled):
        Emitter(out).emit([Artifact.text("index.html", "home")], token)

    assert not (out / "index.html").exists()
    assert (out / "stale.html").exists()


def test_write_failure_commits_nothing(tmp_path):
    out = tmp_path / "public"
    (out / "index.html").mkdir(parents=True)
    (out / "index.html" / "inner").write_text("x", encoding="utf-8")

    with pytest.raises(EmitError) as excinfo:
        Emitter(out).emit([Artifact.text("a/page.html", "a"), Artifact.text("index.html", "home")])

    assert excinfo.value.source_path == out / "index.html"
    assert not (out / "a").exists()
    assert not list(out.rglob("*.folio-tmp"))


class CancelAfter(CancelToken):
    def __init__(self, checks):
        super().__init__()
        self.checks = checks

    def raise_if_cancelled(self):
        self.checks -= 1
        if self.checks < 0:
            self.cancel()
        super().raise_if_cancelled()


def test_cancel_midway_discards_staged_files(tmp_path):
    out = tmp_path / "public"

    with pytest.raises(BuildCancelled):
        Emitter(out).emit(
            [Artifact.text("one/index.html", "1"), Artifact.text("two/index.html", "2")],
            CancelAfter(1),
        )

    assert not out.exists()


def test_collect_static(tmp_path):
    static = tmp_path / "static"
    (static / "css").mkdir(parents=True)
    (static / "css" / "site.css").write_text("body{}", encoding="utf-8")
    (static / "robots.txt").write_text("ok", encoding="utf-8")

    artifacts = collect_static(static)

    assert [a.path for a in artifacts] == ["css/site.css", "robots.txt"]
    assert artifacts[0].data == b"body{}"
    assert collect_static(tmp_path / "missing") == []
