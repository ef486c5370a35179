from pathlib import Path

from click.testing import CliRunner

from folio import __version__
from folio.cli import cli


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "blog"
    (project / "content").mkdir(parents=True)
    (project / "config.toml").write_text('title = "CLI Blog"\n', encoding="utf-8")
    (project / "content" / "hello.md").write_text(
        '+++\ntitle = "Hello"\ndate = 2024-01-01\n+++\nSee [x](/blog/nowhere).\n',
        encoding="utf-8",
    )
    return project


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_reports_success_and_warnings(tmp_path):
    project = create_project(tmp_path)
    result = CliRunner().invoke(cli, ["--root", str(project), "build"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Built 1 documents" in result.output
    assert "(1 warnings)" in result.output
    assert "Warning: LinkWarning: content/hello.md:5:" in result.output
    assert (project / "public" / "hello" / "index.html").exists()


def test_build_output_dir_and_base_url(tmp_path):
    project = create_project(tmp_path)
    out = tmp_path / "dist"
    result = CliRunner().invoke(
        cli,
        ["--root", str(project), "build", "-o", str(out), "--base-url", "https://example.org"],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    assert 'href="https://example.org/hello/"' in (out / "index.html").read_text(encoding="utf-8")
    assert (out / "rss.xml").exists()


def test_build_failure_exits_non_zero(tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "bad.md").write_text("+++\ndate = 2024-01-01\n+++\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--root", str(project), "build"])

    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: content/bad.md:1" in result.output
    assert "Error: FrontMatterError: Missing required field 'title'" in result.output
    assert not (project / "public").exists()


def test_invalid_config_exits_non_zero(tmp_path):
    project = create_project(tmp_path)
    (project / "config.toml").write_text("title = [\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--root", str(project), "build"])

    assert result.exit_code == 1
    assert "ConfigError" in result.output


def test_check_writes_nothing(tmp_path):
    project = create_project(tmp_path)
    result = CliRunner().invoke(cli, ["--root", str(project), "check"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Checked 1 documents (1 warnings)" in result.output
    assert not (project / "public").exists()


def test_serve_passes_options(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, config, **kwargs):
            called["root"] = root
            called["title"] = config.title
            called.update(kwargs)

        def start(self):
            called["started"] = True

    monkeypatch.setattr("folio.server.DevServer", DummyServer)

    result = CliRunner().invoke(
        cli,
        ["--root", str(project), "serve", "--drafts", "-p", "5050", "-i", "0.0.0.0"],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    assert called["root"] == project.resolve()
    assert called["title"] == "CLI Blog"
    assert called["port"] == 5050
    assert called["interface"] == "0.0.0.0"
    assert called["include_drafts"] is True
    assert called["started"] is True


def test_module_main_entrypoint():
    from folio.__main__ import main

    assert callable(main)
