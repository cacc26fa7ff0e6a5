import pytest
from click.testing import CliRunner

from conftest import requires_git

from tuzuru import __version__
from tuzuru.cli import _csv_table, _truncate, cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def outside_git(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("TUZURU_SKIP_GIT_INIT", "1")


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_scaffolds_project(runner, tmp_path, monkeypatch, outside_git):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli, ["init"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "tuzuru.yaml").exists()
    assert (tmp_path / "templates" / "layout.html.jinja").exists()
    assert (tmp_path / "assets" / "main.css").exists()
    assert (tmp_path / "contents" / "unlisted").is_dir()
    gitignore = (tmp_path / ".gitignore").read_text(encoding="utf-8").splitlines()
    assert ".build/" in gitignore
    assert "blog/" in gitignore
    assert not (tmp_path / ".git").exists()


def test_init_refuses_existing_config(runner, tmp_path, monkeypatch, outside_git):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "tuzuru.yaml").write_text("metadata: {}\n", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("node_modules/", encoding="utf-8")
    result = runner.invoke(cli, ["init"])
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert (tmp_path / "tuzuru.yaml").read_text(encoding="utf-8") == "metadata: {}\n"


def test_init_keeps_user_templates(runner, tmp_path, monkeypatch, outside_git):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "post.html.jinja").write_text("mine", encoding="utf-8")
    (tmp_path / ".gitignore").write_text("node_modules/", encoding="utf-8")
    assert runner.invoke(cli, ["init"]).exit_code == 0
    assert (tmp_path / "templates" / "post.html.jinja").read_text(encoding="utf-8") == "mine"
    assert (tmp_path / ".gitignore").read_text(encoding="utf-8") == "node_modules/\n.build/\nblog/\n"


def test_generate_builds_site(runner, project, monkeypatch, outside_git):
    (project / "contents" / "hello.md").write_text("# Hello\n\nBody.\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = runner.invoke(cli, ["generate"])
    assert result.exit_code == 0, result.output
    assert "blog/hello/index.html" in result.output
    assert "Generated 3 files" in result.output
    assert (project / "blog" / "index.html").exists()
    assert (project / ".build" / "manifest.json").exists()


def test_generate_reports_missing_title(runner, project, monkeypatch, outside_git):
    (project / "contents" / "bad.md").write_text("No heading here.\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = runner.invoke(cli, ["generate"])
    assert result.exit_code == 1
    assert "Generate failed:" in result.output
    assert "File: contents/bad.md" in result.output
    assert not (project / ".build" / "manifest.json").exists()


def test_generate_with_missing_config_file(runner, project, monkeypatch, outside_git):
    monkeypatch.chdir(project)
    result = runner.invoke(cli, ["generate", "-c", "missing.yaml"])
    assert result.exit_code == 1
    assert "Configuration file not found" in result.output


@requires_git
def test_list_prints_csv(runner, git_repo, commit, monkeypatch):
    commit("contents/tech/hello.md", "# Hello, world\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    commit(
        "contents/long.md",
        "# " + "A very long title " * 4 + "\n",
        author="Bob",
        date="2023-03-03 10:00:00 +0000",
    )
    commit("contents/unlisted/about.md", "# About\n", author="Alice", date="2020-01-01 10:00:00 +0000")
    monkeypatch.chdir(git_repo)

    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if not line.startswith("[tuzuru]")]
    assert lines[0] == "Published At,Author,Title,File Path"
    assert lines[1] == '2024-01-15,Alice,"Hello, world",tech/hello.md'
    assert lines[2] == "2023-03-03,Bob,A very long title A very long title A...,long.md"
    assert lines[3] == "2020-01-01,Alice,About,about.md"


@requires_git
def test_amend_command(runner, git_repo, commit, monkeypatch):
    commit("contents/post.md", "# Post\n", author="Alice", date="2024-01-15 10:00:00 +0000")
    monkeypatch.chdir(git_repo)
    result = runner.invoke(cli, ["amend", "contents/post.md", "--author", "Zed"])
    assert result.exit_code == 0, result.output
    assert "Amended contents/post.md: Zed, 2024-01-15T10:00:00+00:00" in result.output


def test_amend_command_rejects_bad_date(runner, tmp_path, monkeypatch, outside_git):
    (tmp_path / "post.md").write_text("# Post\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli, ["amend", "post.md", "--published-at", "someday"])
    assert result.exit_code == 1
    assert "Amend failed:" in result.output
    assert "someday" in result.output


def test_preview_starts_server(runner, project, monkeypatch):
    started = {}

    class FakeServer:
        def __init__(self, config, port, host):
            started.update(root=config.root, port=port, host=host)

        def start(self):
            started["running"] = True

    monkeypatch.setattr("tuzuru.server.PreviewServer", FakeServer)
    monkeypatch.chdir(project)
    result = runner.invoke(cli, ["preview", "--port", "9000"])
    assert result.exit_code == 0, result.output
    assert started == {"root": project.resolve(), "port": 9000, "host": "127.0.0.1", "running": True}


def test_csv_and_truncate_helpers():
    row = {"Published At": "2024-01-01", "Author": 'say "hi"', "Title": "x,y", "File Path": "a.md"}
    assert _csv_table([row]) == 'Published At,Author,Title,File Path\n2024-01-01,"say ""hi""","x,y",a.md\n'
    assert _truncate("short", 40) == "short"
    assert _truncate("x" * 50, 40) == "x" * 37 + "..."
