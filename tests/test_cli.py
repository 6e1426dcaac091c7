"""CLI tests using typer's CliRunner against the in-memory backend."""

import pytest
from typer.testing import CliRunner

from azblob_fs import cli
from azblob_fs.cli import app

START_TIME = 1_700_000_000

runner = CliRunner()


@pytest.fixture
def use_fs(fs, monkeypatch):
    """Route every command to the in-memory filesystem."""
    monkeypatch.setattr(cli, "_get_filesystem", lambda container: fs)
    return fs


@pytest.fixture
def local_file(tmp_path):
    def _make(name, contents):
        path = tmp_path / name
        path.write_bytes(contents)
        return path
    return _make


class TestPutAndCat:
    """Upload and read back."""

    def test_put_then_cat(self, use_fs, local_file):
        source = local_file("hello.txt", b"hello world")
        result = runner.invoke(app, ["put", str(source), "docs/hello.txt"])
        assert result.exit_code == 0, result.output
        assert "Uploaded" in result.output
        assert use_fs.get_mime_type("docs/hello.txt") == "text/plain"

        result = runner.invoke(app, ["cat", "docs/hello.txt"])
        assert result.exit_code == 0
        assert result.output == "hello world"

    def test_put_reports_archived_version(self, use_fs, local_file, clock):
        source = local_file("a.txt", b"one")
        runner.invoke(app, ["put", str(source), "a.txt"])
        clock.advance(3)
        result = runner.invoke(app, ["put", str(source), "a.txt"])
        assert result.exit_code == 0
        assert f"archived as version {START_TIME + 3}" in result.output

    def test_put_content_type(self, use_fs, local_file):
        source = local_file("blob", b"{}")
        result = runner.invoke(app, ["put", str(source), "data", "--content-type", "application/json"])
        assert result.exit_code == 0
        assert use_fs.get_mime_type("data") == "application/json"

    def test_put_missing_local_file(self, use_fs, tmp_path):
        result = runner.invoke(app, ["put", str(tmp_path / "nope"), "a.txt"])
        assert result.exit_code != 0

    def test_put_reserved_path(self, use_fs, local_file):
        source = local_file("a.txt", b"x")
        result = runner.invoke(app, ["put", str(source), ".versions/a.txt/1"])
        assert result.exit_code == 1
        assert "reserved" in result.output

    def test_cat_missing(self, use_fs):
        result = runner.invoke(app, ["cat", "missing.txt"])
        assert result.exit_code == 1

    def test_cat_version(self, use_fs, clock):
        use_fs.write("a.txt", "old")
        clock.advance(1)
        use_fs.write("a.txt", "new")
        result = runner.invoke(app, ["cat", "a.txt", "--version", str(START_TIME + 1)])
        assert result.exit_code == 0
        assert result.output == "old"


class TestListingCommands:
    """ls, stat and versions."""

    def test_ls(self, use_fs):
        use_fs.write("a.txt", "1")
        use_fs.write("a.txt", "2")
        use_fs.write("b.txt", "3")
        result = runner.invoke(app, ["ls"])
        assert result.exit_code == 0
        assert "a.txt" in result.output
        assert "b.txt" in result.output
        assert ".versions" not in result.output

    def test_ls_empty(self, use_fs):
        result = runner.invoke(app, ["ls"])
        assert result.exit_code == 0
        assert "No blobs" in result.output

    def test_stat(self, use_fs):
        use_fs.write("a.txt", "hello", metadata={"owner": "ada"})
        result = runner.invoke(app, ["stat", "a.txt"])
        assert result.exit_code == 0
        assert "text/plain" in result.output
        assert "meta:owner = ada" in result.output

    def test_stat_missing(self, use_fs):
        result = runner.invoke(app, ["stat", "missing.txt"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_versions(self, use_fs, clock):
        use_fs.write("a.txt", "1")
        clock.advance(1)
        use_fs.write("a.txt", "2")
        result = runner.invoke(app, ["versions", "a.txt"])
        assert result.exit_code == 0
        assert "current" in result.output
        assert str(START_TIME + 1) in result.output

    def test_versions_none(self, use_fs):
        result = runner.invoke(app, ["versions", "a.txt"])
        assert result.exit_code == 0
        assert "No versions" in result.output


class TestVersionCommands:
    """restore and rm-version."""

    def test_restore(self, use_fs, clock):
        use_fs.write("a.txt", "old")
        clock.advance(1)
        use_fs.write("a.txt", "new")
        result = runner.invoke(app, ["restore", "a.txt", str(START_TIME + 1)])
        assert result.exit_code == 0
        assert use_fs.get("a.txt") == b"old"

    def test_restore_missing_version(self, use_fs):
        use_fs.write("a.txt", "x")
        result = runner.invoke(app, ["restore", "a.txt", "42"])
        assert result.exit_code == 1
        assert "Restore failed" in result.output

    def test_rm_version(self, use_fs, clock):
        use_fs.write("a.txt", "old")
        clock.advance(1)
        use_fs.write("a.txt", "new")
        result = runner.invoke(app, ["rm-version", "a.txt", str(START_TIME + 1)])
        assert result.exit_code == 0
        assert [r.version_id for r in use_fs.list_versions("a.txt")] == ["current"]

    def test_rm_version_current_refused(self, use_fs):
        use_fs.write("a.txt", "x")
        result = runner.invoke(app, ["rm-version", "a.txt", "current"])
        assert result.exit_code == 1
        assert "Delete version failed" in result.output
        assert use_fs.exists("a.txt")


class TestMutationCommands:
    """rm and mb."""

    def test_rm(self, use_fs):
        use_fs.write("a.txt", "x")
        result = runner.invoke(app, ["rm", "a.txt"])
        assert result.exit_code == 0
        assert not use_fs.exists("a.txt")

    def test_rm_all_versions(self, use_fs, shadow_names):
        use_fs.write("a.txt", "1")
        use_fs.write("a.txt", "2")
        result = runner.invoke(app, ["rm", "a.txt", "--all-versions"])
        assert result.exit_code == 0
        assert shadow_names() == []

    def test_rm_all_versions_after_plain_rm(self, use_fs, shadow_names):
        use_fs.write("a.txt", "1")
        use_fs.write("a.txt", "2")
        assert runner.invoke(app, ["rm", "a.txt"]).exit_code == 0
        assert shadow_names()

        result = runner.invoke(app, ["rm", "a.txt", "--all-versions"])
        assert result.exit_code == 0, result.output
        assert shadow_names() == []

    def test_rm_missing(self, use_fs):
        result = runner.invoke(app, ["rm", "missing.txt"])
        assert result.exit_code == 1

    def test_mb_existing_container(self, use_fs):
        result = runner.invoke(app, ["mb"])
        assert result.exit_code == 1
        assert "Create container failed" in result.output


class TestConfiguration:
    """Resolution of container and credentials."""

    def test_no_container(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("AZBLOB_CONTAINER", raising=False)
        result = runner.invoke(app, ["ls"])
        assert result.exit_code == 1
        assert "No container given" in result.output

    def test_missing_connection_string(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
        result = runner.invoke(app, ["ls", "--container", "docs"])
        assert result.exit_code == 1
        assert "AZURE_STORAGE_CONNECTION_STRING" in result.output

    def test_container_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("AZBLOB_CONTAINER", raising=False)
        monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "UseDevelopmentStorage=true")
        (tmp_path / ".azblob").mkdir()
        (tmp_path / ".azblob" / "config.yaml").write_text("client:\n  container: from-file\n  timeout: 3\n")

        fs = cli._get_filesystem(None)
        assert fs.container == "from-file"
        assert fs.transport.timeout == 3.0
