"""Unit tests for the CLI — option parsing, exit codes, and piped input."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pipethis.cli.app import app

runner = CliRunner()


def _marker_script(marker: Path, author: str = "alice") -> str:
    return (
        f"# PIPETHIS_AUTHOR {author}\n"
        "import pathlib, sys\n"
        f"pathlib.Path({str(marker)!r}).write_text(' '.join(sys.argv[1:]))\n"
    )


@pytest.fixture
def isolated_env(tmp_path: Path, gnupg_home: Path, scratch_tmp: Path) -> dict[str, str]:
    """Environment that points key lookups at the test keyring."""
    return {
        "HOME": str(tmp_path),
        "GNUPGHOME": str(gnupg_home),
        "PIPETHIS_LOOKUP_WITH": "local",
        "PIPETHIS_LOG_LEVEL": "WARNING",
    }


# ---------------------------------------------------------------------------
# Test: help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for option in ("--target", "--inspect", "--editor", "--no-verify", "--signature", "--lookup-with"):
            assert option in result.output

    def test_unknown_lookup_service_is_a_usage_error(self):
        result = runner.invoke(app, ["--lookup-with", "carrier-pigeon", "x.sh"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# Test: running scripts
# ---------------------------------------------------------------------------


class TestRun:
    def test_unverified_local_script_with_arguments(self, tmp_path: Path, isolated_env):
        marker = tmp_path / "marker.txt"
        script = tmp_path / "install.py"
        script.write_text(_marker_script(marker))

        result = runner.invoke(
            app,
            ["--no-verify", "--target", sys.executable, str(script), "--flag", "value"],
            env=isolated_env,
        )

        assert result.exit_code == 0, result.output
        assert marker.read_text() == "--flag value"

    def test_unverified_piped_script(self, tmp_path: Path, isolated_env, scratch_tmp: Path):
        marker = tmp_path / "marker.txt"

        result = runner.invoke(
            app,
            ["--no-verify", "--target", sys.executable],
            input=_marker_script(marker),
            env=isolated_env,
        )

        assert result.exit_code == 0, result.output
        assert marker.exists()
        assert list(scratch_tmp.iterdir()) == []

    def test_piped_clearsigned_script_is_verified(
        self, tmp_path: Path, isolated_env, alice_key, clearsign, scratch_tmp: Path
    ):
        marker = tmp_path / "marker.txt"
        document = clearsign(alice_key, _marker_script(marker, author="alice"))

        result = runner.invoke(
            app,
            ["--target", sys.executable, "--lookup-with", "keybase"],
            input=document,
            env=isolated_env,
        )

        assert result.exit_code == 0, result.output
        assert marker.exists()
        assert list(scratch_tmp.iterdir()) == []


# ---------------------------------------------------------------------------
# Test: failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_missing_target(self, tmp_path: Path, isolated_env):
        script = tmp_path / "install.sh"
        script.write_text("echo hi\n")

        result = runner.invoke(
            app,
            ["--no-verify", "--target", str(tmp_path / "no-such-shell"), str(script)],
            env=isolated_env,
        )

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_missing_script(self, tmp_path: Path, isolated_env):
        result = runner.invoke(
            app,
            ["--no-verify", "--target", sys.executable, str(tmp_path / "missing.py")],
            env=isolated_env,
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_failing_script(self, tmp_path: Path, isolated_env):
        script = tmp_path / "fail.py"
        script.write_text("import sys\nsys.exit(4)\n")

        result = runner.invoke(
            app, ["--no-verify", "--target", sys.executable, str(script)], env=isolated_env
        )

        assert result.exit_code == 1
        assert "status 4" in result.output

    def test_unsigned_script_is_not_run(self, tmp_path: Path, isolated_env, scratch_tmp: Path):
        marker = tmp_path / "marker.txt"
        script = tmp_path / "install.py"
        script.write_text(_marker_script(marker))

        result = runner.invoke(
            app, ["--target", sys.executable, str(script)], input="0\n", env=isolated_env
        )

        assert result.exit_code == 1
        assert "--signature" in result.output
        assert not marker.exists()
        assert list(scratch_tmp.iterdir()) == []

    def test_corrupt_local_keyring(self, tmp_path: Path, isolated_env, scratch_tmp: Path):
        marker = tmp_path / "marker.txt"
        script = tmp_path / "install.py"
        script.write_text(_marker_script(marker))
        corrupt = tmp_path / "corrupt-gnupg"
        corrupt.mkdir()
        (corrupt / "pubring.gpg").write_bytes(b"\x00\x01 not a keyring")

        result = runner.invoke(
            app,
            ["--target", sys.executable, "--lookup-with", "local", str(script)],
            env={**isolated_env, "GNUPGHOME": str(corrupt)},
        )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "No key ring loaded" in result.output
        assert "Traceback" not in result.output
        assert not marker.exists()
        assert list(scratch_tmp.iterdir()) == []
