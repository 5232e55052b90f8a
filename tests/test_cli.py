"""Tests for the confwatch CLI."""

import os
import threading
import time
from pathlib import Path

from click.testing import CliRunner

from confwatch.cli import cli


def test_load_prints_values(tmp_path: Path):
    config_file = tmp_path / "app.yaml"
    config_file.write_text("server:\n  port: 8080\n")

    result = CliRunner().invoke(cli, ["load", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "server.port" in result.output
    assert "8080" in result.output


def test_load_missing_file_fails(tmp_path: Path):
    result = CliRunner().invoke(cli, ["load", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def replace_later(path: Path, contents: list[str], delay: float = 0.3) -> threading.Thread:
    """Swap in each of ``contents`` after ``delay`` seconds, one after another."""

    def run():
        for i, text in enumerate(contents, start=1):
            time.sleep(delay)
            staged = path.with_suffix(".tmp")
            staged.write_text(text)
            stat = path.stat()
            os.utime(staged, (stat.st_atime, stat.st_mtime + 5.0 * i))
            os.replace(staged, path)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


def test_watch_reprints_until_failed_reload(tmp_path: Path):
    config_file = tmp_path / "app.yaml"
    config_file.write_text("level: info\n")
    writer = replace_later(config_file, ["level: debug\n", "- not\n- a mapping\n"])

    result = CliRunner().invoke(
        cli,
        ["watch", str(config_file), "--interval", "0.01", "--max-retry", "0", "--stop-on-failure"],
    )
    writer.join(timeout=5.0)

    assert result.exit_code == 0, result.output
    assert "Watching" in result.output
    assert result.output.count("'info'") == 1
    assert result.output.count("'debug'") == 1
