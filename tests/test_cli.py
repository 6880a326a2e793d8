"""Tests for cli.py — the spec-sync command line.

Logging setup is patched out so handlers installed by the CLI do not
leak into other tests.
"""

import copy
import json
from unittest.mock import patch

import pytest

from spec_sync import __version__
from spec_sync.cli import build_parser, main
from spec_sync.reconcile.codec import DocumentCodec


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("spec_sync.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def trio(write_json, base_spec, local_spec, remote_spec):
    return (
        write_json("base.json", base_spec),
        write_json("local.json", local_spec),
        write_json("remote.json", remote_spec),
    )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_accept_is_repeatable(self):
        args = build_parser().parse_args(
            ["sync", "a.yaml", "b.json", "--accept", "info.description"]
            + ["--accept", "x"]
        )

        assert args.accept == ["info.description", "x"]

    def test_unknown_strategy_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync", "a.yaml", "b.json", "--strategy", "x"])


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


class TestDiffCommand:
    def test_text_output(self, trio, capsys):
        assert main(["diff", *map(str, trio)]) == 0

        out = capsys.readouterr().out
        assert "Safe to sync: 2" in out
        assert "paths./tasks.get.description" in out

    def test_json_output(self, trio, capsys):
        assert main(["diff", *map(str, trio), "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["safe_to_sync"] == 2
        assert data["blocked"] == []

    def test_lenient_flag(self, write_json, base_spec, capsys):
        remote = copy.deepcopy(base_spec)
        remote["info"]["title"] = "Renamed"
        paths = [
            write_json("b.json", base_spec),
            write_json("l.json", base_spec),
            write_json("r.json", remote),
        ]

        main(["diff", *map(str, paths), "--json"])
        strict = json.loads(capsys.readouterr().out)
        main(["diff", *map(str, paths), "--json", "--lenient"])
        lenient = json.loads(capsys.readouterr().out)

        assert strict["summary"]["blocked"] == 1
        assert lenient["summary"]["safe_to_sync"] == 1

    def test_missing_file_exit_1(self, tmp_path, capsys):
        missing = str(tmp_path / "nope.json")

        assert main(["diff", missing, missing, missing]) == 1
        assert "Error:" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# sync
# ---------------------------------------------------------------------------


class TestSyncCommand:
    def test_sync_writes_spec(self, tmp_path, trio, base_spec, remote_spec, capsys):
        spec = tmp_path / "api.yaml"
        DocumentCodec().write(base_spec, spec)

        assert main(["sync", str(spec), str(trio[2])]) == 0

        assert DocumentCodec().read(spec) == remote_spec
        out = capsys.readouterr().out
        assert "Status: synced" in out
        assert "Backup:" in out

    def test_dry_run(self, tmp_path, trio, base_spec, capsys):
        spec = tmp_path / "api.yaml"
        DocumentCodec().write(base_spec, spec)
        before = spec.read_text()

        assert main(["sync", str(spec), str(trio[2]), "--dry-run"]) == 0

        assert spec.read_text() == before
        assert "DRY RUN" in capsys.readouterr().out

    def test_json_and_no_backup(self, tmp_path, trio, base_spec, capsys):
        spec = tmp_path / "api.yaml"
        DocumentCodec().write(base_spec, spec)

        assert main(["sync", str(spec), str(trio[2]), "--json", "--no-backup"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "synced"
        assert data["backup_path"] is None
        assert list(tmp_path.glob("*.backup.*")) == []

    def test_bad_env_strategy_is_config_error(self, trio, monkeypatch, capsys):
        monkeypatch.setenv("SPEC_SYNC_CONFLICT_STRATEGY", "newest-wins")

        assert main(["sync", str(trio[1]), str(trio[2])]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_config_file_and_logging_flags(
        self, tmp_path, trio, _no_logging_setup
    ):
        cfg = tmp_path / "sync.yml"
        cfg.write_text("logging:\n  level: WARNING\n")

        main(
            [
                "--config",
                str(cfg),
                "--debug",
                "--log-format",
                "json",
                "diff",
                *map(str, trio),
            ]
        )

        kwargs = _no_logging_setup.call_args[1]
        assert kwargs["debug"] is True
        assert kwargs["debug_format"] == "json"
        assert kwargs["level"] == "WARNING"
