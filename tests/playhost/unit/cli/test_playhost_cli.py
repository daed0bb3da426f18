from __future__ import annotations

import pytest

from playhost.cli import main
from playhost.diagnostics.json_codec import loads


@pytest.fixture
def cli_env(tmp_path, monkeypatch) -> list[str]:
    monkeypatch.setenv("PLAYHOST_APP_DATA_DIR", str(tmp_path / "appdata"))
    monkeypatch.delenv("PLAYHOST_FAILURE_LOG_ENABLED", raising=False)
    return ["--env-file", str(tmp_path / "missing.env")]


def test_status_json_reports_catalog(cli_env, capsys) -> None:
    assert main([*cli_env, "status", "--json"]) == 0

    payload = loads(capsys.readouterr().out)
    assert payload["total"] == 20
    assert payload["implemented"] == 1
    assert payload["implementation_rate"] == "5%"
    assert payload["modules"]["cute_tap"]["status"] == "implemented"
    assert payload["modules"]["memory_match"]["status"] == "fallback"


def test_status_text_ends_with_aggregate(cli_env, capsys) -> None:
    assert main([*cli_env, "status"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[-1] == "total=20 implemented=1 fallback=19 missing=0 rate=5%"
    assert "cute_tap status=implemented implemented=True" in lines


def test_simulate_taps_until_target(cli_env, capsys) -> None:
    code = main([*cli_env, "simulate", "cute_tap", "--duration", "5", "--target", "3", "--rate", "20"])

    assert code == 0
    assert "success=True score=3" in capsys.readouterr().out


def test_simulate_without_taps_runs_out_the_clock(cli_env, capsys) -> None:
    code = main([*cli_env, "simulate", "cute_tap", "--duration", "1", "--target", "5", "--rate", "0"])

    assert code == 3
    assert "success=False score=0" in capsys.readouterr().out


def test_simulate_rejects_non_positive_fps(cli_env, capsys) -> None:
    assert main([*cli_env, "simulate", "cute_tap", "--fps", "0"]) == 2
    assert "--fps must be > 0" in capsys.readouterr().out


def test_failures_lists_and_clears_persisted_log(cli_env, capsys) -> None:
    assert main([*cli_env, "simulate", "no_such_game", "--duration", "2", "--target", "1"]) == 0
    capsys.readouterr()

    assert main([*cli_env, "failures"]) == 0
    out = capsys.readouterr().out
    assert "stored=1" in out
    assert "kind=load session=no_such_game open" in out

    assert main([*cli_env, "failures", "--clear"]) == 0
    assert "failures_cleared" in capsys.readouterr().out

    assert main([*cli_env, "failures"]) == 0
    assert "stored=0" in capsys.readouterr().out


def test_failures_requires_enabled_log(cli_env, capsys, monkeypatch) -> None:
    monkeypatch.setenv("PLAYHOST_FAILURE_LOG_ENABLED", "0")

    assert main([*cli_env, "failures"]) == 1
    assert "failure log disabled" in capsys.readouterr().out
