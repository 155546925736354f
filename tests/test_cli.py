"""Tests for top-level command dispatch behavior."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from jobwatch import __version__
from jobwatch.cli import main
from jobwatch.errors import MonitorError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("MC_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("MC_HOST_myminio", "http://127.0.0.1:9000")
    monkeypatch.delenv("JOBWATCH_JSON", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


def test_version(capsys) -> None:
    with pytest.raises(SystemExit) as ex:
        main(["--version"])

    assert ex.value.code == 0
    assert capsys.readouterr().out.strip() == f"jobwatch {__version__}"


def test_help_without_args(capsys) -> None:
    with pytest.raises(SystemExit) as ex:
        main([])

    assert ex.value.code == 0
    rendered = capsys.readouterr().out
    assert "jobwatch TARGET JOBID [options]" in rendered
    assert "--json" in rendered


def test_missing_job_id_is_usage_error() -> None:
    with pytest.raises(SystemExit) as ex:
        main(["myminio/"])

    assert ex.value.code == 2


def test_unknown_alias_fails_to_initialize(capsys) -> None:
    with pytest.raises(SystemExit) as ex:
        main(["elsewhere/", "job-1"])

    assert ex.value.code == 1
    assert "Unable to initialize admin client." in capsys.readouterr().err


def test_status_passes_flags_through() -> None:
    with patch("jobwatch.cli.AdminClient") as mock_client, patch(
        "jobwatch.cli.run_status",
        return_value=0,
    ) as mock_run:
        with pytest.raises(SystemExit) as ex:
            main(["myminio/", "job-1", "--json", "--insecure", "--no-color"])

    assert ex.value.code == 0
    mock_client.assert_called_once_with("http://127.0.0.1:9000", verify=False)
    cfg = mock_run.call_args.args[0]
    assert cfg.target == "myminio/"
    assert cfg.job_id == "job-1"
    assert cfg.json_output
    assert cfg.insecure
    assert not cfg.theme.color


def test_json_default_from_env(monkeypatch) -> None:
    monkeypatch.setenv("JOBWATCH_JSON", "1")

    with patch("jobwatch.cli.AdminClient"), patch("jobwatch.cli.run_status", return_value=0) as mock_run:
        with pytest.raises(SystemExit):
            main(["myminio/", "job-1"])

    assert mock_run.call_args.args[0].json_output


def test_monitor_error_exits_nonzero(capsys) -> None:
    err = MonitorError("Unable to get current batch status", "myminio/", RuntimeError("reset"))

    with patch("jobwatch.cli.AdminClient", return_value=MagicMock()), patch(
        "jobwatch.cli.run_status",
        side_effect=err,
    ):
        with pytest.raises(SystemExit) as ex:
            main(["myminio/", "job-1"])

    assert ex.value.code == 1
    assert "Unable to get current batch status: myminio/: reset" in capsys.readouterr().err


def test_help_flag_is_recognized() -> None:
    with pytest.raises(SystemExit) as ex:
        main(["--help"])

    assert ex.value.code == 0


def test_flag_like_job_id_is_not_treated_as_version(capsys) -> None:
    with patch("jobwatch.cli.AdminClient"), patch("jobwatch.cli.run_status", return_value=0) as mock_run:
        with pytest.raises(SystemExit) as ex:
            main(["myminio/", "--", "--version"])

    assert ex.value.code == 0
    assert mock_run.call_args.args[0].job_id == "--version"
    assert "jobwatch" not in capsys.readouterr().out
