"""Tests for the scheduler entry point."""
import json

import pytest

from price_tracker.cli import run_job
from price_tracker.cli.run_job import EXIT_CONFIG, EXIT_FATAL, EXIT_OK, main

CREDENTIALS = ("POLYGON_API_KEY", "ALPHA_VANTAGE_API_KEY", "METALS_API_KEY")


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    for name in CREDENTIALS:
        monkeypatch.setenv(name, "test-key")
    return monkeypatch


def output(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


class TestRunCommand:
    @pytest.mark.parametrize("job", ["price-update", "alert-check", "all"])
    def test_empty_run_completes(self, env, capsys, job):
        assert main(["run", job]) == EXIT_OK

        summary = output(capsys)
        assert summary["completed"] is True
        assert summary["users_processed"] == 0
        assert summary["alerts_triggered"] == 0

    def test_missing_credentials_abort_before_any_work(self, env, capsys):
        env.delenv("METALS_API_KEY")

        assert main(["run", "all"]) == EXIT_CONFIG
        assert output(capsys)["completed"] is False

    def test_alert_check_needs_no_provider_keys(self, env, capsys):
        for name in CREDENTIALS:
            env.delenv(name)

        assert main(["run", "alert-check"]) == EXIT_OK

    def test_unexpected_error_is_fatal(self, env, capsys):
        async def boom(container, job):
            raise RuntimeError("database exploded")

        env.setattr(run_job, "run_jobs", boom)

        assert main(["run", "price-update"]) == EXIT_FATAL
        assert output(capsys)["completed"] is False

    def test_unknown_job_is_rejected(self, env):
        with pytest.raises(SystemExit):
            main(["run", "nothing"])
