"""
Unit tests for the accountq CLI.

Commands run through main() against a temporary data directory with a
pinned --now so batch output is deterministic.
"""

import json

import pytest

from accountability import accountq
from accountability.constants import ENV_CONFIG
from accountability.store import Stores

NOW = "2024-01-03T11:00:00+00:00"


@pytest.fixture
def run(data_dir, monkeypatch):
    """Invoke accountq with the temporary data directory and fixed clock."""
    monkeypatch.delenv(ENV_CONFIG, raising=False)

    def _run(*argv, now=NOW):
        base = ["--data-dir", str(data_dir)]
        if now:
            base += ["--now", now]
        return accountq.main(base + list(argv))

    return _run


def add_overdue_task(run, task_id="T-1", user="user-1"):
    assert run(
        "task", "add", "--id", task_id, "--user", user, "--title", "Write report",
        "--date", "2024-01-01", "--start", "09:00", "--end", "10:00",
    ) == 0


class TestTaskCommands:
    """Test task, profile, and focus commands."""

    def test_add_and_list(self, run, capsys):
        add_overdue_task(run)
        capsys.readouterr()

        assert run("task", "list", "--user", "user-1") == 0
        out = capsys.readouterr().out
        assert "T-1" in out
        assert "[Fresh]" in out

    def test_add_creates_profile(self, run, capsys):
        add_overdue_task(run)
        capsys.readouterr()

        assert run("profile", "show", "--user", "user-1", "--json") == 0
        profile = json.loads(capsys.readouterr().out)
        assert profile["total_xp"] == 0

    def test_add_duplicate_fails(self, run, capsys):
        add_overdue_task(run)
        assert run(
            "task", "add", "--id", "T-1", "--user", "user-1", "--title", "Again",
            "--date", "2024-01-01",
        ) == 1
        assert "already exists" in capsys.readouterr().err

    def test_complete_unknown_task(self, run, capsys):
        assert run("task", "complete", "--id", "T-404") == 1
        assert "not found" in capsys.readouterr().err

    def test_grant_and_show(self, run, capsys):
        assert run("profile", "grant", "--user", "user-1", "--xp", "120") == 0
        assert "120" in capsys.readouterr().out

    def test_show_missing_profile(self, run, capsys):
        assert run("profile", "show", "--user", "ghost") == 1
        assert "Profile not found" in capsys.readouterr().err

    def test_focus_log(self, run, capsys):
        assert run("focus", "log", "--user", "user-1", "--minutes", "30") == 0
        capsys.readouterr()

        run("profile", "show", "--user", "user-1", "--json")
        profile = json.loads(capsys.readouterr().out)
        assert profile["last_activity_date"] == "2024-01-03"


class TestDecayCommands:
    """Test decay run and stats."""

    def test_run_for_user(self, run, capsys):
        add_overdue_task(run)
        capsys.readouterr()

        assert run("decay", "run", "--user", "user-1", "--json") == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["job"] == "decay"
        assert summary["updated"] == 1
        assert summary["total_xp_penalty"] == 20

    def test_run_all_and_record(self, run, data_dir, capsys):
        add_overdue_task(run, "T-1", "user-1")
        add_overdue_task(run, "T-2", "user-2")
        capsys.readouterr()

        assert run("decay", "run", "--record") == 0
        out = capsys.readouterr().out
        assert "processed=2" in out
        assert "users: 2" in out

        runs = Stores.open(str(data_dir)).job_runs.read_all()
        assert len(runs) == 1
        assert runs[0]["job"] == "decay"
        assert runs[0]["updated"] == 2

    def test_run_without_record_writes_no_log(self, run, data_dir):
        add_overdue_task(run)
        assert run("decay", "run") == 0
        assert Stores.open(str(data_dir)).job_runs.read_all() == []

    def test_stats(self, run, capsys):
        add_overdue_task(run)
        run("decay", "run")
        capsys.readouterr()

        assert run("decay", "stats", "--user", "user-1", "--json") == 0
        stats = json.loads(capsys.readouterr().out)
        assert stats["total_events"] == 1
        assert stats["total_xp_lost"] == 20
        assert stats["debt_score"] == 67
        assert stats["tasks"] == {"T-1": "Decaying"}


class TestContractCommands:
    """Test contract creation, transitions, and sweep."""

    def create(self, run, stake="50", target=("--task", "T-1")):
        return run(
            "contract", "create", "--id", "C-1", "--user", "user-1", "--stake", stake,
            "--deadline", "2024-01-05T00:00:00Z", *target,
        )

    def test_create_below_minimum(self, run, capsys):
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        assert self.create(run, stake="5") == 1
        assert "minimum stake" in capsys.readouterr().err

    def test_create_and_complete(self, run, capsys):
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        assert self.create(run) == 0
        capsys.readouterr()

        assert run("contract", "complete", "--id", "C-1", "--json") == 0
        result = json.loads(capsys.readouterr().out)
        assert result["contract"]["status"] == "completed"
        assert result["xp_delta"] == 10

    def test_second_transition_reports_error(self, run, capsys):
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        self.create(run)
        run("contract", "cancel", "--id", "C-1")
        capsys.readouterr()

        assert run("contract", "fail", "--id", "C-1") == 1
        assert "cancelled -> failed" in capsys.readouterr().err

    def test_task_completion_settles_contract(self, run, capsys):
        add_overdue_task(run)
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        self.create(run)
        capsys.readouterr()

        assert run("task", "complete", "--id", "T-1") == 0
        out = capsys.readouterr().out
        assert "Contract C-1 completed (XP +10)" in out
        assert "Debt score: 0" in out

    def test_list_groups_by_status(self, run, capsys):
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        self.create(run, target=("--goal", "G-1"))
        capsys.readouterr()

        assert run("contract", "list", "--user", "user-1") == 0
        out = capsys.readouterr().out
        assert "ACTIVE:" in out
        assert "goal:G-1" in out

    def test_sweep(self, run, capsys):
        run("profile", "grant", "--user", "user-1", "--xp", "100")
        self.create(run)
        capsys.readouterr()

        assert run("contract", "sweep", "--json", now="2024-01-06T00:00:00Z") == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["updated"] == 1
        assert summary["counters"]["xp_forfeited"] == 50


class TestStreakCommands:
    """Test the streak run command."""

    def test_run(self, run, capsys):
        run("focus", "log", "--user", "user-1", "--started-at", "2024-01-02T08:00:00Z")
        capsys.readouterr()

        assert run("streak", "run", "--json") == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["counters"]["streaks_extended"] == 1

    def test_invalid_day(self, run, capsys):
        assert run("streak", "run", "--day", "yesterday") == 1
        assert "Invalid --day" in capsys.readouterr().err


class TestGlobalOptions:
    """Test argument handling shared by all commands."""

    def test_missing_command_prints_help(self, run):
        assert run() == 1

    def test_invalid_now(self, run, capsys):
        assert run("decay", "run", now="not-a-time") == 1
        assert "Invalid --now" in capsys.readouterr().err

    def test_bad_config(self, run, tmp_path, capsys):
        config = tmp_path / "policy.yaml"
        config.write_text("decay_speed: 3\n")
        assert run("--config", str(config), "decay", "run") == 1
        assert "Unknown policy keys" in capsys.readouterr().err
