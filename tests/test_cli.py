"""
Tests for the command-line interface.
"""

from io import StringIO

import pytest
from rich.console import Console

from profile_reset import cli
from profile_reset import config as config_module
from profile_reset.snapshot import SnapshotManager

from mocks import MockMirror, PRISTINE_PROFILE, read_tree, write_tree


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for var in ("PROFILE_RESET_CONFIG", "PROFILE_RESET_STORAGE_ROOT", "PROFILE_RESET_PROFILES_ROOT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [])


@pytest.fixture
def out():
    return StringIO()


@pytest.fixture
def run(storage_root, profiles_root, out, today):
    """Invoke main() against the temporary roots; returns the exit status."""
    def _run(*argv, mirror=None):
        def factory(config):
            return SnapshotManager(config, mirror=mirror, clock=lambda: today)

        full = list(argv) + [
            "--storage-root", str(storage_root),
            "--profiles-root", str(profiles_root),
            "--mirror-tool", "copytree",
        ]
        console = Console(file=out, width=200, force_terminal=False, color_system=None)
        return cli.main(full, manager_factory=factory, console=console)
    return _run


class TestParseArgs:

    def test_split_users(self):
        assert cli.split_users(["alice,bob", " carol ", "bob,,dave"]) == ["alice", "bob", "carol", "dave"]
        assert cli.split_users(None) is None

    def test_users_comma_and_space_separated(self):
        args = cli.parse_args(["backup", "--users", "alice,bob", "carol", "-u", "dave"])
        assert args.users == ["alice", "bob", "carol", "dave"]

    def test_backup_requires_users(self):
        with pytest.raises(SystemExit) as exc:
            cli.parse_args(["backup"])
        assert exc.value.code == 2

    def test_blank_users_rejected(self):
        with pytest.raises(SystemExit) as exc:
            cli.parse_args(["backup", "--users", ","])
        assert exc.value.code == 2

    def test_mode_required(self):
        with pytest.raises(SystemExit) as exc:
            cli.parse_args([])
        assert exc.value.code == 2

    def test_restore_defaults(self):
        args = cli.parse_args(["restore"])
        assert args.users is None
        assert args.force is False
        assert args.dry_run is False
        assert args.log is None

    def test_bare_log_flag(self):
        args = cli.parse_args(["restore", "--log", "--force"])
        assert args.log is True
        assert args.force is True


class TestMain:

    def test_backup_then_restore(self, run, make_profile, storage_root, profiles_root, out):
        make_profile("alice")
        assert run("backup", "--users", "alice") == 0
        assert read_tree(storage_root / "alice") == PRISTINE_PROFILE

        write_tree(profiles_root / "alice", {".bashrc": "dirty\n"})
        assert run("restore", "--force") == 0
        assert read_tree(profiles_root / "alice") == PRISTINE_PROFILE
        assert "restored" in out.getvalue()

    def test_missing_profile_is_not_a_failure(self, run, out):
        assert run("backup", "--users", "nobody") == 0
        assert "warning" in out.getvalue()

    def test_failure_sets_exit_status(self, run, make_profile):
        make_profile("alice")
        mirror = MockMirror()
        mirror.fail_always()
        assert run("backup", "--users", "alice", mirror=mirror) == 1

    def test_quiet_still_shows_failures(self, run, make_profile, out):
        make_profile("alice")
        make_profile("bob")
        mirror = MockMirror()
        mirror.fail_for_destination("bob")
        assert run("backup", "--users", "alice,bob", "--quiet", mirror=mirror) == 1
        text = out.getvalue()
        assert "bob" in text
        assert "simulated mirror failure" in text
        assert "Snapshot written" not in text

    def test_storage_root_error(self, run, make_profile, storage_root):
        storage_root.parent.mkdir(parents=True)
        storage_root.write_text("")
        make_profile("alice")
        assert run("backup", "--users", "alice") == 1

    def test_missing_config_file(self, run, tmp_path, out):
        assert run("status", "--config", str(tmp_path / "absent.toml")) == 1
        assert "Config file not found" in out.getvalue()

    def test_invalid_config_values(self, run, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[mirror]\ntimeout = -5\n")
        assert run("status", "--config", str(path)) == 1

    def test_dry_run_changes_nothing(self, run, make_profile, profiles_root, out):
        make_profile("alice")
        run("backup", "--users", "alice")
        write_tree(profiles_root / "alice", {".cache/index.db": "dirty"})

        assert run("restore", "--dry-run") == 0

        assert (profiles_root / "alice" / ".cache" / "index.db").read_text() == "dirty"
        assert "planned" in out.getvalue()

    def test_status_and_forget(self, run, make_profile, storage_root, out):
        make_profile("alice")
        run("backup", "--users", "alice")

        assert run("status") == 0
        assert "Managed users" in out.getvalue()

        assert run("forget", "--users", "alice") == 0
        assert not (storage_root / "alice").exists()


class TestRunLog:

    def test_log_written_with_header(self, run, make_profile, tmp_path):
        log = tmp_path / "logs" / "run.log"
        make_profile("alice")

        assert run("backup", "--users", "alice", "--log", str(log)) == 0

        text = log.read_text()
        assert "===== " in text
        assert "profile-reset backup --users alice" in text
        assert "alice" in text.split("=====")[-1]

    def test_quiet_run_still_logged(self, run, make_profile, tmp_path, out):
        log = tmp_path / "run.log"
        make_profile("alice")

        assert run("backup", "-u", "alice", "-q", "--log", str(log)) == 0

        assert "Snapshot written" in log.read_text()
        assert "Snapshot written" not in out.getvalue()

    def test_oversized_log_truncated(self, run, tmp_path):
        log = tmp_path / "run.log"
        log.write_text("old line\n" * 2000)

        run("status", "--log", str(log))

        text = log.read_text()
        assert "old line" not in text
        assert text.startswith("\n===== ")

    def test_unopenable_log(self, run, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        assert run("status", "--log", str(blocker / "run.log")) == 1
