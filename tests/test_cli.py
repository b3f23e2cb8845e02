"""
Tests for the rigswarm command-line interface.
"""

import json

import pytest

from rigswarm import cli
from rigswarm.cli import build_parser, main


@pytest.fixture
def bare_rig(tmp_path):
    """Rig directory holding bare polecats (no clones, no state files)"""
    rig_path = tmp_path / "bare-rig"
    for name in ("amy", "bob"):
        (rig_path / "polecats" / name).mkdir(parents=True)
    return rig_path


def run(rig_path, *argv):
    return main(["--rig", str(rig_path)] + list(argv))


class TestVersion:

    def test_short(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "VERSION", "1.2.3")
        monkeypatch.setattr(cli, "BUILD", "abc")

        assert main(["version", "--short"]) == 0
        assert capsys.readouterr().out == "1.2.3-abc\n"

    def test_default(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "VERSION", "1.2.3")
        monkeypatch.setattr(cli, "BUILD", "abc")

        assert main(["version"]) == 0
        out = capsys.readouterr().out
        assert out == "rigswarm version 1.2.3 (abc)\n"

    def test_verbose(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "COMMIT", "deadbeef")
        monkeypatch.setattr(cli, "BRANCH", "main")

        assert main(["version", "--verbose"]) == 0
        out = capsys.readouterr().out
        assert "Commit: deadbeef" in out
        assert "Branch: main" in out
        assert "Python version:" in out
        assert "Timestamp:" in out

    def test_verbose_omits_unset_build_metadata(self, capsys):
        assert main(["version", "-v"]) == 0
        out = capsys.readouterr().out
        assert "Commit:" not in out
        assert "Branch:" not in out


class TestParser:

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().out

    def test_state_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["polecat", "state", "rex", "sleeping"])

    def test_global_rig_option(self):
        args = build_parser().parse_args(["-r", "/srv/rig", "swarm", "status"])
        assert args.rig == "/srv/rig"
        assert args.func is cli.cmd_swarm_status


class TestPolecatCommands:

    def test_add_list_remove(self, git_repo, capsys):
        assert run(git_repo, "polecat", "add", "rex") == 0
        assert "Created polecat rex on branch polecat/rex" in capsys.readouterr().out
        assert (git_repo / "polecats" / "rex" / "state.json").exists()

        assert run(git_repo, "polecat", "list", "--json") == 0
        listed = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in listed] == ["rex"]
        assert listed[0]["state"] == "idle"

        assert run(git_repo, "polecat", "remove", "rex") == 0
        assert not (git_repo / "polecats" / "rex").exists()

    def test_add_existing(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "add", "amy") == 3
        assert "already exists" in capsys.readouterr().err

    def test_show_missing(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "show", "ghost") == 4
        assert capsys.readouterr().err.startswith("Error: ")

    def test_show_bare(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "show", "amy", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["state"] == "idle"
        assert data["branch"] == "polecat/amy"

    def test_list_empty(self, tmp_path, capsys):
        assert run(tmp_path, "polecat", "list") == 0
        assert "No polecats" in capsys.readouterr().out

    def test_wake_then_sleep(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "wake", "amy") == 0
        assert "now active" in capsys.readouterr().out
        assert run(bare_rig, "polecat", "sleep", "amy") == 0
        assert "now idle" in capsys.readouterr().out

    def test_invalid_transition_exit_code(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "sleep", "amy") == 6
        assert "cannot sleep" in capsys.readouterr().err

    def test_force_state(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "state", "amy", "stuck") == 0
        assert "now stuck" in capsys.readouterr().out

    def test_invalid_name(self, bare_rig, capsys):
        assert run(bare_rig, "polecat", "add", "../escape") == 2
        assert "Error:" in capsys.readouterr().err


class TestSwarmCommands:

    def test_assign_and_status(self, bare_rig, capsys):
        assert run(bare_rig, "swarm", "assign", "ISSUE-1", "--json") == 0
        assigned = json.loads(capsys.readouterr().out)
        assert assigned["name"] == "amy"
        assert assigned["state"] == "working"
        assert assigned["issue"] == "ISSUE-1"

        assert run(bare_rig, "swarm", "status", "--json") == 0
        status = json.loads(capsys.readouterr().out)
        assert status["rig"] == "bare-rig"
        assert status["total"] == 2
        assert status["available"] == 1
        assert status["counts"]["working"] == 1
        assert status["counts"]["idle"] == 1

    def test_duplicate_issue_exit_code(self, bare_rig, capsys):
        assert run(bare_rig, "swarm", "assign", "ISSUE-1") == 0
        assert run(bare_rig, "swarm", "assign", "ISSUE-1") == 8
        assert "already assigned" in capsys.readouterr().err

    def test_exhausted_pool_exit_code(self, bare_rig):
        assert run(bare_rig, "swarm", "assign", "ISSUE-1") == 0
        assert run(bare_rig, "swarm", "assign", "ISSUE-2") == 0
        assert run(bare_rig, "swarm", "assign", "ISSUE-3") == 7

    def test_stuck_done_release(self, bare_rig, capsys):
        run(bare_rig, "swarm", "assign", "ISSUE-1")
        capsys.readouterr()

        assert run(bare_rig, "swarm", "stuck", "amy") == 0
        assert "stuck on ISSUE-1" in capsys.readouterr().out
        assert run(bare_rig, "swarm", "done", "amy") == 0
        assert "done with ISSUE-1" in capsys.readouterr().out
        assert run(bare_rig, "swarm", "release", "amy") == 0
        assert "Released polecat amy" in capsys.readouterr().out

        run(bare_rig, "polecat", "show", "amy", "--json")
        data = json.loads(capsys.readouterr().out)
        assert data["state"] == "idle"
        assert "issue" not in data

    def test_status_text(self, bare_rig, capsys):
        run(bare_rig, "swarm", "assign", "ISSUE-1")
        capsys.readouterr()

        assert run(bare_rig, "swarm", "status") == 0
        out = capsys.readouterr().out
        assert "Rig: bare-rig" in out
        assert "Polecats: 2 (1 available)" in out
        assert "ISSUE-1" in out

    def test_bad_rig_config_exit_code(self, bare_rig, capsys):
        (bare_rig / ".rigswarm.yaml").write_text("polecats_dir: [unclosed\n")

        assert run(bare_rig, "swarm", "status") == 2
        assert "Error:" in capsys.readouterr().err
