"""Tests for the CLI module."""

import argparse
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from wave_coordinator.cli import (
	_resolve_max_retries,
	_resolve_threshold,
	build_parser,
	cmd_check,
	cmd_config,
	cmd_history,
	cmd_run,
	cmd_show,
	main,
)
from wave_coordinator.config import Config
from wave_coordinator.plans.loader import parse_plan


GOOD_PLAN = {
	"name": "cli-rollout",
	"version": "5.0",
	"waves": [
		{"number": 1, "workers": [{"id": "a", "task": {"action": "echo"}}]},
		{"number": 2, "workers": [{"id": "b", "task": {"action": "echo"}}]},
	],
}

BAD_PLAN = {
	"name": "cli-broken",
	"max_retries": 0,
	"waves": [
		{"number": 1, "workers": [{"id": "a", "task": {"action": "fail"}}]},
	],
}


@pytest.fixture
def env(tmp_path: Path):
	with patch.dict(os.environ, {
		"WAVE_COORDINATOR_DATA_DIR": str(tmp_path / "data"),
		"WAVE_COORDINATOR_CONFIG_DIR": str(tmp_path / "config"),
	}), patch("wave_coordinator.config._config", None), patch("wave_coordinator.cli.setup_logging"):
		yield tmp_path


def _write_plan(tmp_path: Path, data: dict, name: str = "plan.json") -> Path:
	path = tmp_path / name
	path.write_text(json.dumps(data))
	return path


def _run_args(plan: Path) -> argparse.Namespace:
	return build_parser().parse_args(["run", str(plan), "--json"])


def test_help_lists_subcommands(capsys):
	with patch("sys.argv", ["wave-coordinator", "--help"]):
		with pytest.raises(SystemExit) as exc_info:
			main()
	assert exc_info.value.code == 0
	output = capsys.readouterr().out
	for command in ("run", "check", "history", "show", "config"):
		assert command in output


def test_no_command_exits_nonzero():
	with patch("sys.argv", ["wave-coordinator"]):
		with pytest.raises(SystemExit) as exc_info:
			main()
	assert exc_info.value.code == 1


def test_run_parser_flags():
	args = build_parser().parse_args(["run", "plan.toml", "--threshold", "0.6", "--max-retries", "2", "--no-history"])
	assert args.plan == "plan.toml"
	assert args.threshold == 0.6
	assert args.max_retries == 2
	assert args.no_history is True
	assert args.func is cmd_run


def test_resolve_policy_precedence():
	"""CLI flag wins over the plan, which wins over config."""
	config = Config(threshold=0.8, max_retries=1)
	plan = parse_plan(dict(GOOD_PLAN, threshold=0.7))

	no_flags = argparse.Namespace(threshold=None, max_retries=None)
	assert _resolve_threshold(no_flags, plan, config) == 0.7
	assert _resolve_max_retries(no_flags, plan, config) == 1

	flags = argparse.Namespace(threshold=0.95, max_retries=4)
	assert _resolve_threshold(flags, plan, config) == 0.95
	assert _resolve_max_retries(flags, plan, config) == 4


def test_check_valid_plan(env, capsys):
	plan = _write_plan(env, GOOD_PLAN)
	cmd_check(build_parser().parse_args(["check", str(plan)]))
	output = capsys.readouterr().out
	assert "Plan is valid." in output
	assert "Threshold:   0.8" in output


def test_check_invalid_plan_exits(env, capsys):
	plan = _write_plan(env, {"waves": []})
	with pytest.raises(SystemExit) as exc_info:
		cmd_check(build_parser().parse_args(["check", str(plan)]))
	assert exc_info.value.code == 2
	assert "Cannot load plan" in capsys.readouterr().err


def test_run_success_then_history_and_show(env, capsys):
	plan = _write_plan(env, GOOD_PLAN)
	with pytest.raises(SystemExit) as exc_info:
		cmd_run(_run_args(plan))
	assert exc_info.value.code == 0

	report = json.loads(capsys.readouterr().out)
	assert report["overall_status"] == "succeeded"
	assert report["version"] == "5.0"
	assert len(report["waves"]) == 2

	cmd_history(build_parser().parse_args(["history"]))
	assert report["run_id"] in capsys.readouterr().out

	cmd_show(build_parser().parse_args(["show", report["run_id"], "--json"]))
	shown = json.loads(capsys.readouterr().out)
	assert shown["run_id"] == report["run_id"]


def test_run_aborted_exits_nonzero(env, capsys):
	plan = _write_plan(env, BAD_PLAN)
	with pytest.raises(SystemExit) as exc_info:
		cmd_run(_run_args(plan))
	assert exc_info.value.code == 1

	report = json.loads(capsys.readouterr().out)
	assert report["overall_status"] == "aborted"
	assert report["abort_reason"] == "retries-exhausted"


def test_run_no_history(env, capsys):
	plan = _write_plan(env, GOOD_PLAN)
	with pytest.raises(SystemExit):
		cmd_run(build_parser().parse_args(["run", str(plan), "--json", "--no-history"]))
	capsys.readouterr()

	cmd_history(build_parser().parse_args(["history"]))
	assert "No deployments recorded yet" in capsys.readouterr().out


def test_show_missing_run(env, capsys):
	with pytest.raises(SystemExit) as exc_info:
		cmd_show(build_parser().parse_args(["show", "nope"]))
	assert exc_info.value.code == 1
	assert "No report found" in capsys.readouterr().err


def test_config_command(env, capsys):
	cmd_config(build_parser().parse_args(["config"]))
	output = capsys.readouterr().out
	assert "wave-coordinator config" in output
	assert str(env / "data") in output
	assert "unbounded" in output
