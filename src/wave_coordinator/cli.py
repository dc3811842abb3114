"""CLI for wave-coordinator: run, check, history, show, and config commands."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from .config import Config, get_config
from .logging_config import setup_logging
from .orchestrator.coordinator import WaveCoordinator
from .orchestrator.models import DeploymentReport, OverallStatus
from .plans.loader import PlanLoadError, load_plan
from .plans.models import DeploymentPlan
from .reports.store import ReportStore

logger = logging.getLogger(__name__)


def _load_plan_or_exit(path: str) -> DeploymentPlan:
	try:
		return load_plan(path)
	except PlanLoadError as e:
		print(f"Error: {e.message}", file=sys.stderr)
		sys.exit(2)


def _resolve_threshold(args: argparse.Namespace, plan: DeploymentPlan, config: Config) -> float:
	"""CLI flag > plan > config."""
	if getattr(args, "threshold", None) is not None:
		return args.threshold
	if plan.threshold is not None:
		return plan.threshold
	return config.threshold


def _resolve_max_retries(args: argparse.Namespace, plan: DeploymentPlan, config: Config) -> int:
	"""CLI flag > plan > config."""
	if getattr(args, "max_retries", None) is not None:
		return args.max_retries
	if plan.max_retries is not None:
		return plan.max_retries
	return config.max_retries


async def _run_plan(
	plan: DeploymentPlan,
	config: Config,
	args: argparse.Namespace,
) -> DeploymentReport:
	"""Run a plan, cancelling cleanly on Ctrl-C, and store the report."""
	coordinator = WaveCoordinator.from_plan(
		plan,
		threshold=_resolve_threshold(args, plan, config),
		max_retries=_resolve_max_retries(args, plan, config),
		max_concurrency=config.max_concurrency or None,
		deploy_timeout=config.deploy_timeout or None,
	)

	loop = asyncio.get_running_loop()
	handles_sigint = True
	try:
		loop.add_signal_handler(signal.SIGINT, coordinator.cancel)
	except (NotImplementedError, RuntimeError):
		handles_sigint = False
		logger.debug("SIGINT handler unavailable; Ctrl-C will interrupt without a report")

	try:
		report = await coordinator.run()
	finally:
		if handles_sigint:
			loop.remove_signal_handler(signal.SIGINT)

	if not getattr(args, "no_history", False):
		store = ReportStore(str(config.history_db_path))
		await store.init()
		try:
			await store.save(report)
		finally:
			await store.close()

	return report


def cmd_run(args: argparse.Namespace) -> None:
	"""Run a deployment plan."""
	from .visualizer.report_view import render_report

	config = get_config()
	setup_logging(level=getattr(args, "log_level", None) or config.log_level, log_dir=config.log_dir)
	plan = _load_plan_or_exit(args.plan)

	report = asyncio.run(_run_plan(plan, config, args))

	if getattr(args, "json", False):
		print(report.model_dump_json(indent=2))
	else:
		render_report(report)

	sys.exit(0 if report.overall_status == OverallStatus.SUCCEEDED else 1)


def cmd_check(args: argparse.Namespace) -> None:
	"""Validate a plan without running it."""
	from .visualizer.report_view import render_plan

	plan = _load_plan_or_exit(args.plan)
	config = get_config()

	render_plan(plan)
	print()
	print(f"  Threshold:   {_resolve_threshold(args, plan, config)}")
	print(f"  Max retries: {_resolve_max_retries(args, plan, config)}")
	print("  Plan is valid.")


async def _list_reports(config: Config, limit: int, status: Optional[str]) -> list[DeploymentReport]:
	store = ReportStore(str(config.history_db_path))
	await store.init()
	try:
		return await store.list_reports(limit=limit, status=OverallStatus(status) if status else None)
	finally:
		await store.close()


async def _get_report(config: Config, run_id: str) -> Optional[DeploymentReport]:
	store = ReportStore(str(config.history_db_path))
	await store.init()
	try:
		return await store.get(run_id)
	finally:
		await store.close()


def cmd_history(args: argparse.Namespace) -> None:
	"""List past deployment runs."""
	from .visualizer.history_view import render_history

	config = get_config()
	reports = asyncio.run(_list_reports(config, getattr(args, "limit", 20), getattr(args, "status", None)))
	render_history(reports)


def cmd_show(args: argparse.Namespace) -> None:
	"""Show one stored report."""
	from .visualizer.report_view import render_report

	config = get_config()
	report = asyncio.run(_get_report(config, args.run_id))
	if report is None:
		print(f"No report found for run '{args.run_id}'.", file=sys.stderr)
		sys.exit(1)

	if getattr(args, "json", False):
		print(report.model_dump_json(indent=2))
	else:
		render_report(report)


def cmd_config(args: argparse.Namespace) -> None:
	"""Print the effective configuration."""
	config = get_config()

	print("wave-coordinator config")
	print(f"{'=' * 40}")
	rows = [
		("Config dir", config.config_dir),
		("Data dir", config.data_dir),
		("Config file", config.config_dir / "config.toml"),
		("History DB", config.history_db_path),
		("Log dir", config.log_dir),
		("Threshold", config.threshold),
		("Max retries", config.max_retries),
		("Max concurrency", config.max_concurrency or "unbounded"),
		("Deploy timeout", f"{config.deploy_timeout}s" if config.deploy_timeout else "none"),
		("Log level", config.log_level),
	]
	for label, value in rows:
		print(f"  {label + ':':17s} {value}")


def _add_policy_args(parser: argparse.ArgumentParser) -> None:
	parser.add_argument("--threshold", type=float, default=None, help="Confidence needed to advance (0-1)")
	parser.add_argument("--max-retries", type=int, default=None, help="Retries per held wave")


def build_parser() -> argparse.ArgumentParser:
	"""Build the argument parser."""
	parser = argparse.ArgumentParser(
		prog="wave-coordinator",
		description="Run deployments wave by wave, gated on aggregate confidence",
	)
	subparsers = parser.add_subparsers(dest="command")

	# run
	run_parser = subparsers.add_parser("run", help="Run a deployment plan")
	run_parser.add_argument("plan", help="Plan file (.json or .toml)")
	_add_policy_args(run_parser)
	run_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
	run_parser.add_argument("--no-history", action="store_true", help="Don't store the report")
	run_parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING, ERROR")
	run_parser.set_defaults(func=cmd_run)

	# check
	check_parser = subparsers.add_parser("check", help="Validate a plan without running it")
	check_parser.add_argument("plan", help="Plan file (.json or .toml)")
	_add_policy_args(check_parser)
	check_parser.set_defaults(func=cmd_check)

	# history
	history_parser = subparsers.add_parser("history", help="List past deployments")
	history_parser.add_argument("--limit", type=int, default=20, help="Max results")
	history_parser.add_argument(
		"--status",
		choices=[s.value for s in OverallStatus],
		default=None,
		help="Only runs with this overall status",
	)
	history_parser.set_defaults(func=cmd_history)

	# show
	show_parser = subparsers.add_parser("show", help="Show a stored report")
	show_parser.add_argument("run_id", help="Run ID")
	show_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
	show_parser.set_defaults(func=cmd_show)

	# config
	config_parser = subparsers.add_parser("config", help="Show effective configuration")
	config_parser.set_defaults(func=cmd_config)

	return parser


def main() -> None:
	"""CLI entry point."""
	parser = build_parser()
	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	args.func(args)
