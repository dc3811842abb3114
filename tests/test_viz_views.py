"""Tests for visualizer Rich views."""

from datetime import datetime
from io import StringIO

from rich.console import Console

from wave_coordinator.orchestrator.aggregator import ResultAggregator
from wave_coordinator.orchestrator.models import (
	AbortReason,
	FaultRecord,
	OverallStatus,
	WaveOutcome,
	WaveState,
)
from wave_coordinator.plans.loader import parse_plan
from wave_coordinator.visualizer.history_view import render_history
from wave_coordinator.visualizer.report_view import render_plan, render_report
from wave_coordinator.visualizer.utils import (
	format_confidence,
	format_timestamp,
	overall_style,
	state_style,
)


def _console() -> tuple[Console, StringIO]:
	buf = StringIO()
	return Console(file=buf, force_terminal=True, width=120), buf


def _report(aborted: bool = False):
	agg = ResultAggregator(version="2.1", run_id="run-abc")
	agg.record(WaveOutcome(
		number=1, state=WaveState.ADVANCED, aggregate_confidence=1.0, worker_count=3, attempts=1,
	))
	if aborted:
		agg.record(WaveOutcome(
			number=2, state=WaveState.ABORTED, aggregate_confidence=0.5,
			worker_count=2, failure_count=1, attempts=1,
		))
		return agg.finalize(fault=FaultRecord(worker_id="w9", wave_number=2, detail="exploded"))
	return agg.finalize()


# -- utils tests --

def test_format_confidence():
	assert format_confidence(0.75) == "75%"
	assert format_confidence(1.0) == "100%"


def test_format_confidence_unset():
	assert format_confidence(None) == "-"


def test_format_timestamp_recent():
	ts = datetime.now().isoformat()
	result = format_timestamp(ts)
	assert "ago" in result


def test_format_timestamp_invalid():
	assert format_timestamp("not-a-date") == "not-a-date"


def test_format_timestamp_empty():
	assert format_timestamp(None) == "-"


def test_styles():
	assert state_style(WaveState.ADVANCED) == "green"
	assert state_style(WaveState.ABORTED) == "red"
	assert overall_style(OverallStatus.PARTIALLY_SUCCEEDED) == "yellow"


# -- report view tests --

def test_render_report_succeeded():
	console, buf = _console()
	render_report(_report(), console=console)
	output = buf.getvalue()
	assert "run-abc" in output
	assert "succeeded" in output
	assert "Waves" in output
	assert "100%" in output


def test_render_report_aborted_shows_fault():
	report = _report(aborted=True)
	assert report.abort_reason == AbortReason.FAULT

	console, buf = _console()
	render_report(report, console=console)
	output = buf.getvalue()
	assert "aborted" in output
	assert "w9" in output
	assert "exploded" in output


def test_render_report_no_waves():
	console, buf = _console()
	render_report(ResultAggregator().finalize(abort_reason=AbortReason.CANCELLED), console=console)
	assert "No waves were run" in buf.getvalue()


def test_render_plan():
	plan = parse_plan({
		"name": "edge-rollout",
		"version": "0.9",
		"waves": [
			{"number": 1, "workers": [{"id": "canary", "task": {"action": "echo"}}]},
			{"number": 2, "workers": [{"id": "bulk", "task": '{"action": "sleep"}'}]},
		],
	})
	console, buf = _console()
	render_plan(plan, console=console)
	output = buf.getvalue()
	assert "edge-rollout" in output
	assert "Wave 1" in output
	assert "canary" in output
	assert "(encoded)" in output


# -- history view tests --

def test_render_history_empty():
	console, buf = _console()
	render_history([], console=console)
	assert "No deployments recorded yet" in buf.getvalue()


def test_render_history():
	console, buf = _console()
	render_history([_report(), _report(aborted=True)], console=console)
	output = buf.getvalue()
	assert "Deployment History" in output
	assert "run-abc" in output
	assert "fault" in output
