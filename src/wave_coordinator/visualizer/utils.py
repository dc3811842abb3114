"""Shared utilities for visualizer views."""

from datetime import datetime
from typing import Optional

from ..orchestrator.models import OverallStatus, WaveState

STATE_STYLES = {
	WaveState.PENDING: "dim",
	WaveState.RUNNING: "yellow",
	WaveState.ADVANCED: "green",
	WaveState.HELD: "yellow",
	WaveState.ABORTED: "red",
}

OVERALL_STYLES = {
	OverallStatus.SUCCEEDED: "green",
	OverallStatus.PARTIALLY_SUCCEEDED: "yellow",
	OverallStatus.ABORTED: "red",
}


def format_confidence(confidence: Optional[float]) -> str:
	"""Format a confidence score as a percentage. e.g. '75%', '-' when unset."""
	if confidence is None:
		return "-"
	return f"{confidence * 100:.0f}%"


def format_timestamp(iso_str: Optional[str]) -> str:
	"""Format an ISO timestamp as relative time (e.g. '2m ago') or absolute."""
	if not iso_str:
		return "-"
	try:
		dt = datetime.fromisoformat(iso_str)
		delta = datetime.now() - dt
		total_secs = int(delta.total_seconds())

		if total_secs < 0:
			return iso_str[:19]
		if total_secs < 60:
			return f"{total_secs}s ago"
		if total_secs < 3600:
			return f"{total_secs // 60}m ago"
		if total_secs < 86400:
			return f"{total_secs // 3600}h ago"
		days = total_secs // 86400
		return f"{days}d ago"
	except (ValueError, TypeError):
		return str(iso_str)[:19]


def state_style(state: WaveState) -> str:
	"""Return a Rich style string for a wave state."""
	return STATE_STYLES.get(state, "white")


def overall_style(status: OverallStatus) -> str:
	"""Return a Rich style string for an overall status."""
	return OVERALL_STYLES.get(status, "white")
