"""Rich view for past deployment runs."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from ..orchestrator.models import DeploymentReport
from .utils import format_timestamp, overall_style


def render_history(reports: list[DeploymentReport], console: Optional[Console] = None) -> None:
	"""Render a table of stored reports, most recent first."""
	console = console or Console()

	if not reports:
		console.print("[dim]No deployments recorded yet.[/dim]")
		return

	table = Table(title="Deployment History")
	table.add_column("Run", style="cyan")
	table.add_column("Version")
	table.add_column("Started")
	table.add_column("Waves", justify="right")
	table.add_column("Failures", justify="right")
	table.add_column("Status", justify="center")
	table.add_column("Reason")

	for report in reports:
		style = overall_style(report.overall_status)
		table.add_row(
			report.run_id,
			report.version or "-",
			format_timestamp(report.started_at),
			str(len(report.waves)),
			str(report.total_failures),
			f"[{style}]{report.overall_status.value}[/{style}]",
			report.abort_reason.value if report.abort_reason else "",
		)

	console.print(table)
