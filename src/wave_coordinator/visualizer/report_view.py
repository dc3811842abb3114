"""Rich views for deployment reports and plans."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..plans.models import DeploymentPlan
from ..orchestrator.models import DeploymentReport
from .utils import format_confidence, format_timestamp, overall_style, state_style


def render_report(report: DeploymentReport, console: Optional[Console] = None) -> None:
	"""Render a summary panel and a per-wave table for a report."""
	console = console or Console()

	style = overall_style(report.overall_status)
	lines = [
		f"[bold]Status:[/bold] [{style}]{report.overall_status.value}[/{style}]",
		f"[bold]Waves recorded:[/bold] {len(report.waves)}",
		f"[bold]Total failures:[/bold] {report.total_failures}",
		f"[bold]Started:[/bold] {format_timestamp(report.started_at)}",
	]
	if report.version:
		lines.insert(1, f"[bold]Version:[/bold] {report.version}")
	if report.abort_reason:
		lines.append(f"[bold]Abort reason:[/bold] {report.abort_reason.value}")
	if report.fault:
		lines.append(
			f"[bold]Fault:[/bold] [red]worker {report.fault.worker_id} "
			f"(wave {report.fault.wave_number}): {report.fault.detail}[/red]"
		)

	console.print(Panel("\n".join(lines), title=f"Deployment {report.run_id}", border_style=style))

	if not report.waves:
		console.print("[dim]No waves were run.[/dim]")
		return

	table = Table(title="Waves")
	table.add_column("Wave", justify="right")
	table.add_column("State", justify="center")
	table.add_column("Confidence", justify="right")
	table.add_column("Workers", justify="right")
	table.add_column("Failures", justify="right")
	table.add_column("Attempts", justify="right")

	for wave in report.waves:
		wave_style = state_style(wave.state)
		table.add_row(
			str(wave.number),
			f"[{wave_style}]{wave.state.value}[/{wave_style}]",
			format_confidence(wave.aggregate_confidence),
			str(wave.worker_count),
			str(wave.failure_count),
			str(wave.attempts),
		)

	console.print(table)


def render_plan(plan: DeploymentPlan, console: Optional[Console] = None) -> None:
	"""Render a plan as a Rich Tree of waves and workers."""
	console = console or Console()

	header = f"[bold]{plan.name}[/bold]"
	if plan.version:
		header += f" [dim]v{plan.version}[/dim]"
	header += f"  [dim]({len(plan.waves)} waves, {plan.worker_count} workers)[/dim]"
	tree = Tree(header)

	for wave in plan.ordered_waves():
		branch = tree.add(f"[bold]Wave {wave.number}[/bold] [dim]- {len(wave.workers)} workers[/dim]")
		for worker in wave.workers:
			action = worker.task.get("action", "?") if isinstance(worker.task, dict) else "(encoded)"
			branch.add(f"{worker.id} [dim]{worker.rank}[/dim] [cyan]{action}[/cyan]")

	console.print(tree)
