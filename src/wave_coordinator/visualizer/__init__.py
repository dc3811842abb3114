"""Visualizer package - Rich terminal views for deployments."""

from .history_view import render_history
from .report_view import render_plan, render_report

__all__ = [
	"render_history",
	"render_plan",
	"render_report",
]
