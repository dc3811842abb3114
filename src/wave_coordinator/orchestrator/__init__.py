"""Orchestrator module - Workers, waves, analysis, and the wave coordinator."""

from .aggregator import ResultAggregator
from .analyzer import IntelligenceAnalyzer
from .coordinator import CoordinatorState, WaveCoordinator
from .wave import Wave
from .worker import Worker

__all__ = [
	"Worker",
	"Wave",
	"IntelligenceAnalyzer",
	"ResultAggregator",
	"WaveCoordinator",
	"CoordinatorState",
]
