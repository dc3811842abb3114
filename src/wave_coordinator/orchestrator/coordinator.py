"""
Wave Deployment Coordinator - Drives waves in order and decides advance/hold/abort.

State machine:

	Idle -> Running(n) -> Advancing -> Running(n+1) ... -> Finished
	                   -> Held -> Running(n)          (retry, bounded by the wave)
	                   -> Aborted                     (fail-fast, terminal)

Waves run strictly one after another. The coordinator task is the only
thing that mutates wave and report state; workers and the analyzer hand
back frozen results.

Cancellation is cooperative: cancel() sets a flag, in-flight deploys are
allowed to finish, the running wave is marked aborted, and the run ends
Finished with overall status aborted (reason: cancelled).
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..plans.models import DeploymentPlan
from .aggregator import ResultAggregator
from .analyzer import IntelligenceAnalyzer
from .models import AbortReason, DeploymentReport, FaultRecord, WaveOutcome, WaveState
from .wave import Wave
from .worker import Handler, Worker

logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
	"""State of the coordinator."""
	IDLE = "idle"
	RUNNING = "running"
	ADVANCING = "advancing"
	HELD = "held"
	ABORTED = "aborted"
	FINISHED = "finished"


class WaveCoordinator:
	"""
	Runs an ordered list of waves and produces a DeploymentReport.

	Args:
		waves: Waves to run; executed in ascending wave number
		analyzer: Analyzer shared by every wave
		threshold: Minimum aggregate confidence for a wave to advance
		version: Plan version carried into the report
		on_wave_complete: Optional async callback(outcome) after each wave is recorded
	"""

	DEFAULT_THRESHOLD = 0.8

	def __init__(
		self,
		waves: list[Wave],
		analyzer: Optional[IntelligenceAnalyzer] = None,
		threshold: float = DEFAULT_THRESHOLD,
		version: Optional[str] = None,
		on_wave_complete: Optional[Callable[[WaveOutcome], Awaitable[None]]] = None,
	):
		if not 0.0 <= threshold <= 1.0:
			raise ValueError(f"threshold must be within [0, 1], got {threshold}")

		ordered = sorted(waves, key=lambda w: w.number)
		numbers = [w.number for w in ordered]
		if len(set(numbers)) != len(numbers):
			raise ValueError(f"Duplicate wave numbers: {numbers}")

		self.waves = ordered
		self.analyzer = analyzer or IntelligenceAnalyzer()
		self.threshold = threshold
		self.version = version
		self.on_wave_complete = on_wave_complete

		self.state = CoordinatorState.IDLE
		self.current_wave: Optional[int] = None
		self.transitions: list[tuple[CoordinatorState, Optional[int]]] = [(self.state, None)]
		self.report: Optional[DeploymentReport] = None

		self._aggregator = ResultAggregator(version=version)
		self._cancel_event = asyncio.Event()

	@classmethod
	def from_plan(
		cls,
		plan: DeploymentPlan,
		handler: Optional[Handler] = None,
		analyzer: Optional[IntelligenceAnalyzer] = None,
		threshold: Optional[float] = None,
		max_retries: Optional[int] = None,
		max_concurrency: Optional[int] = None,
		deploy_timeout: Optional[float] = None,
		on_wave_complete: Optional[Callable[[WaveOutcome], Awaitable[None]]] = None,
	) -> "WaveCoordinator":
		"""
		Build a coordinator from a DeploymentPlan.

		Explicit arguments win over the plan's own threshold/max_retries,
		which win over the defaults.
		"""
		if threshold is None:
			threshold = plan.threshold if plan.threshold is not None else cls.DEFAULT_THRESHOLD
		if max_retries is None:
			max_retries = plan.max_retries if plan.max_retries is not None else Wave.DEFAULT_MAX_RETRIES

		waves = []
		for definition in plan.ordered_waves():
			workers = [
				Worker(
					id=w.id,
					rank=w.rank,
					wave_number=definition.number,
					task=w.task,
					handler=handler,
					timeout=deploy_timeout,
				)
				for w in definition.workers
			]
			waves.append(Wave(
				number=definition.number,
				workers=workers,
				max_retries=max_retries,
				max_concurrency=max_concurrency,
			))

		return cls(
			waves,
			analyzer=analyzer,
			threshold=threshold,
			version=plan.version,
			on_wave_complete=on_wave_complete,
		)

	@property
	def cancelled(self) -> bool:
		return self._cancel_event.is_set()

	@property
	def is_terminal(self) -> bool:
		return self.state in (CoordinatorState.FINISHED, CoordinatorState.ABORTED)

	def cancel(self) -> None:
		"""Request cancellation. Takes effect when the running wave attempt completes."""
		if not self._cancel_event.is_set():
			logger.info("Cancellation requested")
		self._cancel_event.set()

	async def run(self) -> DeploymentReport:
		"""
		Run every wave in order until all advance or one aborts.

		Returns:
			The finalized DeploymentReport
		"""
		if self.state != CoordinatorState.IDLE:
			raise RuntimeError(f"Coordinator already ran (state: {self.state.value})")

		abort_reason: Optional[AbortReason] = None
		fault: Optional[FaultRecord] = None

		for wave in self.waves:
			if self.cancelled:
				abort_reason = AbortReason.CANCELLED
				break

			self._transition(CoordinatorState.RUNNING, wave.number)
			outcome = await self._run_wave(wave)

			# A fault outranks a cancellation that raced with it
			if self.cancelled and outcome.fault is None:
				wave.abort()
				outcome = wave.outcome()
				abort_reason = AbortReason.CANCELLED
				logger.warning(f"Wave {wave.number} aborted by cancellation")

			await self._record(outcome)

			if abort_reason == AbortReason.CANCELLED:
				break

			if outcome.state == WaveState.ABORTED:
				fault = outcome.fault
				abort_reason = AbortReason.FAULT if fault else AbortReason.RETRIES_EXHAUSTED
				self._transition(CoordinatorState.ABORTED, wave.number)
				remaining = [w.number for w in self.waves if w.number > wave.number]
				if remaining:
					logger.warning(f"Halting: waves {remaining} will not run")
				break

			self._transition(CoordinatorState.ADVANCING, wave.number)

		if self.state != CoordinatorState.ABORTED:
			self._transition(CoordinatorState.FINISHED, self.current_wave)

		self.report = self._aggregator.finalize(abort_reason=abort_reason, fault=fault)
		return self.report

	async def _run_wave(self, wave: Wave) -> WaveOutcome:
		"""Run a wave, re-entering it while it is held."""
		while True:
			outcome = await wave.run(self.analyzer, self.threshold)
			if outcome.state != WaveState.HELD or self.cancelled:
				return outcome
			self._transition(CoordinatorState.HELD, wave.number)
			self._transition(CoordinatorState.RUNNING, wave.number)

	async def _record(self, outcome: WaveOutcome) -> None:
		self._aggregator.record(outcome)

		if self.on_wave_complete:
			try:
				await self.on_wave_complete(outcome)
			except Exception as e:
				logger.error(f"on_wave_complete callback failed for wave {outcome.number}: {e}")

	def _transition(self, state: CoordinatorState, wave_number: Optional[int]) -> None:
		logger.debug(f"Coordinator {self.state.value} -> {state.value} (wave {wave_number})")
		self.state = state
		self.current_wave = wave_number
		self.transitions.append((state, wave_number))
