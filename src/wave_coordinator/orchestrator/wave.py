"""
Wave - An ordered group of workers that advance together.

One call to run() is one attempt: deploy concurrently, validate, analyze,
then apply the transition rule:

- advanced: every worker validated and confidence >= threshold
- held: otherwise, while retries remain
- aborted: retries exhausted, or a worker raised an unrecoverable fault

Retries re-deploy only the workers whose last validation was invalid.
Workers that already validated keep their original DeployResult.
"""

import asyncio
import logging
from typing import Optional

from ..errors import WorkerFault
from .analyzer import IntelligenceAnalyzer
from .models import (
	DeployResult,
	FaultRecord,
	IntelligenceReport,
	ValidationOutcome,
	WaveOutcome,
	WaveState,
)
from .worker import Worker

logger = logging.getLogger(__name__)


class Wave:
	"""
	A group of workers sharing one wave number.

	Args:
		number: Execution order (ascending), >= 1
		workers: Non-empty list of workers with unique ids
		max_retries: Retries allowed after the first attempt
		max_concurrency: Cap on concurrent deploys (None or 0 for unbounded)
	"""

	DEFAULT_MAX_RETRIES = 1

	def __init__(
		self,
		number: int,
		workers: list[Worker],
		max_retries: int = DEFAULT_MAX_RETRIES,
		max_concurrency: Optional[int] = None,
	):
		if number < 1:
			raise ValueError(f"Wave number must be >= 1, got {number}")
		if not workers:
			raise ValueError(f"Wave {number} has no workers")
		if max_retries < 0:
			raise ValueError(f"max_retries must be >= 0, got {max_retries}")

		seen: set[str] = set()
		for worker in workers:
			if worker.id in seen:
				raise ValueError(f"Duplicate worker id in wave {number}: {worker.id}")
			if worker.wave_number != number:
				raise ValueError(
					f"Worker {worker.id} belongs to wave {worker.wave_number}, not wave {number}"
				)
			seen.add(worker.id)

		self.number = number
		self.workers = list(workers)
		self.max_retries = max_retries
		self.max_concurrency = max_concurrency

		self.state = WaveState.PENDING
		self.aggregate_confidence: Optional[float] = None
		self.attempts = 0
		self.failure_count = 0
		self.fault: Optional[FaultRecord] = None
		self.reports: list[IntelligenceReport] = []

		self._results: dict[str, DeployResult] = {}
		self._validations: dict[str, ValidationOutcome] = {}

	def __repr__(self) -> str:
		return f"Wave(number={self.number}, workers={len(self.workers)}, state={self.state.value})"

	@property
	def is_terminal(self) -> bool:
		return self.state in (WaveState.ADVANCED, WaveState.ABORTED)

	@property
	def retries_remaining(self) -> int:
		"""Retries still available after the attempts made so far."""
		used = max(0, self.attempts - 1)
		return max(0, self.max_retries - used)

	def pending_workers(self) -> list[Worker]:
		"""Workers the next attempt will deploy."""
		if self.attempts == 0:
			return list(self.workers)
		return [
			w for w in self.workers
			if w.id not in self._validations or not self._validations[w.id].valid
		]

	async def run(
		self,
		analyzer: Optional[IntelligenceAnalyzer] = None,
		threshold: float = 0.8,
	) -> WaveOutcome:
		"""
		Run one attempt of this wave.

		Args:
			analyzer: Analyzer used to score the merged result set
			threshold: Minimum aggregate confidence to advance

		Returns:
			WaveOutcome reflecting the state after this attempt
		"""
		if self.is_terminal:
			raise RuntimeError(f"Wave {self.number} is already {self.state.value}")

		analyzer = analyzer or IntelligenceAnalyzer()
		to_deploy = self.pending_workers()
		self.state = WaveState.RUNNING
		self.attempts += 1

		logger.info(
			f"Wave {self.number} attempt {self.attempts}: deploying "
			f"{len(to_deploy)}/{len(self.workers)} workers"
		)

		try:
			results = await self._deploy_all(to_deploy)
		except WorkerFault as e:
			return self._abort_with_fault(e)

		for result in results:
			self._results[result.worker_id] = result

		for worker in to_deploy:
			try:
				validation = worker.validate()
			except Exception as e:
				return self._abort_with_fault(WorkerFault(worker.id, f"validate raised {type(e).__name__}: {e}"))
			self._validations[worker.id] = validation
			if not validation.valid:
				self.failure_count += 1

		report = analyzer.analyze(
			self._results.values(),
			validations=self._validations,
			prior_reports=self.reports,
		)
		self.reports.append(report)
		self.aggregate_confidence = report.confidence

		all_validated = len(self._validations) == len(self.workers) and all(
			v.valid for v in self._validations.values()
		)

		if all_validated and report.confidence >= threshold:
			self.state = WaveState.ADVANCED
			logger.info(f"Wave {self.number} advanced (confidence {report.confidence:.2f})")
		elif self.attempts <= self.max_retries:
			self.state = WaveState.HELD
			logger.warning(
				f"Wave {self.number} held (confidence {report.confidence:.2f} < {threshold:.2f} "
				f"or unvalidated workers), {self.retries_remaining} retries left"
			)
		else:
			self.state = WaveState.ABORTED
			logger.warning(
				f"Wave {self.number} aborted after {self.attempts} attempts "
				f"(confidence {report.confidence:.2f})"
			)

		return self.outcome()

	def _abort_with_fault(self, fault: WorkerFault) -> WaveOutcome:
		self.fault = FaultRecord(worker_id=fault.worker_id, wave_number=self.number, detail=fault.detail)
		self.failure_count += 1
		self.state = WaveState.ABORTED
		logger.error(f"Wave {self.number} aborted: {fault.message}")
		return self.outcome()

	def abort(self) -> None:
		"""Force the wave into the aborted state, whatever its last attempt decided."""
		self.state = WaveState.ABORTED

	def outcome(self) -> WaveOutcome:
		"""Snapshot of the wave's current outcome."""
		return WaveOutcome(
			number=self.number,
			state=self.state,
			aggregate_confidence=self.aggregate_confidence,
			worker_count=len(self.workers),
			failure_count=self.failure_count,
			attempts=self.attempts,
			results=[self._results[k] for k in sorted(self._results)],
			report=self.reports[-1] if self.reports else None,
			fault=self.fault,
		)

	async def _deploy_all(self, workers: list[Worker]) -> list[DeployResult]:
		"""
		Deploy workers concurrently.

		The first WorkerFault cancels every sibling still running and is
		re-raised without waiting for them to finish.
		"""
		if not workers:
			return []

		semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

		async def deploy_one(worker: Worker) -> DeployResult:
			if semaphore is None:
				return await worker.deploy()
			async with semaphore:
				return await worker.deploy()

		# Fan out
		tasks = [
			asyncio.create_task(deploy_one(w), name=f"wave-{self.number}-{w.id}")
			for w in workers
		]

		try:
			done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
		except asyncio.CancelledError:
			for task in tasks:
				task.cancel()
			raise

		for task in tasks:
			if task in done and not task.cancelled() and task.exception() is not None:
				for other in pending:
					other.cancel()
				if pending:
					await asyncio.gather(*pending, return_exceptions=True)
				raise task.exception()

		# Fan in
		return [task.result() for task in tasks]
