"""
Worker - A single deployable unit ("Colonel") within a wave.

Workers never touch wave or report state. deploy() hands back a frozen
DeployResult and validate() a frozen ValidationOutcome; the wave that owns
the worker decides what they mean.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..errors import DeploymentFailed, WorkerFault
from ..schemas import TaskDecodeError, decode_task, validate_task
from .actions import ActionContext, run_action
from .models import DeployResult, ValidationOutcome, WorkerStatus

logger = logging.getLogger(__name__)

Handler = Callable[["Worker", dict, int], Awaitable[Any]]
Check = Callable[[DeployResult], bool]


async def default_handler(worker: "Worker", task: dict, attempt: int) -> Any:
	"""Run the task's named action from the action registry."""
	context = ActionContext(
		worker_id=worker.id,
		wave_number=worker.wave_number,
		attempt=attempt,
	)
	return await run_action(task["action"], task.get("params", {}), context)


def _check_deployed(result: DeployResult) -> bool:
	return result.status == WorkerStatus.DEPLOYED


def _check_payload(result: DeployResult) -> bool:
	return result.payload is not None


BUILTIN_CHECKS: dict[str, Check] = {
	"deployed": _check_deployed,
	"payload": _check_payload,
}


class Worker:
	"""
	A unit of deployable work belonging to a wave.

	Args:
		id: Identifier, unique within the wave
		rank: Display-only tag
		wave_number: Wave this worker belongs to
		task: Default task description for deploy()
		handler: Async callable(worker, task, attempt) performing the deployment
		checks: Extra named post-deploy checks, run after the built-in ones
		timeout: Default seconds before a deploy is failed (None or 0 for no limit)
	"""

	DEFAULT_CHECKS = ["deployed"]

	def __init__(
		self,
		id: str,
		rank: str = "Colonel",
		wave_number: int = 1,
		task: Any = None,
		handler: Optional[Handler] = None,
		checks: Optional[dict[str, Check]] = None,
		timeout: Optional[float] = None,
	):
		if wave_number < 1:
			raise ValueError(f"wave_number must be >= 1, got {wave_number}")
		self.id = id
		self.rank = rank
		self.wave_number = wave_number
		self.task = task
		self.handler = handler or default_handler
		self.checks = checks or {}
		self.timeout = timeout or None

		self.status = WorkerStatus.PENDING
		self.deploy_count = 0
		self.last_result: Optional[DeployResult] = None
		self.last_validation: Optional[ValidationOutcome] = None
		self._requested_checks: list[str] = []

	def __repr__(self) -> str:
		return f"Worker(id={self.id!r}, rank={self.rank!r}, wave={self.wave_number}, status={self.status.value})"

	async def deploy(self, task: Any = None) -> DeployResult:
		"""
		Deploy a task.

		Args:
			task: Task description (mapping or JSON string); defaults to the worker's task

		Returns:
			DeployResult with status deployed or failed

		Raises:
			WorkerFault: If the task cannot be decoded or the handler breaks unexpectedly
		"""
		task = self.task if task is None else task

		try:
			data = decode_task(task)
		except TaskDecodeError as e:
			self.status = WorkerStatus.FAILED
			raise WorkerFault(self.id, str(e)) from e

		self.deploy_count += 1
		attempt = self.deploy_count
		self.last_validation = None

		is_valid, error = validate_task(data)
		if not is_valid:
			logger.warning(f"Worker {self.id} rejected malformed task: {error}")
			self._requested_checks = []
			return self._record(WorkerStatus.FAILED, {"error": error}, attempt)

		self._requested_checks = list(data.get("checks", []))
		timeout = data.get("timeout", self.timeout)
		if timeout is not None and timeout <= 0:
			logger.warning(f"Worker {self.id} rejected task with timeout {timeout}")
			return self._record(
				WorkerStatus.FAILED,
				{"error": f"Task timeout must be positive, got {timeout}"},
				attempt,
			)

		try:
			if timeout is not None:
				payload = await asyncio.wait_for(self.handler(self, data, attempt), timeout=timeout)
			else:
				payload = await self.handler(self, data, attempt)
		except DeploymentFailed as e:
			logger.warning(f"Worker {self.id} deploy failed (attempt {attempt}): {e.message}")
			return self._record(
				WorkerStatus.FAILED,
				{"error": e.message, "details": e.details},
				attempt,
			)
		except asyncio.TimeoutError:
			logger.warning(f"Worker {self.id} deploy timed out after {timeout}s")
			return self._record(
				WorkerStatus.FAILED,
				{"error": f"Deploy timed out after {timeout}s"},
				attempt,
			)
		except WorkerFault:
			self.status = WorkerStatus.FAILED
			raise
		except Exception as e:
			self.status = WorkerStatus.FAILED
			raise WorkerFault(self.id, f"{type(e).__name__}: {e}") from e

		return self._record(WorkerStatus.DEPLOYED, payload, attempt)

	def validate(self) -> ValidationOutcome:
		"""
		Run post-deploy checks against the last deploy result.

		A worker with no result fails every check. valid=False leaves the
		worker failed (degraded); valid=True marks it validated.
		"""
		names = list(self.DEFAULT_CHECKS)
		for name in self._requested_checks:
			if name not in names:
				names.append(name)

		failed: list[str] = []
		for name in names:
			check = BUILTIN_CHECKS.get(name)
			if check is None or self.last_result is None or not check(self.last_result):
				failed.append(name)

		for name, check in self.checks.items():
			names.append(name)
			if self.last_result is None:
				failed.append(name)
				continue
			try:
				passed = bool(check(self.last_result))
			except Exception as e:
				logger.warning(f"Check '{name}' raised for worker {self.id}: {e}")
				passed = False
			if not passed:
				failed.append(name)

		outcome = ValidationOutcome(valid=not failed, checks=names, failed_checks=failed)
		self.last_validation = outcome
		self.status = WorkerStatus.VALIDATED if outcome.valid else WorkerStatus.FAILED
		return outcome

	def _record(self, status: WorkerStatus, payload: Any, attempt: int) -> DeployResult:
		result = DeployResult(
			worker_id=self.id,
			wave_number=self.wave_number,
			status=status,
			payload=payload,
			attempt=attempt,
		)
		self.last_result = result
		self.status = status
		return result
