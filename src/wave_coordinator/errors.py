"""Error hierarchy for wave deployments."""


class WaveCoordinatorError(Exception):
	"""Base error for all wave-coordinator exceptions."""

	code = "WAVE_COORDINATOR_ERROR"

	def __init__(self, message: str, details: dict = None):
		self.message = message
		self.details = details or {}
		super().__init__(message)

	def to_dict(self) -> dict:
		return {
			"error": self.code,
			"message": self.message,
			"details": self.details,
		}


class DeploymentFailed(WaveCoordinatorError):
	"""
	Soft failure raised by a deploy action.

	Converted into a failed DeployResult; never propagates past the worker.
	"""

	code = "DEPLOYMENT_FAILED"


class WorkerFault(WaveCoordinatorError):
	"""Unrecoverable worker fault. Aborts the wave and the whole run."""

	code = "WORKER_FAULT"

	def __init__(self, worker_id: str, detail: str):
		super().__init__(f"Worker {worker_id} faulted: {detail}", {"worker_id": worker_id})
		self.worker_id = worker_id
		self.detail = detail
