"""
Core Models - Pydantic schemas for workers, waves, analysis, and reports.

Results and reports are frozen: once a worker or the analyzer hands one
back to the coordinator it is treated as an immutable message. The final
DeploymentReport is plain nested key/value and list data, so
report.model_dump(mode="json") is all a caller needs to serialize it.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class WorkerStatus(str, Enum):
	"""Lifecycle status of a worker."""
	PENDING = "pending"
	DEPLOYED = "deployed"
	VALIDATED = "validated"
	FAILED = "failed"


class WaveState(str, Enum):
	"""State of a wave."""
	PENDING = "pending"
	RUNNING = "running"
	ADVANCED = "advanced"
	HELD = "held"
	ABORTED = "aborted"


class DeployResult(BaseModel):
	"""Outcome of a single worker deployment."""
	model_config = ConfigDict(frozen=True)

	worker_id: str = Field(description="Worker that produced this result")
	wave_number: int = Field(ge=1)
	status: WorkerStatus = Field(description="Either deployed or failed")
	payload: Any = Field(default=None, description="Opaque result data")
	timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
	attempt: int = Field(default=1, ge=1, description="Which deploy of this worker produced the result")

	@property
	def succeeded(self) -> bool:
		return self.status == WorkerStatus.DEPLOYED


class ValidationOutcome(BaseModel):
	"""Result of a worker's post-deploy checks."""
	model_config = ConfigDict(frozen=True)

	valid: bool
	checks: list[str] = Field(default_factory=list, description="Checks that were run")
	failed_checks: list[str] = Field(default_factory=list)


class IntelligenceReport(BaseModel):
	"""Confidence and annotations produced by one analyze() call."""
	model_config = ConfigDict(frozen=True)

	confidence: float = Field(ge=0.0, le=1.0)
	patterns: list[str] = Field(default_factory=list)
	recommendations: list[str] = Field(default_factory=list)
	worker_count: int = 0
	failure_count: int = 0


class ProcessOutcome(BaseModel):
	"""Analysis tagged as processed."""
	model_config = ConfigDict(frozen=True)

	status: str = "processed"
	results: IntelligenceReport


class FaultRecord(BaseModel):
	"""An unrecoverable fault raised by a worker."""
	model_config = ConfigDict(frozen=True)

	worker_id: str
	wave_number: int
	detail: str


class WaveOutcome(BaseModel):
	"""Outcome of one wave attempt, handed to the coordinator."""
	model_config = ConfigDict(frozen=True)

	number: int
	state: WaveState
	aggregate_confidence: Optional[float] = None
	worker_count: int
	failure_count: int = Field(default=0, description="Failures across all attempts")
	attempts: int = 0
	results: list[DeployResult] = Field(default_factory=list)
	report: Optional[IntelligenceReport] = None
	fault: Optional[FaultRecord] = None


class OverallStatus(str, Enum):
	"""Final status of a deployment run."""
	SUCCEEDED = "succeeded"
	PARTIALLY_SUCCEEDED = "partially-succeeded"
	ABORTED = "aborted"


class AbortReason(str, Enum):
	"""Why a run was aborted."""
	FAULT = "fault"
	RETRIES_EXHAUSTED = "retries-exhausted"
	CANCELLED = "cancelled"


class WaveSummary(BaseModel):
	"""One row of the report: a wave's final state."""
	model_config = ConfigDict(frozen=True)

	number: int
	state: WaveState
	aggregate_confidence: Optional[float] = None
	worker_count: int
	failure_count: int = 0
	attempts: int = 0


class DeploymentReport(BaseModel):
	"""Final artifact of a coordinator run."""
	run_id: str = Field(default_factory=lambda: str(uuid.uuid4())[:12])
	version: Optional[str] = Field(default=None, description="Version of the deployment plan")
	waves: list[WaveSummary] = Field(default_factory=list)
	overall_status: OverallStatus
	abort_reason: Optional[AbortReason] = None
	fault: Optional[FaultRecord] = None
	started_at: str = Field(default_factory=lambda: datetime.now().isoformat())
	finished_at: Optional[str] = None

	@computed_field
	@property
	def total_failures(self) -> int:
		return sum(w.failure_count for w in self.waves)

	def get_wave(self, number: int) -> Optional[WaveSummary]:
		"""Get the summary for a wave number, if the wave was recorded."""
		for wave in self.waves:
			if wave.number == number:
				return wave
		return None

	def to_markdown(self) -> str:
		"""Convert the report to markdown."""
		lines = [
			f"# Deployment {self.run_id}",
			"",
			f"**Status:** {self.overall_status.value}",
		]
		if self.version:
			lines.append(f"**Version:** {self.version}")
		if self.abort_reason:
			lines.append(f"**Abort reason:** {self.abort_reason.value}")
		if self.fault:
			lines.append(
				f"**Fault:** worker {self.fault.worker_id} (wave {self.fault.wave_number}): {self.fault.detail}"
			)
		lines.append(f"**Total failures:** {self.total_failures}")
		lines.append("")
		lines.append("| Wave | State | Confidence | Workers | Failures | Attempts |")
		lines.append("|---|---|---|---|---|---|")
		for w in self.waves:
			confidence = f"{w.aggregate_confidence:.2f}" if w.aggregate_confidence is not None else "-"
			lines.append(
				f"| {w.number} | {w.state.value} | {confidence} | {w.worker_count} "
				f"| {w.failure_count} | {w.attempts} |"
			)
		return "\n".join(lines)
