"""
Plan Models - Pydantic schemas for deployment plans.

A plan is the ordered configuration of waves handed to the coordinator.
Tasks are kept as given; decoding them is the worker's job, so a task
that cannot be decoded surfaces as a fault at deploy time rather than
as a plan error.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class WorkerDefinition(BaseModel):
	"""A worker entry in a plan."""
	id: str = Field(min_length=1, description="Worker identifier, unique within its wave")
	rank: str = Field(default="Colonel", description="Display-only tag")
	task: Any = Field(description="Task description (mapping or JSON string)")


class WaveDefinition(BaseModel):
	"""A wave entry in a plan."""
	number: int = Field(ge=1, description="Execution order (ascending)")
	workers: list[WorkerDefinition] = Field(min_length=1)

	@field_validator("workers")
	@classmethod
	def _unique_worker_ids(cls, workers: list[WorkerDefinition]) -> list[WorkerDefinition]:
		seen: set[str] = set()
		for worker in workers:
			if worker.id in seen:
				raise ValueError(f"Duplicate worker id: {worker.id}")
			seen.add(worker.id)
		return workers


class DeploymentPlan(BaseModel):
	"""
	An ordered set of waves plus the policy to run them with.

	threshold and max_retries fall back to configuration when unset.
	"""
	name: str = Field(default="deployment")
	version: Optional[str] = Field(default=None, description="Plan version, carried into the report")
	threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
	max_retries: Optional[int] = Field(default=None, ge=0)
	waves: list[WaveDefinition] = Field(min_length=1)

	@field_validator("waves")
	@classmethod
	def _unique_wave_numbers(cls, waves: list[WaveDefinition]) -> list[WaveDefinition]:
		seen: set[int] = set()
		for wave in waves:
			if wave.number in seen:
				raise ValueError(f"Duplicate wave number: {wave.number}")
			seen.add(wave.number)
		return waves

	def ordered_waves(self) -> list[WaveDefinition]:
		"""Waves in execution order."""
		return sorted(self.waves, key=lambda w: w.number)

	@property
	def worker_count(self) -> int:
		return sum(len(w.workers) for w in self.waves)
