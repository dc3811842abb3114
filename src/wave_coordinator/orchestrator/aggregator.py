"""Result Aggregator - Folds wave outcomes into the deployment report."""

import logging
from datetime import datetime
from typing import Optional

from .models import (
	AbortReason,
	DeploymentReport,
	FaultRecord,
	OverallStatus,
	WaveOutcome,
	WaveState,
	WaveSummary,
)

logger = logging.getLogger(__name__)


class ResultAggregator:
	"""Accumulates one summary row per completed wave."""

	def __init__(self, version: Optional[str] = None, run_id: Optional[str] = None):
		self.version = version
		self.run_id = run_id
		self.started_at = datetime.now().isoformat()
		self.summaries: list[WaveSummary] = []
		self._report: Optional[DeploymentReport] = None

	def record(self, outcome: WaveOutcome) -> WaveSummary:
		"""Append a summary row for a completed wave."""
		if self._report is not None:
			raise RuntimeError("Cannot record after the report has been finalized")

		summary = WaveSummary(
			number=outcome.number,
			state=outcome.state,
			aggregate_confidence=outcome.aggregate_confidence,
			worker_count=outcome.worker_count,
			failure_count=outcome.failure_count,
			attempts=outcome.attempts,
		)
		self.summaries.append(summary)
		logger.debug(f"Recorded wave {outcome.number}: {outcome.state.value}")
		return summary

	def finalize(
		self,
		abort_reason: Optional[AbortReason] = None,
		fault: Optional[FaultRecord] = None,
	) -> DeploymentReport:
		"""
		Build the final report.

		succeeded if every recorded wave advanced; aborted if any wave
		aborted or an abort reason is given; partially-succeeded otherwise.
		"""
		if self._report is not None:
			return self._report

		states = [s.state for s in self.summaries]
		if abort_reason is not None or fault is not None or WaveState.ABORTED in states:
			status = OverallStatus.ABORTED
		elif states and all(s == WaveState.ADVANCED for s in states):
			status = OverallStatus.SUCCEEDED
		else:
			status = OverallStatus.PARTIALLY_SUCCEEDED

		if status == OverallStatus.ABORTED and abort_reason is None:
			abort_reason = AbortReason.FAULT if fault is not None else AbortReason.RETRIES_EXHAUSTED

		fields = {}
		if self.run_id:
			fields["run_id"] = self.run_id

		self._report = DeploymentReport(
			version=self.version,
			waves=list(self.summaries),
			overall_status=status,
			abort_reason=abort_reason,
			fault=fault,
			started_at=self.started_at,
			finished_at=datetime.now().isoformat(),
			**fields,
		)
		logger.info(
			f"Deployment {self._report.run_id} finalized: {status.value} "
			f"({len(self.summaries)} waves, {self._report.total_failures} failures)"
		)
		return self._report
