"""
Intelligence Analyzer - Turns a wave's deploy results into a confidence score.

Confidence starts at 1.0 and loses a fixed penalty of 1/worker_count for
every failed worker, floored at 0.0. A worker counts as failed when its
deploy failed or its post-deploy validation was invalid. Results are
sorted by worker id before anything is computed, so the report does not
depend on the order in which deployments completed.
"""

import logging
from typing import Any, Iterable, Optional

from .models import (
	DeployResult,
	IntelligenceReport,
	ProcessOutcome,
	ValidationOutcome,
)

logger = logging.getLogger(__name__)


class IntelligenceAnalyzer:
	"""Scores a batch of deploy results and annotates detected patterns."""

	# Pattern tags, in the order they are reported
	CLEAN_SWEEP = "clean-sweep"
	PARTIAL_FAILURE = "partial-failure"
	TOTAL_FAILURE = "total-failure"
	VALIDATION_DEGRADED = "validation-degraded"
	RECOVERING = "recovering"
	REGRESSING = "regressing"
	EMPTY_WAVE = "empty-wave"

	@staticmethod
	def score(worker_count: int, failure_count: int) -> float:
		"""Confidence for a batch of worker_count workers with failure_count failures."""
		if worker_count <= 0 or failure_count >= worker_count:
			return 0.0
		penalty = 1.0 / worker_count
		return max(0.0, 1.0 - failure_count * penalty)

	def analyze(
		self,
		results: Iterable[DeployResult],
		validations: Optional[dict[str, ValidationOutcome]] = None,
		prior_reports: Optional[list[IntelligenceReport]] = None,
	) -> IntelligenceReport:
		"""
		Analyze a set of deploy results.

		Args:
			results: Deploy results for the wave, in any order
			validations: Validation outcome per worker id, if validation has run
			prior_reports: Earlier reports for the same wave, oldest first

		Returns:
			IntelligenceReport
		"""
		ordered = sorted(results, key=lambda r: (r.worker_id, r.attempt))
		validations = validations or {}

		if not ordered:
			return IntelligenceReport(
				confidence=0.0,
				patterns=[self.EMPTY_WAVE],
				recommendations=["Wave produced no deploy results; check the wave definition"],
			)

		failed_ids: list[str] = []
		degraded: dict[str, list[str]] = {}
		for result in ordered:
			validation = validations.get(result.worker_id)
			if not result.succeeded:
				failed_ids.append(result.worker_id)
			elif validation is not None and not validation.valid:
				failed_ids.append(result.worker_id)
				degraded[result.worker_id] = validation.failed_checks

		count = len(ordered)
		failures = len(failed_ids)
		confidence = self.score(count, failures)

		patterns: list[str] = []
		if failures == 0:
			patterns.append(self.CLEAN_SWEEP)
		elif failures < count:
			patterns.append(self.PARTIAL_FAILURE)
		else:
			patterns.append(self.TOTAL_FAILURE)
		if degraded:
			patterns.append(self.VALIDATION_DEGRADED)

		previous = prior_reports[-1] if prior_reports else None
		if previous is not None:
			if confidence > previous.confidence:
				patterns.append(self.RECOVERING)
			elif confidence < previous.confidence:
				patterns.append(self.REGRESSING)

		recommendations: list[str] = []
		for worker_id in failed_ids:
			if worker_id in degraded:
				checks = ", ".join(degraded[worker_id]) or "unknown"
				recommendations.append(f"Inspect worker {worker_id}: post-deploy checks failed ({checks})")
			else:
				recommendations.append(f"Redeploy worker {worker_id}")
		if self.TOTAL_FAILURE in patterns:
			recommendations.append("Halt rollout: every worker in the wave failed")
		if self.REGRESSING in patterns:
			recommendations.append("Confidence dropped since the previous analysis; review recent changes")

		logger.debug(f"Analyzed {count} results: {failures} failed, confidence {confidence:.2f}")

		return IntelligenceReport(
			confidence=confidence,
			patterns=patterns,
			recommendations=recommendations,
			worker_count=count,
			failure_count=failures,
		)

	def process(self, data: Any) -> ProcessOutcome:
		"""
		Analyze and tag the outcome as processed.

		Args:
			data: A list of DeployResults, or a mapping with 'results' and
				optional 'validations' and 'prior_reports'
		"""
		if isinstance(data, dict):
			report = self.analyze(
				data.get("results", []),
				validations=data.get("validations"),
				prior_reports=data.get("prior_reports"),
			)
		else:
			report = self.analyze(data)
		return ProcessOutcome(status="processed", results=report)
