"""Tests for the SQLite report store."""

from pathlib import Path

import pytest

from wave_coordinator.orchestrator.aggregator import ResultAggregator
from wave_coordinator.orchestrator.models import (
	AbortReason,
	OverallStatus,
	WaveOutcome,
	WaveState,
)
from wave_coordinator.reports.store import ReportNotFoundError, ReportStore


def _report(state: WaveState = WaveState.ADVANCED, run_id: str = None):
	agg = ResultAggregator(version="1.0", run_id=run_id)
	agg.record(WaveOutcome(number=1, state=state, aggregate_confidence=1.0, worker_count=2, attempts=1))
	return agg.finalize()


async def _store(tmp_path: Path) -> ReportStore:
	store = ReportStore(str(tmp_path / "history.db"))
	await store.init()
	return store


class TestReportStore:
	"""Tests for ReportStore."""

	@pytest.mark.asyncio
	async def test_save_and_get(self, tmp_path: Path):
		store = await _store(tmp_path)
		report = _report()
		run_id = await store.save(report)

		loaded = await store.get(run_id)
		assert loaded is not None
		assert loaded.run_id == report.run_id
		assert loaded.overall_status == OverallStatus.SUCCEEDED
		assert loaded.waves == report.waves
		await store.close()

	@pytest.mark.asyncio
	async def test_get_missing(self, tmp_path: Path):
		store = await _store(tmp_path)
		assert await store.get("missing") is None
		await store.close()

	@pytest.mark.asyncio
	async def test_save_replaces(self, tmp_path: Path):
		store = await _store(tmp_path)
		await store.save(_report(run_id="same"))
		await store.save(_report(state=WaveState.ABORTED, run_id="same"))

		reports = await store.list_reports()
		assert len(reports) == 1
		assert reports[0].abort_reason == AbortReason.RETRIES_EXHAUSTED
		await store.close()

	@pytest.mark.asyncio
	async def test_list_filters_by_status(self, tmp_path: Path):
		store = await _store(tmp_path)
		await store.save(_report(run_id="ok"))
		await store.save(_report(state=WaveState.ABORTED, run_id="bad"))

		aborted = await store.list_reports(status=OverallStatus.ABORTED)
		assert [r.run_id for r in aborted] == ["bad"]
		await store.close()

	@pytest.mark.asyncio
	async def test_list_limit(self, tmp_path: Path):
		store = await _store(tmp_path)
		for i in range(5):
			await store.save(_report(run_id=f"run-{i}"))
		assert len(await store.list_reports(limit=3)) == 3
		await store.close()

	@pytest.mark.asyncio
	async def test_delete(self, tmp_path: Path):
		store = await _store(tmp_path)
		await store.save(_report(run_id="gone"))
		await store.delete("gone")
		assert await store.get("gone") is None
		await store.close()

	@pytest.mark.asyncio
	async def test_delete_missing_raises(self, tmp_path: Path):
		store = await _store(tmp_path)
		with pytest.raises(ReportNotFoundError):
			await store.delete("missing")
		await store.close()

	@pytest.mark.asyncio
	async def test_lazy_init(self, tmp_path: Path):
		"""Operations initialize the connection on first use."""
		store = ReportStore(str(tmp_path / "nested" / "history.db"))
		await store.save(_report(run_id="lazy"))
		assert (await store.get("lazy")) is not None
		await store.close()
