"""
Report Store - SQLite-backed history of finalized deployment reports.

Usage:
	store = ReportStore("data/history.db")
	await store.init()

	await store.save(report)
	report = await store.get(report.run_id)
	recent = await store.list_reports(limit=10)
"""

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

from ..errors import WaveCoordinatorError
from ..orchestrator.models import DeploymentReport, OverallStatus

logger = logging.getLogger(__name__)


class ReportNotFoundError(WaveCoordinatorError):
	"""Raised when a report is not found."""

	code = "REPORT_NOT_FOUND"


class ReportStore:
	"""SQLite storage for deployment reports, newest first."""

	def __init__(self, db_path: str):
		"""Initialize the report store."""
		self.db_path = Path(db_path)
		self.db_path.parent.mkdir(parents=True, exist_ok=True)
		self._db: Optional[aiosqlite.Connection] = None

	async def init(self):
		"""Initialize the database schema."""
		self._db = await aiosqlite.connect(str(self.db_path))
		self._db.row_factory = aiosqlite.Row

		await self._db.execute("""
			CREATE TABLE IF NOT EXISTS reports (
				run_id TEXT PRIMARY KEY,
				version TEXT,
				overall_status TEXT NOT NULL,
				abort_reason TEXT,
				wave_count INTEGER NOT NULL,
				total_failures INTEGER NOT NULL,
				data TEXT NOT NULL,
				started_at TEXT NOT NULL,
				finished_at TEXT
			)
		""")

		await self._db.execute("""
			CREATE INDEX IF NOT EXISTS idx_reports_started ON reports(started_at)
		""")

		await self._db.execute("""
			CREATE INDEX IF NOT EXISTS idx_reports_status ON reports(overall_status)
		""")

		await self._db.commit()
		logger.info(f"Report store initialized: {self.db_path}")

	async def close(self):
		"""Close the database connection."""
		if self._db:
			await self._db.close()
			self._db = None

	async def save(self, report: DeploymentReport) -> str:
		"""
		Save a report, replacing any earlier copy with the same run id.

		Returns:
			Run ID
		"""
		if not self._db:
			await self.init()

		await self._db.execute(
			"""
			INSERT OR REPLACE INTO reports
			(run_id, version, overall_status, abort_reason, wave_count, total_failures, data, started_at, finished_at)
			VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
			""",
			(
				report.run_id,
				report.version,
				report.overall_status.value,
				report.abort_reason.value if report.abort_reason else None,
				len(report.waves),
				report.total_failures,
				report.model_dump_json(),
				report.started_at,
				report.finished_at,
			)
		)
		await self._db.commit()
		logger.info(f"Saved report {report.run_id} ({report.overall_status.value})")

		return report.run_id

	async def get(self, run_id: str) -> Optional[DeploymentReport]:
		"""Get a report by run id."""
		if not self._db:
			await self.init()

		async with self._db.execute(
			"SELECT data FROM reports WHERE run_id = ?",
			(run_id,)
		) as cursor:
			row = await cursor.fetchone()

		if not row:
			return None
		return DeploymentReport.model_validate_json(row["data"])

	async def list_reports(
		self,
		limit: int = 20,
		status: Optional[OverallStatus] = None,
	) -> list[DeploymentReport]:
		"""
		List reports, most recent first.

		Args:
			limit: Maximum number of reports
			status: Only reports with this overall status
		"""
		if not self._db:
			await self.init()

		query = "SELECT data FROM reports"
		params: list = []
		if status:
			query += " WHERE overall_status = ?"
			params.append(OverallStatus(status).value)
		query += " ORDER BY started_at DESC LIMIT ?"
		params.append(limit)

		async with self._db.execute(query, params) as cursor:
			rows = await cursor.fetchall()

		return [DeploymentReport.model_validate_json(row["data"]) for row in rows]

	async def delete(self, run_id: str) -> None:
		"""
		Delete a report.

		Raises:
			ReportNotFoundError: If no report has this run id
		"""
		if not self._db:
			await self.init()

		cursor = await self._db.execute("DELETE FROM reports WHERE run_id = ?", (run_id,))
		await self._db.commit()
		if cursor.rowcount == 0:
			raise ReportNotFoundError(f"Report not found: {run_id}", {"run_id": run_id})
		logger.info(f"Deleted report {run_id}")
