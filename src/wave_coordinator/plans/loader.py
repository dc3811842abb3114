"""Load deployment plans from JSON or TOML files."""

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import WaveCoordinatorError
from .models import DeploymentPlan

logger = logging.getLogger(__name__)


class PlanLoadError(WaveCoordinatorError):
	"""Raised when a plan file cannot be read or is invalid."""

	code = "PLAN_LOAD_ERROR"

	def __init__(self, path: Path, reason: str):
		super().__init__(f"Cannot load plan {path}: {reason}", {"path": str(path)})
		self.path = path
		self.reason = reason


def parse_plan(data: dict[str, Any]) -> DeploymentPlan:
	"""Validate raw plan data. Raises pydantic ValidationError."""
	return DeploymentPlan.model_validate(data)


def load_plan(path: str | Path) -> DeploymentPlan:
	"""
	Load a plan from a .json or .toml file.

	Raises:
		PlanLoadError: If the file is missing, unparseable, or fails validation
	"""
	path = Path(path).expanduser()
	if not path.exists():
		raise PlanLoadError(path, "file not found")

	suffix = path.suffix.lower()
	try:
		if suffix == ".json":
			with open(path, encoding="utf-8") as f:
				data = json.load(f)
		elif suffix == ".toml":
			with open(path, "rb") as f:
				data = tomllib.load(f)
		else:
			raise PlanLoadError(path, f"unsupported file type '{suffix}' (use .json or .toml)")
	except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
		raise PlanLoadError(path, f"parse error: {e}") from e
	except OSError as e:
		raise PlanLoadError(path, str(e)) from e

	if not isinstance(data, dict):
		raise PlanLoadError(path, "top level must be an object")

	try:
		plan = parse_plan(data)
	except ValidationError as e:
		raise PlanLoadError(path, f"invalid plan: {e.error_count()} error(s)\n{e}") from e

	logger.info(f"Loaded plan '{plan.name}' from {path}: {len(plan.waves)} waves, {plan.worker_count} workers")
	return plan
