"""
Task schemas for worker deployments.

Defines the shape a task description must have before a worker will
attempt to deploy it. Decoding and validation are separate steps: a task
that cannot be decoded at all is a fault, while a decoded task that is
missing fields is an ordinary (soft) deployment failure.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


class TaskDecodeError(ValueError):
	"""Raised when a task cannot be decoded into a mapping."""
	pass


@dataclass
class TaskSchema:
	"""A schema for task descriptions handed to workers."""

	name: str
	description: str
	json_schema: dict[str, Any] = field(default_factory=dict)

	def validate(self, data: dict[str, Any]) -> tuple[bool, Optional[str]]:
		"""
		Validate a decoded task against this schema.

		Returns:
			Tuple of (is_valid, error_message)
		"""
		required = self.json_schema.get("required", [])
		properties = self.json_schema.get("properties", {})

		for key in required:
			if key not in data:
				return False, f"Missing required field: {key}"

		for key, prop_schema in properties.items():
			if key in data:
				expected_type = prop_schema.get("type")
				if expected_type and not _check_type(data[key], expected_type):
					return False, f"Field '{key}' expected type '{expected_type}', got '{type(data[key]).__name__}'"
				item_type = prop_schema.get("items", {}).get("type")
				if expected_type == "array" and item_type:
					for i, item in enumerate(data[key]):
						if not _check_type(item, item_type):
							return False, f"Field '{key}[{i}]' expected type '{item_type}', got '{type(item).__name__}'"

		return True, None


def _check_type(value: Any, expected: str) -> bool:
	"""Check if a value matches the expected JSON schema type."""
	if expected in ("number", "integer") and isinstance(value, bool):
		return False
	type_map = {
		"string": str,
		"number": (int, float),
		"integer": int,
		"boolean": bool,
		"array": list,
		"object": dict,
	}
	expected_type = type_map.get(expected)
	if expected_type is None:
		return True  # Unknown type, skip validation
	return isinstance(value, expected_type)


def decode_task(task: Any) -> dict[str, Any]:
	"""
	Decode a task into a mapping.

	Accepts a mapping or a JSON string holding an object.

	Raises:
		TaskDecodeError: If the task is not a mapping and cannot be decoded into one
	"""
	if isinstance(task, dict):
		return task
	if isinstance(task, (str, bytes)):
		try:
			data = json.loads(task)
		except ValueError as e:
			raise TaskDecodeError(f"Invalid task JSON: {e}") from e
		if not isinstance(data, dict):
			raise TaskDecodeError(f"Task JSON must be an object, got {type(data).__name__}")
		return data
	raise TaskDecodeError(f"Task must be a mapping or JSON string, got {type(task).__name__}")


TASK_SCHEMA = TaskSchema(
	name="task",
	description="A deployable unit of work",
	json_schema={
		"type": "object",
		"required": ["action"],
		"properties": {
			"action": {"type": "string", "description": "Name of the deploy action"},
			"params": {"type": "object", "description": "Action parameters"},
			"timeout": {"type": "number", "description": "Seconds before the deploy is failed"},
			"checks": {
				"type": "array",
				"description": "Built-in post-deploy checks to run",
				"items": {"type": "string"},
			},
		},
	},
)


def validate_task(task: dict[str, Any]) -> tuple[bool, Optional[str]]:
	"""Validate a decoded task against the task schema."""
	return TASK_SCHEMA.validate(task)
