"""Tests for task decoding and schema validation."""

import pytest

from wave_coordinator.schemas import (
	TASK_SCHEMA,
	TaskDecodeError,
	TaskSchema,
	decode_task,
	validate_task,
)


class TestDecodeTask:
	"""Tests for decode_task."""

	def test_mapping_passes_through(self):
		task = {"action": "echo"}
		assert decode_task(task) is task

	def test_json_string_decodes(self):
		assert decode_task('{"action": "echo", "params": {"x": 1}}') == {
			"action": "echo",
			"params": {"x": 1},
		}

	def test_json_bytes_decode(self):
		assert decode_task(b'{"action": "echo"}') == {"action": "echo"}

	def test_invalid_json_raises(self):
		"""Garbage text cannot be decoded."""
		with pytest.raises(TaskDecodeError, match="Invalid task JSON"):
			decode_task("not json")

	def test_json_array_raises(self):
		"""JSON that is not an object is rejected."""
		with pytest.raises(TaskDecodeError, match="must be an object"):
			decode_task("[1, 2, 3]")

	@pytest.mark.parametrize("task", [None, 42, 1.5, ["action"]])
	def test_non_mapping_raises(self, task):
		with pytest.raises(TaskDecodeError):
			decode_task(task)

	def test_decode_error_is_value_error(self):
		assert issubclass(TaskDecodeError, ValueError)


class TestTaskSchema:
	"""Tests for TaskSchema validation."""

	def test_valid_task(self):
		is_valid, error = validate_task({"action": "echo", "params": {}, "timeout": 5, "checks": ["payload"]})
		assert is_valid is True
		assert error is None

	def test_missing_action(self):
		"""Missing required key should fail."""
		is_valid, error = validate_task({"params": {}})
		assert is_valid is False
		assert "action" in error

	def test_wrong_type(self):
		"""Wrong field type should fail."""
		is_valid, error = validate_task({"action": 123})
		assert is_valid is False
		assert "expected type 'string'" in error

	def test_params_must_be_object(self):
		is_valid, error = validate_task({"action": "echo", "params": [1]})
		assert is_valid is False
		assert "params" in error

	def test_bool_is_not_a_number(self):
		"""A boolean timeout is rejected even though bool subclasses int."""
		is_valid, _ = validate_task({"action": "echo", "timeout": True})
		assert is_valid is False

	def test_extra_fields_allowed(self):
		is_valid, _ = validate_task({"action": "echo", "owner": "ops"})
		assert is_valid is True

	def test_unknown_type_skipped(self):
		schema = TaskSchema(
			name="custom",
			description="custom",
			json_schema={"properties": {"x": {"type": "mystery"}}},
		)
		assert schema.validate({"x": object()}) == (True, None)

	def test_task_schema_requires_action(self):
		assert TASK_SCHEMA.json_schema["required"] == ["action"]


class TestArrayItems:
	"""Tests for per-item array validation."""

	def test_checks_must_be_strings(self):
		is_valid, error = validate_task({"action": "echo", "checks": ["payload", 1]})
		assert is_valid is False
		assert "checks[1]" in error

	def test_nested_list_rejected(self):
		is_valid, _ = validate_task({"action": "echo", "checks": [["payload"]]})
		assert is_valid is False

	def test_string_checks_pass(self):
		assert validate_task({"action": "echo", "checks": ["deployed", "payload"]}) == (True, None)
