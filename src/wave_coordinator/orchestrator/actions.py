"""
Deploy Actions - Named async actions run by workers.

Each task names an action; the default worker handler looks the action up
here and awaits it with the task's params. Actions signal an ordinary
failure by raising DeploymentFailed. Anything else they raise is treated
by the worker as an unrecoverable fault.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from ..errors import DeploymentFailed

logger = logging.getLogger(__name__)


@dataclass
class ActionContext:
	"""Who is running an action, and on which attempt."""
	worker_id: str
	wave_number: int
	attempt: int


Action = Callable[[dict, ActionContext], Awaitable[Any]]

_ACTIONS: dict[str, Action] = {}


def register_action(name: str, action: Action) -> None:
	"""Register (or replace) a named deploy action."""
	_ACTIONS[name] = action


def get_action(name: str) -> Optional[Action]:
	"""Get a registered action by name."""
	return _ACTIONS.get(name)


def list_actions() -> list[str]:
	"""Names of all registered actions."""
	return sorted(_ACTIONS)


async def run_action(name: str, params: dict, context: ActionContext) -> Any:
	"""
	Run a named action.

	Raises:
		DeploymentFailed: If the action is unknown or fails
	"""
	action = _ACTIONS.get(name)
	if action is None:
		raise DeploymentFailed(f"Unknown action: {name}", {"action": name})
	return await action(params, context)


async def _echo(params: dict, context: ActionContext) -> Any:
	return dict(params)


async def _sleep(params: dict, context: ActionContext) -> Any:
	try:
		seconds = float(params.get("seconds", 0))
	except (ValueError, TypeError):
		raise DeploymentFailed(f"sleep requires numeric 'seconds', got {params.get('seconds')!r}")
	if seconds < 0:
		raise DeploymentFailed(f"sleep requires non-negative 'seconds', got {seconds}")
	await asyncio.sleep(seconds)
	return {"slept": seconds}


async def _fail(params: dict, context: ActionContext) -> Any:
	# times=N fails only the first N attempts, then succeeds
	times = params.get("times")
	reason = params.get("reason", "requested failure")
	if times is not None:
		try:
			times = int(times)
		except (ValueError, TypeError):
			raise DeploymentFailed(f"fail requires integer 'times', got {times!r}")
	if times is None or context.attempt <= times:
		raise DeploymentFailed(reason, {"attempt": context.attempt})
	return {"recovered_on_attempt": context.attempt}


async def _command(params: dict, context: ActionContext) -> Any:
	"""Run a command; non-zero exit is a failed deployment."""
	argv = params.get("argv")
	if not argv or not isinstance(argv, list):
		raise DeploymentFailed("command action requires a non-empty 'argv' list")

	cwd = params.get("cwd")
	if cwd is not None:
		if not isinstance(cwd, str):
			raise DeploymentFailed(f"command 'cwd' must be a string, got {type(cwd).__name__}")
		if not Path(cwd).is_dir():
			raise DeploymentFailed(f"Working directory not found: {cwd}", {"cwd": cwd})

	start = datetime.now()
	try:
		proc = await asyncio.create_subprocess_exec(
			*[str(a) for a in argv],
			stdout=asyncio.subprocess.PIPE,
			stderr=asyncio.subprocess.STDOUT,
			cwd=cwd,
		)
	except FileNotFoundError as e:
		missing = str(e.filename or argv[0])
		label = "Command" if missing == str(argv[0]) else "Path"
		raise DeploymentFailed(f"{label} not found: {missing}", {"path": missing})
	except OSError as e:
		raise DeploymentFailed(f"Cannot run {argv[0]}: {e}", {"errno": e.errno})

	try:
		stdout, _ = await proc.communicate()
	except asyncio.CancelledError:
		proc.kill()
		raise

	output = stdout.decode("utf-8", errors="replace")[-2000:]
	duration = (datetime.now() - start).total_seconds()

	if proc.returncode != 0:
		raise DeploymentFailed(
			f"Command exited with {proc.returncode}",
			{"returncode": proc.returncode, "output": output},
		)

	return {
		"returncode": proc.returncode,
		"output": output,
		"duration": duration,
	}


register_action("echo", _echo)
register_action("sleep", _sleep)
register_action("fail", _fail)
register_action("command", _command)
