"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

import platformdirs

APP_NAME = "wave-coordinator"
APP_AUTHOR = "wave-coordinator"


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	history_db_path: Path = field(init=False)
	log_dir: Path = field(init=False)

	# Deployment policy
	threshold: float = 0.8
	max_retries: int = 1
	max_concurrency: int = 0  # 0 = unbounded
	deploy_timeout: float = 300.0
	log_level: str = "INFO"

	def __post_init__(self) -> None:
		self.history_db_path = self.data_dir / "history.db"
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)


_PATH_FIELDS = {"config_dir", "data_dir"}
_NUMERIC_FIELDS = {
	"threshold": float,
	"max_retries": int,
	"max_concurrency": int,
	"deploy_timeout": float,
}


def _apply_env_overrides(config: Config) -> Config:
	"""Apply WAVE_COORDINATOR_* environment variable overrides."""
	env_map = {
		"WAVE_COORDINATOR_CONFIG_DIR": "config_dir",
		"WAVE_COORDINATOR_DATA_DIR": "data_dir",
		"WAVE_COORDINATOR_THRESHOLD": "threshold",
		"WAVE_COORDINATOR_MAX_RETRIES": "max_retries",
		"WAVE_COORDINATOR_MAX_CONCURRENCY": "max_concurrency",
		"WAVE_COORDINATOR_DEPLOY_TIMEOUT": "deploy_timeout",
		"WAVE_COORDINATOR_LOG_LEVEL": "log_level",
	}
	for env_key, attr in env_map.items():
		val = os.getenv(env_key)
		if not val:
			continue
		if attr in _PATH_FIELDS:
			setattr(config, attr, Path(val))
		elif attr in _NUMERIC_FIELDS:
			try:
				setattr(config, attr, _NUMERIC_FIELDS[attr](val))
			except ValueError as e:
				raise ValueError(f"{env_key}={val!r} is not a valid {attr}") from e
		else:
			setattr(config, attr, val)
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	for key, val in data.items():
		if key in ("history_db_path", "log_dir"):
			continue
		if hasattr(config, key):
			if key in _PATH_FIELDS:
				setattr(config, key, Path(os.path.expanduser(val)))
			elif key in _NUMERIC_FIELDS:
				setattr(config, key, _NUMERIC_FIELDS[key](val))
			else:
				setattr(config, key, val)

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def _validate(config: Config) -> Config:
	if not 0.0 <= config.threshold <= 1.0:
		raise ValueError(f"threshold must be within [0, 1], got {config.threshold}")
	if config.max_retries < 0:
		raise ValueError(f"max_retries must be >= 0, got {config.max_retries}")
	if config.max_concurrency < 0:
		raise ValueError(f"max_concurrency must be >= 0, got {config.max_concurrency}")
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# Env can relocate the config dir, so resolve it before reading config.toml
	config = _apply_env_overrides(config)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config = _validate(config)
	config.ensure_dirs()
	return config


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
