# File: roadtrip/config.py
"""
Roadtrip Configuration Management
Centralized configuration for the fetch → route → render → summarise pipeline.
"""
import json
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from . import DEFAULT_CACHE_DIR, OUTPUT_DIR


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class PathConfig:
    """File and directory paths configuration"""
    cache_dir: Path = DEFAULT_CACHE_DIR
    output_dir: Path = OUTPUT_DIR
    subjects_file: Optional[Path] = None

    def __post_init__(self):
        """Ensure paths are Path objects"""
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if isinstance(value, str):
                setattr(self, field_name, Path(value))


@dataclass(frozen=True)
class CacheConfig:
    """Where the cache store keeps its stage directories."""
    root: Path

    @classmethod
    def from_paths(cls, paths: PathConfig) -> "CacheConfig":
        return cls(root=Path(paths.cache_dir))


@dataclass
class APIConfig:
    """External API configuration"""
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    osrm_base_url: str = "http://router.project-osrm.org"
    osrm_profile: str = "driving"
    request_timeout: int = 300
    max_retries: int = 3
    retry_delay_s: float = 5.0


@dataclass
class PlannerConfig:
    """Routing capacity, trip assumptions and leaderboard size"""
    backend_limit: int = 100          # max coordinates per routing request
    driving_hours_per_day: float = 12.0
    leaderboard_size: int = 10
    random_state: int = 42
    max_workers: Optional[int] = None  # None/1 = sequential
    render_width: int = 1200
    render_height: int = 800


def _env_log_level() -> "LogLevel":
    return LogLevel(os.getenv("ROADTRIP_LOG_LEVEL", "info").lower())


@dataclass
class LoggingConfig:
    """Logging configuration; the level defaults to $ROADTRIP_LOG_LEVEL"""
    level: LogLevel = field(default_factory=_env_log_level)
    rich: bool = True


@dataclass
class RoadtripConfig:
    """Main configuration class containing all settings"""
    paths: PathConfig = None
    api: APIConfig = None
    planner: PlannerConfig = None
    logging: LoggingConfig = None

    def __post_init__(self):
        """Initialize default configurations"""
        if self.paths is None:
            self.paths = PathConfig()
        if self.api is None:
            self.api = APIConfig()
        if self.planner is None:
            self.planner = PlannerConfig()
        if self.logging is None:
            self.logging = LoggingConfig()

    @property
    def cache(self) -> CacheConfig:
        return CacheConfig.from_paths(self.paths)

    def save_to_file(self, file_path: Union[str, Path]):
        """Save configuration to file (JSON or YAML)"""
        file_path = Path(file_path)
        config_dict = self.to_dict()

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'w') as f:
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
        else:
            with open(file_path, 'w') as f:
                json.dump(config_dict, f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> 'RoadtripConfig':
        """Load configuration from file"""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        if file_path.suffix.lower() in ['.yaml', '.yml']:
            with open(file_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            with open(file_path, 'r') as f:
                config_data = json.load(f)

        return cls.from_dict(config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        def convert_value(value):
            if isinstance(value, Path):
                return str(value)
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple)):
                return [convert_value(item) for item in value]
            else:
                return value

        return convert_value(asdict(self))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'RoadtripConfig':
        """Create configuration from dictionary"""
        config_kwargs = {}

        if 'paths' in config_dict:
            config_kwargs['paths'] = PathConfig(**config_dict['paths'])

        if 'api' in config_dict:
            config_kwargs['api'] = APIConfig(**config_dict['api'])

        if 'planner' in config_dict:
            config_kwargs['planner'] = PlannerConfig(**config_dict['planner'])

        if 'logging' in config_dict:
            logging_dict = dict(config_dict['logging'])
            if isinstance(logging_dict.get('level'), str):
                logging_dict['level'] = LogLevel(logging_dict['level'].lower())
            config_kwargs['logging'] = LoggingConfig(**logging_dict)

        return cls(**config_kwargs)

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if self.planner.backend_limit < 1:
            issues.append(f"Invalid backend_limit: {self.planner.backend_limit} (must be >= 1)")

        if self.planner.driving_hours_per_day <= 0:
            issues.append(
                f"Invalid driving_hours_per_day: {self.planner.driving_hours_per_day} (must be > 0)"
            )

        if self.planner.leaderboard_size < 1:
            issues.append(f"Invalid leaderboard_size: {self.planner.leaderboard_size} (must be >= 1)")

        if self.planner.max_workers is not None and self.planner.max_workers <= 0:
            issues.append(f"Invalid max_workers: {self.planner.max_workers} (must be > 0)")

        if not self.api.overpass_url:
            issues.append("Overpass URL not configured")

        if not self.api.osrm_base_url:
            issues.append("OSRM base URL not configured")

        return issues


def load_config(file_path: Union[str, Path, None] = None) -> RoadtripConfig:
    """Config from an explicit path, else $ROADTRIP_CONFIG, else defaults."""
    file_path = file_path or os.getenv("ROADTRIP_CONFIG")
    if file_path:
        return RoadtripConfig.load_from_file(file_path)
    return RoadtripConfig()
