from dotenv import load_dotenv
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from pathlib import Path
import json
import logging
import os

import yaml

from leadcrawl import constants
from leadcrawl.models import FilterRule

load_dotenv()  # Loads variables from .env file

logger = logging.getLogger(__name__)


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///leadcrawl.db")  # Default to SQLite
    DB_BACKEND = os.getenv("DB_BACKEND", "local")
    OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")

    # Container resources, used to size crawl concurrency
    TASK_MEMORY_MIB = int(os.getenv("TASK_MEMORY_MIB", str(constants.DEFAULT_TASK_MEMORY_MIB)))
    TASK_CPU_UNITS = int(os.getenv("TASK_CPU_UNITS", str(constants.DEFAULT_TASK_CPU_UNITS)))

    # Browser tier
    BROWSER_BACKEND = os.getenv("BROWSER_BACKEND", "playwright")  # 'playwright' or 'rebrowser'
    BROWSER_EXECUTABLE_PATH = os.getenv("BROWSER_EXECUTABLE_PATH")

    # Comma-separated names of GOOGLE_API_KEY_<NAME> variables to rotate through
    GOOGLE_API_KEYS_ACTIVE = os.getenv("GOOGLE_API_KEYS_ACTIVE", "original")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


def _coerce(value: str, field_type: Any) -> Any:
    """Convert an environment string to a dataclass field's type."""
    if field_type == bool:
        return value.strip().lower() in ("1", "true", "yes", "on")
    if field_type == int:
        return int(value)
    if field_type == float:
        return float(value)
    return value


def _load_mapping(path: Path) -> Dict[str, Any]:
    """Read a YAML or JSON configuration file into a dict."""
    with open(path, 'r') as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return data or {}


@dataclass
class EarlyExitCriteria:
    """Signals that let a crawl stop before exhausting its frontier."""
    min_pages: int = constants.EARLY_EXIT_MIN_PAGES
    require_email: bool = True
    require_team_page: bool = False


@dataclass
class CrawlConfig:
    """Tunables for one site crawl and its fetches."""

    # Page cap per business
    max_pages: int = constants.DEFAULT_MAX_PAGES

    # HTTP tier
    request_timeout: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS
    timeout_increment: float = constants.TIMEOUT_INCREMENT_SECONDS
    max_retries: int = constants.DEFAULT_MAX_RETRIES
    backoff_base: float = constants.RETRY_BACKOFF_BASE_SECONDS
    backoff_cap: float = constants.RETRY_BACKOFF_CAP_SECONDS
    requests_per_second: float = 0.0  # Shared HTTP throttle for a run, 0 = unthrottled

    # Browser tier
    challenge_max_polls: int = constants.CHALLENGE_MAX_POLLS
    challenge_poll_interval: float = constants.CHALLENGE_POLL_INTERVAL_SECONDS
    min_rendered_text_length: int = constants.MIN_RENDERED_TEXT_LENGTH

    # Frontier loop
    min_text_for_links: int = constants.MIN_TEXT_FOR_LINK_EXPANSION
    base_delay_ms: int = constants.BASE_DELAY_MS
    failure_delay_ms: int = constants.FAILURE_DELAY_MS
    max_delay_ms: int = constants.MAX_DELAY_MS
    max_consecutive_failures: int = constants.MAX_CONSECUTIVE_FAILURES
    deadline_seconds: float = constants.DEFAULT_CRAWL_DEADLINE_SECONDS

    # Early exit
    enable_early_exit: bool = True
    early_exit: EarlyExitCriteria = field(default_factory=EarlyExitCriteria)

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """Load crawl settings from environment variables.

        Environment variables are prefixed with LEADCRAWL_, e.g.
        LEADCRAWL_MAX_PAGES=15. Early exit criteria use
        LEADCRAWL_EARLY_EXIT_<FIELD>.

        Returns:
            CrawlConfig with values from environment
        """
        config = cls()
        prefix = "LEADCRAWL_"

        for f in fields(config):
            if f.name == "early_exit":
                continue
            env_value = os.getenv(f"{prefix}{f.name.upper()}")
            if env_value is not None:
                try:
                    setattr(config, f.name, _coerce(env_value, f.type))
                except ValueError:
                    logger.warning(f"Ignoring invalid {prefix}{f.name.upper()}={env_value!r}")

        for f in fields(config.early_exit):
            env_value = os.getenv(f"{prefix}EARLY_EXIT_{f.name.upper()}")
            if env_value is not None:
                try:
                    setattr(config.early_exit, f.name, _coerce(env_value, f.type))
                except ValueError:
                    logger.warning(f"Ignoring invalid early exit setting {f.name}={env_value!r}")

        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlConfig":
        config = cls()
        for f in fields(config):
            if f.name == "early_exit":
                continue
            if f.name in data:
                setattr(config, f.name, data[f.name])
        for key, value in (data.get("early_exit") or {}).items():
            if hasattr(config.early_exit, key):
                setattr(config.early_exit, key, value)
        return config

    @classmethod
    def from_file(cls, path: str) -> "CrawlConfig":
        """Load crawl settings from a YAML or JSON file.

        Reads a top-level ``crawl:`` section when present, else the whole
        mapping.

        Args:
            path: Path to configuration file

        Returns:
            CrawlConfig with values from file
        """
        file_path = Path(path)
        if not file_path.exists():
            logger.warning(f"Config file {path} not found, using defaults")
            return cls()

        data = _load_mapping(file_path)
        return cls.from_dict(data.get("crawl", data))

    def to_dict(self) -> Dict[str, Any]:
        result = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "early_exit"
        }
        result["early_exit"] = {
            f.name: getattr(self.early_exit, f.name) for f in fields(self.early_exit)
        }
        return result


@dataclass
class JobConfig:
    """Per-run input for the batch runner."""
    job_id: Optional[str] = None
    max_pages_per_site: int = constants.DEFAULT_MAX_PAGES
    concurrency: Optional[int] = None  # None = size from task resources
    filter_rules: List[FilterRule] = field(default_factory=list)
    skip_if_done: bool = True
    force_recrawl: bool = False
    business_ids: Optional[List[str]] = None
    fast_mode: bool = False  # Disables the browser tier
    enable_early_exit: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobConfig":
        """Build a job config from a parsed mapping (e.g. job input JSON)."""
        job = cls()
        for f in fields(job):
            if f.name == "filter_rules" or f.name not in data:
                continue
            setattr(job, f.name, data[f.name])
        job.filter_rules = [FilterRule.from_dict(r) for r in data.get("filter_rules") or []]
        if job.business_ids is not None:
            job.business_ids = [str(b) for b in job.business_ids]
        return job

    @classmethod
    def from_file(cls, path: str) -> "JobConfig":
        """Load a job config from the ``job:`` section of a YAML/JSON file."""
        data = _load_mapping(Path(path))
        return cls.from_dict(data.get("job", data))

    def resolved_concurrency(self) -> int:
        if self.concurrency:
            return int(self.concurrency)
        return calculate_optimal_concurrency(self.fast_mode)

    def to_dict(self) -> Dict[str, Any]:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["filter_rules"] = [r.to_dict() for r in self.filter_rules]
        return result


def calculate_optimal_concurrency(
    fast_mode: bool,
    memory_mib: Optional[int] = None,
    cpu_units: Optional[int] = None,
) -> int:
    """Size crawl concurrency from the task's memory and CPU allocation.

    HTTP-only crawls are I/O bound and cheap (~50MB each); browser crawls
    cost ~300MB per page and are CPU heavy.

    Args:
        fast_mode: True when the browser tier is disabled
        memory_mib: Task memory, defaults to settings.TASK_MEMORY_MIB
        cpu_units: Task CPU units (1024 = 1 vCPU), defaults to settings.TASK_CPU_UNITS

    Returns:
        Number of businesses to crawl concurrently
    """
    memory_mib = memory_mib if memory_mib is not None else settings.TASK_MEMORY_MIB
    cpu_units = cpu_units if cpu_units is not None else settings.TASK_CPU_UNITS
    available_mib = memory_mib - constants.RESERVED_MEMORY_MIB

    if fast_mode:
        memory_based = available_mib // constants.FAST_MODE_MEMORY_PER_CRAWL_MIB
        cpu_based = int((cpu_units / 1024) * 30)
        return max(min(memory_based, cpu_based, 50), 1)

    memory_based = available_mib // constants.BROWSER_MODE_MEMORY_PER_CRAWL_MIB
    cpu_based = int((cpu_units / 1024) * 4)
    return max(min(memory_based, cpu_based), 3)
