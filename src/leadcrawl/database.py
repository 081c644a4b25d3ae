# src/leadcrawl/database.py
"""Business record store: crawl candidates in, extraction results out."""

import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable
import logging

from leadcrawl.config import settings
from leadcrawl.models import FilterRule

logger = logging.getLogger(__name__)

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS businesses (
    business_id TEXT PRIMARY KEY,
    record TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS job_metrics (
    job_id TEXT NOT NULL,
    step TEXT NOT NULL,
    metrics TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL,

    PRIMARY KEY (job_id, step)
);
"""


def is_eligible(
    record: Dict[str, Any],
    filter_rules: Iterable[FilterRule] = (),
    skip_if_done: bool = True,
    force_recrawl: bool = False,
) -> bool:
    """Check whether a business record should be crawled.

    Args:
        record: Business record
        filter_rules: Conditions that must all hold
        skip_if_done: Skip records already crawled
        force_recrawl: Crawl even if already crawled

    Returns:
        True if the record has a website and passes every rule
    """
    if not record.get("website_uri"):
        return False
    if skip_if_done and not force_recrawl and record.get("web_crawled"):
        return False
    return all(rule.matches(record) for rule in filter_rules)


class AbstractBusinessStore(ABC):
    """Abstract base class defining the business store interface."""

    @abstractmethod
    def close(self) -> None:
        """Close the store."""
        pass

    @abstractmethod
    def save_business(self, record: Dict[str, Any]) -> None:
        """Insert or replace a business record.

        Args:
            record: Business record. Must include 'business_id'.
        """
        pass

    @abstractmethod
    def get_business(self, business_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one business record, or None."""
        pass

    @abstractmethod
    def list_businesses(self) -> List[Dict[str, Any]]:
        """Fetch every business record."""
        pass

    @abstractmethod
    def update_business(self, business_id: str, updates: Dict[str, Any]) -> None:
        """Merge fields into an existing business record."""
        pass

    @abstractmethod
    def update_job_metrics(self, job_id: str, metrics: Dict[str, Any], step: str = "crawl") -> None:
        """Record run-level metrics for a job step."""
        pass

    @abstractmethod
    def get_job_metrics(self, job_id: str, step: str = "crawl") -> Optional[Dict[str, Any]]:
        pass

    def get_businesses_to_crawl(
        self,
        business_ids: Optional[List[str]] = None,
        filter_rules: Iterable[FilterRule] = (),
        skip_if_done: bool = True,
        force_recrawl: bool = False,
    ) -> List[Dict[str, Any]]:
        """List the business records eligible for crawling.

        Args:
            business_ids: Restrict to these businesses; None means all
            filter_rules: Field conditions, AND-ed
            skip_if_done: Skip records with web_crawled set
            force_recrawl: Ignore web_crawled

        Returns:
            Eligible business records
        """
        filter_rules = list(filter_rules)

        if business_ids is not None:
            records = [self.get_business(b) for b in business_ids]
            records = [r for r in records if r is not None]
        else:
            records = self.list_businesses()

        eligible = [
            r for r in records
            if is_eligible(r, filter_rules, skip_if_done, force_recrawl)
        ]
        logger.info(f"Found {len(eligible)} eligible businesses ({len(records) - len(eligible)} filtered)")
        return eligible

    def update_business_with_crawl_data(self, business_id: str, updates: Dict[str, Any]) -> None:
        """Write crawl results onto a business record."""
        self.update_business(business_id, updates)

    def mark_business_crawl_failed(self, business_id: str) -> None:
        """Mark a business as crawled with a failed status, so it is not retried."""
        self.update_business(business_id, {
            "web_crawled": True,
            "web_crawl_status": "failed",
            "web_crawled_at": datetime.now().isoformat(),
        })


class LocalSqliteBusinessStore(AbstractBusinessStore):
    """SQLite business store for local runs.

    Records are stored as JSON documents keyed by business_id.
    """

    def __init__(self, db_url: Optional[str] = None):
        """Initialize local SQLite store.

        Args:
            db_url: Database URL (sqlite:///path/to/db.db). Defaults to settings.DATABASE_URL.
        """
        self.db_url = db_url or settings.DATABASE_URL
        self.db_path = self.db_url.replace("sqlite:///", "")
        self.conn: Optional[sqlite3.Connection] = None
        self.connect()
        self.create_schema()

    def connect(self) -> None:
        """Establish SQLite connection."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to local SQLite database: {self.db_path}")

    def close(self) -> None:
        """Close SQLite connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed local SQLite connection")

    def create_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self.conn:
            self.conn.executescript(CREATE_TABLES_SQL)
        logger.debug("Schema verified/created for local SQLite")

    def save_business(self, record: Dict[str, Any]) -> None:
        if not record.get("business_id"):
            raise ValueError("The 'business_id' field is required.")

        business_id = str(record["business_id"])
        record = {**record, "business_id": business_id}
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO businesses (business_id, record, updated_at) VALUES (?, ?, ?)",
                (business_id, json.dumps(record, default=str), datetime.now().isoformat()),
            )
        logger.debug(f"Saved business: {business_id}")

    def get_business(self, business_id: str) -> Optional[Dict[str, Any]]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT record FROM businesses WHERE business_id = ?", (str(business_id),))
        row = cursor.fetchone()
        return json.loads(row["record"]) if row else None

    def list_businesses(self) -> List[Dict[str, Any]]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT record FROM businesses ORDER BY business_id ASC")
        return [json.loads(row["record"]) for row in cursor.fetchall()]

    def update_business(self, business_id: str, updates: Dict[str, Any]) -> None:
        record = self.get_business(business_id)
        if record is None:
            raise KeyError(f"Unknown business: {business_id}")
        record.update(updates)
        self.save_business(record)

    def update_job_metrics(self, job_id: str, metrics: Dict[str, Any], step: str = "crawl") -> None:
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO job_metrics (job_id, step, metrics, updated_at) VALUES (?, ?, ?, ?)",
                (job_id, step, json.dumps(metrics, default=str), datetime.now().isoformat()),
            )
        logger.debug(f"Saved {step} metrics for job: {job_id}")

    def get_job_metrics(self, job_id: str, step: str = "crawl") -> Optional[Dict[str, Any]]:
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT metrics FROM job_metrics WHERE job_id = ? AND step = ?", (job_id, step)
        )
        row = cursor.fetchone()
        return json.loads(row["metrics"]) if row else None


def get_business_store(
    backend: Optional[str] = None,
    **kwargs,
) -> AbstractBusinessStore:
    """Factory function to create the appropriate business store.

    Args:
        backend: Store backend. Defaults to settings.DB_BACKEND.
        **kwargs: Additional arguments passed to the store constructor.

    Returns:
        An AbstractBusinessStore instance.

    Raises:
        ValueError: If an unknown backend is specified.
    """
    backend = backend or settings.DB_BACKEND

    if backend == "local":
        logger.info("Using local SQLite business store")
        return LocalSqliteBusinessStore(**kwargs)
    raise ValueError(
        f"Unknown database backend: '{backend}'. "
        "Supported backends: 'local'"
    )
