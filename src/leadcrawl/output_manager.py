"""Blob storage for raw and extracted crawl payloads."""

import gzip
import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from leadcrawl.constants import BLOB_KEY_PREFIX

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime and enum values."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class OutputManager:
    """Stores crawl payloads as JSON blobs under a base directory.

    Keys are relative paths; keys ending in ``.gz`` are gzip-compressed.

    Example structure:
        output/
        └── crawled-data/
            └── biz-123/
                ├── 1729339200000/
                │   ├── raw.json.gz
                │   └── extracted.json.gz
                └── 1729425600000/
                    └── ...
    """

    def __init__(self, base_output_dir: str = "output"):
        """Initialize output manager.

        Args:
            base_output_dir: Base directory for all blobs
        """
        self.base_output_dir = Path(base_output_dir)
        self.base_output_dir.mkdir(parents=True, exist_ok=True)

    def crawl_keys(self, business_id: str, timestamp: Optional[datetime] = None) -> Tuple[str, str]:
        """Build the raw and extracted blob keys for one crawl.

        Args:
            business_id: Business identifier
            timestamp: Crawl time (defaults to now)

        Returns:
            Tuple of (raw_key, extracted_key)
        """
        timestamp = timestamp or datetime.now()
        prefix = f"{BLOB_KEY_PREFIX}/{business_id}/{int(timestamp.timestamp() * 1000)}"
        return f"{prefix}/raw.json.gz", f"{prefix}/extracted.json.gz"

    def _path(self, key: str) -> Path:
        path = (self.base_output_dir / key).resolve()
        if self.base_output_dir.resolve() not in path.parents:
            raise ValueError(f"Blob key escapes the output directory: {key}")
        return path

    def put_json(self, key: str, data: Any) -> str:
        """Write data as JSON under a key.

        Args:
            key: Relative blob key
            data: JSON-serializable data (datetimes allowed)

        Returns:
            The key written
        """
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data, ensure_ascii=False, cls=DateTimeEncoder).encode("utf-8")

        if key.endswith(".gz"):
            with gzip.open(path, "wb") as f:
                f.write(payload)
        else:
            with open(path, "wb") as f:
                f.write(payload)

        logger.debug(f"Saved {key} ({len(payload)} bytes)")
        return key

    def get_json(self, key: str) -> Any:
        """Read a JSON blob back.

        Raises:
            FileNotFoundError: If no blob exists under the key
        """
        path = self._path(key)
        if key.endswith(".gz"):
            with gzip.open(path, "rb") as f:
                return json.loads(f.read().decode("utf-8"))
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def get_previous_crawls(self, business_id: str) -> List[str]:
        """Timestamps of stored crawls for a business, newest first."""
        business_dir = self.base_output_dir / BLOB_KEY_PREFIX / business_id
        if not business_dir.exists():
            return []
        return sorted((d.name for d in business_dir.iterdir() if d.is_dir()), reverse=True)

    def save_crawl(
        self,
        business_id: str,
        raw: Dict[str, Any],
        extracted: Dict[str, Any],
        timestamp: Optional[datetime] = None,
    ) -> Tuple[str, str]:
        """Persist both payloads of one crawl.

        Returns:
            Tuple of (raw_key, extracted_key)
        """
        raw_key, extracted_key = self.crawl_keys(business_id, timestamp)
        self.put_json(raw_key, raw)
        self.put_json(extracted_key, extracted)
        return raw_key, extracted_key
