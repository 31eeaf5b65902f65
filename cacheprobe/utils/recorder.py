"""
Append samples to a CSV log, one row per sample.

Nested fields are flattened into `<LAYER>_<FIELD>` columns. The resolved cache
header is kept whole as a quoted JSON object instead of being split up.
"""
import csv
import json
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from cacheprobe.exceptions import PersistenceFailure
from cacheprobe.logic.headers import Header
from cacheprobe.utils.logger import logger

FIELDS = ("name", "service", "layer", "enabled", "status", "ttl", "age", "cache_header", "detail")
INTEGER = re.compile(r"^-?\d+$")


def column_prefix(name: str) -> str:
    return re.sub(r"[^0-9A-Za-z]+", "_", name).strip("_").upper()


def _cell(value: Any) -> Any:
    if isinstance(value, Header):
        return json.dumps({"name": value.name, "value": value.value})
    if value is None:
        return ""
    return value


def flatten_result(result) -> Dict[str, Any]:
    row = {
        "TIME_STAMP": result.timestamp,
        "URL": result.url,
    }
    for status in result.layers:
        prefix = column_prefix(status.name)
        for field in FIELDS:
            row[f"{prefix}_{field.upper()}"] = _cell(getattr(status, field))
    return row


def parse_cell(column: str, value: str) -> Any:
    """
    Convert one cell back by its column; text columns stay text, so an
    empty status (no status header) reads back as "".
    """
    if column.endswith("_CACHE_HEADER"):
        if value.startswith("{"):
            data = json.loads(value)
            return Header(data["name"], data["value"])
        return value
    if column.endswith("_ENABLED"):
        return value == "True"
    if column.endswith(("_TTL", "_AGE")):
        if INTEGER.match(value):
            return int(value)
        if value == "nan":
            return math.nan
    return value


def read_results(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Parse a CSV log back into flat rows with typed values."""
    with open(path, newline="") as f:
        return [
            {column: parse_cell(column, value) for column, value in row.items()}
            for row in csv.DictReader(f)
        ]


def log_file_name(url: str, started: datetime) -> str:
    host = urlparse(url).netloc.replace(".", "-").replace(":", "-")
    return f"{started.astimezone(timezone.utc):%Y-%m-%dT%H-%M-%S}Z_{host}_cache-test.csv"


class CsvRecorder:
    def __init__(self, folder: Union[str, Path], url: str, started: Optional[datetime] = None):
        self.folder = Path(folder)
        self.path = self.folder / log_file_name(url, started or datetime.now(timezone.utc))

    def append(self, result) -> None:
        row = flatten_result(result)
        try:
            try:
                self.path.stat()
                new_file = False
            except FileNotFoundError:
                self.folder.mkdir(parents=True, exist_ok=True)
                new_file = True

            with open(self.path, "a", newline="") as f:
                writer = csv.writer(f)
                if new_file:
                    logger.info(f"Logging samples to {self.path}")
                    writer.writerow(row.keys())
                writer.writerow(row.values())
        except OSError as e:
            raise PersistenceFailure(f"Failed to write sample to {self.path}: {e}") from e
