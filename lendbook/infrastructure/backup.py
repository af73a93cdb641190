"""Backup export and import as a downloadable JSON text file"""

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from pydantic import ValidationError as SchemaError

from lendbook.domain.exceptions import DomainException, FormatError
from lendbook.domain.models import Dataset
from lendbook.infrastructure.documents import BackupDocument, encode_dataset

REQUIRED_KEYS = ("clients", "loans")


def backup_filename(day: date) -> str:
    return f"loan_backup_{day.isoformat()}.txt"


def build_backup(dataset: Dataset, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Backup payload: ISO timestamp plus the three collections"""
    now = now or datetime.now(timezone.utc)
    document = encode_dataset(dataset)
    return {
        "timestamp": now.isoformat(),
        "clients": document["clients"],
        "loans": document["loans"],
        "expenses": document["expenses"],
    }


def dump_backup(dataset: Dataset, now: Optional[datetime] = None) -> str:
    return json.dumps(build_backup(dataset, now), indent=2)


def parse_backup(text: str) -> BackupDocument:
    """
    Validate backup text before anything is replaced.

    Raises:
        FormatError: Not JSON, missing clients/loans, or records that do not parse
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FormatError("Error reading file: not valid JSON") from e

    if not isinstance(data, dict) or any(data.get(key) is None for key in REQUIRED_KEYS):
        raise FormatError("This file does not look like a valid backup")

    try:
        return BackupDocument.model_validate(data)
    except SchemaError as e:
        raise FormatError(f"Backup records are invalid: {e.error_count()} error(s)") from e


def load_backup(text: str) -> tuple[Dataset, Optional[str]]:
    """Parse backup text into a dataset and the timestamp it was taken at"""
    document = parse_backup(text)
    try:
        dataset = document.to_domain()
    except (DomainException, ArithmeticError) as e:
        raise FormatError(f"Backup contains an invalid loan: {e}") from e
    return dataset, document.timestamp
