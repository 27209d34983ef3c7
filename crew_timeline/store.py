"""
Read-only access to assignments exported by the scheduling store.
This engine never writes assignments back.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

from pydantic import ValidationError

from .models import Assignment
from .schemas import AssignmentRow
from .util.time_utils import date_key


logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "y"}


class AssignmentSource(Protocol):
    """Supplies the assignments for a crew and/or day."""

    def list_assignments(self, crew_id: Optional[str] = None, date=None) -> List[Assignment]:
        ...


def row_to_assignment(row: AssignmentRow) -> Assignment:
    return Assignment(
        id=row.id,
        crew_id=row.crew_id,
        date=row.date,
        start_minutes=row.start_minutes,
        end_minutes=row.end_minutes,
        starts_at_home_base=row.starts_at_home_base,
        ends_at_home_base=row.ends_at_home_base,
        address=row.address,
        job_id=row.job_id,
    )


class FileAssignmentStore:
    """Assignments loaded from a JSON or CSV export."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._assignments: Optional[List[Assignment]] = None
        self.errors: List[str] = []

    def _load(self) -> List[Assignment]:
        suffix = self.path.suffix.lower()
        if suffix == '.json':
            raw_rows = _load_json_file(self.path)
        elif suffix == '.csv':
            raw_rows = _load_csv_file(self.path)
        else:
            raise ValueError(f"Unsupported file format: {self.path.suffix}")

        assignments = []
        for line_no, raw in enumerate(raw_rows, start=1):
            try:
                assignments.append(row_to_assignment(AssignmentRow(**raw)))
            except ValidationError as e:
                message = f"Row {line_no}: {e.errors()[0].get('msg', e)}"
                logger.error(f"Skipping invalid assignment. {message}")
                self.errors.append(message)

        logger.info(f"Loaded {len(assignments)} assignments from {self.path}")
        return assignments

    def list_assignments(self, crew_id: Optional[str] = None, date=None) -> List[Assignment]:
        if self._assignments is None:
            self._assignments = self._load()

        day = date_key(date) if date is not None else None
        return [
            a for a in self._assignments
            if (crew_id is None or a.crew_id == crew_id)
            and (day is None or date_key(a.date) == day)
        ]


class InMemoryAssignmentStore:
    """Assignments held in memory, e.g. handed over by a caller."""

    def __init__(self, assignments: Iterable[Assignment]):
        self._assignments = list(assignments)

    def list_assignments(self, crew_id: Optional[str] = None, date=None) -> List[Assignment]:
        day = date_key(date) if date is not None else None
        return [
            a for a in self._assignments
            if (crew_id is None or a.crew_id == crew_id)
            and (day is None or date_key(a.date) == day)
        ]


def _load_csv_file(file_path: Path) -> List[dict]:
    """Load assignment rows from CSV file."""
    rows = []
    with open(file_path, 'r', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            rows.append({
                'id': row['id'],
                'crew_id': row['crew_id'],
                'date': row['date'],
                'start_minutes': row['start_minutes'],
                'end_minutes': row['end_minutes'],
                'starts_at_home_base': (row.get('starts_at_home_base') or '').strip().lower() in _TRUE_STRINGS,
                'ends_at_home_base': (row.get('ends_at_home_base') or '').strip().lower() in _TRUE_STRINGS,
                'address': row.get('address') or None,
                'job_id': row.get('job_id') or None,
            })
    return rows


def _load_json_file(file_path: Path) -> List[dict]:
    """Load assignment rows from JSON file."""
    with open(file_path, 'r') as f:
        data = json.load(f)

    if isinstance(data, dict) and 'assignments' in data:
        return data['assignments']
    if isinstance(data, list):
        return data
    raise ValueError("JSON must be a list of assignments or an object with an 'assignments' key")
