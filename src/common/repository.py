# ABOUTME: Read-only access to student profiles and course activity snapshots.
# ABOUTME: Ships an abstract store plus an in-memory implementation used by tests and the CLI.

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from .errors import InvalidInput
from .schemas import ActivityData, StudentProfile


class StudentRepository(ABC):
    """The engine only ever reads from the student/course store."""

    @abstractmethod
    def get_profile(self, student_id: str) -> StudentProfile:
        ...

    @abstractmethod
    def get_activity(self, student_id: str, course_id: str) -> ActivityData:
        ...


class InMemoryStudentRepository(StudentRepository):
    def __init__(
        self,
        profiles: Optional[Mapping[str, StudentProfile]] = None,
        activity: Optional[Mapping[Tuple[str, str], ActivityData]] = None,
    ):
        self._profiles: Dict[str, StudentProfile] = dict(profiles or {})
        self._activity: Dict[Tuple[str, str], ActivityData] = dict(activity or {})

    def get_profile(self, student_id: str) -> StudentProfile:
        try:
            return self._profiles[student_id]
        except KeyError:
            raise InvalidInput(f"Unknown student '{student_id}'") from None

    def get_activity(self, student_id: str, course_id: str) -> ActivityData:
        try:
            return self._activity[(student_id, course_id)]
        except KeyError:
            raise InvalidInput(f"No activity for student '{student_id}' in course '{course_id}'") from None

    @classmethod
    def from_json(cls, path: Path) -> "InMemoryStudentRepository":
        """
        Load a store dump shaped like
        ``{"students": {id: {"profile": {...}, "activity": {course_id: {...}}}}}``.
        """

        data = json.loads(Path(path).read_text())
        profiles = {}
        activity = {}
        for student_id, record in data.get("students", {}).items():
            profiles[student_id] = StudentProfile.from_dict(record.get("profile"))
            for course_id, snapshot in (record.get("activity") or {}).items():
                activity[(student_id, course_id)] = ActivityData.from_dict(snapshot)
        return cls(profiles, activity)
