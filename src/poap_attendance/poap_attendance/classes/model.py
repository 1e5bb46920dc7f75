from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Class:
    """A course/session series owned by one lecturer.

    `students` is the enrolled set; order carries no meaning.
    """

    class_id: str
    title: str
    lecturer: str
    description: Optional[str] = None
    students: frozenset[str] = field(default_factory=frozenset)
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "title": self.title,
            "description": self.description,
            "lecturer": self.lecturer,
            "students": sorted(self.students),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
