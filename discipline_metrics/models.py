from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class Row:
    """One parsed observation from the discipline file."""

    year: str
    student_group: str
    percent_disciplined: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RankedGroup:
    group: str
    percent: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TrendPoint:
    """Percent per group for one year; groups without data are left out."""

    year: str
    values_by_group: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"year": self.year, "values_by_group": dict(self.values_by_group)}

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"year": self.year}
        record.update(self.values_by_group)
        return record


@dataclass(frozen=True)
class DisparityEntry:
    group: str
    percent: float
    disparity: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
