# chartir/schemas/issues.py
from __future__ import annotations

from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

ViolationKind = Literal[
    "structural",
    "duplicate_id",
    "dangling_dataset",
    "dangling_column",
    "dangling_axis",
    "axis_orientation",
    "missing_channel",
    "row_length",
    "coercion",
]


class Violation(BaseModel):
    """
    One problem found in a chart definition, with enough context to fix it.
    """

    kind: ViolationKind
    entity: str = Field(..., description="Offending entity, e.g. marks[m1]")
    reference: str = Field(..., description="Broken reference or cell location")
    message: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.entity} {self.reference}: {self.message}"


class ChartIRError(Exception):
    """
    Base error for anything that stops a chart from compiling.
    """

    def __init__(self, violations: Sequence[Violation]):
        self.violations: List[Violation] = list(violations)
        super().__init__(self._summary())

    def _summary(self) -> str:
        if not self.violations:
            return self.__class__.__name__
        first = str(self.violations[0])
        extra = len(self.violations) - 1
        return f"{first} (+{extra} more)" if extra else first


class StructuralError(ChartIRError):
    pass


class ReferentialError(ChartIRError):
    pass


class CoercionError(ChartIRError):
    """
    A number column holds a cell that is not a finite decimal number.
    The first bad cell is exposed directly; every bad cell is in `violations`.
    """

    def __init__(
        self,
        violations: Sequence[Violation],
        *,
        dataset_id: str,
        column: str,
        row_index: int,
        mark_id: Optional[str] = None,
    ):
        self.dataset_id = dataset_id
        self.column = column
        self.row_index = row_index
        self.mark_id = mark_id
        super().__init__(violations)


class CompilationCancelled(Exception):
    """
    Raised when a cancel event is set before compilation finished.
    """

    def __init__(self, completed_marks: int = 0):
        self.completed_marks = completed_marks
        super().__init__(f"Compilation cancelled after {completed_marks} mark(s)")
