# chartir/compiler/coercer.py
from __future__ import annotations

import threading
from functools import cached_property
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from schemas.chart_ir import Column, Dataset
from schemas.issues import CoercionError, Violation

Cell = Union[str, float, None]


class CoercedColumn:
    """
    Typed view of one dataset column.

    Nothing is parsed until the values are first read. Iterating is
    restartable: every `iter()` starts again at row 0 over the same values.

      - string columns: cells come back unchanged ("" included)
      - number columns: float per cell, None for blank cells,
        CoercionError for anything else that is not a finite number
    """

    def __init__(self, dataset: Dataset, column: str):
        idx = dataset.column_index(column)
        if idx is None:
            raise KeyError(f"Column {column!r} not in dataset {dataset.id!r}")
        self.dataset = dataset
        self.column: Column = dataset.columns[idx]
        self._idx = idx

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.dataset.rows)

    def __getitem__(self, row_index: int) -> Cell:
        return self.values[row_index]

    def __repr__(self) -> str:
        return f"CoercedColumn(dataset={self.dataset.id!r}, column={self.column.name!r})"

    @cached_property
    def values(self) -> Tuple[Cell, ...]:
        cells = [row[self._idx] for row in self.dataset.rows]
        if self.column.type == "string":
            return tuple(cells)
        return self._to_numbers(cells)

    def _to_numbers(self, cells: List[str]) -> Tuple[Optional[float], ...]:
        if not cells:
            return ()

        raw = pd.Series(cells, dtype=object)
        stripped = raw.str.strip()
        blank = stripped.eq("")

        parsed = pd.to_numeric(stripped.where(~blank), errors="coerce").astype("float64")
        bad = ~np.isfinite(parsed.to_numpy()) & ~blank.to_numpy()

        if bad.any():
            rows = np.flatnonzero(bad).tolist()
            violations = [
                Violation(
                    kind="coercion",
                    entity=f"datasets[{self.dataset.id}]",
                    reference=f"column={self.column.name},row={r}",
                    message=f"Cell {cells[r]!r} is not a finite number",
                )
                for r in rows
            ]
            raise CoercionError(
                violations,
                dataset_id=self.dataset.id,
                column=self.column.name,
                row_index=rows[0],
            )

        # to_numeric only locates bad cells; its fast parser can be off by one ULP
        values = stripped.where(~blank).astype("float64")
        return tuple(
            None if is_blank else float(v)
            for v, is_blank in zip(values.tolist(), blank.tolist())
        )


def coerce_column(dataset: Dataset, column: str) -> CoercedColumn:
    """
    Lazy typed view of `column` in `dataset`.
    """
    return CoercedColumn(dataset, column)


class ColumnCoercer:
    """
    Per-compilation cache of coerced columns, keyed by (dataset id, column).
    Only columns someone asks for are ever parsed.
    """

    def __init__(self, datasets: List[Dataset]):
        self._datasets: Dict[str, Dataset] = {}
        for ds in datasets:
            self._datasets.setdefault(ds.id, ds)
        self._columns: Dict[Tuple[str, str], CoercedColumn] = {}
        self._lock = threading.Lock()

    def column(self, dataset_id: str, column: str) -> CoercedColumn:
        key = (dataset_id, column)
        with self._lock:
            cached = self._columns.get(key)
            if cached is None:
                cached = coerce_column(self._datasets[dataset_id], column)
                self._columns[key] = cached
        return cached
