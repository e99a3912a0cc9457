# chartir/compiler/validator.py
"""
Referential checks over a ChartIR.

Every cross-reference inside a chart (mark -> dataset, encode -> column,
mark -> axis) must resolve before compilation starts. Checks run in a fixed
order; in fail-fast mode validation stops after the first check that
reported anything, so the list is accurate but not exhaustive.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

from schemas.chart_ir import ChartIR, Dataset
from schemas.issues import Violation

logger = logging.getLogger(__name__)

# Channels each geometry cannot compile without.
REQUIRED_CHANNELS: Dict[str, Tuple[str, ...]] = {
    "line": ("x", "y"),
    "area": ("x", "y"),
    "bar": ("x", "y"),
    "scatter": ("x", "y"),
    "pie": ("value", "name"),
}


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    violations: Tuple[Violation, ...] = ()


def validate_chart_ir(ir: ChartIR, *, fail_fast: bool = False) -> ValidationResult:
    """
    Check every reference in `ir`. Never raises for bad input; problems are
    returned as Violations.
    """
    checks: List[Callable[[ChartIR], List[Violation]]] = [
        _check_duplicate_dataset_ids,
        _check_duplicate_mark_ids,
        _check_duplicate_axis_ids,
        _check_mark_datasets,
        _check_encode_columns,
        _check_row_lengths,
        _check_axis_routing,
        _check_required_channels,
    ]

    violations: List[Violation] = []
    for check in checks:
        found = check(ir)
        violations.extend(found)
        if found and fail_fast:
            break

    if violations:
        logger.debug("Chart IR failed validation with %d violation(s)", len(violations))

    return ValidationResult(is_valid=not violations, violations=tuple(violations))


# -------------------------
# Checks
# -------------------------


def _duplicates(ids: Iterable[str]) -> List[str]:
    seen = set()
    dupes: List[str] = []
    for i in ids:
        if i in seen and i not in dupes:
            dupes.append(i)
        seen.add(i)
    return dupes


def _check_duplicate_dataset_ids(ir: ChartIR) -> List[Violation]:
    return [
        Violation(
            kind="duplicate_id",
            entity=f"datasets[{d}]",
            reference=f"id={d}",
            message=f"Dataset id {d!r} is declared more than once",
        )
        for d in _duplicates(ds.id for ds in ir.datasets)
    ]


def _check_duplicate_mark_ids(ir: ChartIR) -> List[Violation]:
    return [
        Violation(
            kind="duplicate_id",
            entity=f"marks[{m}]",
            reference=f"id={m}",
            message=f"Mark id {m!r} is declared more than once",
        )
        for m in _duplicates(mark.id for mark in ir.marks)
    ]


def _check_duplicate_axis_ids(ir: ChartIR) -> List[Violation]:
    return [
        Violation(
            kind="duplicate_id",
            entity=f"axes[{a}]",
            reference=f"id={a}",
            message=f"Axis id {a!r} is declared more than once",
        )
        for a in _duplicates(axis.id for axis in ir.axes)
    ]


def _check_mark_datasets(ir: ChartIR) -> List[Violation]:
    known = {ds.id for ds in ir.datasets}
    out: List[Violation] = []
    for mark in ir.marks:
        if mark.dataset_id not in known:
            out.append(
                Violation(
                    kind="dangling_dataset",
                    entity=f"marks[{mark.id}]",
                    reference=f"datasetId={mark.dataset_id}",
                    message=f"Mark references unknown dataset {mark.dataset_id!r}",
                )
            )
    return out


def _check_encode_columns(ir: ChartIR) -> List[Violation]:
    # first declaration wins when ids are duplicated; that is reported separately
    datasets: Dict[str, Dataset] = {}
    for ds in ir.datasets:
        datasets.setdefault(ds.id, ds)

    out: List[Violation] = []
    for mark in ir.marks:
        ds = datasets.get(mark.dataset_id)
        if ds is None:
            continue
        names = {col.name for col in ds.columns}
        for channel, column in mark.encode.bound():
            if column not in names:
                out.append(
                    Violation(
                        kind="dangling_column",
                        entity=f"marks[{mark.id}]",
                        reference=f"encode.{channel}={column}",
                        message=f"Column {column!r} does not exist in dataset {ds.id!r}",
                    )
                )
    return out


def _check_row_lengths(ir: ChartIR) -> List[Violation]:
    out: List[Violation] = []
    for ds in ir.datasets:
        width = len(ds.columns)
        for idx, row in enumerate(ds.rows):
            if len(row) != width:
                out.append(
                    Violation(
                        kind="row_length",
                        entity=f"datasets[{ds.id}]",
                        reference=f"rows[{idx}]",
                        message=f"Row has {len(row)} cell(s), expected {width}",
                    )
                )
    return out


def _check_axis_routing(ir: ChartIR) -> List[Violation]:
    axes = {}
    for axis in ir.axes:
        axes.setdefault(axis.id, axis)

    out: List[Violation] = []
    for mark in ir.marks:
        for field, want_horizontal in (("xAxisId", True), ("yAxisId", False)):
            axis_id = mark.x_axis_id if want_horizontal else mark.y_axis_id
            if not axis_id:
                continue
            axis = axes.get(axis_id)
            if axis is None:
                out.append(
                    Violation(
                        kind="dangling_axis",
                        entity=f"marks[{mark.id}]",
                        reference=f"{field}={axis_id}",
                        message=f"Mark references unknown axis {axis_id!r}",
                    )
                )
            elif axis.is_horizontal() != want_horizontal:
                expected = "horizontal" if want_horizontal else "vertical"
                out.append(
                    Violation(
                        kind="axis_orientation",
                        entity=f"marks[{mark.id}]",
                        reference=f"{field}={axis_id}",
                        message=f"Axis {axis_id!r} is positioned {axis.position}, expected a {expected} axis",
                    )
                )
    return out


def _check_required_channels(ir: ChartIR) -> List[Violation]:
    out: List[Violation] = []
    for mark in ir.marks:
        for channel in REQUIRED_CHANNELS[mark.geometry]:
            if not getattr(mark.encode, channel):
                out.append(
                    Violation(
                        kind="missing_channel",
                        entity=f"marks[{mark.id}]",
                        reference=f"encode.{channel}",
                        message=f"{mark.geometry} marks require the {channel!r} channel",
                    )
                )
    return out
