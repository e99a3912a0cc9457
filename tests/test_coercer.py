"""Tests for lazy column coercion."""

from __future__ import annotations

import random

import pytest

from compiler.coercer import ColumnCoercer, coerce_column
from schemas.chart_ir import Column, Dataset
from schemas.issues import CoercionError


def _dataset(*cells: str, column_type: str = "number") -> Dataset:
    return Dataset(
        id="d",
        columns=[Column(name="label", type="string"), Column(name="v", type=column_type)],
        rows=[[f"r{i}", cell] for i, cell in enumerate(cells)],
    )


def test_number_column_parses_decimal_values() -> None:
    """"120" coerces to 120.0, in row order."""

    values = list(coerce_column(_dataset("120", "-3.5", "1e3", " 7 "), "v"))
    assert values == [120.0, -3.5, 1000.0, 7.0]
    assert all(isinstance(v, float) for v in values)


def test_full_precision_cells_parse_exactly() -> None:
    """Values match a correctly rounded decimal parse, bit for bit."""

    rng = random.Random(7)
    cells = ["-943305.0469559873", "-109225.61189039715", "0.1", "2.675"]
    cells += [repr(rng.uniform(-1e6, 1e6)) for _ in range(2000)]

    values = list(coerce_column(_dataset(*cells), "v"))
    assert values == [float(cell) for cell in cells]


def test_blank_number_cell_is_missing_value() -> None:
    """Blank cells in a number column are gaps, not zeros."""

    assert list(coerce_column(_dataset("1", "", "  "), "v")) == [1.0, None, None]


def test_string_column_passes_cells_through() -> None:
    """String cells come back unchanged, empty string included."""

    ds = _dataset("abc", "", " padded ", column_type="string")
    assert list(coerce_column(ds, "v")) == ["abc", "", " padded "]


def test_bad_number_cell_reports_exact_location() -> None:
    """"abc" in a number column names the dataset, column and row."""

    col = coerce_column(_dataset("1", "2", "abc"), "v")

    with pytest.raises(CoercionError) as exc_info:
        list(col)

    err = exc_info.value
    assert (err.dataset_id, err.column, err.row_index) == ("d", "v", 2)
    assert err.violations[0].kind == "coercion"
    assert err.violations[0].reference == "column=v,row=2"


def test_every_bad_cell_is_listed() -> None:
    """Non-numeric and non-finite cells are all reported, first one first."""

    col = coerce_column(_dataset("x", "1", "nan", "inf"), "v")

    with pytest.raises(CoercionError) as exc_info:
        col[1]

    assert exc_info.value.row_index == 0
    assert [v.reference for v in exc_info.value.violations] == [
        "column=v,row=0",
        "column=v,row=2",
        "column=v,row=3",
    ]


def test_coercion_is_lazy() -> None:
    """Building the view parses nothing; only reading does."""

    col = coerce_column(_dataset("oops"), "v")
    assert len(col) == 1
    with pytest.raises(CoercionError):
        col[0]


def test_iteration_is_restartable() -> None:
    """Iterating twice yields the same values from the first row."""

    col = coerce_column(_dataset("1", "2", "3"), "v")
    first = list(col)
    second = list(col)
    assert first == second == [1.0, 2.0, 3.0]


def test_empty_dataset_yields_nothing() -> None:
    """No rows means an empty sequence, for either column type."""

    ds = _dataset()
    assert list(coerce_column(ds, "v")) == []
    assert list(coerce_column(ds, "label")) == []


def test_unknown_column_is_a_key_error() -> None:
    """Asking for a column that is not declared fails immediately."""

    with pytest.raises(KeyError):
        coerce_column(_dataset("1"), "missing")


def test_column_coercer_caches_per_dataset_column() -> None:
    """The same (dataset, column) returns the same view within a compilation."""

    coercer = ColumnCoercer([_dataset("1", "2")])
    assert coercer.column("d", "v") is coercer.column("d", "v")
    assert list(coercer.column("d", "label")) == ["r0", "r1"]
