"""Tests for referential validation of chart IR."""

from __future__ import annotations

from schemas.chart_ir import Axis, ChartIR, Column, Dataset, Encode, Mark
from compiler.validator import validate_chart_ir


def _line(mark_id: str = "m1", dataset_id: str = "sales", **kwargs) -> Mark:
    encode = kwargs.pop("encode", Encode(x="month", y="sales"))
    return Mark(id=mark_id, dataset_id=dataset_id, geometry="line", encode=encode, **kwargs)


def test_consistent_chart_is_valid(sales_chart: ChartIR) -> None:
    """A fully consistent chart reports no violations."""

    result = validate_chart_ir(sales_chart)
    assert result.is_valid is True
    assert result.violations == ()


def test_dangling_dataset_is_reported(sales_dataset: Dataset) -> None:
    """A mark pointing at an undeclared dataset is a referential error."""

    ir = ChartIR(datasets=[sales_dataset], marks=[_line(dataset_id="missing")])
    result = validate_chart_ir(ir)

    assert result.is_valid is False
    assert [v.kind for v in result.violations] == ["dangling_dataset"]
    assert result.violations[0].entity == "marks[m1]"
    assert result.violations[0].reference == "datasetId=missing"


def test_dangling_encode_column_is_reported(sales_dataset: Dataset) -> None:
    """Every bound channel must name a column of the mark's dataset."""

    ir = ChartIR(
        datasets=[sales_dataset],
        marks=[_line(encode=Encode(x="month", y="revenue", size="nope"))],
    )
    result = validate_chart_ir(ir)

    references = [v.reference for v in result.violations if v.kind == "dangling_column"]
    assert references == ["encode.y=revenue", "encode.size=nope"]


def test_duplicate_ids_are_reported(sales_dataset: Dataset) -> None:
    """Dataset, mark and axis ids must each be unique."""

    ir = ChartIR(
        datasets=[sales_dataset, sales_dataset],
        marks=[_line("m1"), _line("m1")],
        axes=[
            Axis(id="a", type="category", position="bottom"),
            Axis(id="a", type="value", position="left"),
        ],
    )
    result = validate_chart_ir(ir)

    duplicates = [v.entity for v in result.violations if v.kind == "duplicate_id"]
    assert duplicates == ["datasets[sales]", "marks[m1]", "axes[a]"]


def test_row_length_mismatch_is_always_rejected() -> None:
    """A row with the wrong cell count is rejected even when nothing uses it."""

    ds = Dataset(
        id="d",
        columns=[Column(name="a", type="string"), Column(name="b", type="string")],
        rows=[["x", "y"], ["only one"], ["x", "y", "z"]],
    )
    result = validate_chart_ir(ChartIR(datasets=[ds], marks=[]))

    assert result.is_valid is False
    assert [v.reference for v in result.violations] == ["rows[1]", "rows[2]"]
    assert all(v.kind == "row_length" for v in result.violations)


def test_axis_routing_must_resolve_with_matching_orientation(sales_chart: ChartIR) -> None:
    """xAxisId needs a horizontal axis, yAxisId a vertical one."""

    ir = sales_chart.model_copy(
        update={
            "marks": [
                _line("m1", x_axis_id="y", y_axis_id="ghost"),
                _line("m2", x_axis_id="x", y_axis_id="y"),
            ]
        }
    )
    result = validate_chart_ir(ir)

    kinds = sorted(v.kind for v in result.violations)
    assert kinds == ["axis_orientation", "dangling_axis"]
    assert all(v.entity == "marks[m1]" for v in result.violations)


def test_required_channels_per_geometry(sales_dataset: Dataset) -> None:
    """Cartesian geometries need x/y, pie needs value/name."""

    ir = ChartIR(
        datasets=[sales_dataset],
        marks=[
            _line("m1", encode=Encode(x="month")),
            Mark(id="p1", dataset_id="sales", geometry="pie", encode=Encode(x="month", y="sales")),
        ],
    )
    result = validate_chart_ir(ir)

    missing = [(v.entity, v.reference) for v in result.violations]
    assert missing == [
        ("marks[m1]", "encode.y"),
        ("marks[p1]", "encode.value"),
        ("marks[p1]", "encode.name"),
    ]


def test_pie_may_carry_unused_channels(sales_dataset: Dataset) -> None:
    """Extra x/y bindings on a pie mark are not an error."""

    ir = ChartIR(
        datasets=[sales_dataset],
        marks=[
            Mark(
                id="p1",
                dataset_id="sales",
                geometry="pie",
                encode=Encode(x="month", y="sales", name="month", value="sales"),
            )
        ],
    )
    assert validate_chart_ir(ir).is_valid is True


def test_collects_all_violations_by_default(sales_dataset: Dataset) -> None:
    """Every category is checked so all problems surface in one pass."""

    ir = ChartIR(
        datasets=[sales_dataset],
        marks=[_line("m1"), _line("m1", dataset_id="missing")],
    )
    result = validate_chart_ir(ir)

    assert [v.kind for v in result.violations] == ["duplicate_id", "dangling_dataset"]


def test_fail_fast_stops_after_first_failing_category(sales_dataset: Dataset) -> None:
    """fail_fast reports only the first category that produced violations."""

    ir = ChartIR(
        datasets=[sales_dataset],
        marks=[_line("m1"), _line("m1", dataset_id="missing")],
    )
    result = validate_chart_ir(ir, fail_fast=True)

    assert result.is_valid is False
    assert [v.kind for v in result.violations] == ["duplicate_id"]
