"""Shared chart fixtures."""

from __future__ import annotations

import pytest

from schemas.chart_ir import Axis, ChartIR, Column, Dataset, Encode, Mark, Style


@pytest.fixture
def sales_dataset() -> Dataset:
    """Three months of sales and profit."""

    return Dataset(
        id="sales",
        columns=[
            Column(name="month", type="string"),
            Column(name="sales", type="number"),
            Column(name="profit", type="number"),
        ],
        rows=[
            ["Jan", "120", "20"],
            ["Feb", "200", "45"],
            ["Mar", "150", "30"],
        ],
    )


@pytest.fixture
def sales_chart(sales_dataset: Dataset) -> ChartIR:
    """A line of sales and a styled bar of profit over a category/value axis pair."""

    return ChartIR(
        title="Monthly Sales",
        datasets=[sales_dataset],
        marks=[
            Mark(
                id="m_sales",
                dataset_id="sales",
                geometry="line",
                encode=Encode(x="month", y="sales"),
                name="Sales",
            ),
            Mark(
                id="m_profit",
                dataset_id="sales",
                geometry="bar",
                encode=Encode(x="month", y="profit"),
                style=Style(color="#91cc75", opacity=0.7),
                name="Profit",
            ),
        ],
        axes=[
            Axis(id="x", type="category", position="bottom"),
            Axis(id="y", type="value", position="left"),
        ],
    )

