# chartir/schemas/chart_ir.py
from __future__ import annotations

from typing import Any, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from schemas.issues import StructuralError, Violation

ColumnType = Literal["string", "number"]

Geometry = Literal["line", "bar", "pie", "scatter", "area"]

CoordinateSystem = Literal["cartesian2d", "polar", "radial"]

AxisType = Literal["category", "value", "time", "log"]

AxisPosition = Literal["bottom", "top", "left", "right"]

LegendPosition = Literal["top", "bottom", "left", "right"]

TooltipTrigger = Literal["item", "axis", "none"]


class IRModel(BaseModel):
    """
    Base for every IR record: immutable, camelCase on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class Column(IRModel):
    name: str = Field(..., description="Column identifier used in encode mappings")
    type: ColumnType = Field(..., description="How every cell in this column is read")


class Dataset(IRModel):
    """
    Tabular data. Cells are always strings; the column type says how to read them.
    """

    id: str
    columns: List[Column]
    rows: List[List[str]] = Field(default_factory=list)

    def column_index(self, name: str) -> Optional[int]:
        for idx, col in enumerate(self.columns):
            if col.name == name:
                return idx
        return None


class Encode(IRModel):
    """
    Channel -> column bindings. Which channels matter depends on the geometry.
    """

    x: Optional[str] = None
    y: Optional[str] = None
    value: Optional[str] = None
    name: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None

    def bound(self) -> List[tuple[str, str]]:
        """
        (channel, column) pairs for every non-empty channel, in declaration order.
        """
        pairs = []
        for channel in ("x", "y", "value", "name", "size", "color"):
            column = getattr(self, channel)
            if column:
                pairs.append((channel, column))
        return pairs


class Style(IRModel):
    color: Optional[str] = None
    opacity: Optional[float] = Field(default=None, ge=0, le=1)
    border_color: Optional[str] = None
    border_width: Optional[float] = Field(default=None, ge=0)


class Mark(IRModel):
    """
    One visual series. Same shape for every geometry.
    """

    id: str
    dataset_id: str
    geometry: Geometry
    coordinate_system: CoordinateSystem = "cartesian2d"
    encode: Encode = Field(default_factory=Encode)
    style: Optional[Style] = None

    stack: Optional[str] = Field(
        default=None, description="Marks sharing a non-empty key are stacked"
    )
    smooth: bool = False
    name: Optional[str] = Field(default=None, description="Legend label")

    x_axis_id: Optional[str] = Field(
        default=None, description="Horizontal axis this mark is drawn against"
    )
    y_axis_id: Optional[str] = Field(
        default=None, description="Vertical axis this mark is drawn against"
    )


class Axis(IRModel):
    id: str
    type: AxisType
    position: AxisPosition
    name: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None

    def is_horizontal(self) -> bool:
        return self.position in ("bottom", "top")

    def is_vertical(self) -> bool:
        return self.position in ("left", "right")


class Legend(IRModel):
    show: Optional[bool] = None
    position: Optional[LegendPosition] = None
    items: List[str] = Field(
        default_factory=list, description="Empty means derive from mark names"
    )


class Tooltip(IRModel):
    show: Optional[bool] = None
    trigger: Optional[TooltipTrigger] = None


class Grid(IRModel):
    """
    Percentages ("10%") or pixel magnitudes ("50"), passed through as text.
    """

    left: Optional[str] = None
    right: Optional[str] = None
    top: Optional[str] = None
    bottom: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    contain_label: Optional[bool] = None


class ChartIR(IRModel):
    """
    Root of a chart definition.
    """

    title: Optional[str] = None
    datasets: List[Dataset] = Field(default_factory=list)
    marks: List[Mark] = Field(default_factory=list)
    axes: List[Axis] = Field(default_factory=list)
    legend: Optional[Legend] = None
    tooltip: Optional[Tooltip] = None
    grid: Optional[Grid] = None


def parse_chart_ir(payload: Mapping[str, Any]) -> ChartIR:
    """
    Build a ChartIR from a JSON-like mapping.

    Raises StructuralError (one Violation per pydantic issue) when the
    payload does not have the IR's shape.
    """
    try:
        return ChartIR.model_validate(payload)
    except ValidationError as e:
        violations = [
            Violation(
                kind="structural",
                entity="chart",
                reference=".".join(str(part) for part in err["loc"]) or "<root>",
                message=err["msg"],
            )
            for err in e.errors()
        ]
        raise StructuralError(violations) from e
