# chartir/compiler/marks.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from compiler.coercer import ColumnCoercer
from schemas.chart_ir import ChartIR, Mark, Style
from schemas.issues import CoercionError

logger = logging.getLogger(__name__)

# area is a line with a fill down to the baseline
SERIES_TYPE: Dict[str, str] = {
    "line": "line",
    "area": "line",
    "bar": "bar",
    "scatter": "scatter",
    "pie": "pie",
}

STACKABLE = {"line", "area", "bar"}

# order in which polar-routed systems get their polar components
POLAR_SYSTEMS = ("polar", "radial")

Series = Dict[str, Any]


def stack_groups(marks: List[Mark]) -> Dict[str, str]:
    """
    mark id -> stack group identifier, for marks that stack.

    Marks with the same non-empty stack key and coordinate system share an
    identifier; the engine stacks them in the order they are declared.
    """
    groups: Dict[str, str] = {}
    for mark in marks:
        if not mark.stack or mark.geometry not in STACKABLE:
            continue
        if mark.coordinate_system == "cartesian2d":
            groups[mark.id] = mark.stack
        else:
            groups[mark.id] = f"{mark.coordinate_system}:{mark.stack}"
    return groups


def polar_systems(marks: List[Mark]) -> List[str]:
    """
    Non-cartesian coordinate systems actually used, in polarIndex order.
    Pie marks have no coordinate system and never count.
    """
    used = {
        m.coordinate_system
        for m in marks
        if m.geometry != "pie" and m.coordinate_system != "cartesian2d"
    }
    return [cs for cs in POLAR_SYSTEMS if cs in used]


def item_style(style: Style) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if style.color:
        out["color"] = style.color
    if style.opacity is not None:
        out["opacity"] = style.opacity
    if style.border_color:
        out["borderColor"] = style.border_color
    if style.border_width is not None:
        out["borderWidth"] = style.border_width
    return out


def line_style(style: Style) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if style.color:
        out["color"] = style.color
    if style.opacity is not None:
        out["opacity"] = style.opacity
    return out


class MarkCompiler:
    """
    Deterministic dispatcher: geometry -> series builder.

    Assumes the chart already passed validation; references are not
    re-checked here.
    """

    def __init__(self, ir: ChartIR, *, coercer: Optional[ColumnCoercer] = None):
        self.coercer = coercer or ColumnCoercer(ir.datasets)

        self._stack_groups = stack_groups(ir.marks)
        self._polar_index = {cs: i for i, cs in enumerate(polar_systems(ir.marks))}

        horizontal = [a for a in ir.axes if a.is_horizontal()]
        vertical = [a for a in ir.axes if a.is_vertical()]
        self._x_axis_index = {a.id: i for i, a in enumerate(horizontal)}
        self._y_axis_index = {a.id: i for i, a in enumerate(vertical)}

        self._geometry_to_handler: Dict[str, Callable[[Mark, Series], None]] = {
            "line": self._line,
            "area": self._area,
            "bar": self._bar,
            "scatter": self._scatter,
            "pie": self._pie,
        }

    def compile(self, mark: Mark) -> Series:
        if mark.geometry not in self._geometry_to_handler:
            raise ValueError(f"Unsupported geometry: {mark.geometry}")

        handler = self._geometry_to_handler[mark.geometry]

        series: Series = {
            "id": mark.id,
            "name": mark.name or mark.id,
            "type": SERIES_TYPE[mark.geometry],
        }

        try:
            handler(mark, series)
        except CoercionError as e:
            e.mark_id = mark.id
            raise

        logger.debug(
            "Compiled mark %s (%s) with %d data item(s)",
            mark.id,
            mark.geometry,
            len(series.get("data", [])),
        )
        return series

    # -----------------------
    # Geometry handlers
    # -----------------------

    def _line(self, mark: Mark, series: Series) -> None:
        self._route(mark, series)
        self._stack(mark, series)
        if mark.smooth:
            series["smooth"] = True
        series["data"] = self._pairs(mark)
        self._style(mark, series, "lineStyle", line_style)
        self._style(mark, series, "itemStyle", item_style)

    def _area(self, mark: Mark, series: Series) -> None:
        self._line(mark, series)
        area: Dict[str, Any] = {}
        if mark.style and mark.style.opacity is not None:
            area["opacity"] = mark.style.opacity
        series["areaStyle"] = area

    def _bar(self, mark: Mark, series: Series) -> None:
        self._route(mark, series)
        self._stack(mark, series)
        series["data"] = self._pairs(mark)
        self._style(mark, series, "itemStyle", item_style)

    def _scatter(self, mark: Mark, series: Series) -> None:
        self._route(mark, series)

        enc = mark.encode
        columns = [self._column(mark, enc.x), self._column(mark, enc.y)]
        dimensions = ["x", "y"] if mark.coordinate_system == "cartesian2d" else ["radius", "angle"]
        if enc.size:
            columns.append(self._column(mark, enc.size))
            dimensions.append("size")
        if enc.color:
            columns.append(self._column(mark, enc.color))
            dimensions.append("color")

        points = []
        for cells in zip(*columns):
            x, y, *rest = cells
            points.append(self._order(mark, x, y) + list(rest))

        if len(dimensions) > 2:
            series["dimensions"] = dimensions
        series["data"] = points
        self._style(mark, series, "itemStyle", item_style)

    def _pie(self, mark: Mark, series: Series) -> None:
        # pie ignores x/y/size/color and the coordinate system
        names = self._column(mark, mark.encode.name)
        values = self._column(mark, mark.encode.value)
        series["data"] = [{"name": n, "value": v} for n, v in zip(names, values)]
        self._style(mark, series, "itemStyle", item_style)

    # -----------------------
    # Shared pieces
    # -----------------------

    def _column(self, mark: Mark, column: Optional[str]):
        return self.coercer.column(mark.dataset_id, column)

    def _pairs(self, mark: Mark) -> List[List[Any]]:
        xs = self._column(mark, mark.encode.x)
        ys = self._column(mark, mark.encode.y)
        return [self._order(mark, x, y) for x, y in zip(xs, ys)]

    def _order(self, mark: Mark, x: Any, y: Any) -> List[Any]:
        # polar data items are [radius, angle]; polar puts x on the angle,
        # radial puts x on the radius
        if mark.coordinate_system == "polar":
            return [y, x]
        return [x, y]

    def _route(self, mark: Mark, series: Series) -> None:
        if mark.coordinate_system == "cartesian2d":
            if mark.x_axis_id:
                series["xAxisIndex"] = self._x_axis_index[mark.x_axis_id]
            if mark.y_axis_id:
                series["yAxisIndex"] = self._y_axis_index[mark.y_axis_id]
            return
        series["coordinateSystem"] = "polar"
        series["polarIndex"] = self._polar_index[mark.coordinate_system]

    def _stack(self, mark: Mark, series: Series) -> None:
        group = self._stack_groups.get(mark.id)
        if group is not None:
            series["stack"] = group

    def _style(
        self,
        mark: Mark,
        series: Series,
        key: str,
        build: Callable[[Style], Dict[str, Any]],
    ) -> None:
        if not mark.style:
            return
        out = build(mark.style)
        # a style with none of this key's fields set emits nothing
        if out:
            series[key] = out
