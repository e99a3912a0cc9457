# chartir/compiler/chrome.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from schemas.chart_ir import Axis, Grid, Legend, Mark, Tooltip

# legend position -> (edge key, edge value, orient)
# only top/left accept keywords; bottom/right take a distance
_LEGEND_PLACEMENT: Dict[str, Tuple[str, Any, str]] = {
    "top": ("top", "top", "horizontal"),
    "bottom": ("bottom", 0, "horizontal"),
    "left": ("left", "left", "vertical"),
    "right": ("right", 0, "vertical"),
}

# coordinate system -> (angleAxis type, radiusAxis type)
_POLAR_AXIS_TYPES: Dict[str, Tuple[str, str]] = {
    "polar": ("category", "value"),
    "radial": ("value", "category"),
}


def compile_axis(axis: Axis) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": axis.id,
        "type": axis.type,
        "position": axis.position,
    }
    if axis.name:
        out["name"] = axis.name
    # absent bounds let the engine auto-scale
    if axis.min is not None:
        out["min"] = axis.min
    if axis.max is not None:
        out["max"] = axis.max
    return out


def compile_axes(axes: List[Axis]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Split axes by orientation, keeping declaration order within each side.
    """
    x_axes = [compile_axis(a) for a in axes if a.is_horizontal()]
    y_axes = [compile_axis(a) for a in axes if a.is_vertical()]
    return x_axes, y_axes


def compile_polar(systems: List[str]) -> Dict[str, List[Dict[str, Any]]]:
    """
    One polar component per used system, with its angle/radius axes bound by polarIndex.
    """
    if not systems:
        return {}

    out: Dict[str, List[Dict[str, Any]]] = {"polar": [], "angleAxis": [], "radiusAxis": []}
    for idx, cs in enumerate(systems):
        angle_type, radius_type = _POLAR_AXIS_TYPES[cs]
        out["polar"].append({"id": cs})
        out["angleAxis"].append({"type": angle_type, "polarIndex": idx})
        out["radiusAxis"].append({"type": radius_type, "polarIndex": idx})
    return out


def legend_items(legend: Legend, marks: List[Mark]) -> List[str]:
    """
    Explicit items win. Otherwise mark names in mark order, de-duplicated,
    skipping marks without a name.
    """
    if legend.items:
        return list(legend.items)

    items: List[str] = []
    for mark in marks:
        if mark.name and mark.name not in items:
            items.append(mark.name)
    return items


def compile_legend(legend: Legend, marks: List[Mark]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if legend.show is not None:
        out["show"] = legend.show
    if legend.position:
        edge, value, orient = _LEGEND_PLACEMENT[legend.position]
        out[edge] = value
        out["orient"] = orient
    out["data"] = legend_items(legend, marks)
    return out


def compile_tooltip(tooltip: Tooltip) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if tooltip.show is not None:
        out["show"] = tooltip.show
    if tooltip.trigger:
        out["trigger"] = tooltip.trigger
    return out


def compile_grid(grid: Grid) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for field in ("left", "right", "top", "bottom", "width", "height"):
        value = getattr(grid, field)
        if value:
            out[field] = value
    if grid.contain_label is not None:
        out["containLabel"] = grid.contain_label
    return out
