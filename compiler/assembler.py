# chartir/compiler/assembler.py
"""
Public entrypoint: ChartIR -> ECharts option dict.

    option = compile_chart(ir)

Validation runs first and nothing is compiled if it fails. Marks compile
independently (optionally on a thread pool) and are joined back in mark
order, so the output never depends on scheduling.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from compiler.chrome import (
    compile_axes,
    compile_grid,
    compile_legend,
    compile_polar,
    compile_tooltip,
)
from compiler.coercer import ColumnCoercer
from compiler.marks import MarkCompiler, polar_systems
from compiler.validator import validate_chart_ir
from schemas.chart_ir import ChartIR, Mark
from schemas.issues import CoercionError, CompilationCancelled, ReferentialError
from utils.config import CompileOptions

logger = logging.getLogger(__name__)


def compile_chart(
    ir: ChartIR,
    options: Optional[CompileOptions] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[str, Any]:
    """
    Compile `ir` into an ECharts option object.

    Raises:
      ReferentialError: the chart has dangling references / duplicate ids /
        ragged rows (all violations attached, unless fail_fast)
      CoercionError: a referenced number column holds a bad cell
        (only with on_coercion_error="abort")
      CompilationCancelled: cancel_event was set before all marks compiled
    """
    options = options or CompileOptions()

    result = validate_chart_ir(ir, fail_fast=options.fail_fast)
    if not result.is_valid:
        raise ReferentialError(result.violations)

    compiler = MarkCompiler(ir, coercer=ColumnCoercer(ir.datasets))
    series = _compile_marks(compiler, ir.marks, options, cancel_event)

    return assemble_option(ir, series)


def assemble_option(ir: ChartIR, series: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Put compiled series and chrome together. No validation happens here.
    """
    option: Dict[str, Any] = {}

    if ir.title:
        option["title"] = {"text": ir.title}

    if series:
        option["series"] = series

    x_axes, y_axes = compile_axes(ir.axes)
    if x_axes:
        option["xAxis"] = x_axes
    if y_axes:
        option["yAxis"] = y_axes

    option.update(compile_polar(polar_systems(ir.marks)))

    if ir.legend:
        option["legend"] = compile_legend(ir.legend, ir.marks)

    if ir.tooltip:
        option["tooltip"] = compile_tooltip(ir.tooltip)

    if ir.grid:
        option["grid"] = compile_grid(ir.grid)

    return option


# -------------------------
# Mark fan-out
# -------------------------


def _compile_marks(
    compiler: MarkCompiler,
    marks: List[Mark],
    options: CompileOptions,
    cancel_event: Optional[threading.Event],
) -> List[Dict[str, Any]]:
    if options.max_workers > 1 and len(marks) > 1:
        compiled = _compile_parallel(compiler, marks, options, cancel_event)
    else:
        compiled = []
        for done, mark in enumerate(marks):
            if cancel_event is not None and cancel_event.is_set():
                raise CompilationCancelled(done)
            compiled.append(_compile_one(compiler, mark, options))

    return [s for s in compiled if s is not None]


def _compile_parallel(
    compiler: MarkCompiler,
    marks: List[Mark],
    options: CompileOptions,
    cancel_event: Optional[threading.Event],
) -> List[Optional[Dict[str, Any]]]:
    def run(mark: Mark) -> Optional[Dict[str, Any]]:
        if cancel_event is not None and cancel_event.is_set():
            raise CompilationCancelled()
        return _compile_one(compiler, mark, options)

    logger.debug("Compiling %d marks on %d workers", len(marks), options.max_workers)
    with ThreadPoolExecutor(max_workers=options.max_workers) as pool:
        futures = [pool.submit(run, mark) for mark in marks]

        results: List[Optional[Dict[str, Any]]] = []
        for done, fut in enumerate(futures):
            try:
                results.append(fut.result())
            except CompilationCancelled:
                for pending in futures[done:]:
                    pending.cancel()
                raise CompilationCancelled(done) from None
            except CoercionError:
                for pending in futures[done:]:
                    pending.cancel()
                raise
    return results


def _compile_one(
    compiler: MarkCompiler, mark: Mark, options: CompileOptions
) -> Optional[Dict[str, Any]]:
    try:
        return compiler.compile(mark)
    except CoercionError as e:
        if options.on_coercion_error != "skip_mark":
            raise
        logger.warning("Skipping mark %s: %s", mark.id, e)
        return None
