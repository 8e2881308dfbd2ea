"""
Utility functions for lazy pipelines: logging and environment configuration,
a registry of named callbacks, a declarative pipeline builder/runner, and
performance measurement.
"""

import gc
import logging
import os
import sys
import time
import tracemalloc
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from lazy import LazyIterator
from models import OperationSpec, PerformanceInfo, PipelineResult, PipelineSpec

logger = logging.getLogger("lazyiter")


# ---------- Configuration ----------

def get_log_level() -> str:
    """Log level from LAZYITER_LOG_LEVEL (default INFO)."""
    return os.getenv("LAZYITER_LOG_LEVEL", "INFO").upper()


def memory_tracking_enabled() -> bool:
    """LAZYITER_TRACK_MEMORY=0 turns tracemalloc off during measurements."""
    return os.getenv("LAZYITER_TRACK_MEMORY", "1") != "0"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Setup structured logging for lazy pipelines"""
    logging.basicConfig(
        level=level or get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    return logger


# ---------- Function registry ----------

FUNCTION_REGISTRY: Dict[str, Callable] = {}


def register_function(name: str):
    """Decorator registering a callback under ``name`` for declarative pipelines."""
    def decorator(fn):
        if name in FUNCTION_REGISTRY and FUNCTION_REGISTRY[name] is not fn:
            logger.warning(f"Replacing registered function: {name}")
        FUNCTION_REGISTRY[name] = fn
        logger.debug(f"Registered function: {name}")
        return fn
    return decorator


def resolve_function(name: str) -> Callable:
    try:
        return FUNCTION_REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(FUNCTION_REGISTRY)) or "none"
        raise KeyError(f"Unknown function '{name}' (registered: {known})") from None


@register_function("identity")
def identity(x):
    return x


@register_function("double")
def double(x):
    return x * 2


@register_function("square")
def square(x):
    return x * x


@register_function("negate")
def negate(x):
    return -x


@register_function("is_even")
def is_even(x):
    return x % 2 == 0


@register_function("is_odd")
def is_odd(x):
    return x % 2 == 1


@register_function("is_positive")
def is_positive(x):
    return x > 0


# ---------- Declarative pipelines ----------

def _apply_operation(pipeline: LazyIterator, op: OperationSpec) -> LazyIterator:
    if op.type == "map":
        return pipeline.map(resolve_function(op.function))
    elif op.type == "filter":
        return pipeline.filter(resolve_function(op.function))
    elif op.type == "take":
        return pipeline.take(op.count)
    elif op.type == "skip":
        return pipeline.skip(op.count)
    elif op.type == "chunk":
        return pipeline.chunk(op.size)
    elif op.type == "take_while":
        return pipeline.take_while(resolve_function(op.function))
    elif op.type == "skip_while":
        return pipeline.skip_while(resolve_function(op.function))
    elif op.type == "enumerate":
        return pipeline.enumerate()
    elif op.type == "unique":
        key = resolve_function(op.function) if op.function else None
        return pipeline.unique(key)
    raise ValueError(f"Unknown op: {op.type}")


def build_pipeline(source: Iterable, spec: Union[PipelineSpec, Dict[str, Any]]) -> LazyIterator:
    """Compose the operations of ``spec`` over ``source`` without evaluating anything."""
    if not isinstance(spec, PipelineSpec):
        spec = PipelineSpec.model_validate(spec)

    pipeline = LazyIterator(source)
    for op in spec.operations:
        pipeline = _apply_operation(pipeline, op)
    if spec.limit is not None:
        pipeline = pipeline.take(spec.limit)

    logger.debug(f"Built pipeline with {len(spec.operations)} operations (limit={spec.limit})")
    return pipeline


def run_pipeline(source: Iterable, spec: Union[PipelineSpec, Dict[str, Any]],
                 tracker: Optional["PerformanceTracker"] = None) -> PipelineResult:
    """Build ``spec`` over ``source``, run its terminal consumer and report timing.

    Errors raised by callbacks propagate unchanged after being recorded.
    """
    if not isinstance(spec, PipelineSpec):
        spec = PipelineSpec.model_validate(spec)

    pipeline = build_pipeline(source, spec)
    terminal = getattr(pipeline, spec.terminal)
    operation_name = f"pipeline_{spec.terminal}_{len(spec.operations)}_ops"

    result, performance = measure_performance(operation_name, terminal, tracker=tracker)

    logger.info(f"{operation_name} finished in {performance.execution_time_ms:.2f}ms")
    return PipelineResult(
        result=result,
        terminal=spec.terminal,
        operations_applied=[op.type for op in spec.operations],
        performance=performance
    )


# ---------- Performance measurement ----------

class PerformanceTracker:
    """Accumulates PerformanceInfo records and summarises them."""

    def __init__(self):
        self.operations: List[PerformanceInfo] = []

    def record(self, info: PerformanceInfo) -> None:
        self.operations.append(info)

    def summary(self) -> Dict[str, Any]:
        """Get summary of all performance metrics"""
        count = len(self.operations)
        total_time_ms = sum(op.execution_time_ms for op in self.operations)
        total_memory_mb = sum(op.memory_usage_mb or 0.0 for op in self.operations)
        return {
            "total_operations": count,
            "failed_operations": sum(1 for op in self.operations if not op.success),
            "total_time_ms": total_time_ms,
            "total_memory_mb": total_memory_mb,
            "avg_time_ms": total_time_ms / count if count else 0.0,
            "avg_memory_mb": total_memory_mb / count if count else 0.0
        }

    def clear(self) -> None:
        self.operations = []


performance_tracker = PerformanceTracker()


def measure_performance(operation_name: str, func: Callable, *args,
                        tracker: Optional[PerformanceTracker] = None,
                        **kwargs) -> Tuple[Any, PerformanceInfo]:
    """Call ``func`` and return its result with a PerformanceInfo record.

    Peak memory is traced with tracemalloc unless LAZYITER_TRACK_MEMORY=0 or
    tracing is already active. Exceptions are recorded, logged and re-raised.
    """
    tracker = tracker if tracker is not None else performance_tracker
    owns_tracing = memory_tracking_enabled() and not tracemalloc.is_tracing()
    if owns_tracing:
        gc.collect()
        tracemalloc.start()

    start_time = time.perf_counter()

    def _finish():
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        memory_mb = None
        if owns_tracing:
            memory_mb = _peak_memory_mb()
            tracemalloc.stop()
        return elapsed_ms, memory_mb

    try:
        result = func(*args, **kwargs)
    except Exception as e:
        elapsed_ms, memory_mb = _finish()
        tracker.record(PerformanceInfo(
            operation=operation_name,
            execution_time_ms=elapsed_ms,
            memory_usage_mb=memory_mb,
            success=False,
            error=str(e)
        ))
        logger.error(f"{operation_name} failed after {elapsed_ms:.2f}ms: {e}", exc_info=True)
        raise

    elapsed_ms, memory_mb = _finish()
    info = PerformanceInfo(
        operation=operation_name,
        execution_time_ms=elapsed_ms,
        memory_usage_mb=memory_mb
    )
    tracker.record(info)
    return result, info


def _peak_memory_mb() -> float:
    _, peak = tracemalloc.get_traced_memory()
    return peak / 1024 / 1024
