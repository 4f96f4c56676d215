"""Musical timing: tick conversion, clocks and grid quantization."""

from gyrotone.core.timing.clock import (
    DEFAULT_BPM,
    TICKS_PER_BEAT,
    TICKS_PER_MEASURE,
    Clock,
    ManualClock,
    SystemClock,
    measure_duration,
    seconds_to_ticks,
    ticks_to_seconds,
)
from gyrotone.core.timing.quantize import (
    QuantizeAction,
    QuantizeDecision,
    decide,
    parse_grid_ticks,
    quantize_to_grid,
)

__all__ = [
    "DEFAULT_BPM",
    "TICKS_PER_BEAT",
    "TICKS_PER_MEASURE",
    "Clock",
    "ManualClock",
    "QuantizeAction",
    "QuantizeDecision",
    "SystemClock",
    "decide",
    "measure_duration",
    "parse_grid_ticks",
    "quantize_to_grid",
    "seconds_to_ticks",
    "ticks_to_seconds",
]
