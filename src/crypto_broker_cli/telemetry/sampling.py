"""
Sampler selection from OTEL_TRACES_SAMPLER / OTEL_TRACES_SAMPLER_ARG values.

Unknown sampler names never fail: they log a warning and sample everything.
"""

import logging
import math

from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

logger = logging.getLogger(__name__)

ALWAYS_ON_KIND = "always_on"
ALWAYS_OFF_KIND = "always_off"
RATIO_KIND = "traceidratio"
PARENTBASED_ALWAYS_ON_KIND = "parentbased_always_on"
PARENTBASED_ALWAYS_OFF_KIND = "parentbased_always_off"
PARENTBASED_RATIO_KIND = "parentbased_traceidratio"

_ALIASES = {
    "always": ALWAYS_ON_KIND,
    "never": ALWAYS_OFF_KIND,
    "ratio": RATIO_KIND,
}

RATIO_KINDS = frozenset({RATIO_KIND, PARENTBASED_RATIO_KIND})
KNOWN_KINDS = frozenset(
    {
        ALWAYS_ON_KIND,
        ALWAYS_OFF_KIND,
        RATIO_KIND,
        PARENTBASED_ALWAYS_ON_KIND,
        PARENTBASED_ALWAYS_OFF_KIND,
        PARENTBASED_RATIO_KIND,
    }
)


def normalize_sampler_kind(raw: str | None) -> str:
    """Lower-case, trim and resolve aliases; empty means always_on."""
    kind = (raw or "").strip().lower()
    if not kind:
        return ALWAYS_ON_KIND
    return _ALIASES.get(kind, kind)


def parse_sampler_ratio(raw: str | None) -> float:
    """Parse a sampling ratio in [0.0, 1.0]; anything else falls back to 1.0."""
    if raw is None or not raw.strip():
        return 1.0
    try:
        ratio = float(raw.strip())
    except ValueError:
        return 1.0
    if math.isnan(ratio) or ratio < 0.0 or ratio > 1.0:
        return 1.0
    return ratio


def resolve_sampler(kind: str, ratio: float = 1.0) -> Sampler:
    """Return the SDK sampler for a normalized kind."""
    if kind == ALWAYS_ON_KIND:
        return ALWAYS_ON
    if kind == ALWAYS_OFF_KIND:
        return ALWAYS_OFF
    if kind == RATIO_KIND:
        return TraceIdRatioBased(ratio)
    if kind == PARENTBASED_ALWAYS_ON_KIND:
        return ParentBased(root=ALWAYS_ON)
    if kind == PARENTBASED_ALWAYS_OFF_KIND:
        return ParentBased(root=ALWAYS_OFF)
    if kind == PARENTBASED_RATIO_KIND:
        return ParentBased(root=TraceIdRatioBased(ratio))
    logger.warning("Unknown OTEL_TRACES_SAMPLER value %r, using always_on", kind)
    return ALWAYS_ON
