"""Engine configuration (bucketing, ranking and stacking policy).

Held in memory only. ``to_dict()`` / ``from_dict()`` give a JSON-friendly
form so an embedding application can store it with its own settings.

from_dict() is tolerant:
- unknown keys are ignored with a warning
- missing keys use defaults
- invalid values fall back to the default with a warning
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from listenstream.engine.algorithms.stack import STACK_OFFSETS, STACK_ORDERS
from listenstream.engine.bucketing import WEEKDAYS, Granularity, parse_weekday
from listenstream.engine.conventions import CATEGORY_FIELDS
from listenstream.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EngineConfig:
    """Aggregation settings shared by every chart.

    Attributes:
        granularity: Bucket width for the stream ("day", "week", "month").
        week_start: Weekday weeks align to.
        category_field: Event attribute the stream is split by.
        top_k: Number of categories ranked and stacked. None = all.
        order: Stack order ("inside_out" or "none").
        offset: Stack offset ("wiggle", "silhouette" or "none").
    """

    granularity: str = "week"
    week_start: str = "monday"
    category_field: str = "artist"
    top_k: Optional[int] = 10
    order: str = "inside_out"
    offset: str = "wiggle"

    def __post_init__(self) -> None:
        Granularity(self.granularity)
        parse_weekday(self.week_start)
        if self.category_field not in CATEGORY_FIELDS:
            raise ValueError(f"category_field must be one of {CATEGORY_FIELDS}, got {self.category_field!r}")
        if self.top_k is not None and self.top_k < 0:
            raise ValueError(f"top_k must be >= 0 or None, got {self.top_k}")
        if self.order not in STACK_ORDERS:
            raise ValueError(f"order must be one of {STACK_ORDERS}, got {self.order!r}")
        if self.offset not in STACK_OFFSETS:
            raise ValueError(f"offset must be one of {STACK_OFFSETS}, got {self.offset!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "granularity": self.granularity,
            "week_start": self.week_start,
            "category_field": self.category_field,
            "top_k": self.top_k,
            "order": self.order,
            "offset": self.offset,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        defaults = cls()
        known = set(defaults.to_dict())
        for key in data:
            if key not in known:
                logger.warning(f"Unknown key '{key}' in engine config, ignoring")

        def pick(key: str, allowed: tuple[str, ...]) -> str:
            value = str(data.get(key, getattr(defaults, key))).lower()
            if value not in allowed:
                logger.warning(f"Invalid {key} {value!r} in engine config, using {getattr(defaults, key)!r}")
                return getattr(defaults, key)
            return value

        top_k: Optional[int] = defaults.top_k
        if "top_k" in data:
            raw = data["top_k"]
            if raw is None:
                top_k = None
            else:
                try:
                    top_k = max(0, int(raw))
                except (TypeError, ValueError):
                    logger.warning(f"Invalid top_k {raw!r} in engine config, using {defaults.top_k}")

        return cls(
            granularity=pick("granularity", tuple(g.value for g in Granularity)),
            week_start=pick("week_start", WEEKDAYS),
            category_field=pick("category_field", CATEGORY_FIELDS),
            top_k=top_k,
            order=pick("order", STACK_ORDERS),
            offset=pick("offset", STACK_OFFSETS),
        )
