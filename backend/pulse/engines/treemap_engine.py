"""
Market Pulse — Treemap Layout Engine

Slice-and-dice partition of a rectangle among weighted heatmap items.

Each item takes ``weight / remaining_weight`` of whatever area is left,
cut along the active axis; the axis flips every ``treemap_flip_every``
items. It is not a squarified (aspect-ratio optimal) layout.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

import structlog

from pulse.config import Settings, get_settings
from pulse.models import TreemapItem, TreemapRect
from pulse.observability import traced
from pulse.utils.validators import validate_window

log = structlog.get_logger(__name__)


class TreemapEngine:
    """Weighted rectangle layout for the market heatmap.

    Usage:
        engine = TreemapEngine()
        rects = engine.layout(items, width=900, height=500)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @staticmethod
    def weight_from_value(value: float) -> float:
        """Compress market-cap disparities: ``log10(max(value, 1))``."""
        return math.log10(max(value, 1))

    @traced("treemap_engine.layout", tags=["treemap"])
    def layout(
        self,
        items: Sequence[TreemapItem],
        width: float,
        height: float,
        flip_every: Optional[int] = None,
    ) -> list[TreemapRect]:
        """Place every item inside a `width` × `height` container.

        Returns [] for no items, a non-positive dimension, a negative item
        weight, or a non-positive total weight.
        """
        flip_every = validate_window(
            self.settings.treemap_flip_every if flip_every is None else flip_every, "flip_every"
        )

        if not items or width <= 0 or height <= 0:
            log.debug("treemap.empty_layout", items=len(items), width=width, height=height)
            return []

        total_weight = sum(item.weight for item in items)
        if total_weight <= 0 or any(item.weight < 0 for item in items):
            log.debug("treemap.invalid_weights", total_weight=total_weight)
            return []

        rects: list[TreemapRect] = []
        x, y = 0.0, 0.0
        remaining_w, remaining_h = float(width), float(height)
        remaining_weight = total_weight
        horizontal = width >= height

        for i, item in enumerate(items):
            ratio = item.weight / remaining_weight if remaining_weight > 0 else 0.0

            if horizontal:
                w, h = remaining_w * ratio, remaining_h
            else:
                w, h = remaining_w, remaining_h * ratio

            rects.append(TreemapRect(
                x=x, y=y, w=w, h=h,
                label=item.label, weight=item.weight,
                metric=item.metric, value=item.value,
            ))

            if horizontal:
                x += w
                remaining_w -= w
            else:
                y += h
                remaining_h -= h

            remaining_weight -= item.weight

            if i % flip_every == flip_every - 1:
                horizontal = not horizontal

        log.debug("treemap.layout_built", items=len(rects), width=width, height=height)
        return rects

    def layout_from_values(
        self,
        records: Iterable[tuple[str, float, float]],
        width: float,
        height: float,
    ) -> list[TreemapRect]:
        """Build items from ``(label, market_cap, change_pct)`` records and lay them out."""
        items = [
            TreemapItem(label=label, weight=self.weight_from_value(value), metric=metric, value=value)
            for label, value, metric in records
        ]
        return self.layout(items, width, height)
