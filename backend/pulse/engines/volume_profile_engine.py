"""
Market Pulse — Volume Profile Engine

Price-at-volume histogram. Buckets the traded price range into equal bins,
spreads each candle's volume over the bins its high–low range overlaps, and
identifies:
- **POC** (Point of Control): price level with the highest volume
- **Value Area High / Low**: range of the busiest levels that together hold
  `value_area_pct` of total volume
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import structlog

from pulse.config import Settings, get_settings
from pulse.models import OHLCV, VolumeLevel, VolumeProfile
from pulse.observability import traced
from pulse.utils.validators import validate_fraction, validate_window

log = structlog.get_logger(__name__)

MIN_CANDLE_RANGE = 0.001


class VolumeProfileEngine:
    """Volume-at-price analysis."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @traced("volume_profile_engine.compute", tags=["volume"])
    def compute(
        self,
        bars: Sequence[OHLCV],
        bins: Optional[int] = None,
        value_area_pct: Optional[float] = None,
    ) -> Optional[VolumeProfile]:
        """Compute the volume profile for `bars`. None when there are no bars.

        Args:
            bars: OHLCV bar list.
            bins: Number of price buckets (default from settings, 20).
            value_area_pct: Share of volume the value area must hold (default 0.70).
        """
        bins = validate_window(self.settings.volume_profile_bins if bins is None else bins, "bins")
        value_area_pct = validate_fraction(
            self.settings.value_area_pct if value_area_pct is None else value_area_pct, "value_area_pct"
        )

        if not bars:
            log.debug("volume_profile.insufficient_data", bars=0)
            return None

        price_min = min(b.low for b in bars)
        price_max = max(b.high for b in bars)
        price_range = price_max - price_min

        if price_range <= 0:
            # Every candle traded at one price: a single level holds everything
            bins = 1

        bin_size = price_range / bins
        buy = np.zeros(bins)
        sell = np.zeros(bins)

        for bar in bars:
            volume = bar.volume or 1
            is_buy = bar.close >= bar.open

            if price_range <= 0:
                (buy if is_buy else sell)[0] += volume
                continue

            candle_range = max(bar.high - bar.low, MIN_CANDLE_RANGE)
            for i in range(bins):
                bin_low = price_min + i * bin_size
                bin_high = bin_low + bin_size
                overlap = min(bar.high, bin_high) - max(bar.low, bin_low)
                if overlap > 0:
                    (buy if is_buy else sell)[i] += volume * overlap / candle_range

        totals = buy + sell
        max_volume = float(totals.max())
        levels = [
            VolumeLevel(
                price=price_min + (i + 0.5) * bin_size,
                volume=float(totals[i]),
                buy_volume=float(buy[i]),
                sell_volume=float(sell[i]),
                percentage=float(totals[i]) / max_volume * 100 if max_volume > 0 else 0.0,
                is_buy=bool(buy[i] > sell[i]),
            )
            for i in range(bins)
        ]

        # POC: first level with the highest volume
        poc = levels[int(np.argmax(totals))]

        # Value Area: busiest levels until the target share is reached
        total_volume = float(totals.sum())
        target = total_volume * value_area_pct
        accumulated = 0.0
        value_prices: list[float] = []
        for level in sorted(levels, key=lambda lv: lv.volume, reverse=True):
            if accumulated >= target:
                break
            value_prices.append(level.price)
            accumulated += level.volume

        if not value_prices:
            value_prices = [poc.price]

        log.debug(
            "volume_profile.computed",
            bars=len(bars),
            bins=bins,
            poc=round(poc.price, 4),
            total_volume=total_volume,
        )
        return VolumeProfile(
            levels=levels,
            poc=poc,
            value_area_high=max(value_prices),
            value_area_low=min(value_prices),
            total_volume=total_volume,
        )
