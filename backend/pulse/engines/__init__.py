# Signal engines: pure, stateless, safe to share across threads
from pulse.engines.correlation_engine import CorrelationEngine
from pulse.engines.divergence_engine import DivergenceEngine
from pulse.engines.indicator_engine import BollingerResult, IndicatorEngine, MACDResult
from pulse.engines.pattern_engine import PatternEngine
from pulse.engines.timeframe_engine import TimeframeEngine
from pulse.engines.treemap_engine import TreemapEngine
from pulse.engines.volume_profile_engine import VolumeProfileEngine

__all__ = [
    "BollingerResult",
    "CorrelationEngine",
    "DivergenceEngine",
    "IndicatorEngine",
    "MACDResult",
    "PatternEngine",
    "TimeframeEngine",
    "TreemapEngine",
    "VolumeProfileEngine",
]
