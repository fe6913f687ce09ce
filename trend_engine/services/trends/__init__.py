"""
Trend analytics services.

- random_stream: seeded outcome generator
- synthesizer: reconstructed game synthesis
- aggregator: time-window aggregation and roll-up
- matcher: live game matching
- engine: the TrendEngine query surface
"""
from trend_engine.services.trends.cache import AnalysisCache, CacheEntry, is_stale
from trend_engine.services.trends.engine import EngineOptions, TrendEngine

__all__ = ["AnalysisCache", "CacheEntry", "EngineOptions", "TrendEngine", "is_stale"]
