"""
================================================================================
DarkMahou v1.0 - Search Package
================================================================================
Components:
  - page_resolver.py - picks the best detail page from a search results page
  - cache.py         - TTL/FIFO result cache with performance counters
  - translator.py    - English -> Portuguese query rewriting
================================================================================
"""

from .cache import MetricsSnapshot, PerformanceMetrics, ResultCache, get_cache, reset_cache
from .page_resolver import AnimePageResolver
from .translator import PortugueseTranslator

__all__ = [
    'MetricsSnapshot', 'PerformanceMetrics', 'ResultCache', 'get_cache', 'reset_cache',
    'AnimePageResolver', 'PortugueseTranslator',
]
