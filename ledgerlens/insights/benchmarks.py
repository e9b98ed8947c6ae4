"""
Industry Benchmarks
Static peer averages the insight rules compare against.
"""

import logging
from typing import Optional

from ledgerlens.config import settings
from ledgerlens.insights.schemas import IndustryBenchmark

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRY = "DEFAULT"

BENCHMARKS: dict[str, list[IndustryBenchmark]] = {
    "Software (SaaS)": [
        IndustryBenchmark(metric="grossProfitMargin", average=75),
        IndustryBenchmark(metric="netProfitMargin", average=15),
        IndustryBenchmark(metric="dso", average=45),
    ],
    "Professional Services": [
        IndustryBenchmark(metric="grossProfitMargin", average=40),
        IndustryBenchmark(metric="netProfitMargin", average=12),
        IndustryBenchmark(metric="dso", average=55),
    ],
    "Retail (E-commerce)": [
        IndustryBenchmark(metric="grossProfitMargin", average=45),
        IndustryBenchmark(metric="netProfitMargin", average=5),
        # Often paid upfront
        IndustryBenchmark(metric="dso", average=10),
    ],
    DEFAULT_INDUSTRY: [
        IndustryBenchmark(metric="grossProfitMargin", average=50),
        IndustryBenchmark(metric="netProfitMargin", average=10),
        IndustryBenchmark(metric="dso", average=50),
    ],
}


class BenchmarkService:
    """Look up industry benchmarks."""
    
    @staticmethod
    def get_benchmarks(industry: Optional[str] = None) -> list[IndustryBenchmark]:
        """
        Benchmarks for an industry, falling back to the DEFAULT set.
        
        Args:
            industry: Industry name (defaults to settings.default_industry)
        """
        industry = industry or settings.default_industry
        if industry not in BENCHMARKS:
            logger.debug("No benchmarks for industry %r, using defaults", industry)
        return list(BENCHMARKS.get(industry, BENCHMARKS[DEFAULT_INDUSTRY]))
    
    @staticmethod
    def get_benchmark(benchmarks: Optional[list[IndustryBenchmark]], metric: str) -> Optional[float]:
        """Average for one metric, or None when absent."""
        for benchmark in benchmarks or []:
            if benchmark.metric == metric:
                return benchmark.average
        return None
