"""
Chart formatter module for the chart advisor.

Formatting strategies turn a transformed ChartPayload into the response
data map. A strategy handles a payload only when the chart type tag matches
and the payload carries the keys its chart needs.
"""

import logging
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple

from chart_advisor.models.analysis import (
    CHART_TYPE_BAR,
    CHART_TYPE_BUBBLE,
    CHART_TYPE_LINE,
    CHART_TYPE_MULTI_LINE,
    CHART_TYPE_PIE,
    CHART_TYPE_TABLE,
    ChartPayload,
)

logger = logging.getLogger(__name__)


class ChartStrategy(NamedTuple):
    """Dispatch table entry: chart type, priority and the payload keys it requires."""
    chart_type: str
    priority: int
    required_keys: Tuple[str, ...]
    stamp_chart_type: bool = True

    def can_handle(self, payload: ChartPayload) -> bool:
        return payload.chart_type == self.chart_type and payload.has_keys(*self.required_keys)

    def format(self, payload: ChartPayload) -> Dict[str, Any]:
        """Copy the payload data and stamp the chart type (tables are not stamped)."""
        logger.debug(f"Formatting {self.chart_type} from transformed data")
        formatted = dict(payload.data)
        if self.stamp_chart_type:
            formatted["chartType"] = self.chart_type
        return formatted


# Dispatch table, highest priority first
STRATEGIES = (
    ChartStrategy(CHART_TYPE_PIE, 50, ("labels", "values")),
    ChartStrategy(CHART_TYPE_MULTI_LINE, 45, ("series",)),
    ChartStrategy(CHART_TYPE_LINE, 40, ("x", "y")),
    ChartStrategy(CHART_TYPE_BAR, 30, ("x", "y")),
    ChartStrategy(CHART_TYPE_BUBBLE, 20, ("x", "y", "sizes")),
    ChartStrategy(CHART_TYPE_TABLE, 10, (), stamp_chart_type=False),
)


def select_strategy(payload: ChartPayload,
                    preferred_chart_type: Optional[str] = None,
                    strategies: Sequence[ChartStrategy] = STRATEGIES) -> ChartStrategy:
    """
    Pick the formatting strategy for a transformed payload.

    Args:
        payload: Transformed chart payload
        preferred_chart_type: Chart type to try first (optional)
        strategies: Dispatch table (defaults to STRATEGIES)

    Returns:
        The selected ChartStrategy

    Raises:
        RuntimeError: If no table strategy is registered
    """
    ordered = sorted(strategies, key=lambda strategy: strategy.priority, reverse=True)

    if preferred_chart_type:
        preferred = preferred_chart_type.lower()
        for strategy in ordered:
            if strategy.chart_type == preferred and strategy.can_handle(payload):
                logger.debug(f"Selected preferred strategy: chartType={strategy.chart_type}, "
                             f"priority={strategy.priority}")
                return strategy

    for strategy in ordered:
        if strategy.can_handle(payload):
            logger.debug(f"Selected strategy: chartType={strategy.chart_type}, priority={strategy.priority}")
            return strategy

    for strategy in ordered:
        if strategy.chart_type == CHART_TYPE_TABLE:
            logger.warning(f"No strategy handles {payload.chart_type} payload, using table fallback")
            return strategy

    raise RuntimeError("Table strategy not found")
