"""Short narrative insights derived from a flow metrics snapshot."""

from typing import List

from .config import (
    LOW_EFFICIENCY_INSIGHT_CEILING,
    MAX_INSIGHTS,
    AnomalyCode,
    AnomalySeverity,
    InsightCode,
    InsightTone,
)
from .models import FlowInsight, FlowMetricsSnapshot

_HIGH_CODES = {
    AnomalyCode.THROUGHPUT_DROP: InsightCode.THROUGHPUT,
    AnomalyCode.VOLATILITY_RISE: InsightCode.VOLATILITY,
}
_MEDIUM_CODES = {
    AnomalyCode.LEAD_TIME_SPIKE: InsightCode.LEAD,
    AnomalyCode.CYCLE_TIME_SPIKE: InsightCode.CYCLE,
}


def build_insights(snapshot: FlowMetricsSnapshot) -> List[FlowInsight]:
    """At most two insights: the top anomaly (or an improving trend) and low efficiency."""
    insights: List[FlowInsight] = []
    top = snapshot.anomalies[0] if snapshot.anomalies else None

    if top is not None and top.severity == AnomalySeverity.HIGH:
        insights.append(FlowInsight(
            tone=InsightTone.DANGER,
            code=_HIGH_CODES.get(top.code, InsightCode.FLOW),
            title="Flow anomaly detected",
            detail=top.message,
        ))
    elif top is not None and top.severity == AnomalySeverity.MEDIUM:
        insights.append(FlowInsight(
            tone=InsightTone.WARNING,
            code=_MEDIUM_CODES.get(top.code, InsightCode.FLOW),
            title="Flow pressure increased",
            detail=top.message,
        ))
    elif snapshot.throughput.delta_pct > 0 and snapshot.trends.lead_time_delta_pct < 0:
        insights.append(FlowInsight(
            tone=InsightTone.INFO,
            code=InsightCode.FLOW,
            title="Flow is improving",
            detail="Throughput is increasing while lead time is decreasing.",
        ))

    efficiency = snapshot.efficiency.efficiency
    if len(insights) < MAX_INSIGHTS and 0 < efficiency < LOW_EFFICIENCY_INSIGHT_CEILING:
        insights.append(FlowInsight(
            tone=InsightTone.WARNING,
            code=InsightCode.EFFICIENCY,
            title="Efficiency remains low",
            detail="Active work is a small share of total lead time.",
        ))

    return insights[:MAX_INSIGHTS]
