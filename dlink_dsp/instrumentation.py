"""
Performance Instrumentation for D-Link DSP Client
=================================================

Records timings for every HNAP request, both login phases and every
reauthentication triggered by a failed call.

"""

import logging
import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from .models import TimingMetrics

logger = logging.getLogger("dlink-dsp")

DEFAULT_MAX_HISTORY = 1000


class PerformanceInstrumentation:
    """
    Timing instrumentation for the HNAP client.

    Tracks:
    - Individual HNAP request timing (``hnap_request_<Method>``)
    - Login phases (``login_challenge``, ``login_authenticate``, ``login_complete``)
    - Reauthentications performed by the retry policy (``reauthentication``)

    Only the latest ``max_history`` timings are kept for the summary;
    ``recorded_operations`` counts every timing ever recorded.
    """

    def __init__(self, max_history: int = DEFAULT_MAX_HISTORY) -> None:
        self.timing_metrics: Deque[TimingMetrics] = deque(maxlen=max_history)
        self.session_start_time = time.time()
        self.recorded_operations = 0

    def start_timer(self, operation: str) -> float:
        """Start timing an operation."""
        return time.time()

    def record_timing(
        self,
        operation: str,
        start_time: float,
        success: bool = True,
        error_type: Optional[str] = None,
        retry_count: int = 0,
        http_status: Optional[int] = None,
        response_size: int = 0,
    ) -> TimingMetrics:
        """Record timing metrics for an operation."""
        end_time = time.time()
        duration = end_time - start_time

        metric = TimingMetrics(
            operation=operation,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            success=success,
            error_type=error_type,
            retry_count=retry_count,
            http_status=http_status,
            response_size=response_size,
        )

        self.timing_metrics.append(metric)
        self.recorded_operations += 1

        logger.debug(f"📊 {operation}: {duration * 1000:.1f}ms (success: {success})")
        return metric

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary for the session."""
        if not self.timing_metrics:
            return {"error": "No timing metrics recorded"}

        total_session_time = time.time() - self.session_start_time

        by_operation: Dict[str, List[TimingMetrics]] = {}
        for metric in self.timing_metrics:
            by_operation.setdefault(metric.operation, []).append(metric)

        operation_stats = {}
        for operation, metrics in by_operation.items():
            durations = [m.duration for m in metrics]
            operation_stats[operation] = {
                "count": len(durations),
                "total_time": sum(durations),
                "avg_time": sum(durations) / len(durations),
                "min_time": min(durations),
                "max_time": max(durations),
                "success_rate": len([m for m in metrics if m.success]) / len(metrics),
            }

        all_durations = sorted(m.duration for m in self.timing_metrics if m.success)
        if all_durations:
            n = len(all_durations)
            percentiles = {
                "p50": all_durations[n // 2],
                "p90": all_durations[int(n * 0.9)],
                "p99": all_durations[int(n * 0.99)],
            }
        else:
            percentiles = {"p50": 0, "p90": 0, "p99": 0}

        reauthentications = len([m for m in self.timing_metrics if m.operation == "reauthentication"])

        return {
            "session_metrics": {
                "total_session_time": total_session_time,
                "total_operations": len(self.timing_metrics),
                "recorded_operations": self.recorded_operations,
                "successful_operations": len([m for m in self.timing_metrics if m.success]),
                "failed_operations": len([m for m in self.timing_metrics if not m.success]),
                "reauthentications": reauthentications,
            },
            "operation_breakdown": operation_stats,
            "response_time_percentiles": percentiles,
            "performance_insights": self._generate_performance_insights(operation_stats, reauthentications),
        }

    def _generate_performance_insights(self, operation_stats: Dict[str, Any], reauthentications: int) -> List[str]:
        """Generate performance insights based on metrics."""
        insights = []

        login_stats = operation_stats.get("login_complete")
        if login_stats:
            if login_stats["avg_time"] > 2.0:
                insights.append(f"Login taking {login_stats['avg_time']:.2f}s - socket may be overloaded")
            if login_stats["success_rate"] < 1.0:
                insights.append("Some logins failed - check the device PIN")

        request_ops = [op for op in operation_stats if op.startswith("hnap_request_")]
        if request_ops and reauthentications:
            total_requests = sum(operation_stats[op]["count"] for op in request_ops)
            insights.append(f"{reauthentications} reauthentication(s) for {total_requests} request(s)")

        total_ops = len(self.timing_metrics)
        failed_ops = len([m for m in self.timing_metrics if not m.success])
        if total_ops > 0:
            error_rate = failed_ops / total_ops
            if error_rate > 0.1:
                insights.append(f"High error rate: {error_rate * 100:.1f}% - check socket connectivity")
            elif error_rate == 0:
                insights.append("Perfect reliability: 0% error rate")

        return insights


__all__ = ["PerformanceInstrumentation"]
