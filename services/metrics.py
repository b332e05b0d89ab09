"""
metrics.py — Build metrics for the asset stats endpoint.
"""
import time
import logging
from collections import defaultdict, deque
from threading import Lock

logger = logging.getLogger("assetpipe")


class BuildMetrics:
    """Thread-safe in-memory metrics tracker for asset builds."""

    def __init__(self, max_history=1000):
        self._lock = Lock()
        self._builds = 0
        self._failures = 0
        self._coalesced = 0
        self._build_times = deque(maxlen=max_history)
        self._asset_counts = defaultdict(int)
        self._hourly = defaultdict(int)

    def record_build(self, key, build_time_ms, ok):
        """Record a finished physical build."""
        with self._lock:
            self._builds += 1
            if not ok:
                self._failures += 1
            self._build_times.append(build_time_ms)
            self._asset_counts[key] += 1
            self._hourly[time.strftime("%H")] += 1

    def record_coalesced(self):
        """Record a request that joined a build already in flight."""
        with self._lock:
            self._coalesced += 1

    def get_dashboard(self):
        """Return a metrics summary."""
        with self._lock:
            avg_bt = 0.0
            if self._build_times:
                avg_bt = sum(self._build_times) / len(self._build_times)

            top_assets = sorted(self._asset_counts.items(),
                                key=lambda x: -x[1])[:10]

            return {
                "total_builds": self._builds,
                "failed_builds": self._failures,
                "coalesced_requests": self._coalesced,
                "avg_build_time_ms": round(avg_bt, 2),
                "most_built_assets": [
                    {"asset": a, "count": c} for a, c in top_assets
                ],
                "hourly_distribution": dict(self._hourly),
            }
