"""
Thread-safe in-memory metrics for the media agent.

Tracks:
  - Traffic: request counters (requests.prompts, requests.render)
  - Stage outcomes: stage.{prompts,image,video}.{ok,failed}
  - Latency: per-stage duration samples
  - Errors: bounded log of recent failures for debugging

All data is ephemeral (resets on restart).
"""

import threading
import time
from collections import defaultdict
from typing import Dict, List

_lock = threading.Lock()

_counters: Dict[str, int] = defaultdict(int)

# ── Latency samples (last 100 per stage) ─────────────────────────────────────
_latency_samples: Dict[str, List[float]] = defaultdict(list)
MAX_SAMPLES = 100

_gauges: Dict[str, float] = defaultdict(float)

# ── Error log (last 50) ──────────────────────────────────────────────────────
_recent_errors: List[dict] = []
MAX_ERRORS = 50


def inc_counter(name: str, amount: int = 1):
    """Increment a counter (e.g. 'requests.render', 'stage.video.failed')."""
    with _lock:
        _counters[name] += amount


def record_latency(stage: str, duration_ms: float):
    """Record a latency sample in milliseconds."""
    with _lock:
        samples = _latency_samples[stage]
        samples.append(duration_ms)
        if len(samples) > MAX_SAMPLES:
            _latency_samples[stage] = samples[-MAX_SAMPLES:]


def set_gauge(name: str, value: float):
    with _lock:
        _gauges[name] = value


def record_error(stage: str, error_type: str, message: str):
    """Record a stage failure."""
    with _lock:
        _recent_errors.append({
            "timestamp": time.time(),
            "stage": stage,
            "error_type": error_type,
            "message": message[:300],
        })
        if len(_recent_errors) > MAX_ERRORS:
            _recent_errors.pop(0)


def record_stage(stage: str, started: float, error: BaseException | None = None):
    """Outcome counter + latency for one stage run that began at `started` (perf_counter)."""
    record_latency(stage, (time.perf_counter() - started) * 1000)
    if error is None:
        inc_counter(f"stage.{stage}.ok")
    else:
        inc_counter(f"stage.{stage}.failed")
        record_error(stage, type(error).__name__, str(error))


def get_snapshot() -> dict:
    """Snapshot of everything collected, for the /metrics endpoint."""
    now = time.time()

    with _lock:
        latency_stats = {}
        for stage, samples in _latency_samples.items():
            if not samples:
                continue
            sorted_s = sorted(samples)
            n = len(sorted_s)
            latency_stats[stage] = {
                "p50": sorted_s[n // 2],
                "p95": sorted_s[int(n * 0.95)] if n >= 20 else sorted_s[-1],
                "avg": sum(sorted_s) / n,
                "count": n,
            }

        return {
            "timestamp": now,
            "counters": dict(_counters),
            "gauges": dict(_gauges),
            "latency": latency_stats,
            "recent_errors": list(_recent_errors[-10:]),
            "uptime_seconds": now - _gauges.get("start_time", now),
        }


def reset():
    """Drop all collected data."""
    with _lock:
        _counters.clear()
        _latency_samples.clear()
        _gauges.clear()
        _recent_errors.clear()
