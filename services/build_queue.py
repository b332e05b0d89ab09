"""
build_queue.py — Single-flight build queue using ThreadPoolExecutor.

At most one build runs per key (the canonical, un-hashed asset identifier).
Callers arriving while that build is in flight join it instead of starting
another one, and every caller sees the same result or exception.

Usage:
    from services.build_queue import BuildQueue
    bq = BuildQueue()
    future = bq.submit("js/all.js", build_fn, definition)
    future.result()
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from threading import Lock

logger = logging.getLogger("assetpipe")


class BuildQueue:
    """Background build queue that coalesces concurrent builds per key."""

    def __init__(self, max_workers=4, metrics=None):
        self.executor = ThreadPoolExecutor(max_workers=max_workers,
                                           thread_name_prefix="asset-build")
        self.metrics = metrics
        self._pending = {}
        self._builds = {}
        self._lock = Lock()
        logger.info(f"BuildQueue initialised (workers={max_workers})")

    def submit(self, key, func, *args, callback=None):
        """
        Start the build for ``key`` or join the one already running.

        ``callback(error, result)`` is queued behind earlier waiters and
        resumed in arrival order once the build finishes.

        Returns the Future of the physical build.
        """
        with self._lock:
            pending = self._pending.get(key)
            if pending is not None:
                if callback is not None:
                    pending["waiters"].append(callback)
                pending["joined"] += 1
                if self.metrics:
                    self.metrics.record_coalesced()
                logger.debug(f"Build {key} already running, waiting for it")
                return pending["future"]

            pending = {
                "waiters": [callback] if callback is not None else [],
                "joined": 0,
                "submitted_at": time.time(),
                "func_name": getattr(func, "__name__", str(func)),
            }
            self._pending[key] = pending
            pending["future"] = self.executor.submit(self._run_build, key, func, *args)

        logger.info(f"Build {key} submitted: {pending['func_name']}")
        return pending["future"]

    def _run_build(self, key, func, *args):
        """Run one build, then resume its waiters with the outcome."""
        logger.info(f"Build {key} started")
        start = time.time()
        error = result = None
        try:
            result = func(*args)
        except Exception as e:
            error = e
        elapsed = time.time() - start

        with self._lock:
            pending = self._pending.pop(key)
            self._builds[key] = {
                "key": key,
                "status": "failed" if error else "completed",
                "submitted_at": pending["submitted_at"],
                "completed_at": time.time(),
                "elapsed": elapsed,
                "waiters": len(pending["waiters"]) + pending["joined"],
                "error": str(error) if error else None,
            }

        if self.metrics:
            self.metrics.record_build(key, elapsed * 1000, error is None)
        if error:
            logger.error(f"Build {key} failed after {elapsed:.2f}s: {error}")
        else:
            logger.info(f"Build {key} completed in {elapsed:.2f}s")

        for waiter in pending["waiters"]:
            try:
                waiter(error, result)
            except Exception:
                logger.exception(f"Waiter for build {key} raised")

        if error:
            raise error
        return result

    def in_flight(self, key=None):
        """Whether ``key`` (or any key, when omitted) is building."""
        with self._lock:
            if key is None:
                return bool(self._pending)
            return key in self._pending

    def get_status(self, key):
        """Get current status of the build for ``key``."""
        with self._lock:
            pending = self._pending.get(key)
            if pending is not None:
                return {
                    "key": key,
                    "status": "running",
                    "submitted_at": pending["submitted_at"],
                    "waiters": len(pending["waiters"]) + pending["joined"],
                }
            build = self._builds.get(key)
        if not build:
            return {"status": "not_found", "key": key}
        return dict(build)

    def list_builds(self, limit=20):
        """List the most recent builds, running ones first."""
        with self._lock:
            keys = list(self._pending) + sorted(
                (k for k in self._builds if k not in self._pending),
                key=lambda k: self._builds[k]["completed_at"],
                reverse=True,
            )
        return [self.get_status(k) for k in keys[:limit]]

    def shutdown(self, wait=False):
        """Shut down the executor."""
        self.executor.shutdown(wait=wait)
        logger.info("BuildQueue shut down")
