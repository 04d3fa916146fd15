"""
Matching Service - the Matching Orchestrator.

Flow for one matching request:
1. Cache check (skipped on force_refresh): cached results for the candidate
   are hydrated with current Job records and returned
2. Entity fetch: candidate + active jobs; nothing to match → []
3. AI invocation: one batched AI Gateway call; MatchError → [] (silent degradation)
4. Persist: overwrite the candidate's cached match history
5. Hydrate and return, dropping entries whose Job no longer exists

CONCURRENCY:
Runs for the same candidate are serialized in-process by a per-candidate lock,
so a cache read never interleaves with another run's save. Across processes the
cache is last-write-wins.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from zhide.core.errors import MatchError
from zhide.core.logging import get_logger
from zhide.schemas.schemas import JobMatch, MatchResult
from zhide.services.ai_gateway import AIGateway
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)


class MatchingService:
    """
    Coordinates cache lookup, AI invocation and result hydration.
    """

    def __init__(self, storage: StorageAdapter, gateway: AIGateway):
        self.storage = storage
        self.gateway = gateway
        self._locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _candidate_lock(self, candidate_id: str) -> Iterator[None]:
        """Serialize runs for one candidate; the lock is dropped once nobody holds or waits on it."""
        with self._locks_guard:
            lock = self._locks.setdefault(candidate_id, threading.Lock())
            self._waiters[candidate_id] = self._waiters.get(candidate_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                self._waiters[candidate_id] -= 1
                if not self._waiters[candidate_id]:
                    del self._waiters[candidate_id]
                    del self._locks[candidate_id]

    def get_matches(self, candidate_id: str, force_refresh: bool = False) -> List[JobMatch]:
        """
        Get job matches for a candidate, sorted by score descending.

        Args:
            candidate_id: Candidate to match
            force_refresh: Ignore cached results and run the AI again

        Returns:
            Hydrated matches; [] when the candidate is unknown, no job is active,
            or the AI call fails
        """
        with self._candidate_lock(candidate_id):
            if not force_refresh:
                cached = self.storage.get_matches(candidate_id)
                if cached:
                    logger.info("Match cache hit for candidate %s (%d results)", candidate_id, len(cached))
                    return self._hydrate(cached)

            candidate = self.storage.get_candidate(candidate_id)
            jobs = self.storage.list_jobs(active_only=True)
            if candidate is None or not jobs:
                logger.info("Nothing to match for candidate %s", candidate_id)
                return []

            logger.info("Running AI match for candidate %s against %d jobs", candidate_id, len(jobs))
            try:
                results = self.gateway.match_jobs(candidate, jobs)
            except MatchError as e:
                logger.warning("AI matching failed for candidate %s: %s", candidate_id, e.detail)
                return []

            saved = self.storage.save_matches(candidate_id, results)
            return self._hydrate(saved)

    def _hydrate(self, matches: List[MatchResult]) -> List[JobMatch]:
        """Attach the current Job record to each match; drop matches whose job is gone."""
        hydrated = []
        for m in matches:
            job = self.storage.get_job(m.job_id)
            if job is None:
                continue
            hydrated.append(JobMatch(**m.model_dump(), job=job))
        return sorted(hydrated, key=lambda m: m.score, reverse=True)
