"""
Storage Service - the Storage Adapter that owns all persisted state.

Two implementations of one interface:
1. MongoStorage    - MongoDB collections, one document per entity
2. InMemoryStorage - process-local dicts, for development and tests

Rules shared by both:
- Every read returns a copy; callers never hold a reference into the store
- Upsert by id is idempotent: re-saving an id replaces the record in place
- save_matches overwrites the candidate's cached list wholesale (last write wins)
- At most one match per (candidate, job) pair
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from zhide.core.config import Settings
from zhide.core.errors import ValidationError
from zhide.core.logging import get_logger
from zhide.db.mongodb import (
    COLLECTIONS,
    create_mongo_client,
    get_mongo_db,
    init_mongo_indexes,
    test_mongo_connection,
)
from zhide.schemas.schemas import Candidate, Job, MatchResult, Session, User, utcnow

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def dedupe_matches(candidate_id: str, matches: List[MatchResult]) -> List[MatchResult]:
    """Keep the first result per job and stamp every entry with candidate_id."""
    seen = set()
    unique = []
    for m in matches:
        if m.job_id in seen:
            continue
        seen.add(m.job_id)
        unique.append(m.model_copy(update={"candidate_id": candidate_id}, deep=True))
    return unique


def _sort_jobs(jobs: List[Job]) -> List[Job]:
    return sorted(jobs, key=lambda j: j.post_date, reverse=True)


def _sort_candidates(candidates: List[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: c.updated_at or _EPOCH, reverse=True)


# ============================================================
# INTERFACE
# ============================================================

class StorageAdapter(ABC):
    """Document store keyed by entity id."""

    def init(self) -> None:
        """Prepare the backend (indexes etc.)."""

    def ping(self) -> bool:
        return True

    # Sessions
    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]: ...

    @abstractmethod
    def set_session(self, session: Session) -> None: ...

    @abstractmethod
    def delete_session(self, session_id: str) -> bool: ...

    # Users
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def save_user(self, user: User) -> User:
        """Raises ValidationError when another user holds the email."""

    # Candidates
    @abstractmethod
    def list_candidates(self) -> List[Candidate]: ...

    @abstractmethod
    def get_candidate(self, candidate_id: str) -> Optional[Candidate]: ...

    @abstractmethod
    def get_candidate_by_user(self, user_id: str) -> Optional[Candidate]: ...

    @abstractmethod
    def save_candidate(self, candidate: Candidate) -> Candidate: ...

    @abstractmethod
    def delete_candidate(self, candidate_id: str) -> bool: ...

    # Jobs
    @abstractmethod
    def list_jobs(self, active_only: bool = False) -> List[Job]: ...

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]: ...

    @abstractmethod
    def save_job(self, job: Job) -> Job: ...

    @abstractmethod
    def delete_job(self, job_id: str) -> bool: ...

    # Match history
    @abstractmethod
    def get_matches(self, candidate_id: str) -> List[MatchResult]: ...

    @abstractmethod
    def save_matches(self, candidate_id: str, matches: List[MatchResult]) -> List[MatchResult]: ...


# ============================================================
# MONGODB
# ============================================================

def to_doc(model: BaseModel) -> dict:
    """Convert a record to a MongoDB document keyed by its id."""
    doc = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in model.model_dump(mode="python").items()
    }
    if "id" in doc:
        doc["_id"] = doc["id"]
    return doc


def from_doc(model_cls: Type[ModelT], doc: Optional[dict]) -> Optional[ModelT]:
    """Convert a MongoDB document back to a record."""
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return model_cls.model_validate(doc)


class MongoStorage(StorageAdapter):
    """
    One collection per entity; the entity id is the document _id.
    Match history is one document per candidate holding the full list.
    """

    def __init__(self, client: MongoClient, db: Database):
        self.client = client
        self.db = db
        self.users: Collection = self.db[COLLECTIONS["users"]]
        self.sessions: Collection = self.db[COLLECTIONS["sessions"]]
        self.candidates: Collection = self.db[COLLECTIONS["candidates"]]
        self.jobs: Collection = self.db[COLLECTIONS["jobs"]]
        self.match_history: Collection = self.db[COLLECTIONS["match_history"]]

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoStorage":
        client = create_mongo_client(settings)
        return cls(client, get_mongo_db(client, settings))

    def init(self) -> None:
        init_mongo_indexes(self.db)

    def ping(self) -> bool:
        return test_mongo_connection(self.client)

    # Sessions
    def get_session(self, session_id: str) -> Optional[Session]:
        return from_doc(Session, self.sessions.find_one({"_id": session_id}))

    def set_session(self, session: Session) -> None:
        self.sessions.replace_one({"_id": session.id}, to_doc(session), upsert=True)

    def delete_session(self, session_id: str) -> bool:
        return self.sessions.delete_one({"_id": session_id}).deleted_count > 0

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        return from_doc(User, self.users.find_one({"_id": user_id}))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return from_doc(User, self.users.find_one({"email": email.lower()}))

    def save_user(self, user: User) -> User:
        user = user.model_copy(update={"email": user.email.lower()})
        try:
            self.users.replace_one({"_id": user.id}, to_doc(user), upsert=True)
        except DuplicateKeyError:
            raise ValidationError("User already exists")
        return user

    # Candidates
    def list_candidates(self) -> List[Candidate]:
        cursor = self.candidates.find().sort("updated_at", DESCENDING)
        return [from_doc(Candidate, doc) for doc in cursor]

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return from_doc(Candidate, self.candidates.find_one({"_id": candidate_id}))

    def get_candidate_by_user(self, user_id: str) -> Optional[Candidate]:
        return from_doc(Candidate, self.candidates.find_one({"user_id": user_id}))

    def save_candidate(self, candidate: Candidate) -> Candidate:
        candidate = candidate.model_copy(update={"updated_at": utcnow()}, deep=True)
        self.candidates.replace_one({"_id": candidate.id}, to_doc(candidate), upsert=True)
        return candidate

    def delete_candidate(self, candidate_id: str) -> bool:
        result = self.candidates.delete_one({"_id": candidate_id})
        self.match_history.delete_one({"_id": candidate_id})
        return result.deleted_count > 0

    # Jobs
    def list_jobs(self, active_only: bool = False) -> List[Job]:
        query = {"active": True} if active_only else {}
        cursor = self.jobs.find(query).sort("post_date", DESCENDING)
        return [from_doc(Job, doc) for doc in cursor]

    def get_job(self, job_id: str) -> Optional[Job]:
        return from_doc(Job, self.jobs.find_one({"_id": job_id}))

    def save_job(self, job: Job) -> Job:
        self.jobs.replace_one({"_id": job.id}, to_doc(job), upsert=True)
        return job.model_copy(deep=True)

    def delete_job(self, job_id: str) -> bool:
        return self.jobs.delete_one({"_id": job_id}).deleted_count > 0

    # Match history
    def get_matches(self, candidate_id: str) -> List[MatchResult]:
        doc = self.match_history.find_one({"_id": candidate_id})
        if not doc:
            return []
        return [MatchResult.model_validate(m) for m in doc.get("matches", [])]

    def save_matches(self, candidate_id: str, matches: List[MatchResult]) -> List[MatchResult]:
        unique = dedupe_matches(candidate_id, matches)
        self.match_history.replace_one(
            {"_id": candidate_id},
            {
                "_id": candidate_id,
                "matches": [m.model_dump(mode="python") for m in unique],
                "updated_at": utcnow(),
            },
            upsert=True
        )
        return unique


# ============================================================
# IN-MEMORY
# ============================================================

class InMemoryStorage(StorageAdapter):
    """Process-local store. Thread-safe; state is lost on restart."""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._sessions: Dict[str, Session] = {}
        self._candidates: Dict[str, Candidate] = {}
        self._jobs: Dict[str, Job] = {}
        self._matches: Dict[str, List[MatchResult]] = {}

    # Sessions
    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session else None

    def set_session(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy(deep=True)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy(deep=True)
        return None

    def save_user(self, user: User) -> User:
        user = user.model_copy(update={"email": user.email.lower()}, deep=True)
        with self._lock:
            if any(u.email == user.email and u.id != user.id for u in self._users.values()):
                raise ValidationError("User already exists")
            self._users[user.id] = user
        return user.model_copy(deep=True)

    # Candidates
    def list_candidates(self) -> List[Candidate]:
        with self._lock:
            return _sort_candidates([c.model_copy(deep=True) for c in self._candidates.values()])

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        with self._lock:
            candidate = self._candidates.get(candidate_id)
            return candidate.model_copy(deep=True) if candidate else None

    def get_candidate_by_user(self, user_id: str) -> Optional[Candidate]:
        with self._lock:
            for candidate in self._candidates.values():
                if candidate.user_id == user_id:
                    return candidate.model_copy(deep=True)
        return None

    def save_candidate(self, candidate: Candidate) -> Candidate:
        candidate = candidate.model_copy(update={"updated_at": utcnow()}, deep=True)
        with self._lock:
            self._candidates[candidate.id] = candidate
        return candidate.model_copy(deep=True)

    def delete_candidate(self, candidate_id: str) -> bool:
        with self._lock:
            self._matches.pop(candidate_id, None)
            return self._candidates.pop(candidate_id, None) is not None

    # Jobs
    def list_jobs(self, active_only: bool = False) -> List[Job]:
        with self._lock:
            jobs = [j.model_copy(deep=True) for j in self._jobs.values()
                    if j.active or not active_only]
        return _sort_jobs(jobs)

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def save_job(self, job: Job) -> Job:
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)
        return job.model_copy(deep=True)

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    # Match history
    def get_matches(self, candidate_id: str) -> List[MatchResult]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._matches.get(candidate_id, [])]

    def save_matches(self, candidate_id: str, matches: List[MatchResult]) -> List[MatchResult]:
        unique = dedupe_matches(candidate_id, matches)
        with self._lock:
            self._matches[candidate_id] = unique
        return [m.model_copy(deep=True) for m in unique]


def build_storage(settings: Settings) -> StorageAdapter:
    """Create the storage backend selected by settings.storage_backend."""
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage")
        return InMemoryStorage()
    logger.info("Using MongoDB storage, database %s", settings.mongodb_db)
    return MongoStorage.from_settings(settings)
