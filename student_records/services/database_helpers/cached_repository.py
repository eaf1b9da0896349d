# /student_records/services/database_helpers/cached_repository.py

"""
A read-through cache that wraps any StudentRepository.

Reads are cached under "<operation>:<json arguments>" for `ttl_seconds`.
Every write clears the whole cache, so a read that follows a write always
reaches the backend. A read that was already loading when a write cleared the
cache returns its result but does not store it. The cache is process-local
and unbounded; it only saves backend round trips and is never the system of
record.
"""

import copy
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...models.stats_model import StudentStats
from ...models.student_model import Student, StudentFilters
from ...models.user_model import User
from .base_repository import StudentRepository

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class CachedRepository(StudentRepository):
    def __init__(
        self,
        inner: StudentRepository,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._generation = 0
        # Sync endpoints run on a thread pool, so the map is shared across threads.
        self._lock = threading.Lock()

    # --- Cache Mechanics ---

    @staticmethod
    def _key(operation: str, *args: Any) -> str:
        return f"{operation}:{json.dumps(args, sort_keys=True, default=str)}"

    def _get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, captured_at = entry
            if self._clock() - captured_at >= self.ttl_seconds:
                del self._entries[key]
                return None
        return copy.deepcopy(value)

    def _set(self, key: str, value: Any, generation: int) -> None:
        snapshot = copy.deepcopy(value)
        with self._lock:
            # A write invalidated the cache while this value was loading.
            if generation != self._generation:
                return
            self._entries[key] = (snapshot, self._clock())

    def _read(self, key: str, load: Callable[[], Any]) -> Any:
        cached = self._get(key)
        if cached is not None:
            return cached
        with self._lock:
            generation = self._generation
        value = load()
        # Absent results are not cached; a create must become visible at once.
        if value is not None:
            self._set(key, value, generation)
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def close(self) -> None:
        self.invalidate()
        self.inner.close()

    # --- Reads (cached) ---

    def list_students(self, filters: Optional[StudentFilters] = None) -> List[Student]:
        filters = filters or StudentFilters()
        key = self._key("students", filters.model_dump(exclude_none=True))
        return self._read(key, lambda: self.inner.list_students(filters))

    def get_student(self, student_id: int) -> Optional[Student]:
        return self._read(self._key("student", student_id), lambda: self.inner.get_student(student_id))

    def get_student_by_code(self, student_code: str) -> Optional[Student]:
        return self._read(
            self._key("studentByCode", student_code),
            lambda: self.inner.get_student_by_code(student_code),
        )

    def get_student_stats(self) -> StudentStats:
        return self._read(self._key("studentStats"), self.inner.get_student_stats)

    def get_user(self, user_id: int) -> Optional[User]:
        return self._read(self._key("user", user_id), lambda: self.inner.get_user(user_id))

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._read(
            self._key("userByUsername", username),
            lambda: self.inner.get_user_by_username(username),
        )

    # --- Writes (invalidate everything) ---

    def _write(self, operation: Callable[[], Any]) -> Any:
        try:
            return operation()
        finally:
            # A failed write may still have reached the backend.
            self.invalidate()

    def create_student(self, data: Dict[str, Any]) -> Student:
        return self._write(lambda: self.inner.create_student(data))

    def update_student(self, student_id: int, data: Dict[str, Any]) -> Optional[Student]:
        return self._write(lambda: self.inner.update_student(student_id, data))

    def delete_student(self, student_id: int) -> bool:
        return self._write(lambda: self.inner.delete_student(student_id))

    def create_user(self, data: Dict[str, Any]) -> User:
        return self._write(lambda: self.inner.create_user(data))

    def update_user(self, user_id: int, data: Dict[str, Any]) -> Optional[User]:
        return self._write(lambda: self.inner.update_user(user_id, data))
