"""
Method Store - persistence gateway for Method records

Provides pluggable storage backends behind one interface:
- MemoryMethodStore: In-memory (testing, fallback)
- SQLiteMethodStore: Persistent (production)

Both validate before writing, keep `name` unique and report every failure
as a MethodStoreError subclass. Gateways are explicit objects with an
open()/close() lifecycle; nothing here holds module-level connection state.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

from methoddocs.core.methods.errors import (
    DuplicateKey,
    FieldError,
    NotFound,
    Unavailable,
    ValidationFailed,
)
from methoddocs.core.methods.models import (
    Category,
    Example,
    Method,
    Parameter,
    new_method_id,
)
from methoddocs.core.methods.validator import parse_method_id, validate_method
from methoddocs.core.time import iso_z, next_timestamp, parse_iso, utc_now

logger = logging.getLogger(__name__)


class MethodStore(ABC):
    """
    Abstract Method Store Interface

    Implementations:
    - MemoryMethodStore: In-memory (testing, fallback)
    - SQLiteMethodStore: Persistent (production)
    """

    @abstractmethod
    def open(self) -> None:
        """Prepare the store for use; raises Unavailable if unreachable"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release resources; the store must be reopened before reuse"""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Cheap reachability check"""
        pass

    @abstractmethod
    def create(self, payload: Dict[str, Any]) -> Method:
        """Validate and insert a new Method"""
        pass

    @abstractmethod
    def get_all(self) -> List[Method]:
        """All Methods ordered by category, then name"""
        pass

    @abstractmethod
    def get_by_id(self, method_id: str) -> Method:
        """Get Method by ID"""
        pass

    @abstractmethod
    def update(self, method_id: str, payload: Dict[str, Any]) -> Method:
        """Merge payload over the stored Method, validate and write"""
        pass

    @abstractmethod
    def delete(self, method_id: str) -> Method:
        """Remove a Method and return what was removed"""
        pass

    def __enter__(self) -> "MethodStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MemoryMethodStore(MethodStore):
    """
    In-Memory Method Store

    Use cases:
    - Unit tests
    - Development fallback

    Limitations:
    - Data lost on restart
    - No cross-process sharing
    """

    def __init__(self):
        self._methods: Dict[str, Method] = {}
        self._lock = threading.Lock()
        self._open = False

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def ping(self) -> bool:
        return self._open

    def _require_open(self) -> None:
        if not self._open:
            raise Unavailable("Method store is not open")

    def _name_taken(self, name: str, exclude_id: str = "") -> bool:
        return any(m.name == name and m.id != exclude_id for m in self._methods.values())

    @staticmethod
    def _copy(method: Method) -> Method:
        """Detached copy; callers never hold the stored lists"""
        return Method.from_draft(method.id, method.to_draft(), method.created_at, method.updated_at)

    def create(self, payload: Dict[str, Any]) -> Method:
        self._require_open()
        draft = validate_method(payload)

        with self._lock:
            if self._name_taken(draft.name):
                raise DuplicateKey(draft.name)
            now = utc_now()
            method = Method.from_draft(new_method_id(), draft, now, now)
            self._methods[method.id] = method

        logger.info(f"Created method: {method.id} (name={method.name})")
        return self._copy(method)

    def get_all(self) -> List[Method]:
        self._require_open()
        with self._lock:
            methods = list(self._methods.values())
        # Stable sort keeps insertion order for ties
        return [self._copy(m) for m in sorted(methods, key=lambda m: (m.category.value, m.name))]

    def get_by_id(self, method_id: str) -> Method:
        self._require_open()
        key = parse_method_id(method_id)
        with self._lock:
            method = self._methods.get(key)
        if method is None:
            raise NotFound(key)
        return self._copy(method)

    def update(self, method_id: str, payload: Dict[str, Any]) -> Method:
        self._require_open()
        key = parse_method_id(method_id)

        with self._lock:
            existing = self._methods.get(key)
            if existing is None:
                raise NotFound(key)

            draft = validate_method(payload, existing=existing)
            if self._name_taken(draft.name, exclude_id=key):
                raise DuplicateKey(draft.name)

            method = Method.from_draft(
                key, draft, existing.created_at, next_timestamp(existing.updated_at)
            )
            self._methods[key] = method

        logger.info(f"Updated method: {key} (name={method.name})")
        return self._copy(method)

    def delete(self, method_id: str) -> Method:
        self._require_open()
        key = parse_method_id(method_id)

        with self._lock:
            method = self._methods.pop(key, None)
        if method is None:
            raise NotFound(key)

        logger.info(f"Deleted method: {key} (name={method.name})")
        return self._copy(method)


class SQLiteMethodStore(MethodStore):
    """
    SQLite Method Store

    Production implementation with:
    - Persistent storage
    - UNIQUE index on name (the enforcement point for concurrent writers)
    - CHECK constraint on category
    - Read-merge-write updates inside one IMMEDIATE transaction
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0):
        self.db_path = str(db_path)
        self.timeout = timeout
        self._open = False

    def open(self) -> None:
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise Unavailable(f"Cannot create store directory for {self.db_path}") from e
        self._open = True
        try:
            self._ensure_schema()
        except Unavailable:
            self._open = False
            raise
        logger.info(f"Method store opened: {self.db_path}")

    def close(self) -> None:
        if self._open:
            logger.info(f"Method store closed: {self.db_path}")
        self._open = False

    def ping(self) -> bool:
        if not self._open:
            return False
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1 FROM methods LIMIT 1")
            return True
        except Unavailable:
            return False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection; sqlite errors surface as Unavailable"""
        if not self._open:
            raise Unavailable("Method store is not open")
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise Unavailable(f"Cannot open method store at {self.db_path}") from e

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute(f"PRAGMA busy_timeout={int(self.timeout * 1000)}")
            yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as e:
            raise Unavailable(f"Method store error: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """IMMEDIATE transaction: writers are serialized from the first read"""
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _ensure_schema(self) -> None:
        """Ensure tables exist (idempotent)"""
        categories = ", ".join(f"'{c}'" for c in Category.values())
        with self._connect() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS methods (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL CHECK (category IN ({categories})),
                    description TEXT NOT NULL,
                    syntax TEXT,
                    return_value TEXT,
                    parameters_json TEXT NOT NULL DEFAULT '[]',
                    examples_json TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_methods_name
                ON methods(name)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_methods_category_name
                ON methods(category, name)
            """)

    def create(self, payload: Dict[str, Any]) -> Method:
        draft = validate_method(payload)
        now = utc_now()
        method = Method.from_draft(new_method_id(), draft, now, now)

        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO methods (
                        id, name, category, description, syntax, return_value,
                        parameters_json, examples_json, updated_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (method.id,) + self._row_values(method) + (iso_z(method.created_at),),
                )
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(e, method.name) from e

        logger.info(f"Created method: {method.id} (name={method.name})")
        return method

    def get_all(self) -> List[Method]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM methods ORDER BY category ASC, name ASC, rowid ASC"
            ).fetchall()
        return [self._row_to_method(row) for row in rows]

    def get_by_id(self, method_id: str) -> Method:
        key = parse_method_id(method_id)
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM methods WHERE id = ?", (key,)).fetchone()
        if row is None:
            raise NotFound(key)
        return self._row_to_method(row)

    def update(self, method_id: str, payload: Dict[str, Any]) -> Method:
        key = parse_method_id(method_id)
        name = None

        try:
            with self._transaction() as conn:
                row = conn.execute("SELECT * FROM methods WHERE id = ?", (key,)).fetchone()
                if row is None:
                    raise NotFound(key)

                existing = self._row_to_method(row)
                draft = validate_method(payload, existing=existing)
                name = draft.name
                method = Method.from_draft(
                    key, draft, existing.created_at, next_timestamp(existing.updated_at)
                )
                conn.execute(
                    """
                    UPDATE methods SET
                        name = ?, category = ?, description = ?, syntax = ?,
                        return_value = ?, parameters_json = ?, examples_json = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    self._row_values(method) + (key,),
                )
        except sqlite3.IntegrityError as e:
            raise self._translate_integrity_error(e, name or "") from e

        logger.info(f"Updated method: {key} (name={method.name})")
        return method

    def delete(self, method_id: str) -> Method:
        key = parse_method_id(method_id)

        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM methods WHERE id = ?", (key,)).fetchone()
            if row is None:
                raise NotFound(key)
            conn.execute("DELETE FROM methods WHERE id = ?", (key,))

        method = self._row_to_method(row)
        logger.info(f"Deleted method: {key} (name={method.name})")
        return method

    @staticmethod
    def _row_values(method: Method) -> tuple:
        """Column values from name through updated_at, in schema order"""
        return (
            method.name,
            method.category.value,
            method.description,
            method.syntax,
            method.return_value,
            json.dumps([p.to_dict() for p in method.parameters]),
            json.dumps([e.to_dict() for e in method.examples]),
            iso_z(method.updated_at),
        )

    @staticmethod
    def _row_to_method(row: sqlite3.Row) -> Method:
        return Method(
            id=row["id"],
            name=row["name"],
            category=Category(row["category"]),
            description=row["description"],
            created_at=parse_iso(row["created_at"]),
            updated_at=parse_iso(row["updated_at"]),
            syntax=row["syntax"],
            return_value=row["return_value"],
            parameters=[Parameter(**p) for p in json.loads(row["parameters_json"] or "[]")],
            examples=[Example(**e) for e in json.loads(row["examples_json"] or "[]")],
        )

    @staticmethod
    def _translate_integrity_error(error: sqlite3.IntegrityError, name: str) -> Exception:
        message = str(error)
        if "methods.name" in message:
            return DuplicateKey(name)
        if "CHECK constraint" in message:
            return ValidationFailed([
                FieldError("category", "enum", f"category must be one of {', '.join(Category.values())}")
            ])
        return Unavailable(f"Method store integrity error: {message}")
