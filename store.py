"""
In-memory book store persisted as a JSON snapshot file.

The store is the only access path to the backing file. It is loaded once at
startup, serves reads from memory and rewrites the whole file after every
mutation. A failed write leaves memory ahead of disk until the next
successful write; nothing is rolled back.
"""
import asyncio
import json
import logging
import os
from enum import Enum
from typing import Any, Dict, List, Optional

from book import Book

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """Raised when the store is accessed before a successful load."""


class PersistenceError(Exception):
    """Raised when the backing file could not be rewritten after a mutation."""


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


def _read_records(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_snapshot(path: str, payload: str) -> None:
    """Write the payload next to the backing file, then move it into place."""
    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def _parse_records(raw: Any) -> Dict[int, Book]:
    if not isinstance(raw, list):
        raise StoreUnavailable("Backing file must contain a JSON array of books.")
    books: Dict[int, Book] = {}
    for item in raw:
        if not isinstance(item, dict):
            raise StoreUnavailable(f"Book record must be an object, got {type(item).__name__}.")
        book_id = item.get("id")
        # bool is an int subclass; true/false are not ids
        if isinstance(book_id, bool) or not isinstance(book_id, int) or book_id < 1:
            raise StoreUnavailable(f"Book record has no valid id: {item!r}")
        if book_id in books:
            raise StoreUnavailable(f"Duplicate book id {book_id} in backing file.")
        for field in ("author", "title"):
            # Same rule as the request body: text or null
            if item.get(field) is not None and not isinstance(item[field], str):
                raise StoreUnavailable(f"Book {book_id} has a non-text {field}: {item[field]!r}")
        books[book_id] = Book.from_dict(item)
    return books


class BookStore:
    """Owns the book collection and its backing-file persistence."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._state = StoreState.UNINITIALIZED
        self._books: Dict[int, Book] = {}
        self._last_id = 0
        self._write_lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is StoreState.READY

    @property
    def last_id(self) -> int:
        return self._last_id

    def __len__(self) -> int:
        return len(self.guarded_access())

    # ------------------------- Lifecycle ------------------------- #
    async def load(self) -> None:
        """Read the backing file and move the store to ``ready``.

        Raises ``StoreUnavailable`` if the file cannot be read or parsed, or if
        the store was already loaded. On failure the store stays uninitialized.
        """
        if self.is_ready:
            raise StoreUnavailable("Book store is already loaded.")
        try:
            raw = await asyncio.to_thread(_read_records, self._path)
        except (OSError, ValueError) as e:
            logger.error(f"Could not load books from {self._path}: {e}")
            raise StoreUnavailable(f"Could not load books from {self._path}: {e}") from e

        try:
            books = _parse_records(raw)
        except StoreUnavailable as e:
            logger.error(f"Invalid backing file {self._path}: {e}")
            raise
        self._books = books
        self._last_id = max(books, default=0)
        self._state = StoreState.READY
        logger.info(f"Loaded {len(books)} books from {self._path} (last id {self._last_id})")

    def guarded_access(self) -> Dict[int, Book]:
        """Return the live id -> Book mapping, or raise if the store is not loaded."""
        if self._state is not StoreState.READY:
            raise StoreUnavailable("Book store is not available.")
        return self._books

    # ------------------------- Reads ------------------------- #
    def get_all(self) -> List[Book]:
        return list(self.guarded_access().values())

    def get_by_id(self, book_id: int) -> Optional[Book]:
        return self.guarded_access().get(book_id)

    # ------------------------- Mutations ------------------------- #
    async def add(self, record: Dict[str, Any]) -> Book:
        """Store a new book under the next id. Any ``id`` in ``record`` is ignored."""
        books = self.guarded_access()
        # No await between reading and bumping last_id
        book_id = self._last_id + 1
        self._last_id = book_id
        book = Book.from_record(book_id, record)
        books[book_id] = book
        logger.info(f"Added book {book}")
        await self._persist()
        return book

    async def update(self, book_id: int, record: Dict[str, Any]) -> Optional[Book]:
        """Replace every non-id field of a book with the fields of ``record``.

        Fields missing from ``record`` are dropped. Returns ``None`` when no
        book has ``book_id``; in that case nothing is written.
        """
        books = self.guarded_access()
        if book_id not in books:
            return None
        book = Book.from_record(book_id, record)
        books[book_id] = book
        logger.info(f"Updated book {book}")
        await self._persist()
        return book

    async def delete(self, book_id: int) -> Optional[Book]:
        books = self.guarded_access()
        book = books.pop(book_id, None)
        if book is None:
            return None
        logger.info(f"Deleted book {book}")
        await self._persist()
        return book

    def _lock_for_running_loop(self) -> asyncio.Lock:
        # A store can outlive an event loop (one asyncio.run per CLI call or test)
        loop = asyncio.get_running_loop()
        if self._write_lock is None or self._lock_loop is not loop:
            self._write_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._write_lock

    async def _persist(self) -> None:
        # The snapshot is taken under the lock so the last finished write is the newest state.
        async with self._lock_for_running_loop():
            try:
                payload = json.dumps(
                    [b.to_dict() for b in self._books.values()],
                    ensure_ascii=False,
                    indent=2,
                )
                await asyncio.to_thread(_write_snapshot, self._path, payload)
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to write books to {self._path}: {e}")
                raise PersistenceError(f"Failed to write books to {self._path}: {e}") from e
