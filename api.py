import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from config import settings
from store import BookStore, PersistenceError, StoreUnavailable

logger = logging.getLogger(__name__)


# --- Models ---
class BookPayload(BaseModel):
    """Request body for creating or replacing a book. Extra fields are kept."""

    model_config = ConfigDict(extra="allow")

    author: str | None = None
    title: str | None = None


class BookModel(BookPayload):
    id: int


class HealthModel(BaseModel):
    status: str
    store: str
    total_books: int


# --- Dependencies ---
def get_store(request: Request) -> BookStore:
    return request.app.state.store


def _to_record(payload: BookPayload) -> dict:
    # Only the fields the client actually sent, so a replace drops the rest
    return payload.model_dump(exclude_unset=True)


def _book_or_404(book):
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found.")
    return book.to_dict()


# --- Book endpoints ---
router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("", response_model=List[BookModel], response_model_exclude_unset=True)
async def list_books(store: BookStore = Depends(get_store)):
    """Return every book in the store."""
    return [book.to_dict() for book in store.get_all()]


@router.get("/{book_id}", response_model=BookModel, response_model_exclude_unset=True)
async def get_book(book_id: int, store: BookStore = Depends(get_store)):
    """Return a single book by id."""
    return _book_or_404(store.get_by_id(book_id))


@router.post("", response_model=BookModel, response_model_exclude_unset=True, status_code=201)
async def add_book(payload: BookPayload, store: BookStore = Depends(get_store)):
    """Create a book. The id is assigned by the store; any id in the body is ignored."""
    book = await store.add(_to_record(payload))
    return book.to_dict()


@router.put("/{book_id}", response_model=BookModel, response_model_exclude_unset=True)
async def update_book(book_id: int, payload: BookPayload, store: BookStore = Depends(get_store)):
    """Replace all fields of a book except its id."""
    return _book_or_404(await store.update(book_id, _to_record(payload)))


@router.delete("/{book_id}", response_model=BookModel, response_model_exclude_unset=True)
async def delete_book(book_id: int, store: BookStore = Depends(get_store)):
    """Remove a book and return it."""
    return _book_or_404(await store.delete(book_id))


# --- Application ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    store: BookStore = app.state.store
    if not store.is_ready:
        try:
            await store.load()
        except StoreUnavailable as e:
            # Keep serving; store-backed endpoints answer 404 until restart
            logger.error(f"Book store failed to load: {e}")
    yield


def create_app(store: Optional[BookStore] = None) -> FastAPI:
    """Build the API around ``store`` (defaults to the configured backing file)."""
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.store = store if store is not None else BookStore(settings.books_path)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        return JSONResponse(status_code=404, content={"detail": "Book store is not available."})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        return JSONResponse(status_code=500, content={"detail": "Could not save books."})

    @app.get("/health", response_model=HealthModel)
    async def health():
        """Lightweight health check reporting the store state."""
        current: BookStore = app.state.store
        return HealthModel(
            status="healthy",
            store=current.state.value,
            total_books=len(current) if current.is_ready else 0,
        )

    app.include_router(router)
    return app


# Module-level instance so `uvicorn api:app` works against the configured file
app = create_app()
