import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog import Catalog, CatalogError
from config import Settings, settings
from utils.validators import BookValidationError, has_required_fields, validate_book

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Book not found"


# --- Models ---
class BookPayload(BaseModel):
    """Candidate record as submitted by a client; validated by ``validate_book``."""

    model_config = ConfigDict(extra="ignore")

    title: Any = None
    author: Any = None
    genre: Any = None
    year: Any = None
    description: Any = None


class BookModel(BaseModel):
    id: str
    title: str
    author: str
    genre: str
    year: int
    description: str = ""
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class DeleteResponse(BaseModel):
    message: str
    book: BookModel


class HealthModel(BaseModel):
    status: str
    timestamp: str
    total_books: int
    db: bool


# --- Helpers ---
def _error(status_code: int, message: str, error: Optional[Any] = None) -> JSONResponse:
    body = {"message": message}
    if error is not None:
        body["error"] = str(error)
    return JSONResponse(status_code=status_code, content=body)


def _to_model(book) -> BookModel:
    return BookModel(**book.to_dict())


def get_catalog(request: Request) -> Catalog:
    """Dependency returning the store handle attached to the running app."""
    return request.app.state.catalog


# --- Book routes ---
router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("", response_model=List[BookModel])
def list_books(catalog: Catalog = Depends(get_catalog)):
    """List all books, newest first."""
    try:
        books = catalog.list_books()
    except CatalogError as e:
        return _error(500, "Error fetching books", e)
    return [_to_model(b) for b in books]


@router.get("/{book_id}", response_model=BookModel)
def get_book(book_id: str, catalog: Catalog = Depends(get_catalog)):
    try:
        book = catalog.find_book(book_id)
    except CatalogError as e:
        return _error(500, "Error fetching book", e)
    if book is None:
        logger.warning(f"Book not found: id={book_id}")
        return _error(404, NOT_FOUND_MESSAGE)
    return _to_model(book)


@router.post("", response_model=BookModel, status_code=201)
def create_book(payload: BookPayload, catalog: Catalog = Depends(get_catalog)):
    """Create a book. All of title, author, genre and year must be supplied."""
    candidate = payload.model_dump()
    if not has_required_fields(candidate):
        return _error(400, "Please provide all required fields")

    result = validate_book(candidate)
    if not result.ok:
        logger.info(f"Rejected new book: {result.message}")
        return _error(400, "Validation error", result.message)

    try:
        book = catalog.add_book(result.values)
    except BookValidationError as e:
        return _error(400, "Validation error", e)
    except CatalogError as e:
        return _error(500, "Error creating book", e)
    return _to_model(book)


@router.put("/{book_id}", response_model=BookModel)
def update_book(book_id: str, payload: BookPayload, catalog: Catalog = Depends(get_catalog)):
    """Replace a book. Partial updates are not supported."""
    result = validate_book(payload.model_dump())
    if not result.ok:
        logger.info(f"Rejected update of {book_id}: {result.message}")
        return _error(400, "Validation error", result.message)

    try:
        book = catalog.update_book(book_id, result.values)
    except BookValidationError as e:
        return _error(400, "Validation error", e)
    except CatalogError as e:
        return _error(500, "Error updating book", e)
    if book is None:
        logger.warning(f"Book not found for update: id={book_id}")
        return _error(404, NOT_FOUND_MESSAGE)
    return _to_model(book)


@router.delete("/{book_id}", response_model=DeleteResponse)
def delete_book(book_id: str, catalog: Catalog = Depends(get_catalog)):
    try:
        book = catalog.remove_book(book_id)
    except CatalogError as e:
        return _error(500, "Error deleting book", e)
    if book is None:
        logger.warning(f"Book not found for delete: id={book_id}")
        return _error(404, NOT_FOUND_MESSAGE)
    return DeleteResponse(message="Book deleted successfully", book=_to_model(book))


# --- Exception handlers ---
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request body", exc.errors())


# --- Application factory ---
def create_app(catalog: Optional[Catalog] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the API app around an injected catalog.

    When no catalog is given, one is opened from ``DATABASE_URL`` for the
    lifetime of the app.
    """
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if app.state.catalog is None:
            owned = Catalog(cfg.database_url)
            app.state.catalog = owned
            logger.info(f"Catalog opened at {cfg.database_url}")
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.catalog = None

    app = FastAPI(title=cfg.app_name, version=cfg.app_version, debug=cfg.debug, lifespan=lifespan)
    app.state.catalog = catalog

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)

    @app.get("/health", response_model=HealthModel)
    def health(catalog: Catalog = Depends(get_catalog)):
        """Health check: store connectivity and record count."""
        db_ok = catalog.ping()
        return HealthModel(
            status="healthy" if db_ok else "degraded",
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            total_books=catalog.count_books() if db_ok else 0,
            db=db_ok,
        )

    # --- Static files ---
    static_dir = Path(cfg.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

        @app.get("/", include_in_schema=False)
        def read_root():
            """Serve the client page."""
            return FileResponse(str(static_dir / "index.html"))

    return app


app = create_app()
