import logging
import os
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Form, Header, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError
from pydantic import ValidationError
from sqlalchemy.engine import Engine

from book import Book, BookPayload, UpdateResult
from config import Settings
from errors import BadRequest, BooksAPIError, ServerError
from library import Library

logger = logging.getLogger(__name__)

BOOK_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
MAX_BOOK_ID = 2**63 - 1
MIN_BOOK_ID = -(2**63)


@dataclass
class AppContext:
    """Shared handles built once by the bootstrap and handed to every request."""

    library: Library
    templates: Jinja2Templates


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def parse_book_id(book_id: str) -> int:
    """Path id dependency. Rejects non-numeric ids before the database is touched.

    Only ASCII digits with an optional sign are accepted, within the signed
    64-bit range of the id column.
    """
    if not BOOK_ID_PATTERN.fullmatch(book_id):
        raise BadRequest("No matching param in url found")
    value = int(book_id)
    if not MIN_BOOK_ID <= value <= MAX_BOOK_ID:
        raise BadRequest("No matching param in url found")
    return value


async def read_book_payload(request: Request) -> BookPayload:
    raw = await request.body()
    try:
        return BookPayload.model_validate_json(raw)
    except ValidationError as e:
        raise BadRequest("Invalid Request Payload") from e


def render_template(ctx: AppContext, request: Request, name: str, context: Optional[dict] = None) -> HTMLResponse:
    # Templates are looked up on every call so a broken file fails one request only
    try:
        return ctx.templates.TemplateResponse(request, name, context or {})
    except TemplateError as e:
        raise ServerError("Error executing template") from e


def render_book_list(ctx: AppContext, request: Request, books: List[Book]) -> HTMLResponse:
    return render_template(ctx, request, "book-list.html", {"books": books})


def _is_htmx(hx_request: Optional[str]) -> bool:
    return (hx_request or "").lower() == "true"


# --- Routes ---
router = APIRouter()


@router.get("/", response_class=HTMLResponse)
def render(request: Request, ctx: AppContext = Depends(get_context)):
    """Serve the landing page."""
    return render_template(ctx, request, "index.html")


@router.get("/api/books", response_class=HTMLResponse)
def get_books(request: Request, ctx: AppContext = Depends(get_context)):
    """Render every book as the list fragment embedded in the landing page."""
    books = ctx.library.list_books()
    return render_book_list(ctx, request, books)


@router.get("/api/books/{book_id}", response_model=Book)
def get_book(book_id: int = Depends(parse_book_id), ctx: AppContext = Depends(get_context)) -> Book:
    return ctx.library.find_book(book_id)


@router.post("/api/books")
def create_book(
    request: Request,
    isbn: str = Form(""),
    title: str = Form(""),
    author: str = Form(""),
    publisher: str = Form(""),
    hx_request: Optional[str] = Header(None),
    ctx: AppContext = Depends(get_context),
):
    """Insert a book from form fields. The response body stays empty unless htmx asked for the list."""
    book_id = ctx.library.add_book(isbn, title, author, publisher, created_at=datetime.now())
    logger.info(f"Book: {book_id}, successfully created")
    if _is_htmx(hx_request):
        return render_book_list(ctx, request, ctx.library.list_books())
    return Response(status_code=200)


@router.put("/api/books/{book_id}", response_model=UpdateResult, status_code=201)
def update_book(
    book_id: int = Depends(parse_book_id),
    payload: BookPayload = Depends(read_book_payload),
    ctx: AppContext = Depends(get_context),
) -> UpdateResult:
    """Correct the publisher of a book. Other body fields are only echoed in the message."""
    rows_updated = ctx.library.update_publisher(book_id, payload.publisher)
    logger.info(f"Book {book_id}: publisher updated, {rows_updated} row(s) affected")
    return UpdateResult.for_payload(payload, rows_updated)


@router.delete("/api/books/{book_id}")
def delete_book(
    request: Request,
    book_id: int = Depends(parse_book_id),
    hx_request: Optional[str] = Header(None),
    ctx: AppContext = Depends(get_context),
):
    rows_deleted = ctx.library.remove_book(book_id)
    logger.info(f"{rows_deleted} Book deleted successfully")
    if _is_htmx(hx_request):
        return render_book_list(ctx, request, ctx.library.list_books())
    return Response(status_code=200)


# --- Error handling ---
async def handle_api_error(request: Request, exc: BooksAPIError) -> PlainTextResponse:
    cause = exc.__cause__ or exc
    logger.error(f"{request.method} {request.url.path}: {exc.message}: {cause}")
    return PlainTextResponse(exc.message, status_code=exc.status_code)


# --- Application factory ---
def create_app(settings: Settings, engine: Engine) -> FastAPI:
    """Wire routes, templates and static files around an already verified engine."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(title="Books API", lifespan=lifespan)
    app.state.context = AppContext(
        library=Library(engine),
        templates=Jinja2Templates(directory=settings.templates_dir),
    )
    app.add_exception_handler(BooksAPIError, handle_api_error)
    app.include_router(router)

    if os.path.isdir(settings.dist_dir):
        app.mount("/dist", StaticFiles(directory=settings.dist_dir), name="dist")
    else:
        logger.warning(f"Static directory '{settings.dist_dir}' not found, /dist is not served")

    return app
