import os
import re
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.db import DATABASE_URL, make_engine, make_session_factory, wait_for_db
from backend.errors import (
    INVALID_ID_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    ArticleError,
    MalformedKeyError,
    NotFoundError,
    ValidationError,
)
from backend.models import Article, Base
from backend.store import ArticleStore
from backend.schemas import (
    ArticleCreate,
    ArticleDelete,
    ArticleFields,
    ArticleId,
    ArticleIdResponse,
    ArticleListResponse,
    ArticleOut,
    ArticleResponse,
    ArticleUpdate,
    ErrorResponse,
)

load_dotenv()

logger = logging.getLogger(__name__)

DISPLAY_TZ = os.getenv("ARTICLE_DISPLAY_TZ", "Asia/Tokyo")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8501")
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

REQUIRED_FIELDS = ("title", "content", "category", "status")
ID_ENDPOINTS = ("/articles/update", "/articles/delete")

LOOKUP_ERRORS = {404: {"model": ErrorResponse}}
CREATE_ERRORS = {400: {"model": ErrorResponse}}
MUTATION_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
MAX_ARTICLE_ID = 2**63 - 1

_ID_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")


def parse_article_id(raw, status_code: int = 400) -> int:
    """Parse a JSON integer or a decimal string into an article id.

    Anything else (bools, floats, null, empty or non-digit strings, ids out of
    the 64-bit range) raises ``MalformedKeyError`` with ``status_code``.
    """
    value = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str) and _ID_PATTERN.fullmatch(raw):
        value = int(raw)
    if value is None or abs(value) > MAX_ARTICLE_ID:
        logger.warning("Rejected article id %r", raw)
        raise MalformedKeyError(status_code=status_code)
    return value


def require_fields(payload: ArticleFields) -> None:
    for name in REQUIRED_FIELDS:
        if getattr(payload, name) == "":
            logger.warning("Rejected article payload: %s is empty", name)
            raise ValidationError()


def format_display_date(value: datetime, tz_name: str = DISPLAY_TZ) -> str:
    """Render a stored naive-UTC timestamp as ``YYYY/MM/DD hh:mm`` in ``tz_name``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name)).strftime("%Y/%m/%d %H:%M")


def sort_newest_first(articles):
    # sorted() is stable, so equal timestamps keep retrieval order
    return sorted(articles, key=lambda a: a.created_at, reverse=True)


def to_article_out(article: Article, tz_name: str = DISPLAY_TZ) -> ArticleOut:
    return ArticleOut(
        id=article.id,
        title=article.title,
        content=article.content,
        category=article.category,
        status=article.status,
        createdAt=format_display_date(article.created_at, tz_name),
        updatedAt=format_display_date(article.updated_at, tz_name),
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


def get_store(request: Request) -> ArticleStore:
    return request.app.state.store


def default_store(url: str = DATABASE_URL) -> ArticleStore:
    engine = make_engine(url)
    wait_for_db(engine)
    Base.metadata.create_all(bind=engine)
    return ArticleStore(make_session_factory(engine))


def create_app(store: Optional[ArticleStore] = None, display_tz: str = DISPLAY_TZ) -> FastAPI:
    app = FastAPI(title="Article API")
    app.state.store = store if store is not None else default_store()
    app.state.display_tz = display_tz

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in CORS_ORIGINS.split(",") if o.strip()],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(ArticleError)
    async def handle_article_error(request: Request, exc: ArticleError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        # unknown routes and wrong methods get the same envelope
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        # The id is checked before the content fields on update/delete, so
        # anything but a bad content field (bad articleId, missing or
        # unparseable body) reads as an invalid id there.
        if request.url.path in ID_ENDPOINTS:
            for err in exc.errors():
                loc = tuple(err.get("loc", ()))
                if not (len(loc) >= 2 and loc[1] in REQUIRED_FIELDS):
                    logger.warning("Rejected %s: bad articleId", request.url.path)
                    return _error_response(400, INVALID_ID_MESSAGE)
        logger.warning("Rejected %s: %s", request.url.path, exc.errors())
        return _error_response(400, MISSING_FIELDS_MESSAGE)

    @app.get("/articles", response_model=ArticleListResponse)
    def list_articles(request: Request, store: ArticleStore = Depends(get_store)):
        records = sort_newest_first(store.find_all())
        tz_name = request.app.state.display_tz
        return ArticleListResponse(data=[to_article_out(a, tz_name) for a in records])

    @app.get(
        "/articles/detail/{article_id}",
        response_model=ArticleResponse,
        responses=LOOKUP_ERRORS,
    )
    def get_article(
        article_id: str, request: Request, store: ArticleStore = Depends(get_store)
    ):
        parsed = parse_article_id(article_id, status_code=404)
        record = store.find_by_id(parsed)
        if record is None:
            logger.warning("Article %s not found", parsed)
            raise NotFoundError()
        return ArticleResponse(data=to_article_out(record, request.app.state.display_tz))

    @app.post("/articles/create", response_model=ArticleIdResponse, responses=CREATE_ERRORS)
    def create_article(article: ArticleCreate, store: ArticleStore = Depends(get_store)):
        require_fields(article)
        record = store.insert(
            article.title, article.content, article.category, article.status
        )
        logger.info("Created article id=%s", record.id)
        return ArticleIdResponse(data=ArticleId(id=str(record.id)))

    @app.post("/articles/update", response_model=ArticleIdResponse, responses=MUTATION_ERRORS)
    def update_article(article: ArticleUpdate, store: ArticleStore = Depends(get_store)):
        article_id = parse_article_id(article.articleId)
        require_fields(article)
        record = store.update_by_id(
            article_id, article.title, article.content, article.category, article.status
        )
        logger.info("Updated article id=%s", record.id)
        return ArticleIdResponse(data=ArticleId(id=str(record.id)))

    @app.post("/articles/delete", response_model=ArticleIdResponse, responses=MUTATION_ERRORS)
    def delete_article(req: ArticleDelete, store: ArticleStore = Depends(get_store)):
        article_id = parse_article_id(req.articleId)
        record = store.delete_by_id(article_id)
        logger.info("Deleted article id=%s", record.id)
        return ArticleIdResponse(data=ArticleId(id=str(record.id)))

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    logger.info("Article API listening on port %s", API_PORT)
    uvicorn.run(app, host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
