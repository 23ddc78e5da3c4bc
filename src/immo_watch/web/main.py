from __future__ import annotations

import logging
from typing import Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from immo_watch.config import Settings
from immo_watch.errors import ImmoWatchError, UnknownError, ValidationError
from immo_watch.models import (
    ListingOut,
    ListingsResponse,
    MessageResponse,
    ScrapeRequest,
    ScrapeResponse,
)
from immo_watch.repositories.postgres import PostgresSnapshotStore
from immo_watch.services import RequestsPageFetcher, ScrapeService, SeleniumPageRenderer


logger = logging.getLogger(__name__)


def error_response(err: ImmoWatchError, **extra: str) -> JSONResponse:
    body = {"message": err.message, "error": err.detail}
    body.update(extra)
    return JSONResponse(body, status_code=err.status_code)


def build_service(settings: Settings) -> ScrapeService:
    return ScrapeService(
        settings,
        store=PostgresSnapshotStore(settings.db_url),
        renderer=SeleniumPageRenderer(settings),
        fetcher=RequestsPageFetcher(timeout=settings.fetch_timeout_secs),
    )


def create_app(settings: Optional[Settings] = None, service: Optional[ScrapeService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    service = service or build_service(settings)

    app = FastAPI(title="Immo Watch")
    app.state.settings = settings
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup() -> None:
        init_schema = getattr(service.store, "init_schema", None)
        if init_schema is None:
            return
        try:
            init_schema()
        except ImmoWatchError as e:
            # DB may not be up yet; requests will report the failure
            logger.warning("Schema init failed: %s", e.detail)

    @app.exception_handler(RequestValidationError)
    async def on_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = "; ".join(str(e.get("msg", "")) for e in errors) or "invalid request"
        return error_response(ValidationError(detail, message="Invalid request body or parameters."))

    @app.exception_handler(ImmoWatchError)
    async def on_app_error(request: Request, exc: ImmoWatchError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(Exception)
    async def on_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(UnknownError(str(exc)))

    @app.get("/listings", response_model=ListingsResponse)
    def get_listings():
        try:
            items = service.listings()
        except ImmoWatchError as e:
            logger.exception("GET /listings failed")
            return error_response(e)
        except Exception as e:
            logger.exception("GET /listings failed")
            return error_response(UnknownError(str(e), message="Error fetching listings from database."))
        return ListingsResponse(listings=[ListingOut.from_persisted(l) for l in items])

    @app.delete("/listings", response_model=MessageResponse)
    def delete_listings():
        try:
            service.clear()
        except ImmoWatchError as e:
            logger.exception("DELETE /listings failed")
            return error_response(e)
        except Exception as e:
            logger.exception("DELETE /listings failed")
            return error_response(UnknownError(str(e), message="Error clearing database."))
        return MessageResponse(message="Successfully deleted all listings.")

    @app.post("/scrape", response_model=ScrapeResponse, response_model_by_alias=True)
    def scrape(payload: Optional[ScrapeRequest] = Body(default=None)):
        min_price = payload.min_price if payload is not None else None
        try:
            new_items = service.scrape(min_price)
        except ImmoWatchError as e:
            logger.exception("Error during scraping process")
            return error_response(e)
        except Exception as e:
            logger.exception("Error during scraping process")
            return error_response(UnknownError(str(e), message="An internal server error occurred during scraping."))
        return ScrapeResponse.from_candidates(new_items)

    @app.get("/details")
    def details(url: Optional[str] = Query(None)):
        try:
            detail = service.details(url)
        except ImmoWatchError as e:
            logger.exception("Error scraping details for %s", url)
            return error_response(e, url=url or "")
        except Exception as e:
            logger.exception("Error scraping details for %s", url)
            err = UnknownError(str(e), message="An internal server error occurred while scraping details.")
            return error_response(err, url=url or "")
        return JSONResponse(detail.model_dump(by_alias=True))

    return app
