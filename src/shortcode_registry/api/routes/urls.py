"""Shortcode registry API routes.

This module contains all endpoints for shortcode operations:
- Shorten a batch of URLs (POST /shorten)
- List all URLs split by status (GET /urls)
- Get URL info with click history (GET /{shortcode}/info)
- Redirect to original URL (GET /{shortcode})
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import RedirectResponse

from ...core.errors import ErrorKind
from ...models import UNKNOWN_LOCATION
from ...schemas.url import (
    ErrorResponse,
    ShortenRequest,
    ShortenResponse,
    URLListResponse,
    URLRecordResponse,
)
from ...services.registry import RegistryService, get_registry_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["URLs"])

_SUBMIT_STATUS = {
    ErrorKind.EMPTY_BATCH: 400,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.DUPLICATE_SHORTCODE: 409,
    ErrorKind.GENERATION_EXHAUSTED: 500,
}


def get_base_url(request: Request) -> str:
    """Get base URL from request.

    Args:
        request: FastAPI request object.

    Returns:
        Base URL string.
    """
    return str(request.base_url).rstrip("/")


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=201,
    responses={
        201: {"description": "Short URLs created successfully"},
        400: {"model": ErrorResponse, "description": "Empty batch or invalid entries"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        500: {"model": ErrorResponse, "description": "No unique short code available"},
    },
    summary="Shorten a batch of URLs",
    description="Create short URLs for every non-blank entry. Nothing is created if any entry is invalid.",
)
def shorten_urls(
    request: Request,
    payload: ShortenRequest,
    service: RegistryService = Depends(get_registry_service),
) -> ShortenResponse:
    """Shorten a batch of URLs.

    Args:
        request: FastAPI request object.
        payload: Batch of submissions.
        service: Registry service instance.

    Returns:
        Created URL records.
    """
    outcome = service.submit_batch(payload.urls)
    if not outcome.ok:
        logger.info(f"Batch rejected: {outcome.error.value}")
        raise HTTPException(
            status_code=_SUBMIT_STATUS[outcome.error],
            detail=outcome.errors or outcome.detail,
        )

    base_url = get_base_url(request)
    now = service.clock()
    return ShortenResponse(
        created=[URLRecordResponse.from_record(r, base_url, now) for r in outcome.created]
    )


@router.get(
    "/urls",
    response_model=URLListResponse,
    summary="List all URLs",
    description="List every short URL ever created, split into active and expired.",
)
def list_urls(
    request: Request,
    service: RegistryService = Depends(get_registry_service),
) -> URLListResponse:
    base_url = get_base_url(request)
    now = service.clock()
    active, expired = service.partition_records()
    return URLListResponse(
        active=[URLRecordResponse.from_record(r, base_url, now) for r in active],
        expired=[URLRecordResponse.from_record(r, base_url, now) for r in expired],
    )


@router.get(
    "/{shortcode}/info",
    response_model=URLRecordResponse,
    responses={
        200: {"description": "URL information retrieved"},
        404: {"model": ErrorResponse, "description": "Short URL not found"},
    },
    summary="Get URL information",
    description="Get a short URL with its click history.",
)
def get_url_info(
    shortcode: str,
    request: Request,
    service: RegistryService = Depends(get_registry_service),
) -> URLRecordResponse:
    """Get URL information.

    Args:
        shortcode: The short URL code.
        request: FastAPI request object.
        service: Registry service instance.

    Returns:
        URL information.
    """
    record = service.get_record(shortcode)
    if record is None:
        raise HTTPException(status_code=404, detail="Short URL not found")
    return URLRecordResponse.from_record(record, get_base_url(request), service.clock())


@router.get(
    "/{shortcode}",
    response_class=RedirectResponse,
    status_code=302,
    responses={
        302: {"description": "Redirect to original URL"},
        404: {"model": ErrorResponse, "description": "Short URL not found"},
        410: {"model": ErrorResponse, "description": "Short URL expired"},
    },
    summary="Redirect to original URL",
    description="Redirect to the original URL and record the visit.",
)
def redirect_to_url(
    shortcode: str,
    request: Request,
    service: RegistryService = Depends(get_registry_service),
) -> RedirectResponse:
    """Redirect to the original URL.

    Args:
        shortcode: The short URL code.
        request: FastAPI request object.
        service: Registry service instance.

    Returns:
        Redirect response to original URL.
    """
    outcome = service.resolve(
        shortcode,
        referrer=request.headers.get("referer"),
        location=UNKNOWN_LOCATION,
    )
    if outcome.error is ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Short URL not found")
    if outcome.error is ErrorKind.EXPIRED:
        raise HTTPException(status_code=410, detail="Short URL has expired")

    return RedirectResponse(url=outcome.target_url, status_code=302)
