"""
Catdex — Cat Route Handlers
=============================

What:  GET /api/cats, GET /api/cat/{id}, POST /api/add_cat.
How:   Extract data from the request, delegate to CatService, return the
       status code. Errors are raised and formatted by the global handlers
       registered in main.py.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from catdex.schemas.cat import CatResponse, ErrorResponse
from catdex.services.cat_service import CatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Cats"])


def get_cat_service(request: Request) -> CatService:
    """Dependency returning the CatService built by create_app()."""
    return request.app.state.cat_service


@router.get(
    "/cats",
    response_model=List[CatResponse],
    responses={
        200: {"description": "Up to 100 records"},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="List cats",
)
async def list_cats(service: CatService = Depends(get_cat_service)) -> List[CatResponse]:
    return await service.list_cats()


@router.get(
    "/cat/{cat_id}",
    response_model=CatResponse,
    responses={
        200: {"description": "The record", "model": CatResponse},
        400: {"description": "Invalid id", "model": ErrorResponse},
        404: {"description": "No such record", "model": ErrorResponse},
        500: {"description": "Store error", "model": ErrorResponse},
    },
    summary="Get a single cat by ID",
    description="The id must be an integer between 1 and 150.",
)
async def get_cat(
    cat_id: str,
    service: CatService = Depends(get_cat_service),
) -> CatResponse:
    # Kept as str so out-of-range and non-integer ids share one 400 path
    return await service.get_cat(cat_id)


@router.post(
    "/add_cat",
    status_code=201,
    response_class=Response,
    responses={
        201: {"description": "Record created"},
        400: {"description": "Missing or invalid field", "model": ErrorResponse},
        500: {"description": "Store or filesystem error", "model": ErrorResponse},
    },
    summary="Create a cat from a multipart upload",
    description=(
        "multipart/form-data with a text field `name` and a file field `image`. "
        "The image is stored under a server-chosen name and served from /image."
    ),
)
async def add_cat(
    request: Request,
    service: CatService = Depends(get_cat_service),
) -> Response:
    form = await request.form()
    try:
        cat = await service.add_cat(form)
    finally:
        # Releases the spooled temporary files backing each file part
        await form.close()

    request.state.cat_id = cat.id
    logger.info("Created cat %d (%s)", cat.id, cat.name)
    return Response(status_code=201)
