"""
Catdex — Cat Service (Handler Orchestration)
==============================================

What:  The list / get / create workflows behind the /api routes.
Why:   Routes stay thin (HTTP only); the ordering of validation, file write
       and database work lives here and can be tested without HTTP.
How:   Composes the validation layer, UploadIngestor and CatRepository.
       Every repository call goes through the BlockingExecutor.

Orchestration Flow (POST /api/add_cat):
    ┌──────────┐    ┌────────────┐    ┌──────────────┐    ┌──────────────┐
    │  Parse   │───▶│  Validate  │───▶│  Write image │───▶│  Insert row  │
    │  form    │    │ name/image │    │  (Ingestor)  │    │ (Repository) │
    └──────────┘    └────────────┘    └──────────────┘    └──────────────┘

    Validation failure → nothing written, no connection taken.
    Insert failure     → the image stays on disk as an orphan. This is a
                         known inconsistency: no compensating delete is made,
                         the orphan is logged with its path and the insert
                         error propagates.
"""

import logging
from typing import List, Optional

from starlette.datastructures import FormData

from catdex.exceptions import CatdexError
from catdex.schemas.cat import CatResponse, NewCat
from catdex.services.cat_repository import CatRepository
from catdex.services.upload_service import UploadIngestor
from catdex.services.validation import parse_cat_id, validate_create_form
from catdex.workers import BlockingExecutor

logger = logging.getLogger(__name__)


class CatService:
    """
    One instance per application, built from injected dependencies.

    Each method holds a database connection only for the single repository
    call it makes; nothing is retained across awaits.
    """

    def __init__(
        self,
        repository: CatRepository,
        ingestor: UploadIngestor,
        executor: BlockingExecutor,
        list_limit: int = 100,
        db_timeout: Optional[float] = None,
    ):
        self.repository = repository
        self.ingestor = ingestor
        self.executor = executor
        self.list_limit = list_limit
        # Bounds the wait for a worker thread; checkout has its own pool timeout
        self.db_timeout = db_timeout

    async def list_cats(self) -> List[CatResponse]:
        cats = await self.executor.run(
            self.repository.list_cats, self.list_limit, queue_timeout=self.db_timeout
        )
        return [CatResponse.model_validate(cat) for cat in cats]

    async def get_cat(self, raw_id: str) -> CatResponse:
        cat_id = parse_cat_id(raw_id)
        cat = await self.executor.run(
            self.repository.get_by_id, cat_id, queue_timeout=self.db_timeout
        )
        return CatResponse.model_validate(cat)

    async def add_cat(self, form: FormData) -> CatResponse:
        """
        Create a record from a parsed multipart form.

        Steps (strictly sequential):
            1. Validate `name` and `image`
            2. Write the image to the image directory
            3. Insert the row with the image's public path

        Returns the created record.
        """
        request = validate_create_form(self.ingestor.extract_fields(form))

        stored = await self.ingestor.store_image(request.image)

        new_cat = NewCat(name=request.name, image_path=stored.image_path)
        try:
            cat = await self.executor.run(
                self.repository.insert, new_cat, queue_timeout=self.db_timeout
            )
        except CatdexError:
            logger.warning(
                "Insert failed after image write; orphaned file left at %s",
                stored.path,
            )
            raise

        return CatResponse.model_validate(cat)
