"""
Catdex — Cat Repository
=========================

What:  The three database operations of the service: bounded list, point
       lookup by primary key, insert.
Why:   Keeps SQL and the translation of SQLAlchemy errors into application
       errors in one class.
How:   Synchronous methods; each acquires one pooled connection, issues one
       statement and releases the connection before returning.
Who:   Called by CatService through the blocking worker pool. Never call
       these from the event loop thread.
"""

import logging
from typing import List

from sqlalchemy import exc, select

from catdex.database import ConnectionPool
from catdex.exceptions import NotFoundError, UnexpectedError, ValidationError
from catdex.models.cat import Cat
from catdex.schemas.cat import NewCat

logger = logging.getLogger(__name__)


class CatRepository:
    """
    Maps Cat rows to and from the relational store.

    Error Handling Strategy:
        PoolExhaustedError from acquisition propagates unchanged.
        Missing rows become NotFoundError, rejected inserts ValidationError,
        and every other SQLAlchemyError is wrapped in UnexpectedError with the
        operation name and its parameters in the context.
    """

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def list_cats(self, limit: int) -> List[Cat]:
        """
        Return up to `limit` records, ordered by id for stable browsing.

        Query plan:
            SELECT id, name, image_path FROM cats ORDER BY id LIMIT :limit
        """
        with self.pool.acquire() as session:
            try:
                result = session.execute(select(Cat).order_by(Cat.id).limit(limit))
                return list(result.scalars().all())
            except exc.SQLAlchemyError as e:
                logger.error("Database error listing cats (limit=%d): %s", limit, e)
                raise UnexpectedError(
                    operation="list_cats",
                    context={"limit": limit, "error_type": type(e).__name__},
                ) from e

    def get_by_id(self, cat_id: int) -> Cat:
        """
        Return the record whose primary key is `cat_id`.

        Raises:
            NotFoundError:   No such row (→ 404)
            UnexpectedError: Query execution failed (→ 500)
        """
        with self.pool.acquire() as session:
            try:
                cat = session.get(Cat, cat_id)
            except exc.SQLAlchemyError as e:
                logger.error("Database error fetching cat %d: %s", cat_id, e)
                raise UnexpectedError(
                    operation="get_by_id",
                    context={"cat_id": cat_id, "error_type": type(e).__name__},
                ) from e

        if cat is None:
            raise NotFoundError(resource="cat", resource_id=cat_id)
        return cat

    def insert(self, new_cat: NewCat) -> Cat:
        """
        Insert one row and commit it.

        Returns the persisted Cat with its database-assigned id.

        Raises:
            ValidationError: The store rejected the values (constraint violation)
            UnexpectedError: Any other database failure
        """
        with self.pool.acquire() as session:
            cat = Cat(name=new_cat.name, image_path=new_cat.image_path)
            try:
                session.add(cat)
                session.commit()
            except exc.IntegrityError as e:
                session.rollback()
                logger.warning("Insert rejected by the store for cat %r: %s", new_cat.name, e.orig)
                raise ValidationError(
                    message="The record was rejected by the store",
                    context={"name": new_cat.name, "image_path": new_cat.image_path},
                ) from e
            except exc.SQLAlchemyError as e:
                session.rollback()
                logger.error("Database error inserting cat %r: %s", new_cat.name, e)
                raise UnexpectedError(
                    operation="insert",
                    context={
                        "name": new_cat.name,
                        "image_path": new_cat.image_path,
                        "error_type": type(e).__name__,
                    },
                ) from e

        logger.info("Cat %d inserted: name=%r image_path=%s", cat.id, cat.name, cat.image_path)
        return cat
