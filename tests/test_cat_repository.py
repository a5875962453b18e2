"""
Catdex — Repository and Pool Tests
====================================

What:  CatRepository against a real SQLite database, and ConnectionPool
       acquisition limits.
How:   Called directly from the test thread; the repository is synchronous.
"""

import time

import pytest
from sqlalchemy import text

from catdex.config import Settings
from catdex.database import Base, ConnectionPool, build_engine
from catdex.exceptions import (
    ConfigurationError,
    NotFoundError,
    PoolExhaustedError,
    UnexpectedError,
    ValidationError,
)
from catdex.models.cat import Cat
from catdex.schemas.cat import NewCat
from catdex.services.cat_repository import CatRepository


@pytest.fixture
def repository(pool) -> CatRepository:
    return CatRepository(pool)


def _seed(pool: ConnectionPool, count: int) -> None:
    with pool.acquire() as session:
        session.add_all(
            Cat(name=f"cat-{i}", image_path=f"/image/cat-{i}.png") for i in range(count)
        )
        session.commit()


class TestCatRepository:

    def test_insert_assigns_id(self, repository):
        cat = repository.insert(NewCat(name="Tom", image_path="/image/tom.png"))
        assert cat.id is not None
        assert repository.get_by_id(cat.id).name == "Tom"

    def test_list_empty(self, repository):
        assert repository.list_cats(100) == []

    def test_list_never_exceeds_limit(self, pool, repository):
        _seed(pool, 105)
        cats = repository.list_cats(100)
        assert len(cats) == 100
        for cat in cats:
            assert cat.id is not None
            assert cat.name
            assert cat.image_path

    def test_list_returns_all_below_limit(self, pool, repository):
        _seed(pool, 3)
        assert [c.name for c in repository.list_cats(100)] == ["cat-0", "cat-1", "cat-2"]

    def test_get_by_id_missing_raises_not_found(self, repository):
        with pytest.raises(NotFoundError):
            repository.get_by_id(42)

    def test_insert_rejected_by_store_is_validation_error(self, repository):
        # Bypasses pydantic so the NOT NULL constraint is what rejects it
        bad = NewCat.model_construct(name=None, image_path="/image/x.png")
        with pytest.raises(ValidationError):
            repository.insert(bad)
        assert repository.list_cats(100) == []

    def test_database_failure_is_unexpected_error(self, pool, repository):
        with pool.acquire() as session:
            session.execute(text("DROP TABLE cats"))
            session.commit()

        with pytest.raises(UnexpectedError) as info:
            repository.list_cats(100)
        assert info.value.context["operation"] == "list_cats"

        with pytest.raises(UnexpectedError) as info:
            repository.get_by_id(1)
        assert info.value.context["cat_id"] == 1

    def test_connection_returned_after_each_call(self, pool, repository):
        for _ in range(10):
            repository.list_cats(100)
        assert pool.engine.pool.checkedout() == 0


class TestConnectionPool:

    def test_missing_database_url_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            build_engine(Settings(_env_file=None, database_url=""))

    def test_ping(self, pool):
        pool.ping()

    def test_exhausted_pool_times_out(self, tmp_path):
        settings = Settings(
            _env_file=None,
            database_url=f"sqlite:///{tmp_path / 'pool.db'}",
            db_pool_size=1,
            db_max_overflow=0,
            db_pool_timeout=0.2,
        )
        pool = ConnectionPool.from_settings(settings)
        Base.metadata.create_all(pool.engine)
        try:
            held = pool.engine.connect()
            started = time.monotonic()
            with pytest.raises(PoolExhaustedError) as info:
                with pool.acquire():
                    pass
            assert time.monotonic() - started < 2.0
            assert info.value.context["timeout_seconds"] == 0.2
            held.close()

            # Capacity is back once the holder releases its connection
            with pool.acquire():
                pass
        finally:
            pool.dispose()
