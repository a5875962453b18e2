"""Catdex — Settings validation tests."""

import pytest
from pydantic import ValidationError as SettingsError

from catdex.config import Settings


def test_defaults_leave_threads_to_spare():
    settings = Settings(_env_file=None)
    assert settings.blocking_workers > settings.db_pool_size + settings.db_max_overflow
    assert settings.db_pool_timeout == 5.0


@pytest.mark.parametrize("workers, pool_size, overflow", [(8, 10, 0), (2, 2, 0), (5, 3, 2)])
def test_workers_must_exceed_connection_limit(workers, pool_size, overflow):
    with pytest.raises(SettingsError, match="blocking_workers"):
        Settings(
            _env_file=None,
            blocking_workers=workers,
            db_pool_size=pool_size,
            db_max_overflow=overflow,
        )


def test_tls_files_must_be_paired():
    with pytest.raises(SettingsError, match="tls_cert_file"):
        Settings(_env_file=None, tls_cert_file="cert.pem")


@pytest.mark.parametrize("raw, expected", [("image", "/image"), ("/pics/", "/pics")])
def test_image_url_prefix_normalized(raw, expected):
    assert Settings(_env_file=None, image_url_prefix=raw).image_url_prefix == expected
