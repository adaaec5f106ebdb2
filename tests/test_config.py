"""
Settings parsing: derived sync URL, CORS list, validated enums.
"""

import pytest
from pydantic import ValidationError

from flashvote.core.config import Settings


def test_sync_url_derived_from_asyncpg_url():
    settings = Settings(DATABASE_URL="postgresql+asyncpg://u:p@db:5432/votes")
    assert settings.sync_database_url == "postgresql+psycopg://u:p@db:5432/votes"


def test_explicit_sync_url_wins():
    settings = Settings(
        DATABASE_URL="postgresql+asyncpg://u:p@db:5432/votes",
        DATABASE_URL_SYNC="postgresql://migrator@db/votes",
    )
    assert settings.sync_database_url == "postgresql://migrator@db/votes"


def test_cors_origins_split_on_commas():
    settings = Settings(CORS_ORIGINS="https://a.example, https://b.example,")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_log_level_normalized():
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


@pytest.mark.parametrize("field,value", [
    ("RATE_LIMIT_BACKEND", "memcached"),
    ("LOG_LEVEL", "loud"),
    ("VOTE_RATE_LIMIT_SECONDS", 0),
])
def test_invalid_settings_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})
