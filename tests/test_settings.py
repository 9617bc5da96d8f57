import pytest
from pydantic import ValidationError

from inkwell.app.core.config import Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.rate_limit_interval_seconds == 60.0
    assert settings.rate_limit_unique_tokens == 500
    assert settings.comment_rate_limit == 10
    assert settings.comment_like_rate_limit == 60
    assert settings.comment_max_length == 2000
    assert settings.new_user_comment_threshold == 3
    assert settings.database_url.startswith("postgresql+asyncpg://")


def test_database_url_override(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./inkwell.db")

    settings = Settings(_env_file=None)
    assert settings.database_url == "sqlite+aiosqlite:///./inkwell.db"


def test_cors_origins_accepts_host_without_json(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "blog.example.com")

    settings = Settings(_env_file=None)
    assert settings.cors_origins == ["http://blog.example.com", "https://blog.example.com"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('["http://localhost:5173"]', ["http://localhost:5173"]),
        ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
        ("*", ["*"]),
        ("[]", []),
        ("", []),
    ],
)
def test_cors_origins_parsing_variants(monkeypatch, raw: str, expected: list[str]) -> None:
    monkeypatch.setenv("CORS_ORIGINS", raw)

    settings = Settings(_env_file=None)
    assert settings.cors_origins == expected


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("COMMENT_RATE_LIMIT", "0"),
        ("COMMENT_LIKE_RATE_LIMIT", "-1"),
        ("RATE_LIMIT_UNIQUE_TOKENS", "0"),
        ("RATE_LIMIT_INTERVAL_SECONDS", "0"),
        ("NEW_USER_COMMENT_THRESHOLD", "-1"),
    ],
)
def test_rejects_invalid_limits(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
