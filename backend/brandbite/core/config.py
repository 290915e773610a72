# backend/brandbite/core/config.py

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_asyncpg_unsupported_params(url: str) -> str:
    """
    asyncpg does NOT accept sslmode or channel_binding as connect kwargs.
    Managed Postgres providers put them in the URL query, so drop them before
    SQLAlchemy hands them to asyncpg.connect().
    """
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = parse_qsl(parts.query, keep_blank_values=True)
    filtered = [(k, v) for (k, v) in params if k not in {"sslmode", "channel_binding"}]
    new_query = urlencode(filtered, doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -----------------------------
    # Environment
    # -----------------------------
    # Use: development | staging | production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # -----------------------------
    # DB
    # -----------------------------
    DATABASE_URL_ASYNC: str = "sqlite+aiosqlite:///./brandbite.db"
    DATABASE_URL_SYNC: str = "sqlite:///./brandbite.db"
    SQL_ECHO: bool = False

    # -----------------------------
    # JWT
    # -----------------------------
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # -----------------------------
    # Tokens / payouts
    # -----------------------------
    # Share of a job's token cost paid to the creative when no payout tier applies.
    BASE_PAYOUT_PERCENT: int = 60
    # Fallback when the MIN_WITHDRAWAL_TOKENS app setting has not been stored yet.
    DEFAULT_MIN_WITHDRAWAL_TOKENS: int = 20
    # First ticket of a company gets this number + 1 (e.g. #101).
    FIRST_COMPANY_TICKET_NUMBER: int = 100

    @property
    def DATABASE_URL_ASYNC_CLEAN(self) -> str:
        return _strip_asyncpg_unsupported_params(self.DATABASE_URL_ASYNC)

    def model_post_init(self, __context) -> None:  # pydantic v2 hook
        env = (self.ENVIRONMENT or "").strip().lower()

        # Never run staging/production with a placeholder secret.
        if env in {"staging", "production"}:
            if not self.JWT_SECRET or self.JWT_SECRET.strip() == "dev-secret-change-me":
                raise ValueError("JWT_SECRET must be set to a strong value in staging/production.")
            if len(self.JWT_SECRET.strip()) < 32:
                raise ValueError("JWT_SECRET is too short; use at least 32 characters in staging/production.")

        if self.JWT_ALGORITHM not in {"HS256"}:
            raise ValueError(f"Unsupported JWT_ALGORITHM={self.JWT_ALGORITHM!r}. Allowed: HS256")

        if not 1 <= self.BASE_PAYOUT_PERCENT <= 100:
            raise ValueError("BASE_PAYOUT_PERCENT must be between 1 and 100.")


settings = Settings()
