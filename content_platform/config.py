"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── MySQL (identity, follow graph, favorites) ──────────────────────────
    mysql_host: str = "mysql"
    mysql_port: int = 3306
    mysql_user: str = "root"
    mysql_password: str = ""
    mysql_database: str = "content_platform"

    @property
    def database_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.mysql_user}:{self.mysql_password}"
            f"@{self.mysql_host}:{self.mysql_port}/{self.mysql_database}"
        )

    # ── MongoDB (posts, moments, embedded comments) ────────────────────────
    mongo_uri: str = "mongodb://mongo:27017"
    mongo_database: str = "content_platform"
    mongo_timeout_ms: int = 2000

    # ── Redis (slug allocation lock) ───────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    slug_lock_enabled: bool = True
    slug_lock_timeout: float = 5.0       # seconds a lock may be held
    slug_max_attempts: int = 5           # insert retries on unique-index races

    # ── Paging & feed knobs ────────────────────────────────────────────────
    default_page_size: int = 10
    max_page_size: int = 100
    popular_min_likes: int = 100
    recommend_limit: int = 5

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "content-platform-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
