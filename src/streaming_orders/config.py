# Файл: src/streaming_orders/config.py

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url


# --- 1. Настройки PostgreSQL ---
class DatabaseConfig(BaseModel):
    url: str = "postgresql+asyncpg://localhost:5432/orders"
    user: str = "orders"
    password: str = "orders"
    max_pool_size: int = 10

    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800
    application_name: str = "streaming_orders"

    def get_dsn(self) -> URL:
        """
        Собирает DSN для SQLAlchemy: подставляет user/password в URL
        и переводит обычный `postgresql://` на драйвер asyncpg.
        """
        url = make_url(self.url)
        if url.drivername in ("postgresql", "postgres"):
            url = url.set(drivername="postgresql+asyncpg")
        return url.set(username=url.username or self.user, password=url.password or self.password)


# --- 2. Настройки HTTP-сервера ---
class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


# --- 3. Основной класс для явной передачи конфигурации ---
class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


# --- 4. Чтение из окружения / .env ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    database_url: str = Field("postgresql+asyncpg://localhost:5432/orders", alias="DATABASE_URL")
    database_user: str = Field("orders", alias="DATABASE_USER")
    database_password: str = Field("orders", alias="DATABASE_PASSWORD")
    database_max_pool_size: int = Field(10, alias="DATABASE_MAX_POOL_SIZE")

    http_host: str = Field("0.0.0.0", alias="HTTP_HOST")
    http_port: int = Field(8080, alias="HTTP_PORT")

    @property
    def database(self) -> DatabaseConfig:
        return DatabaseConfig(
            url=self.database_url,
            user=self.database_user,
            password=self.database_password,
            max_pool_size=self.database_max_pool_size,
        )

    @property
    def server(self) -> ServerConfig:
        return ServerConfig(host=self.http_host, port=self.http_port)

    def to_app_config(self) -> AppConfig:
        return AppConfig(database=self.database, server=self.server, log_level=self.log_level)


# Ленивая инициализация: настройки читаются при первом вызове, а не при импорте.
_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Возвращает синглтон-экземпляр настроек, создавая его при первом вызове.
    """
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = Settings()
    return _cached_settings


def reset_settings() -> None:
    """Сбрасывает кеш настроек (нужно тестам, которые меняют окружение)."""
    global _cached_settings
    _cached_settings = None
