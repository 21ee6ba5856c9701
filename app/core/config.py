from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    PROJECT_NAME: str = "Room Status Sync"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./rooms.db"
    DATABASE_SSL: bool = False
    AUTO_CREATE_TABLES: bool = True
    SEED_ON_STARTUP: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Rooms
    DEFAULT_ROOM_STATUS: str = "ready"
    # Empty list keeps the status vocabulary open
    ALLOWED_STATUSES: List[str] = []

    # WebSocket
    WS_SEND_TIMEOUT: float = 10.0
    WS_HEARTBEAT_INTERVAL: float = 30.0

    # Server
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

settings = Settings()
