from pydantic_settings import BaseSettings
from typing import List, Optional
from pathlib import Path

# Get the project directory (parent of the package directory)
BACKEND_DIR = Path(__file__).parent.parent
ENV_FILE = BACKEND_DIR / ".env"

class Settings(BaseSettings):
    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"  # development, production, test
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173"]
    timezone: str = "Asia/Tashkent"

    # Database settings - database_url wins over the individual parts when set
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "campus_library"
    db_user: str = "postgres"
    db_password: str = ""
    db_ssl_mode: str = "prefer"  # Options: disable, allow, prefer, require, verify-ca, verify-full
    db_ssl_root_cert: Optional[str] = None

    # JWT settings
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 1440

    # Redis cache
    redis_url: str = "redis://localhost:6379/0"
    category_cache_ttl_seconds: int = 3600

    # MQTT real-time push
    realtime_enabled: bool = True
    realtime_topic_prefix: str = "library"
    mqtt_broker: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    mqtt_use_tls: bool = False
    mqtt_tls_insecure: bool = False  # Allow self-signed broker certificates
    mqtt_ca_cert: Optional[str] = None

    # External HR record source used by the user sync
    hr_api_base_url: Optional[str] = None
    hr_api_token: Optional[str] = None
    hr_app_id: Optional[str] = None
    hr_page_size: int = 100

    class Config:
        env_file = str(ENV_FILE) if ENV_FILE.exists() else ".env"
        case_sensitive = False
        extra = "ignore"

settings = Settings()
