from pydantic_settings import BaseSettings
from typing import Dict, FrozenSet, List
from functools import lru_cache


# Phone numbers registered with ShopeePay
DEFAULT_ALLOWED_PHONE_NUMBERS = frozenset({
    "081293846571",
    "085773092184",
    "087812349091",
    "082229901765",
    "081317758842",
    "085266104738",
    "085978452203",
    "081996731156",
    "087754209934",
    "083159914870",
})


class Settings(BaseSettings):
    # Application settings
    app_name: str = "ShopeePay Payment Service"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # CORS settings
    allowed_origins: List[str] = ["*"]  # In production, specify exact origins
    allowed_methods: List[str] = ["GET", "POST", "OPTIONS"]
    allowed_headers: List[str] = ["*"]

    # Auth settings, shared with the BNI backend that signs the tokens
    jwt_secret: str = "supersecret"
    jwt_algorithms: List[str] = ["HS256", "HS384", "HS512"]  # HMAC family only

    # Business logic settings
    allowed_phone_numbers: FrozenSet[str] = DEFAULT_ALLOWED_PHONE_NUMBERS
    initial_balance: float = 1000000.0
    seed_accounts: Dict[int, float] = {}  # user_id -> balance, loaded on startup

    # Timezone
    timezone: str = "Asia/Jakarta"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Environment-specific configurations
class DevelopmentSettings(Settings):
    debug: bool = True
    log_level: str = "DEBUG"
    log_format: str = "text"


class ProductionSettings(Settings):
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: List[str] = []  # Must be specified in production


class TestingSettings(Settings):
    debug: bool = True
    log_level: str = "WARNING"  # Reduce noise in tests
    jwt_secret: str = "testing-secret-key-0123456789abcdef-0123456789abcdef-0123456789abcdef"


def get_settings_for_environment(env: str = "development") -> Settings:
    """Get settings for specific environment."""
    settings_map = {
        "development": DevelopmentSettings,
        "production": ProductionSettings,
        "testing": TestingSettings,
    }

    settings_class = settings_map.get(env.lower(), Settings)
    return settings_class()
