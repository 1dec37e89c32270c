import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# .env na raiz do projeto
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseModel):
    database_url: str = "sqlite:///./salon_booking.db"
    business_timezone: str = "Europe/Zurich"

    # JWT
    secret_key: str = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # e-mail
    resend_api_key: Optional[str] = None
    site_email: str = "termin@schnittwerk.dev"
    site_address: Optional[str] = None

    log_level: str = "INFO"
    db_slow_query_threshold: float = 1.0
    db_pool_recycle: int = 300

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "database_url": os.getenv("DATABASE_URL"),
            "business_timezone": os.getenv("BUSINESS_TIMEZONE"),
            "secret_key": os.getenv("SECRET_KEY"),
            "algorithm": os.getenv("ALGORITHM"),
            "access_token_expire_minutes": os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES"),
            "resend_api_key": os.getenv("RESEND_API_KEY"),
            "site_email": os.getenv("SITE_EMAIL"),
            "site_address": os.getenv("SITE_ADDRESS"),
            "log_level": os.getenv("LOG_LEVEL"),
            "db_slow_query_threshold": os.getenv("DB_SLOW_QUERY_THRESHOLD"),
            "db_pool_recycle": os.getenv("DB_POOL_RECYCLE"),
        }
        # variáveis ausentes ficam com o default
        settings = cls(**{key: value for key, value in values.items() if value is not None})

        if values["secret_key"] is None:
            import warnings

            warnings.warn(
                "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION",
                RuntimeWarning,
                stacklevel=2,
            )
        return settings
