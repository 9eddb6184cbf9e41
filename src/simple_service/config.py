import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("SIMPLE_SERVICE_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


@dataclass
class Config:
    environment: str
    database_url: str
    pool_min_size: int
    pool_max_size: int
    acquire_timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            database_url=os.environ.get(
                "DATABASE_URL", "postgresql://localhost:5432/simple_service"
            ),
            pool_min_size=int(os.environ.get("DB_POOL_MIN_SIZE", "1")),
            pool_max_size=int(os.environ.get("DB_POOL_MAX_SIZE", "10")),
            acquire_timeout=float(os.environ.get("DB_ACQUIRE_TIMEOUT", "30")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


config = Config.from_env()
