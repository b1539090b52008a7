import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("TABLEGATE_ENV", "development").lower()
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
    default_limit: int
    log_level: str
    models_path: Path

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            database_url=os.environ.get("DATABASE_URL", "postgresql://localhost:5432/tablegate"),
            default_limit=int(os.environ.get("TABLEGATE_DEFAULT_LIMIT", "20")),
            log_level=os.environ.get("TABLEGATE_LOG_LEVEL", "WARNING").upper(),
            models_path=Path(os.environ.get("TABLEGATE_MODELS_PATH", "./config/models.json")),
        )

    def load_models_config(self) -> dict:
        with open(self.models_path) as f:
            return json.load(f)


config = Config.from_env()
