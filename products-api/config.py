import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Clé maître fixe (pas de vraie authentification pour l'instant)
MASTER_KEY_HEADER = "X-MASTER-KEY"
MASTER_KEY = "TOKEN_FAKE"


class Settings(BaseModel):
    """Runtime configuration, built once at startup and passed to create_app()."""

    service_name: str = "products-api"
    database_url: str = "sqlite:///./products.db"
    port: int = 8001
    log_level: str = "INFO"
    log_sink: Optional[str] = "logs.json"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    master_key_header: str = MASTER_KEY_HEADER
    master_key: str = MASTER_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        # Chargement des variables d'environnement
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./products.db"),
            port=int(os.getenv("PORT", 8001)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_sink=os.getenv("LOG_SINK", "logs.json"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
