"""Configuración de la aplicación con Pydantic Settings"""

from typing import Dict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Valores leídos de variables de entorno o del archivo .env"""

    # Base de datos (cambia la URL si usas PostgreSQL)
    database_url: str = "sqlite:///./feedback_hr.db"

    # JWT
    secret_key: str = "feedback_hr_secret_key_change_me_in_prod"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 12  # 12 horas

    # CORS
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"

    # Jerarquía organizacional
    hierarchy_chain_depth_limit: int = 20
    hierarchy_depth_warning: int = 10
    hierarchy_search_limit: int = 20

    # Orden de privilegios (de menor a mayor)
    role_levels: Dict[str, int] = {
        "employee": 1,
        "manager": 2,
        "admin": 3,
        "super_admin": 4,
    }

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
