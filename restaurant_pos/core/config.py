from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./restaurant_pos.db"
    backend_cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    # Facturación
    card_surcharge_rate: float = 0.13
    timezone: str = "America/Costa_Rica"

    # Historial y cierre de cuentas
    recent_sales_limit: int = 50
    close_order_max_attempts: int = 3

    seed_menu: bool = True

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
