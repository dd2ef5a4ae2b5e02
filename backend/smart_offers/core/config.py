from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./smart_offers.db"
    
    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"
    
    # Shopify app secret, used to sign webhooks
    SHOPIFY_API_SECRET: Optional[str] = None
    
    LOG_LEVEL: str = "INFO"
    
    # Applied to schedules stored without a timezone
    DEFAULT_TIMEZONE: str = "UTC"
    
    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
    
    class Config:
        env_file = ".env"


settings = Settings()
