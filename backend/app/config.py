from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "bountyboard-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "BountyBoard")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/bountyboard_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # Clerk session tokens (RS256 via JWKS in prod, HS256 shared key in dev/test)
    clerk_jwks_url: str = os.getenv("CLERK_JWKS_URL", "")
    clerk_issuer: str = os.getenv("CLERK_ISSUER", "")
    clerk_jwt_key: str = os.getenv("CLERK_JWT_KEY", "dev-secret-change-me")

    # Stripe configuration
    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    min_deposit_usd: float = float(os.getenv("MIN_DEPOSIT_USD", "1"))
    max_deposit_usd: float = float(os.getenv("MAX_DEPOSIT_USD", "10000"))
    min_payout_usd: float = float(os.getenv("MIN_PAYOUT_USD", "10"))

    # Gemini (content validation + recommendation matching)
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # Platform view-count providers
    youtube_api_key: str = os.getenv("YOUTUBE_API_KEY", "")
    tiktok_access_token: str = os.getenv("TIKTOK_ACCESS_TOKEN", "")
    tiktok_client_token: str = os.getenv("TIKTOK_CLIENT_TOKEN", "")
    instagram_access_token: str = os.getenv("INSTAGRAM_ACCESS_TOKEN", "")
    peekalink_api_key: str = os.getenv("PEEKALINK_API_KEY", "")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

    # Recommendations
    recommendation_ttl_hours: int = int(os.getenv("RECOMMENDATION_TTL_HOURS", "24"))
    max_recommendations: int = int(os.getenv("MAX_RECOMMENDATIONS", "10"))

settings = Settings()
