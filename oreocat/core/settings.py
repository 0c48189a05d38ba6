import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Hard ceiling on a single listing page, whatever LIST_LIMIT says.
MAX_LIST_LIMIT = 20


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase Storage
    SUPABASE_URL: str = ""
    SUPABASE_SECRET_KEY: str = ""  # service key, server-side uploads and signing
    SUPABASE_STORAGE_BUCKET: str = "public-images"
    STORAGE_PUBLIC_URLS: bool = False  # uploads return a public URL instead of a signed one
    SIGNED_URL_EXPIRY_SECONDS: int = 60 * 60
    LIST_LIMIT: int = MAX_LIST_LIMIT

    # Auth provider: session JWTs are verified here, issued elsewhere
    AUTH_REQUIRED: bool = True
    AUTH_JWKS_URL: str = ""  # RS256 via the provider's JWKS document
    AUTH_SECRET: str = ""  # HS256 shared secret; used only when AUTH_JWKS_URL is empty
    AUTH_AUDIENCE: str = ""  # optional; set to verify JWT aud claim
    AUTH_ISSUER: str = ""  # optional; set to verify JWT iss claim
    AUTH_SESSION_COOKIE: str = "session_token"
    AUTH_SIGN_IN_URL: str = "/auth/signin"
    AUTH_SIGN_OUT_URL: str = "/auth/signout"

    # CORS: comma-separated list of allowed origins
    CORS_ORIGINS: str = ""

    LOG_LEVEL: str = "INFO"

    @property
    def storage_api_url(self) -> str:
        return f"{self.SUPABASE_URL.rstrip('/')}/storage/v1"

    @property
    def list_limit(self) -> int:
        return max(1, min(self.LIST_LIMIT, MAX_LIST_LIMIT))

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def log_configuration_warnings(s: Settings) -> None:
    """Warn about missing collaborator credentials without refusing to start."""
    if not s.SUPABASE_URL or not s.SUPABASE_SECRET_KEY:
        logger.warning("Missing SUPABASE_URL or SUPABASE_SECRET_KEY; storage calls will fail.")
    if not s.AUTH_JWKS_URL and not s.AUTH_SECRET:
        logger.warning("Missing AUTH_JWKS_URL or AUTH_SECRET; session tokens cannot be verified.")


settings = Settings()
