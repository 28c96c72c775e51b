"""CMS configuration loaded from environment variables."""
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cms.validation import MAX_FILE_SIZE


class Settings(BaseSettings):
    """CMS configuration loaded from environment variables.

    Every field is read from a ``CMS_``-prefixed variable, e.g.
    ``CMS_ADMIN_USERNAME`` or ``CMS_GITHUB_TOKEN``.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        environment: Deployment mode; production enables secure cookies
            and the GitHub storage backend.
        cors_origins_raw: Raw comma-separated CORS origins string.
        admin_username: Administrator login name.
        admin_password: Administrator password.
        session_secret: Session signing secret, at least 32 bytes.
        password_min_length: Minimum accepted login password length.
        rate_limit_max_attempts: Failed logins allowed per window.
        rate_limit_window_seconds: Rate limit window duration.
        rate_limit_sweep_interval: Seconds between expired-entry sweeps.
        content_dir: Root directory for markdown content.
        uploads_dir: Root directory for uploaded files.
        max_file_size: Size ceiling for content and uploads in bytes.
        github_token: GitHub token for repository storage.
        github_repo: Repository in ``owner/repo`` form.
        github_branch: Branch that content is read from and committed to.
        s3_bucket: Object storage bucket name.
        s3_access_key_id: Object storage access key.
        s3_secret_access_key: Object storage secret key.
        s3_account_id: Cloudflare R2 account id, used to derive the endpoint.
        s3_endpoint_url: Explicit S3-compatible endpoint.
        s3_public_url: Public base URL for uploaded objects.
        s3_region: Object storage region.
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    environment: Literal["development", "production"] = "development"
    cors_origins_raw: str = "http://localhost:3000"

    admin_username: str = ""
    admin_password: str = ""
    session_secret: str = ""
    password_min_length: int = 0

    rate_limit_max_attempts: int = 5
    rate_limit_window_seconds: float = 15 * 60
    rate_limit_sweep_interval: float = 5 * 60

    content_dir: str = "public/content"
    uploads_dir: str = "public/uploads"
    max_file_size: int = MAX_FILE_SIZE

    github_token: str = ""
    github_repo: str = ""
    github_branch: str = "main"

    s3_bucket: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_account_id: str = ""
    s3_endpoint_url: str = ""
    s3_public_url: str = ""
    s3_region: str = "auto"

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @computed_field
    @property
    def s3_configured(self) -> bool:
        """Whether object storage credentials are complete.

        An endpoint is required either explicitly or via the account id.
        """
        return bool(
            self.s3_bucket
            and self.s3_access_key_id
            and self.s3_secret_access_key
            and (self.s3_account_id or self.s3_endpoint_url)
        )
