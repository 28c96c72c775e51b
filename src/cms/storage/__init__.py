"""Pluggable storage backends and backend selection."""

import structlog

from cms.config import Settings
from cms.storage.base import FileEntry, StorageProvider
from cms.storage.github import GitHubStorage
from cms.storage.local import LocalStorage
from cms.storage.s3 import S3Storage

logger = structlog.get_logger()


def create_storage_provider(settings: Settings) -> StorageProvider:
    """Select the storage backend for this process.

    Object storage wins when its credentials are complete; otherwise
    production with a GitHub token uses the repository; otherwise local
    disk. There is no fallback if the chosen backend later fails.

    Args:
        settings: Resolved configuration.

    Returns:
        The storage provider to use for every request.
    """
    provider: StorageProvider
    if settings.s3_configured:
        provider = S3Storage(
            bucket=settings.s3_bucket,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            account_id=settings.s3_account_id,
            endpoint_url=settings.s3_endpoint_url,
            public_url=settings.s3_public_url,
            region=settings.s3_region,
        )
    elif settings.is_production and settings.github_token:
        provider = GitHubStorage(
            token=settings.github_token,
            repo=settings.github_repo,
            branch=settings.github_branch,
            base_dir=settings.content_dir,
            uploads_dir=settings.uploads_dir,
        )
    else:
        provider = LocalStorage(settings.content_dir, settings.uploads_dir)

    logger.info("storage_selected", provider=provider.name)
    return provider


__all__ = [
    "FileEntry",
    "GitHubStorage",
    "LocalStorage",
    "S3Storage",
    "StorageProvider",
    "create_storage_provider",
]
