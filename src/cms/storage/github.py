"""GitHub repository storage via the REST contents API, used in production."""

import base64
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from cms.errors import ConfigurationError, NotFoundError, StorageUnavailableError
from cms.storage.base import (
    FileEntry,
    StorageProvider,
    decode_text,
    is_listable,
    join_path,
    sort_entries,
)

logger = structlog.get_logger()

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
TIMEOUT = 10.0


class GitHubStorage(StorageProvider):
    """Commits content and uploads to a GitHub repository.

    Every write and delete is a commit on the configured branch. Writes
    to existing files must carry the current blob SHA; a stale SHA from a
    concurrent writer surfaces as StorageUnavailableError.
    """

    name = "github"

    def __init__(
        self,
        token: str,
        repo: str,
        branch: str = "main",
        base_dir: str = "public/content",
        uploads_dir: str = "public/uploads",
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize GitHub storage.

        Args:
            token: GitHub token with contents write access.
            repo: Repository in ``owner/repo`` form.
            branch: Branch to read from and commit to.
            base_dir: Content directory inside the repository.
            uploads_dir: Uploads directory inside the repository.
            client: Preconfigured HTTP client, mainly for tests.

        Raises:
            ConfigurationError: If the token is missing or repo is malformed.
        """
        if not token or not repo:
            raise ConfigurationError("CMS_GITHUB_TOKEN and CMS_GITHUB_REPO must be set")

        owner, _, name = repo.partition("/")
        if not owner or not name or "/" in name:
            raise ConfigurationError('CMS_GITHUB_REPO must be in format "owner/repo"')

        self.owner = owner
        self.repo = name
        self.branch = branch
        self.base_dir = base_dir.strip("/")
        self.uploads_dir = uploads_dir.strip("/")
        self._client = client or httpx.Client(base_url=GITHUB_API_URL, timeout=TIMEOUT)
        self._client.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            }
        )

    def _repo_path(self, file_path: str) -> str:
        return join_path(self.base_dir, file_path) if file_path else self.base_dir

    def _contents_url(self, repo_path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(repo_path, safe='/')}"

    def _request(
        self,
        method: str,
        repo_path: str,
        file_path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a contents API request, mapping transport and status failures.

        Raises:
            NotFoundError: On 404.
            StorageUnavailableError: On any other failure.
        """
        try:
            response = self._client.request(method, self._contents_url(repo_path), **kwargs)
        except httpx.HTTPError as e:
            logger.error("github_request_failed", method=method, path=file_path, error=str(e))
            raise StorageUnavailableError(f"GitHub request failed: {e}", file_path) from e

        if response.status_code == 404:
            raise NotFoundError(file_path)

        if response.is_error:
            logger.error(
                "github_request_rejected",
                method=method,
                path=file_path,
                status=response.status_code,
            )
            raise StorageUnavailableError(
                f"GitHub API returned {response.status_code} for {file_path}",
                file_path,
            )

        return response

    def _get_contents(self, repo_path: str, file_path: str) -> Any:
        response = self._request("GET", repo_path, file_path, params={"ref": self.branch})
        return response.json()

    def _get_sha(self, repo_path: str, file_path: str) -> str | None:
        """Current blob SHA of a file, or None if it does not exist."""
        try:
            data = self._get_contents(repo_path, file_path)
        except NotFoundError:
            return None
        if isinstance(data, dict):
            return data.get("sha")
        return None

    def _put(self, repo_path: str, file_path: str, data: bytes, message: str) -> None:
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.branch,
        }
        sha = self._get_sha(repo_path, file_path)
        if sha:
            body["sha"] = sha
        self._request("PUT", repo_path, file_path, json=body)

    def read_file(self, file_path: str) -> str:
        repo_path = self._repo_path(file_path)
        data = self._get_contents(repo_path, file_path)
        if not isinstance(data, dict) or data.get("type") != "file":
            raise NotFoundError(file_path)

        # Files over 1MB come back without inline content
        if data.get("encoding") == "none":
            response = self._request(
                "GET",
                repo_path,
                file_path,
                params={"ref": self.branch},
                headers={"Accept": "application/vnd.github.raw+json"},
            )
            return decode_text(response.content, file_path)

        return decode_text(base64.b64decode(data.get("content") or ""), file_path)

    def write_file(self, file_path: str, content: str) -> None:
        self._put(
            self._repo_path(file_path),
            file_path,
            content.encode("utf-8"),
            f"Update {file_path}",
        )
        logger.info("github_file_committed", path=file_path, branch=self.branch)

    def delete_file(self, file_path: str) -> None:
        repo_path = self._repo_path(file_path)
        sha = self._get_sha(repo_path, file_path)
        if sha is None:
            raise NotFoundError(file_path)

        self._request(
            "DELETE",
            repo_path,
            file_path,
            json={"message": f"Delete {file_path}", "sha": sha, "branch": self.branch},
        )
        logger.info("github_file_deleted", path=file_path, branch=self.branch)

    def list_files(self, directory: str) -> list[FileEntry]:
        try:
            data = self._get_contents(self._repo_path(directory), directory)
        except (NotFoundError, StorageUnavailableError):
            return []

        if not isinstance(data, list):
            return []

        entries = [
            FileEntry(
                path=join_path(directory, item["name"]),
                name=item["name"],
                type="directory" if item.get("type") == "dir" else "file",
            )
            for item in data
            if isinstance(item, dict) and "name" in item
        ]
        return sort_entries([e for e in entries if is_listable(e)])

    def exists(self, file_path: str) -> bool:
        try:
            self._get_contents(self._repo_path(file_path), file_path)
        except (NotFoundError, StorageUnavailableError) as e:
            logger.debug("github_exists_false", path=file_path, error=str(e))
            return False
        return True

    def upload_file(self, file_path: str, data: bytes) -> str:
        self._put(
            join_path(self.uploads_dir, file_path),
            file_path,
            data,
            f"Upload file: {file_path}",
        )
        logger.info("github_file_uploaded", path=file_path, size=len(data))
        return f"/uploads/{file_path}"

    def check(self) -> None:
        try:
            response = self._client.get(f"/repos/{self.owner}/{self.repo}")
        except httpx.HTTPError as e:
            raise StorageUnavailableError(f"GitHub unreachable: {e}") from e
        if response.is_error:
            raise StorageUnavailableError(
                f"GitHub repository check returned {response.status_code}"
            )

    def close(self) -> None:
        self._client.close()
