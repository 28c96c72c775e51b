"""GitHub repository storage tests against a fake contents API."""

import base64
import hashlib
import json
from typing import Any

import httpx
import pytest

from cms.errors import ConfigurationError, NotFoundError, StorageUnavailableError
from cms.storage.github import GITHUB_API_URL, GitHubStorage

CONTENTS_PREFIX = "/repos/owner/site/contents/"


class FakeGitHub:
    """In-memory stand-in for the repository contents endpoints."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.raw_only: set[str] = set()
        self.fail_with: int | None = None

    def sha(self, path: str) -> str:
        return hashlib.sha1(self.files[path]).hexdigest()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "boom"})

        if request.url.path == "/repos/owner/site":
            return httpx.Response(200, json={"full_name": "owner/site"})

        path = request.url.path.removeprefix(CONTENTS_PREFIX)
        if request.method == "GET":
            return self._get(request, path)
        if request.method == "PUT":
            return self._put(request, path)
        if request.method == "DELETE":
            return self._delete(request, path)
        return httpx.Response(405)

    def _get(self, request: httpx.Request, path: str) -> httpx.Response:
        if path in self.files:
            if request.headers["accept"] == "application/vnd.github.raw+json":
                return httpx.Response(200, content=self.files[path])
            item: dict[str, Any] = {
                "type": "file",
                "name": path.rsplit("/", 1)[-1],
                "path": path,
                "sha": self.sha(path),
            }
            if path in self.raw_only:
                item.update(encoding="none", content="")
            else:
                encoded = base64.b64encode(self.files[path]).decode("ascii")
                # The API wraps base64 at 60 columns
                wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
                item.update(encoding="base64", content=wrapped)
            return httpx.Response(200, json=item)

        children: dict[str, str] = {}
        prefix = f"{path}/"
        for file_path in self.files:
            if file_path.startswith(prefix):
                head, _, rest = file_path[len(prefix) :].partition("/")
                children[head] = "dir" if rest else "file"
        if not children:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(
            200,
            json=[
                {"name": name, "path": f"{prefix}{name}", "type": kind}
                for name, kind in children.items()
            ],
        )

    def _put(self, request: httpx.Request, path: str) -> httpx.Response:
        body = json.loads(request.content)
        current = self.sha(path) if path in self.files else None
        if body.get("sha") != current:
            return httpx.Response(409, json={"message": "sha mismatch"})
        self.files[path] = base64.b64decode(body["content"])
        return httpx.Response(201 if current is None else 200, json={"content": {"path": path}})

    def _delete(self, request: httpx.Request, path: str) -> httpx.Response:
        body = json.loads(request.content)
        if path not in self.files:
            return httpx.Response(404, json={"message": "Not Found"})
        if body.get("sha") != self.sha(path):
            return httpx.Response(409, json={"message": "sha mismatch"})
        del self.files[path]
        return httpx.Response(200, json={"commit": {}})


@pytest.fixture
def github() -> FakeGitHub:
    """Create an empty fake repository."""
    return FakeGitHub()


@pytest.fixture
def storage(github: FakeGitHub) -> GitHubStorage:
    """Create GitHub storage wired to the fake repository."""
    client = httpx.Client(base_url=GITHUB_API_URL, transport=httpx.MockTransport(github))
    return GitHubStorage("test-token", "owner/site", client=client)


@pytest.mark.parametrize(
    ("token", "repo"),
    [("", "owner/site"), ("token", ""), ("token", "no-slash"), ("token", "a/b/c"), ("token", "/site")],
)
def test_configuration_errors(token: str, repo: str) -> None:
    with pytest.raises(ConfigurationError):
        GitHubStorage(token, repo)


def test_requests_carry_auth_headers(storage: GitHubStorage, github: FakeGitHub) -> None:
    storage.exists("post.md")

    request = github.requests[0]
    assert request.headers["authorization"] == "Bearer test-token"
    assert request.headers["x-github-api-version"] == "2022-11-28"
    assert request.url.params["ref"] == "main"


def test_write_then_read(storage: GitHubStorage, github: FakeGitHub) -> None:
    """Writes commit under the content directory and read back decoded."""
    storage.write_file("blog/post.md", "# Héllo\n" * 20)

    assert "public/content/blog/post.md" in github.files
    assert storage.read_file("blog/post.md") == "# Héllo\n" * 20

    put = next(r for r in github.requests if r.method == "PUT")
    body = json.loads(put.content)
    assert body["message"] == "Update blog/post.md"
    assert body["branch"] == "main"
    assert "sha" not in body


def test_overwrite_sends_current_sha(storage: GitHubStorage, github: FakeGitHub) -> None:
    """Updating an existing file includes its blob SHA."""
    storage.write_file("post.md", "first")
    old_sha = github.sha("public/content/post.md")

    storage.write_file("post.md", "second")

    put = [r for r in github.requests if r.method == "PUT"][-1]
    assert json.loads(put.content)["sha"] == old_sha
    assert storage.read_file("post.md") == "second"


def test_read_missing_file(storage: GitHubStorage) -> None:
    with pytest.raises(NotFoundError):
        storage.read_file("missing.md")


def test_read_directory_is_not_found(storage: GitHubStorage) -> None:
    storage.write_file("blog/post.md", "x")
    with pytest.raises(NotFoundError):
        storage.read_file("blog")


def test_read_large_file_uses_raw_media_type(storage: GitHubStorage, github: FakeGitHub) -> None:
    """Files without inline content are fetched again as raw bytes."""
    github.files["public/content/big.md"] = b"large body"
    github.raw_only.add("public/content/big.md")

    assert storage.read_file("big.md") == "large body"
    assert github.requests[-1].headers["accept"] == "application/vnd.github.raw+json"


@pytest.mark.parametrize("raw_only", [False, True])
def test_read_undecodable_file_is_unavailable(
    storage: GitHubStorage, github: FakeGitHub, raw_only: bool
) -> None:
    github.files["public/content/bad.md"] = b"\xff\xfe bad"
    if raw_only:
        github.raw_only.add("public/content/bad.md")

    with pytest.raises(StorageUnavailableError, match="not valid UTF-8"):
        storage.read_file("bad.md")


def test_paths_are_url_encoded(storage: GitHubStorage, github: FakeGitHub) -> None:
    storage.write_file("my post.md", "x")
    assert "public/content/my post.md" in github.files
    assert "my%20post.md" in str(github.requests[-1].url)


def test_api_error_is_unavailable(storage: GitHubStorage, github: FakeGitHub) -> None:
    github.fail_with = 500
    with pytest.raises(StorageUnavailableError):
        storage.read_file("post.md")


def test_transport_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(base_url=GITHUB_API_URL, transport=httpx.MockTransport(handler))
    storage = GitHubStorage("test-token", "owner/site", client=client)

    with pytest.raises(StorageUnavailableError):
        storage.read_file("post.md")
    assert storage.exists("post.md") is False
    assert storage.list_files("") == []


def test_delete_file(storage: GitHubStorage, github: FakeGitHub) -> None:
    storage.write_file("post.md", "x")
    sha = github.sha("public/content/post.md")

    storage.delete_file("post.md")

    assert "public/content/post.md" not in github.files
    delete = github.requests[-1]
    assert delete.method == "DELETE"
    assert json.loads(delete.content) == {"message": "Delete post.md", "sha": sha, "branch": "main"}


def test_delete_missing_file(storage: GitHubStorage, github: FakeGitHub) -> None:
    with pytest.raises(NotFoundError):
        storage.delete_file("missing.md")
    assert all(r.method == "GET" for r in github.requests)


def test_list_files(storage: GitHubStorage, github: FakeGitHub) -> None:
    """Directories and markdown files are listed, directories first."""
    github.files.update(
        {
            "public/content/blog/b.md": b"b",
            "public/content/blog/a.md": b"a",
            "public/content/blog/image.png": b"png",
            "public/content/blog/drafts/c.md": b"c",
        }
    )

    entries = storage.list_files("blog")
    assert [(e.path, e.type) for e in entries] == [
        ("blog/drafts", "directory"),
        ("blog/a.md", "file"),
        ("blog/b.md", "file"),
    ]


def test_list_root(storage: GitHubStorage, github: FakeGitHub) -> None:
    github.files["public/content/index.md"] = b"home"
    assert [e.path for e in storage.list_files("")] == ["index.md"]


def test_list_missing_directory(storage: GitHubStorage) -> None:
    assert storage.list_files("nowhere") == []


def test_list_path_to_file(storage: GitHubStorage) -> None:
    storage.write_file("post.md", "x")
    assert storage.list_files("post.md") == []


def test_exists(storage: GitHubStorage) -> None:
    assert storage.exists("post.md") is False
    storage.write_file("post.md", "x")
    assert storage.exists("post.md") is True


def test_upload_file(storage: GitHubStorage, github: FakeGitHub) -> None:
    """Uploads are committed under the uploads directory."""
    url = storage.upload_file("photo-1.png", b"\x89PNG\x00")

    assert url == "/uploads/photo-1.png"
    assert github.files["public/uploads/photo-1.png"] == b"\x89PNG\x00"
    assert json.loads(github.requests[-1].content)["message"] == "Upload file: photo-1.png"


def test_custom_directories_and_branch(github: FakeGitHub) -> None:
    client = httpx.Client(base_url=GITHUB_API_URL, transport=httpx.MockTransport(github))
    storage = GitHubStorage(
        "test-token",
        "owner/site",
        branch="content",
        base_dir="/docs/",
        uploads_dir="assets",
        client=client,
    )

    storage.write_file("post.md", "x")
    storage.upload_file("a.png", b"a")

    assert set(github.files) == {"docs/post.md", "assets/a.png"}
    assert json.loads(github.requests[-1].content)["branch"] == "content"


def test_check(storage: GitHubStorage, github: FakeGitHub) -> None:
    storage.check()

    github.fail_with = 401
    with pytest.raises(StorageUnavailableError):
        storage.check()
