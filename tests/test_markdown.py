"""Markdown parsing and content layer tests."""

from pathlib import Path

import pytest

from cms.content.markdown import MarkdownContent, parse_markdown, stringify_markdown
from cms.errors import FileTooLargeError, InvalidPathError, NotFoundError
from cms.storage.local import LocalStorage


@pytest.fixture
def content(storage: LocalStorage) -> MarkdownContent:
    """Create a content layer over local test storage."""
    return MarkdownContent(storage)


def test_parse_with_frontmatter() -> None:
    """Frontmatter and body are split."""
    parsed = parse_markdown("---\ntitle: Hello\ntags:\n  - a\n  - b\n---\n# Body\n")
    assert parsed.data == {"title": "Hello", "tags": ["a", "b"]}
    assert parsed.content == "# Body\n"


def test_parse_crlf_frontmatter() -> None:
    parsed = parse_markdown("---\r\ntitle: Hello\r\n---\r\nBody")
    assert parsed.data == {"title": "Hello"}
    assert parsed.content == "Body"


def test_parse_without_frontmatter() -> None:
    """Plain markdown has empty data and the whole text as content."""
    parsed = parse_markdown("# Just a heading\n")
    assert parsed.data == {}
    assert parsed.content == "# Just a heading\n"


def test_parse_malformed_yaml() -> None:
    """Unparseable frontmatter falls back to the raw text."""
    raw = "---\ntitle: [unclosed\n---\nBody"
    parsed = parse_markdown(raw)
    assert parsed.data == {}
    assert parsed.content == raw


def test_parse_non_mapping_frontmatter() -> None:
    raw = "---\n- just\n- a list\n---\nBody"
    parsed = parse_markdown(raw)
    assert parsed.data == {}
    assert parsed.content == raw


def test_parse_blank_frontmatter() -> None:
    parsed = parse_markdown("---\n\n---\nBody")
    assert parsed.data == {}
    assert parsed.content == "Body"


def test_stringify_without_data() -> None:
    """Empty data produces the bare body."""
    assert stringify_markdown({}, "# Body\n") == "# Body\n"


def test_stringify_keeps_key_order() -> None:
    text = stringify_markdown({"title": "T", "author": "A"}, "Body")
    assert text == "---\ntitle: T\nauthor: A\n---\nBody"


@pytest.mark.parametrize(
    ("data", "body"),
    [
        ({"title": "Hello"}, "Body text"),
        ({"seo": {"title": "T", "meta": {"robots": "noindex"}}}, "Body"),
        ({"tags": ["python", "web"], "draft": True, "order": 3}, "Body"),
        ({"author": None, "rating": 4.5}, "Body"),
        ({"published": "2024-01-01", "version": "1.0"}, "Body"),
        ({"title": "Leading"}, "\n\nStarts with blank lines"),
        ({"title": "Empty body"}, ""),
        ({"title": "Ünïcödé ✓", "lang": "日本語"}, "Grüße"),
        ({}, "---\nlooks: like frontmatter\n---\nBody"),
    ],
)
def test_round_trip(data: dict, body: str) -> None:
    """Serialized files parse back to the same data and body."""
    parsed = parse_markdown(stringify_markdown(data, body))
    assert parsed.data == data
    assert parsed.content == body


def test_save_and_get(content: MarkdownContent, storage: LocalStorage) -> None:
    """Saved content is written under the content root and reads back."""
    content.save("a/b.md", {"title": "T"}, "body")

    assert (storage.content_dir / "a" / "b.md").read_text() == "---\ntitle: T\n---\nbody"
    parsed = content.get("a/b.md")
    assert parsed.data == {"title": "T"}
    assert parsed.content == "body"


def test_save_sanitizes_frontmatter(content: MarkdownContent) -> None:
    """Invalid keys and null bytes never reach storage."""
    content.save("post.md", {"title": "T\x00", "bad key": "x"}, "body")
    assert content.get("post.md").data == {"title": "T"}


def test_oversized_save_writes_nothing(storage: LocalStorage) -> None:
    small = MarkdownContent(storage, max_file_size=32)

    with pytest.raises(FileTooLargeError):
        small.save("big.md", {"title": "T"}, "x" * 100)

    assert not storage.exists("big.md")


def test_oversized_stored_file_rejected_on_read(storage: LocalStorage) -> None:
    storage.write_file("big.md", "x" * 100)
    small = MarkdownContent(storage, max_file_size=32)

    with pytest.raises(FileTooLargeError):
        small.get("big.md")


def test_size_counts_utf8_bytes(storage: LocalStorage) -> None:
    """Multi-byte characters count by their encoded size."""
    small = MarkdownContent(storage, max_file_size=10)
    with pytest.raises(FileTooLargeError):
        small.save("wide.md", {}, "é" * 6)


def test_get_missing_file(content: MarkdownContent) -> None:
    with pytest.raises(NotFoundError):
        content.get("missing.md")


@pytest.mark.parametrize("path", ["../secret.md", "/etc/passwd", "con.md", ""])
def test_unsafe_paths_rejected(content: MarkdownContent, path: str) -> None:
    """Every operation validates the path first."""
    with pytest.raises(InvalidPathError):
        content.get(path)
    with pytest.raises(InvalidPathError):
        content.save(path, {}, "x")
    with pytest.raises(InvalidPathError):
        content.delete(path)


def test_listing(content: MarkdownContent) -> None:
    """Listings show markdown files and subdirectories, directories first."""
    content.save("blog/b.md", {}, "b")
    content.save("blog/a.md", {}, "a")
    content.save("blog/drafts/c.md", {}, "c")

    entries = content.list_directory("blog")
    assert [(e.name, e.type) for e in entries] == [
        ("drafts", "directory"),
        ("a.md", "file"),
        ("b.md", "file"),
    ]
    assert entries[0].path == "blog/drafts"
    assert content.list_files("blog") == ["blog/a.md", "blog/b.md"]


def test_listing_root(content: MarkdownContent) -> None:
    content.save("index.md", {}, "home")
    content.save("blog/post.md", {}, "post")

    assert [e.path for e in content.list_directory()] == ["blog", "index.md"]


def test_listing_missing_directory(content: MarkdownContent) -> None:
    assert content.list_directory("nowhere") == []
    assert content.list_files("nowhere") == []


def test_listing_rejects_unsafe_directory(content: MarkdownContent) -> None:
    with pytest.raises(InvalidPathError):
        content.list_directory("../")


def test_exists_and_delete(content: MarkdownContent, storage: LocalStorage) -> None:
    content.save("post.md", {}, "body")
    assert content.exists("post.md")

    content.delete("post.md")
    assert not content.exists("post.md")
    assert not (Path(storage.content_dir) / "post.md").exists()


def test_delete_missing_file(content: MarkdownContent) -> None:
    with pytest.raises(NotFoundError):
        content.delete("missing.md")
