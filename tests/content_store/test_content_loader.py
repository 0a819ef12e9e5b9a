"""Tests for the content store.

Tests cover:
- Front matter splitting (YAML and TOML)
- Front matter validation (required fields, tags, dates, extra params)
- URL derivation for leaf files, page bundles and slugs
- Scanning a content root with malformed units
- Content root errors
"""

import os
from datetime import date
from pathlib import Path, PurePosixPath

import pytest

from pagepress.common.errors import ContentRootError
from pagepress.content_store import (
    ContentStore,
    ContentUnit,
    FailureKind,
    FrontMatterError,
    UnitFailure,
    decode_front_matter,
    parse_unit,
    split_front_matter,
)


def _unit(path: str, title: str = "T", **kwargs) -> ContentUnit:
    return ContentUnit(
        path=PurePosixPath(path),
        source=Path("/content") / path,
        title=title,
        date=date(2024, 1, 1),
        body="",
        **kwargs,
    )


# === Test: Front matter splitting ===


class TestSplitFrontMatter:
    def test_yaml_block(self):
        delim, raw, body = split_front_matter("---\ntitle: X\n---\n\nBody\n")
        assert delim == "---"
        assert raw == "title: X\n"
        assert body == "Body\n"

    def test_toml_block(self):
        delim, raw, body = split_front_matter('+++\ntitle = "X"\n+++\nBody')
        assert delim == "+++"
        assert raw == 'title = "X"\n'
        assert body == "Body"

    def test_leading_bom_ignored(self):
        delim, _, _ = split_front_matter("\ufeff---\ntitle: X\n---\n")
        assert delim == "---"

    def test_missing_block(self):
        with pytest.raises(FrontMatterError, match="missing front matter"):
            split_front_matter("# Just markdown\n")

    def test_empty_file(self):
        with pytest.raises(FrontMatterError, match="missing front matter"):
            split_front_matter("")

    def test_unterminated_block(self):
        with pytest.raises(FrontMatterError, match="unterminated"):
            split_front_matter("---\ntitle: X\n\nBody without closing\n")

    def test_body_keeps_horizontal_rules(self):
        _, _, body = split_front_matter("---\ntitle: X\n---\nA\n\n---\n\nB\n")
        assert "---" in body


class TestDecodeFrontMatter:
    def test_yaml_mapping(self):
        assert decode_front_matter("---", "title: X\ntags: [a]\n") == {"title": "X", "tags": ["a"]}

    def test_toml_mapping(self):
        data = decode_front_matter("+++", 'title = "X"\ndate = 2024-01-15\n')
        assert data["title"] == "X"
        assert data["date"] == date(2024, 1, 15)

    def test_invalid_yaml(self):
        with pytest.raises(FrontMatterError, match="invalid front matter"):
            decode_front_matter("---", "title: [unclosed\n")

    def test_invalid_toml(self):
        with pytest.raises(FrontMatterError, match="invalid front matter"):
            decode_front_matter("+++", "title = \n")

    def test_empty_block(self):
        with pytest.raises(FrontMatterError, match="empty"):
            decode_front_matter("---", "\n")

    def test_non_mapping(self):
        with pytest.raises(FrontMatterError, match="mapping"):
            decode_front_matter("---", "- a\n- b\n")


# === Test: Parsing units ===


class TestParseUnit:
    def test_valid_unit(self, content_root, write_unit):
        source = write_unit(
            "posts/hello.md",
            title="Hello",
            date="2024-03-01",
            tags=["b", "a"],
            author="Ann",
            body="Body text.",
        )
        unit = parse_unit(source, content_root)

        assert isinstance(unit, ContentUnit)
        assert unit.path == PurePosixPath("posts/hello.md")
        assert unit.title == "Hello"
        assert unit.date == date(2024, 3, 1)
        assert unit.tags == ("a", "b")
        assert unit.author == "Ann"
        assert unit.draft is False
        assert unit.body == "Body text.\n"

    def test_toml_unit(self, content_root):
        source = content_root / "about.md"
        source.write_text(
            '+++\ntitle = "About"\ndate = 2023-05-06T10:00:00Z\ndraft = true\n+++\nAbout me.\n',
            encoding="utf-8",
        )
        unit = parse_unit(source, content_root)

        assert isinstance(unit, ContentUnit)
        assert unit.date == date(2023, 5, 6)
        assert unit.draft is True

    def test_missing_title_is_parse_failure(self, content_root):
        source = content_root / "bad.md"
        source.write_text("---\ndate: 2024-01-01\n---\nBody\n", encoding="utf-8")

        failure = parse_unit(source, content_root)

        assert isinstance(failure, UnitFailure)
        assert failure.kind == FailureKind.PARSE
        assert failure.path == PurePosixPath("bad.md")
        assert "title" in failure.reason

    def test_blank_title_is_parse_failure(self, content_root, write_unit):
        source = write_unit("blank.md", title="''")
        failure = parse_unit(source, content_root)
        assert isinstance(failure, UnitFailure)
        assert "title" in failure.reason

    def test_bad_date_is_parse_failure(self, content_root, write_unit):
        source = write_unit("when.md", date="someday")
        failure = parse_unit(source, content_root)
        assert isinstance(failure, UnitFailure)
        assert "date" in failure.reason

    def test_missing_front_matter_is_parse_failure(self, content_root):
        source = content_root / "plain.md"
        source.write_text("# No metadata\n", encoding="utf-8")

        failure = parse_unit(source, content_root)

        assert isinstance(failure, UnitFailure)
        assert failure.reason == "missing front matter block"
        assert str(failure) == "plain.md [parse]: missing front matter block"

    def test_undecodable_file_is_parse_failure(self, content_root):
        source = content_root / "binary.md"
        source.write_bytes(b"---\ntitle: \xff\xfe\n---\n")
        failure = parse_unit(source, content_root)
        assert isinstance(failure, UnitFailure)
        assert "cannot read" in failure.reason

    def test_comma_separated_tags(self, content_root, write_unit):
        source = write_unit("t.md", tags="'go, rust, go'")
        unit = parse_unit(source, content_root)
        assert unit.tags == ("go", "rust")

    def test_extra_keys_become_params(self, content_root, write_unit):
        source = write_unit("p.md", cover="hero.png", weight=3)
        unit = parse_unit(source, content_root)
        assert unit.params == {"cover": "hero.png", "weight": 3}

    def test_numeric_title_coerced(self, content_root, write_unit):
        source = write_unit("n.md", title="2024")
        unit = parse_unit(source, content_root)
        assert unit.title == "2024"


# === Test: URL derivation ===


class TestUrlPath:
    def test_leaf_file(self):
        assert _unit("posts/foo.md").url_path == "posts/foo/"

    def test_bundle(self):
        unit = _unit("posts/foo/index.md")
        assert unit.is_bundle
        assert unit.url_path == "posts/foo/"

    def test_leaf_and_bundle_share_scheme(self):
        assert _unit("posts/foo.md").url_path == _unit("posts/foo/index.md").url_path

    def test_root_file(self):
        unit = _unit("about.md")
        assert unit.url_path == "about/"
        assert unit.section == ""

    def test_section(self):
        assert _unit("posts/2024/foo.md").section == "posts"

    def test_slug_replaces_last_segment(self):
        assert _unit("posts/foo.md", slug="Better Name").url_path == "posts/better-name/"

    def test_root_bundle_falls_back_to_title(self):
        assert _unit("index.md", title="Welcome Home").url_path == "welcome-home/"

    def test_asset_dir_is_source_parent(self):
        unit = _unit("posts/foo/index.md")
        assert unit.asset_dir == Path("/content/posts/foo")


# === Test: ContentStore ===


class TestContentStore:
    def test_scan_orders_by_path(self, content_root, write_unit):
        write_unit("posts/b.md", title="B")
        write_unit("posts/a.md", title="A")
        write_unit("about.md", title="About")

        result = ContentStore(content_root).scan()

        assert [u.path.as_posix() for u in result.units] == ["about.md", "posts/a.md", "posts/b.md"]
        assert result.failures == []
        assert result.total == 3

    def test_malformed_unit_does_not_stop_scan(self, content_root, write_unit):
        write_unit("posts/a.md", title="A")
        write_unit("posts/c.md", title="C")
        (content_root / "posts" / "b.md").write_text("no front matter\n", encoding="utf-8")

        result = ContentStore(content_root).scan()

        assert [u.title for u in result.units] == ["A", "C"]
        assert len(result.failures) == 1
        assert result.failures[0].path == PurePosixPath("posts/b.md")

    def test_empty_root(self, content_root):
        result = ContentStore(content_root).scan()
        assert result.units == []
        assert result.failures == []

    def test_ignores_underscore_and_hidden(self, content_root, write_unit):
        write_unit("posts/_index.md", title="Section")
        write_unit(".drafts/secret.md", title="Secret")
        write_unit("posts/real.md", title="Real")
        (content_root / "posts" / "notes.txt").write_text("not content", encoding="utf-8")

        paths = ContentStore(content_root).discover()

        assert [p.name for p in paths] == ["real.md"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(ContentRootError, match="not found"):
            ContentStore(tmp_path / "nope").scan()

    def test_file_as_root_raises(self, tmp_path):
        root = tmp_path / "file.md"
        root.write_text("x", encoding="utf-8")
        with pytest.raises(ContentRootError):
            ContentStore(root).discover()

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permission bits not enforced")
    def test_unreadable_root_raises(self, content_root):
        content_root.chmod(0o000)
        try:
            with pytest.raises(ContentRootError, match="not readable"):
                ContentStore(content_root).discover()
        finally:
            content_root.chmod(0o755)
