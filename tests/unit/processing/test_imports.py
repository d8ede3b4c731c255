"""Tests for @import directives."""
from __future__ import annotations

from pathlib import Path

import pytest

from legalmd.core.processing.imports import (
    IMPORTED_FILES_KEY,
    ImportProcessor,
    process_partial_imports,
)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def processor() -> ImportProcessor:
    return ImportProcessor()


@pytest.fixture
def import_options(options, tmp_path):
    options.base_path = tmp_path
    return options


class TestImportProcessor:
    def test_inlines_body_and_merges_front_matter(self, processor, import_options, tmp_path) -> None:
        terms = write(
            tmp_path / "clauses" / "terms.md",
            "---\nparty: Acme\nlevel-one: 'Part %n'\n---\n\nll. Terms for {{party}}\n\n",
        )
        metadata: dict = {}

        result = processor.process("Intro\n@import clauses/terms.md\nEnd", metadata, import_options)

        assert result == "Intro\nll. Terms for {{party}}\nEnd"
        assert metadata["party"] == "Acme"
        assert "level-one" not in metadata
        assert metadata[IMPORTED_FILES_KEY] == [str(terms.resolve())]

    def test_document_metadata_wins(self, processor, import_options, tmp_path) -> None:
        write(tmp_path / "part.md", "---\nparty: Imported\nclient:\n  name: X\n  city: Paris\n---\nbody")
        metadata = {"party": "Mine", "client": {"name": "Acme"}}
        processor.process("@import part.md", metadata, import_options)
        assert metadata["party"] == "Mine"
        assert metadata["client"] == {"name": "Acme", "city": "Paris"}

    def test_nested_imports_resolve_relative_to_importer(self, processor, import_options, tmp_path) -> None:
        write(tmp_path / "sections" / "a.md", "A start\n@import sub/b.md")
        write(tmp_path / "sections" / "sub" / "b.md", "B body")
        metadata: dict = {}
        result = processor.process("@import sections/a.md", metadata, import_options)
        assert result == "A start\nB body"
        assert len(metadata[IMPORTED_FILES_KEY]) == 2

    def test_missing_file_leaves_comment(self, processor, import_options) -> None:
        result = processor.process("@import nope.md", {}, import_options)
        assert result.startswith("<!-- Error importing nope.md: File not found:")
        assert result.endswith(" -->")

    def test_circular_import(self, processor, import_options, tmp_path) -> None:
        write(tmp_path / "a.md", "in a\n@import b.md")
        write(tmp_path / "b.md", "in b\n@import a.md")
        result = processor.process("@import a.md", {}, import_options)
        assert result == "in a\nin b\n<!-- Error importing a.md: circular import -->"

    def test_max_depth(self, processor, import_options, tmp_path) -> None:
        write(tmp_path / "a.md", "@import b.md")
        write(tmp_path / "b.md", "deep")
        import_options.import_max_depth = 1
        result = processor.process("@import a.md", {}, import_options)
        assert result == "<!-- Error importing b.md: maximum import depth 1 exceeded -->"

    def test_quoted_and_absolute_paths(self, processor, import_options, tmp_path) -> None:
        target = write(tmp_path / "abs.md", "absolute")
        assert processor.process(f'@import "{target}"', {}, import_options) == "absolute"

    def test_directive_must_be_on_its_own_line(self, processor, import_options) -> None:
        content = "Use @import path.md to include files."
        assert processor.process(content, {}, import_options) == content

    def test_content_without_imports_is_untouched(self, processor, options) -> None:
        metadata: dict = {}
        assert processor.process("No directives", metadata, options) == "No directives"
        assert IMPORTED_FILES_KEY not in metadata

    def test_disabled_by_no_imports(self, processor, options) -> None:
        options.no_imports = True
        assert not processor.is_enabled(options)


def test_process_partial_imports_returns_result(tmp_path) -> None:
    write(tmp_path / "x.md", "---\nk: v\n---\nX")
    result = process_partial_imports("@import x.md", tmp_path)
    assert result.content == "X"
    assert result.merged_metadata == {"k": "v"}
    assert result.imported_files == [str((tmp_path / "x.md").resolve())]
