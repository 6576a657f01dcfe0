"""Tests for the marker scanner."""

import pytest

from docweave.document import parse_document
from docweave.markers import (
    RegionKind,
    StructuralError,
    parse_directive,
    scan_document,
)


def _doc(text, path="/repo/doc.md"):
    return parse_document(path, text)


class TestParseDirective:
    """Tests for parse_directive."""

    def test_plain_text_is_not_a_directive(self):
        assert parse_directive("Just text", 1) is None

    def test_toc(self):
        directive = parse_directive("<!--- TOC -->", 3)
        assert directive.name == "TOC"
        assert directive.kind is RegionKind.TOC_ANCHOR
        assert directive.line == 3

    def test_leading_whitespace_is_trimmed(self):
        assert parse_directive("   <!--- LINKS -->  ", 1).kind is RegionKind.LINK_ANCHOR

    def test_include_with_options(self):
        directive = parse_directive("<!--- INCLUDE src/a.py#A lang=python -->", 1)
        assert directive.kind is RegionKind.INCLUDE
        assert directive.options == {"lang": "python"}
        assert directive.reference.path == "src/a.py"
        assert directive.reference.range_name == "A"

    def test_sample_without_reference(self):
        directive = parse_directive("<!--- SAMPLE file=out.py -->", 1)
        assert directive.kind is RegionKind.SAMPLE_TEST
        assert directive.reference is None
        assert directive.options["file"] == "out.py"

    def test_end_with_kind(self):
        directive = parse_directive("<!--- END TOC -->", 1)
        assert directive.name == "END"
        assert directive.args == ("TOC",)

    def test_unknown_directive_is_literal(self):
        assert parse_directive("<!--- TEST_NAME Foo -->", 1) is None

    def test_html_comment_is_literal(self):
        assert parse_directive("<!-- TOC -->", 1) is None

    def test_names_are_case_sensitive(self):
        assert parse_directive("<!--- toc -->", 1) is None

    def test_missing_close_is_malformed(self):
        with pytest.raises(StructuralError) as exc:
            parse_directive("<!--- TOC", 7, "doc.md")
        assert exc.value.line == 7
        assert exc.value.file == "doc.md"

    def test_include_requires_reference(self):
        with pytest.raises(StructuralError, match="INCLUDE expects 1 argument"):
            parse_directive("<!--- INCLUDE -->", 1)

    def test_reference_requires_range_name(self):
        with pytest.raises(StructuralError, match="Malformed sample reference"):
            parse_directive("<!--- INCLUDE src/a.py -->", 1)

    def test_unknown_option(self):
        with pytest.raises(StructuralError, match="Unknown option"):
            parse_directive("<!--- INCLUDE a.py#A color=red -->", 1)

    def test_toc_takes_no_arguments(self):
        with pytest.raises(StructuralError, match="no arguments"):
            parse_directive("<!--- TOC extra -->", 1)


class TestScanDocument:
    """Tests for scan_document."""

    def test_literal_only(self):
        doc = _doc("# Title\n\ntext\n")
        regions = scan_document(doc)
        assert [r.kind for r in regions] == [RegionKind.LITERAL]
        assert regions[0].lines(doc) == doc.lines

    def test_empty_document(self):
        assert scan_document(_doc("")) == []

    def test_regions_in_order(self):
        doc = _doc(
            "intro\n"
            "<!--- TOC -->\n"
            "old\n"
            "<!--- END -->\n"
            "middle\n"
            "<!--- LINKS -->\n"
            "<!--- END LINKS -->\n"
        )
        regions = scan_document(doc)
        assert [r.kind for r in regions] == [
            RegionKind.LITERAL,
            RegionKind.TOC_ANCHOR,
            RegionKind.LITERAL,
            RegionKind.LINK_ANCHOR,
        ]
        toc = regions[1]
        assert (toc.start, toc.end) == (1, 4)
        assert toc.body(doc) == ("old",)
        assert regions[3].body(doc) == ()

    def test_regions_partition_document(self):
        doc = _doc(
            "<!--- MODULE core -->\n"
            "<!--- END -->\n"
            "a\n"
            "<!--- SAMPLE -->\n"
            "```python\n"
            "x = 1\n"
            "```\n"
            "<!--- END SAMPLE -->\n"
            "<!--- TOC -->\n"
            "<!--- END -->\n"
            "b\n"
        )
        regions = scan_document(doc)
        rebuilt = []
        for region in regions:
            rebuilt.extend(region.lines(doc))
        assert tuple(rebuilt) == doc.lines
        for before, after in zip(regions, regions[1:]):
            assert before.end == after.start

    def test_unmatched_directive_names_line(self):
        doc = _doc("a\nb\n<!--- TOC -->\nc\n")
        with pytest.raises(StructuralError) as exc:
            scan_document(doc)
        assert exc.value.line == 3
        assert "Unmatched TOC" in exc.value.message
        assert exc.value.file == "/repo/doc.md"

    def test_nested_same_kind(self):
        doc = _doc("<!--- TOC -->\n<!--- TOC -->\n<!--- END -->\n<!--- END -->\n")
        with pytest.raises(StructuralError) as exc:
            scan_document(doc)
        assert exc.value.line == 2

    def test_nested_other_kind(self):
        doc = _doc("<!--- LINKS -->\n<!--- TOC -->\n<!--- END -->\n")
        with pytest.raises(StructuralError, match="inside LINKS region"):
            scan_document(doc)

    def test_end_without_open_region(self):
        with pytest.raises(StructuralError) as exc:
            scan_document(_doc("text\n<!--- END -->\n"))
        assert exc.value.line == 2

    def test_end_naming_other_kind(self):
        doc = _doc("<!--- TOC -->\n<!--- END LINKS -->\n")
        with pytest.raises(StructuralError, match="does not match TOC"):
            scan_document(doc)

    def test_directives_in_code_fence_are_ignored(self):
        doc = _doc(
            "Example:\n"
            "```markdown\n"
            "<!--- TOC -->\n"
            "```\n"
            "done\n"
        )
        regions = scan_document(doc)
        assert [r.kind for r in regions] == [RegionKind.LITERAL]

    def test_tilde_fence(self):
        doc = _doc("~~~\n<!--- END -->\n~~~\n")
        assert [r.kind for r in scan_document(doc)] == [RegionKind.LITERAL]

    def test_directive_after_fence_closes(self):
        doc = _doc("```\ncode\n```\n<!--- TOC -->\n<!--- END -->\n")
        kinds = [r.kind for r in scan_document(doc)]
        assert kinds == [RegionKind.LITERAL, RegionKind.TOC_ANCHOR]
