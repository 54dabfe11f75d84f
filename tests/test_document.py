"""
Tests for document assembly and serialization.
"""

import docx.document
import pytest
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

from resume_tailor.markdown_docx import (
    ConfigLoader,
    DocumentExportError,
    Identity,
    build_resume_document,
    export_docx,
)


class TestHeader:
    """Name and contact lines."""

    def test_empty_markdown_with_first_name_only(self, load_document):
        document = load_document(export_docx("", Identity(first_name="Ana")))

        assert [p.text for p in document.paragraphs] == ["Ana"]
        assert document.tables == []

    def test_no_identity_and_no_markdown_gives_empty_body(self, load_document):
        document = load_document(export_docx(None))
        assert document.paragraphs == []

    def test_name_line_styling(self, load_document):
        document = load_document(export_docx("", Identity(first_name="Ana", last_name="Silva")))
        name = document.paragraphs[0]
        run = name.runs[0]

        assert name.text == "Ana Silva"
        assert name.alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert run.bold is True
        assert run.font.size == Pt(20)
        assert run.font.color.rgb == RGBColor.from_string("1F3864")

    def test_contact_line_with_linkedin_hyperlink(self, load_document):
        identity = Identity(
            first_name="Ana",
            location="Austin, TX",
            phone="1-555-234-5677",
            email="ana@example.com",
            linkedin="ana-silva",
        )
        document = load_document(export_docx("", identity))
        contact = document.paragraphs[1]

        assert contact.text == (
            "Austin, TX | (555) 234-5677 | ana@example.com | "
            "https://www.linkedin.com/in/ana-silva"
        )
        assert contact.alignment == WD_ALIGN_PARAGRAPH.CENTER
        targets = [
            rel.target_ref
            for rel in document.part.rels.values()
            if rel.reltype == RELATIONSHIP_TYPE.HYPERLINK
        ]
        assert targets == ["https://www.linkedin.com/in/ana-silva"]

    def test_contact_line_without_name(self, load_document):
        document = load_document(export_docx("", Identity(email="ana@example.com")))
        assert [p.text for p in document.paragraphs] == ["ana@example.com"]


class TestBody:
    """Rendering of classified blocks."""

    def test_heading_styles_and_rules(self, load_document):
        document = load_document(
            export_docx("# Ana Silva\n## Experience\n### Engineer\n- **Led** a team")
        )
        paragraphs = document.paragraphs

        assert [p.style.name for p in paragraphs] == [
            "Heading 1",
            "Heading 2",
            "Heading 3",
            "List Bullet",
        ]
        assert paragraphs[0]._p.pPr.find(qn("w:pBdr")) is not None
        assert paragraphs[1]._p.pPr.find(qn("w:pBdr")) is not None
        assert paragraphs[2]._p.pPr.find(qn("w:pBdr")) is None

    def test_bullet_runs_keep_bold_spans(self, load_document):
        document = load_document(export_docx("- **Led** a team"))
        runs = document.paragraphs[0].runs

        assert [run.text for run in runs] == ["Led", " a team"]
        assert runs[0].bold is True
        assert not runs[1].bold

    def test_education_entry_lines(self, load_document):
        document = load_document(
            export_docx("EDUCATION\nBachelor of Arts, History — State University")
        )
        degree, institution = document.paragraphs[1], document.paragraphs[2]

        assert degree.text == "Bachelor of Arts, History"
        assert degree.runs[0].bold is True
        assert institution.text == "State University"
        assert institution.runs[0].italic is True

    def test_spacer_is_an_empty_paragraph(self, load_document):
        document = load_document(export_docx("First\n\nSecond"))
        assert [p.text for p in document.paragraphs] == ["First", "", "Second"]

    def test_skills_table_is_followed_by_spacing(self, load_document):
        document = load_document(export_docx("SKILLS\n- Python\n- SQL\nEXPERIENCE"))
        body = document.element.body
        kinds = [child.tag for child in body.iterchildren() if child.tag != qn("w:sectPr")]

        assert kinds == [qn("w:p"), qn("w:tbl"), qn("w:p"), qn("w:p")]
        assert document.paragraphs[-1].text == "EXPERIENCE"

    def test_full_resume_renders(self, load_document, sample_resume):
        document = load_document(export_docx(sample_resume, Identity(first_name="Ana")))

        assert len(document.tables) == 1
        texts = [p.text for p in document.paragraphs]
        assert "SUMMARY" in texts
        assert texts[-1] == "AWS Certified Developer"


class TestStylesheet:
    """Document-wide styles and layout."""

    @pytest.fixture
    def document(self, load_document):
        return load_document(export_docx("Text"))

    def test_page_margins(self, document):
        section = document.sections[0]
        for margin in (
            section.top_margin,
            section.bottom_margin,
            section.left_margin,
            section.right_margin,
        ):
            assert margin == Inches(0.5)

    def test_body_style(self, document):
        normal = document.styles["Normal"]

        assert normal.font.name == "Calibri"
        assert normal.font.size == Pt(10.5)
        assert normal.font.color.rgb == RGBColor.from_string("222222")
        assert normal.paragraph_format.line_spacing == pytest.approx(1.15)

    def test_heading_sizes_decrease_and_colors(self, document):
        sizes = [document.styles[f"Heading {level}"].font.size for level in (1, 2, 3)]
        colors = [
            document.styles[f"Heading {level}"].font.color.rgb for level in (1, 2, 3)
        ]

        assert sizes[0] > sizes[1] > sizes[2]
        assert colors == [
            RGBColor.from_string("1F3864"),
            RGBColor.from_string("1F3864"),
            RGBColor.from_string("222222"),
        ]

    def test_style_overrides_reach_fonts(self, load_document):
        loader = ConfigLoader(None)
        loader.merge(
            {
                "document_styles": {
                    "Heading 2": {"color": "c00000", "underline": True, "italic": True}
                }
            }
        )
        document = load_document(export_docx("## Experience", theme=loader.theme()))
        font = document.styles["Heading 2"].font

        assert font.color.rgb == RGBColor(0xC0, 0x00, 0x00)
        assert font.underline is True
        assert font.italic is True
        assert font.size == Pt(12)

    def test_heading_font_is_not_a_theme_font(self, document):
        rFonts = document.styles["Heading 1"].element.rPr.rFonts

        assert rFonts.get(qn("w:ascii")) == "Calibri"
        assert rFonts.get(qn("w:asciiTheme")) is None


class TestExport:
    def test_build_returns_document(self):
        document = build_resume_document("Text")
        assert isinstance(document, docx.document.Document)

    def test_export_returns_docx_bytes(self):
        data = export_docx("Text")
        assert data[:2] == b"PK"

    def test_serialization_failure_is_wrapped(self, monkeypatch):
        def fail_save(self, path_or_stream):
            raise OSError("disk on fire")

        monkeypatch.setattr(docx.document.Document, "save", fail_save)

        with pytest.raises(DocumentExportError) as excinfo:
            export_docx("Text")
        assert isinstance(excinfo.value.__cause__, OSError)
