"""
Unit tests for the inline bold-span parser.
"""

from resume_tailor.markdown_docx import StyledRun, parse_inline, strip_bold_markers


class TestParseInline:
    """Tests for parse_inline."""

    def test_leading_bold_segment(self):
        """Bold prefix followed by plain text gives two runs."""
        assert parse_inline("**Led** a team of 5") == [
            StyledRun("Led", bold=True),
            StyledRun(" a team of 5"),
        ]

    def test_no_delimiter_returns_single_plain_run(self):
        assert parse_inline("Built data pipelines") == [
            StyledRun("Built data pipelines")
        ]

    def test_empty_input_is_never_an_empty_list(self):
        assert parse_inline("") == [StyledRun("")]
        assert parse_inline(None) == [StyledRun("")]

    def test_only_delimiters_collapse_to_one_empty_run(self):
        assert parse_inline("****") == [StyledRun("")]

    def test_multiple_bold_segments_alternate(self):
        runs = parse_inline("Used **Python** and **Go** daily")
        assert [run.text for run in runs] == ["Used ", "Python", " and ", "Go", " daily"]
        assert [run.bold for run in runs] == [False, True, False, True, False]

    def test_unbalanced_delimiter_styles_tail_by_position(self):
        """An unmatched opening delimiter makes the rest of the line bold."""
        assert parse_inline("Shipped **v2 early") == [
            StyledRun("Shipped "),
            StyledRun("v2 early", bold=True),
        ]

    def test_unbalanced_after_balanced_pair(self):
        assert parse_inline("**a** b **c") == [
            StyledRun("a", bold=True),
            StyledRun(" b "),
            StyledRun("c", bold=True),
        ]


class TestStripBoldMarkers:
    def test_removes_all_delimiters(self):
        assert strip_bold_markers("**B.A.** in **History**") == "B.A. in History"
