"""
Unit tests for the education-line formatter.
"""

import pytest

from resume_tailor.markdown_docx import EducationEntry, StyledRun, split_education_line


class TestSplitEducationLine:
    """Tests for split_education_line."""

    def test_em_dash_split(self):
        entry = split_education_line("Bachelor of Arts, History — State University")
        assert entry == EducationEntry(
            degree=StyledRun("Bachelor of Arts, History", bold=True),
            institution=StyledRun("State University", italic=True),
        )

    @pytest.mark.parametrize(
        "line",
        [
            "B.S. Computer Science – Tech Institute",
            "B.S. Computer Science | Tech Institute",
            "B.S. Computer Science - Tech Institute",
            "B.S. Computer Science—Tech Institute",
        ],
    )
    def test_other_separators(self, line):
        entry = split_education_line(line)
        assert entry.degree.text == "B.S. Computer Science"
        assert entry.institution.text == "Tech Institute"

    def test_no_separator_gives_degree_only(self):
        entry = split_education_line("Ph.D. in Bio-Chemistry")
        assert entry == EducationEntry(degree=StyledRun("Ph.D. in Bio-Chemistry", bold=True))

    def test_splits_only_at_first_separator(self):
        entry = split_education_line("M.S. Statistics | State University — Main Campus")
        assert entry.degree.text == "M.S. Statistics"
        assert entry.institution.text == "State University — Main Campus"

    def test_bold_markers_are_stripped(self):
        entry = split_education_line("**B.A. History** — **State University**")
        assert entry.degree.text == "B.A. History"
        assert entry.institution.text == "State University"

    def test_missing_degree_keeps_institution(self):
        entry = split_education_line("— State University")
        assert entry == EducationEntry(institution=StyledRun("State University", italic=True))

    @pytest.mark.parametrize("line", ["—", " | ", "   "])
    def test_separator_only_produces_nothing(self, line):
        assert split_education_line(line) is None
