import io

import pytest
from docx import Document


@pytest.fixture
def load_document():
    """Reload exported bytes as a python-docx document."""

    def _load(data: bytes):
        return Document(io.BytesIO(data))

    return _load


@pytest.fixture
def sample_resume():
    return "\n".join(
        [
            "# Ana Silva",
            "",
            "SUMMARY",
            "Results-driven engineer with **10 years** of experience.",
            "",
            "EXPERIENCE",
            "### Senior Engineer — Acme Corp",
            "- **Led** a team of 5",
            "- Cut costs by 20%",
            "",
            "### Engineer — Beta Inc",
            "- Built pipelines",
            "",
            "EDUCATION",
            "Bachelor of Arts, History — State University",
            "- Dean's List",
            "",
            "SKILLS",
            "- Python",
            "- **AWS**",
            "SQL, Docker",
            "",
            "CERTIFICATIONS",
            "AWS Certified Developer",
        ]
    )
