import argparse
import copy
import io
import logging
import re
import sys
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Union

import docx.oxml.shared
import yaml
from docx import Document as DOCX_Document
from docx.enum.text import WD_ALIGN_PARAGRAPH as DOCX_PARAGRAPH_ALIGN
from docx.opc.constants import RELATIONSHIP_TYPE as DOCX_REL
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Inches, Pt, RGBColor
from docx.table import Table as DOCX_Table
from docx.text.font import Font as DOCX_FONT
from docx.text.paragraph import Paragraph as DOCX_Paragraph
from docx.text.parfmt import ParagraphFormat as DOCX_ParagraphFormat

logger = logging.getLogger(__name__)

SCRIPT_DIR = Path(__file__).parent

##############################
# Define some defaults at module level for better performance
##############################
DEFAULT_CONFIG_FILE = SCRIPT_DIR / "resume_config.yaml"
DOCX_EXTENSION = "docx"
DOCX_MIMETYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
BOLD_DELIMITER = "**"
SKILLS_WIDE_THRESHOLD = 9
LINKEDIN_BASE_URL = "https://www.linkedin.com/"
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*)$")
BULLET_PATTERN = re.compile(r"^(?:[-*+]\s+|[•●▪◦‣·]\s*)(.*)$")
EDUCATION_SEPARATOR_PATTERN = re.compile(r"\s*[—–|]\s*| - ")
NON_DIGIT_PATTERN = re.compile(r"\D")
URL_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
LINKEDIN_LABEL_PATTERN = re.compile(r"^linked\s*in\s*:\s*", re.IGNORECASE)
LINKEDIN_DOMAIN_PATTERN = re.compile(
    r"^(?:www\.)?linkedin\.com(?:/|$)", re.IGNORECASE
)
HEX_COLOR_PATTERN = re.compile(r"^[0-9A-Fa-f]{6}$")
FONT_ATTRIBUTES = {
    "font_name": "name",
    "bold": "bold",
    "italic": "italic",
    "underline": "underline",
}

DEFAULT_CONFIG = {
    "document_defaults": {
        "page_width": 8.5,
        "page_height": 11,
        "margin_top": 0.5,
        "margin_bottom": 0.5,
        "margin_left": 0.5,
        "margin_right": 0.5,
    },
    "style_constants": {
        "accent_color": "1F3864",
        "body_color": "222222",
        "name_font_size": 20,
        "name_space_after": 2,
        "contact_font_size": 9.5,
        "contact_space_after": 6,
        "contact_separator": " | ",
        "rule_color": "1F3864",
        "rule_size": 6,
        "skills_bullet": "•",
        "skills_space_after": 0,
        "spacer_space_after": 4,
    },
    "document_styles": {
        "Normal": {
            "font_name": "Calibri",
            "font_size": 10.5,
            "color": "222222",
            "line_spacing": 1.15,
            "space_after": 2,
        },
        "Heading 1": {
            "font_name": "Calibri",
            "font_size": 14,
            "color": "1F3864",
            "bold": True,
            "italic": False,
            "space_before": 10,
            "space_after": 4,
        },
        "Heading 2": {
            "font_name": "Calibri",
            "font_size": 12,
            "color": "1F3864",
            "bold": True,
            "italic": False,
            "space_before": 8,
            "space_after": 4,
        },
        "Heading 3": {
            "font_name": "Calibri",
            "font_size": 11,
            "color": "222222",
            "bold": True,
            "italic": False,
            "space_before": 6,
            "space_after": 2,
        },
        "List Bullet": {
            "font_name": "Calibri",
            "font_size": 10.5,
            "color": "222222",
            "space_after": 1,
        },
    },
}


class DocumentExportError(RuntimeError):
    """Raised when a resume document cannot be serialized"""


##############################
# Document Model
##############################
@dataclass(frozen=True)
class StyledRun:
    """A span of text carrying its character styling"""

    text: str
    bold: bool = False
    italic: bool = False


@dataclass(frozen=True)
class Spacer:
    """Vertical whitespace between blocks"""


@dataclass(frozen=True)
class SectionHeading:
    """A section heading (levels 1-2) or a role/job-title line (level 3)"""

    text: str
    level: int
    implicit: bool = False


@dataclass(frozen=True)
class Bullet:
    runs: tuple


@dataclass(frozen=True)
class EducationEntry:
    degree: StyledRun | None = None
    institution: StyledRun | None = None


@dataclass(frozen=True)
class SkillsTable:
    items: tuple


@dataclass(frozen=True)
class Paragraph:
    runs: tuple


Block = Union[Spacer, SectionHeading, Bullet, EducationEntry, SkillsTable, Paragraph]


class SectionMode(Enum):
    """Section-scoped classification modes"""

    DEFAULT = "default"
    EDUCATION = "education"
    SKILLS = "skills"


class ResumeSection(Enum):
    """Section names recognized as headings without a markdown marker

    Properties:
        heading (str): The upper-cased section title
        mode (SectionMode): The classification mode entered by this section
    """

    SUMMARY = ("SUMMARY", SectionMode.DEFAULT)
    CORE_SKILLS = ("CORE SKILLS", SectionMode.SKILLS)
    SKILLS = ("SKILLS", SectionMode.SKILLS)
    EXPERIENCE = ("EXPERIENCE", SectionMode.DEFAULT)
    EDUCATION = ("EDUCATION", SectionMode.EDUCATION)
    CERTIFICATIONS = ("CERTIFICATIONS", SectionMode.DEFAULT)
    PROJECTS = ("PROJECTS", SectionMode.DEFAULT)

    def __init__(self, heading: str, mode: SectionMode):
        self.heading = heading
        self.mode = mode

    @classmethod
    def find_by_text(cls, text: str):
        """Find a section whose title matches the text

        The text is trimmed, a trailing colon is removed and the comparison
        is case insensitive.

        Args:
            text (str): A line of markdown or a heading's text

        Returns:
            ResumeSection or None: The matching section or None if not found
        """
        key = text.strip().rstrip(":").strip().upper()
        for section in cls:
            if section.heading == key:
                return section
        return None


@dataclass(frozen=True)
class Identity:
    """Caller-supplied identity used for the document header"""

    first_name: str | None = None
    last_name: str | None = None
    location: str | None = None
    phone: str | None = None
    email: str | None = None
    linkedin: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object] | None) -> "Identity":
        """Build an identity from a request payload

        Both the snake_case attribute names and the camelCase keys used by
        the web client (``firstName``, ``lastName``, ``linkedIn``) are
        accepted. Unknown keys are ignored.

        Args:
            data: Mapping of identity fields

        Returns:
            Identity: The identity record
        """
        if not data:
            return cls()

        names = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            attribute = IDENTITY_WIRE_KEYS.get(key, key)
            if attribute in names and value is not None:
                values[attribute] = str(value)
        return cls(**values)

    @property
    def name_line(self) -> str | None:
        parts = [
            part.strip() for part in (self.first_name, self.last_name) if part
        ]
        name = " ".join(part for part in parts if part)
        return name or None

    @property
    def linkedin_url(self) -> str:
        return normalize_linkedin(self.linkedin)

    def contact_fields(self) -> List[str]:
        """Return the normalized, non-empty contact fields in display order"""
        candidates = [
            (self.location or "").strip(),
            normalize_phone(self.phone),
            (self.email or "").strip(),
            self.linkedin_url,
        ]
        return [candidate for candidate in candidates if candidate]


IDENTITY_WIRE_KEYS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "linkedIn": "linkedin",
    "linkedInHandle": "linkedin",
}


##############################
# Configs
##############################
@dataclass(frozen=True)
class DocumentTheme:
    """Immutable stylesheet used for a single conversion"""

    page_width: float = 8.5
    page_height: float = 11
    margin_top: float = 0.5
    margin_bottom: float = 0.5
    margin_left: float = 0.5
    margin_right: float = 0.5
    accent_color: str = "1F3864"
    body_color: str = "222222"
    name_font_size: float = 20
    name_space_after: float = 2
    contact_font_size: float = 9.5
    contact_space_after: float = 6
    contact_separator: str = " | "
    rule_color: str = "1F3864"
    rule_size: int = 6
    skills_bullet: str = "•"
    skills_space_after: float = 0
    spacer_space_after: float = 4
    document_styles: Mapping[str, Mapping[str, object]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_config(cls, config: Dict[str, dict]) -> "DocumentTheme":
        """Build a theme from a configuration dictionary

        Args:
            config (dict): Configuration with document_defaults, style_constants
                           and document_styles sections

        Returns:
            DocumentTheme: The frozen theme

        Raises:
            ValueError: If a section is not a mapping or a numeric setting
                        cannot be converted
        """
        doc_defaults = config.get("document_defaults", {})
        style_constants = config.get("style_constants", {})
        document_styles = config.get("document_styles", {})
        for section_key, section in (
            ("document_defaults", doc_defaults),
            ("style_constants", style_constants),
            ("document_styles", document_styles),
        ):
            if not isinstance(section, dict):
                raise ValueError(f"Section '{section_key}' must be a mapping")

        values = {}
        for theme_field in fields(cls):
            if theme_field.name == "document_styles":
                continue
            source = (
                doc_defaults
                if theme_field.name.startswith(("page_", "margin_"))
                else style_constants
            )
            if theme_field.name not in source:
                continue
            value = source[theme_field.name]
            if theme_field.type in ("float", float):
                value = float(value)
            elif theme_field.type in ("int", int):
                value = int(value)
            else:
                value = str(value)
            values[theme_field.name] = value

        for color_key in ("accent_color", "body_color", "rule_color"):
            if color_key in values and not HEX_COLOR_PATTERN.match(values[color_key]):
                raise ValueError(f"Invalid color for {color_key}: {values[color_key]}")

        values["document_styles"] = MappingProxyType(
            {
                name: MappingProxyType(_validate_style_properties(properties))
                for name, properties in document_styles.items()
                if isinstance(properties, dict)
            }
        )
        return cls(**values)


class ConfigLoader:
    """Class for loading and accessing configuration from YAML file"""

    def __init__(self, config_file: Path | None = DEFAULT_CONFIG_FILE):
        """Initialize by loading configuration from YAML file

        The built-in defaults are used for anything the file does not set,
        and entirely when the file is missing or cannot be parsed.

        Args:
            config_file (Path): Path to configuration file.
                             Defaults to 'resume_config.yaml' in same directory.
        """
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if config_file is None:
            return

        config_path = Path(config_file)
        if not config_path.exists():
            logger.warning("Config file %s not found, using defaults", config_path)
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(
                "Error loading config file %s: %s, using default configuration",
                config_path,
                e,
            )
            return

        if isinstance(yaml_config, dict):
            try:
                self.merge(yaml_config)
            except ValueError as e:
                logger.warning(
                    "Error loading config file %s: %s, using default configuration",
                    config_path,
                    e,
                )
                return
            logger.debug("Config loaded from %s", config_path)
        elif yaml_config is not None:
            logger.warning("Ignoring config file %s: not a mapping", config_path)

    @property
    def config(self) -> dict:
        """Get the entire configuration dictionary

        Returns:
            dict: Complete configuration dictionary
        """
        return self._config

    @property
    def document_defaults(self) -> dict:
        return self._config.get("document_defaults", {})

    @property
    def style_constants(self) -> dict:
        return self._config.get("style_constants", {})

    @property
    def document_styles(self) -> dict:
        return self._config.get("document_styles", {})

    def merge(self, overrides: Dict[str, object]) -> None:
        """Merge configuration overrides into the loaded configuration

        Mapping sections are updated key by key; document styles are merged
        per style so a single property can be overridden. Anything else
        replaces the existing value.

        Args:
            overrides (dict): Configuration options to merge

        Raises:
            ValueError: If a mapping section is overridden with a non-mapping;
                        nothing is merged in that case
        """
        for section_key, section_values in overrides.items():
            if isinstance(self._config.get(section_key), dict) and not isinstance(
                section_values, dict
            ):
                raise ValueError(
                    f"Section '{section_key}' must be a mapping, "
                    f"got {type(section_values).__name__}"
                )

        for section_key, section_values in overrides.items():
            current = self._config.get(section_key)
            if not (isinstance(current, dict) and isinstance(section_values, dict)):
                logger.debug("Replacing section '%s'", section_key)
                self._config[section_key] = section_values
                continue

            if section_key == "document_styles":
                for style_name, properties in section_values.items():
                    if not isinstance(properties, dict):
                        logger.warning(
                            "Ignoring style '%s': properties must be a mapping",
                            style_name,
                        )
                        continue
                    current.setdefault(style_name, {}).update(properties)
            else:
                current.update(section_values)
            logger.debug("Merged section '%s'", section_key)

    def theme(self) -> DocumentTheme:
        """Freeze the current configuration into a DocumentTheme"""
        return DocumentTheme.from_config(self._config)


##############################
# Text Formatters
##############################
def parse_inline(text: str | None) -> List[StyledRun]:
    """Split a line into plain and bold runs on the ``**`` delimiter

    Segments at odd positions are bold. Empty segments are dropped; an
    unmatched trailing delimiter simply leaves the final segment styled by
    its position.

    Args:
        text (str): A single line of markdown

    Returns:
        list[StyledRun]: At least one run
    """
    text = text or ""
    if BOLD_DELIMITER not in text:
        return [StyledRun(text)]

    runs = [
        StyledRun(segment, bold=index % 2 == 1)
        for index, segment in enumerate(text.split(BOLD_DELIMITER))
        if segment
    ]
    return runs or [StyledRun("")]


def strip_bold_markers(text: str) -> str:
    return text.replace(BOLD_DELIMITER, "")


def normalize_phone(raw: str | None) -> str:
    """Format a US phone number as ``(AAA) BBB-CCCC``

    A leading ``1`` country code is dropped from 11-digit numbers. Anything
    that does not reduce to 10 digits is returned as given (trimmed).

    Args:
        raw (str): Phone number as typed by the user

    Returns:
        str: The formatted number, or the trimmed input
    """
    original = (raw or "").strip()
    digits = NON_DIGIT_PATTERN.sub("", original)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return original


def normalize_linkedin(raw: str | None) -> str:
    """Expand a LinkedIn handle, path or domain into a profile URL

    Args:
        raw (str): Handle, ``in/...`` path, bare domain or full URL,
                   optionally prefixed with a ``LinkedIn:`` label

    Returns:
        str: The profile URL, or an empty string when nothing was given
    """
    value = LINKEDIN_LABEL_PATTERN.sub("", (raw or "").strip()).strip()
    if not value:
        return ""
    if URL_SCHEME_PATTERN.match(value):
        return value
    if LINKEDIN_DOMAIN_PATTERN.match(value):
        return f"https://{value}"
    if value.lower().startswith("in/"):
        return f"{LINKEDIN_BASE_URL}{value}"

    handle = re.sub(r"\s+", "", value).lstrip("@")
    if not handle:
        return ""
    return f"{LINKEDIN_BASE_URL}in/{handle}"


def build_contact_line(identity: Identity, separator: str = " | ") -> str | None:
    """Join the identity's contact fields into a single header line

    Args:
        identity (Identity): Caller-supplied identity
        separator (str): Text placed between fields

    Returns:
        str or None: The contact line, or None when no field is present
    """
    contact_fields = identity.contact_fields()
    if not contact_fields:
        return None
    return separator.join(contact_fields)


def split_education_line(line: str) -> EducationEntry | None:
    """Split an education line into degree and institution segments

    The split happens once, at the first em dash, en dash, pipe or
    space-surrounded hyphen.

    Args:
        line (str): A line from the education section

    Returns:
        EducationEntry or None: None when both segments are empty
    """
    text = strip_bold_markers(line).strip()
    parts = EDUCATION_SEPARATOR_PATTERN.split(text, maxsplit=1)
    degree = parts[0].strip()
    institution = parts[1].strip() if len(parts) > 1 else ""

    if not degree and not institution:
        return None

    return EducationEntry(
        degree=StyledRun(degree, bold=True) if degree else None,
        institution=StyledRun(institution, italic=True) if institution else None,
    )


def skills_column_count(item_count: int) -> int:
    return 3 if item_count >= SKILLS_WIDE_THRESHOLD else 2


def skills_grid(items: Iterable[str]) -> List[List[str | None]]:
    """Pack skills row-major into the column count chosen for them

    Args:
        items: Skill strings in their original order

    Returns:
        list[list]: Rows of cells; a short final row is padded with None
    """
    items = list(items)
    columns = skills_column_count(len(items))
    rows = []
    for start in range(0, len(items), columns):
        row = items[start : start + columns]
        row.extend([None] * (columns - len(row)))
        rows.append(row)
    return rows


##############################
# Block Classifier
##############################
class ParserState:
    """Mutable state for one pass over a markdown document"""

    def __init__(self):
        self.previous_line_was_heading = False
        self.mode = SectionMode.DEFAULT
        self.pending_skills = []

    @property
    def inside_education(self) -> bool:
        return self.mode is SectionMode.EDUCATION

    @property
    def inside_skills(self) -> bool:
        return self.mode is SectionMode.SKILLS


class MarkdownClassifier:
    """Classify resume markdown line by line into document blocks

    Each line is matched against a fixed priority order: blank lines,
    implicit section names, markdown headings, bullets, then
    section-specific handling for education and skills, and finally plain
    paragraphs. Skills are collected while inside a skills section and
    emitted as one table when the section ends.
    """

    def __init__(self):
        self._state = ParserState()
        self._blocks = []

    def classify(self, markdown: str | None) -> List[Block]:
        """Classify a markdown document

        Args:
            markdown (str): Resume markdown; None is treated as empty

        Returns:
            list: The ordered blocks
        """
        self._state = ParserState()
        self._blocks = []

        for line in _split_lines(markdown):
            self._classify_line(line)
        self._flush_skills()

        return list(self._blocks)

    def _classify_line(self, raw_line: str) -> None:
        line = raw_line.strip()

        if not line:
            self._handle_blank()
            return

        section = ResumeSection.find_by_text(line)
        if section:
            self._open_section(section.heading, level=2, implicit=True)
            return

        heading = HEADING_PATTERN.match(line)
        if heading:
            level = len(heading.group(1))
            text = strip_bold_markers(heading.group(2)).strip()
            if not text:
                self._handle_literal(line)
            elif level >= 3:
                self._handle_role_heading(text)
            else:
                self._open_section(text, level=level)
            return

        bullet = BULLET_PATTERN.match(line)
        if bullet:
            content = bullet.group(1).strip()
            if _has_text(content):
                self._handle_bullet(content)
            else:
                self._handle_literal(line)
            return

        if self._state.inside_education:
            entry = split_education_line(line)
            if entry:
                self._state.previous_line_was_heading = False
                self._blocks.append(entry)
        elif self._state.inside_skills:
            if _has_text(line):
                self._state.previous_line_was_heading = False
                self._state.pending_skills.append(line)
        elif _has_text(line):
            self._state.previous_line_was_heading = False
            self._blocks.append(Paragraph(tuple(parse_inline(line))))
        else:
            self._handle_literal(line)

    def _handle_blank(self) -> None:
        if self._state.previous_line_was_heading or self._state.inside_skills:
            return
        self._blocks.append(Spacer())

    def _open_section(self, text: str, level: int, implicit: bool = False) -> None:
        """Start a new level 1 or 2 section and pick its classification mode"""
        self._flush_skills()
        self._blocks.append(SectionHeading(text, level=level, implicit=implicit))

        section = ResumeSection.find_by_text(text) if level == 2 else None
        self._state.mode = section.mode if section else SectionMode.DEFAULT
        self._state.previous_line_was_heading = True

    def _handle_role_heading(self, text: str) -> None:
        self._flush_skills()
        self._blocks.append(SectionHeading(text, level=3))
        self._state.previous_line_was_heading = False

    def _handle_bullet(self, content: str) -> None:
        self._state.previous_line_was_heading = False
        if self._state.inside_skills:
            self._state.pending_skills.append(content)
            return
        self._blocks.append(Bullet(tuple(parse_inline(content))))

    def _handle_literal(self, line: str) -> None:
        """Keep a marker-only line (``•``, ``# **``, ``****``) as plain text

        Such lines carry no skills, so they are ignored inside a skills
        section.
        """
        if self._state.inside_skills:
            return
        self._state.previous_line_was_heading = False
        self._blocks.append(Paragraph((StyledRun(line),)))

    def _flush_skills(self) -> None:
        if not self._state.inside_skills:
            return
        if self._state.pending_skills:
            self._blocks.append(SkillsTable(tuple(self._state.pending_skills)))
        self._state.pending_skills = []


def classify_markdown(markdown: str | None) -> List[Block]:
    """Classify resume markdown into an ordered list of blocks"""
    return MarkdownClassifier().classify(markdown)


def blocks_to_markdown(blocks: Iterable[Block]) -> str:
    """Render blocks back into the resume markdown dialect

    Classifying the result yields the same blocks again.

    Args:
        blocks: Blocks produced by classify_markdown

    Returns:
        str: Markdown text, one line per block (skills tables expand to
             one bullet per item)
    """
    lines = []
    for block in blocks:
        if isinstance(block, Spacer):
            lines.append("")
        elif isinstance(block, SectionHeading):
            if block.implicit:
                lines.append(block.text)
            else:
                lines.append(f"{'#' * block.level} {block.text}")
        elif isinstance(block, Bullet):
            lines.append(f"- {_runs_to_markdown(block.runs)}")
        elif isinstance(block, EducationEntry):
            degree = block.degree.text if block.degree else ""
            if block.institution:
                lines.append(f"{degree} — {block.institution.text}".strip())
            else:
                lines.append(degree)
        elif isinstance(block, SkillsTable):
            lines.extend(f"- {item}" for item in block.items)
        elif isinstance(block, Paragraph):
            lines.append(_runs_to_markdown(block.runs))
    return "\n".join(lines)


def _runs_to_markdown(runs: Iterable[StyledRun]) -> str:
    return "".join(
        f"{BOLD_DELIMITER}{run.text}{BOLD_DELIMITER}" if run.bold else run.text
        for run in runs
    )


def _has_text(text: str) -> bool:
    return bool(strip_bold_markers(text).strip())


def _split_lines(markdown: str | None) -> List[str]:
    if not markdown:
        return []
    return markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")


##############################
# Main Processors
##############################
def build_resume_document(
    markdown: str | None,
    identity: Identity | None = None,
    theme: DocumentTheme | None = None,
) -> DOCX_Document:
    """Convert resume markdown into a styled Word document

    Args:
        markdown (str): Resume markdown
        identity (Identity, optional): Header name and contact details
        theme (DocumentTheme, optional): Stylesheet; built-in defaults if None

    Returns:
        Document: The python-docx document
    """
    if identity is None:
        identity = Identity()
    if theme is None:
        theme = DocumentTheme.from_config(DEFAULT_CONFIG)

    blocks = classify_markdown(markdown)
    logger.debug("Classified %d blocks", len(blocks))

    document = DOCX_Document()
    _apply_document_styles(document, theme.document_styles)
    _apply_page_layout(document, theme)

    _add_header(document, identity, theme)
    for block in blocks:
        _add_block(document, block, theme)

    return document


def export_docx(
    markdown: str | None,
    identity: Identity | None = None,
    theme: DocumentTheme | None = None,
) -> bytes:
    """Convert resume markdown into the bytes of a .docx file

    Args:
        markdown (str): Resume markdown
        identity (Identity, optional): Header name and contact details
        theme (DocumentTheme, optional): Stylesheet; built-in defaults if None

    Returns:
        bytes: The serialized document

    Raises:
        DocumentExportError: If the document cannot be serialized
    """
    document = build_resume_document(markdown, identity, theme)

    buffer = io.BytesIO()
    try:
        document.save(buffer)
    except Exception as e:
        raise DocumentExportError(f"Could not serialize document: {e}") from e

    return buffer.getvalue()


def create_tailored_resume(
    md_file: Path,
    output_file: Path,
    config_loader: ConfigLoader,
    identity: Identity | None = None,
) -> Path:
    """Convert a markdown resume file and write the Word document to disk

    Args:
        md_file (Path): Path to the markdown resume file
        output_file (Path): Path where the output Word document will be saved
        config_loader (ConfigLoader): Loaded configuration
        identity (Identity, optional): Header name and contact details

    Returns:
        Path: Path to the created document
    """
    with open(md_file, "r", encoding="utf-8") as file:
        md_content = file.read()

    data = export_docx(md_content, identity, config_loader.theme())

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)

    return output_path


##############################
# Block Renderers
##############################
def _add_header(document: DOCX_Document, identity: Identity, theme: DocumentTheme) -> None:
    """Add the centered name and contact lines

    Args:
        document: The Word document object
        identity: Caller-supplied identity
        theme: Stylesheet for the conversion
    """
    name_line = identity.name_line
    if name_line:
        para = document.add_paragraph()
        para.alignment = DOCX_PARAGRAPH_ALIGN.CENTER
        run = para.add_run(name_line)
        _apply_font_properties(
            run.font,
            {
                "bold": True,
                "font_size": theme.name_font_size,
                "color": theme.accent_color,
            },
        )
        _apply_paragraph_format_properties(
            para.paragraph_format,
            {"space_before": 0, "space_after": theme.name_space_after},
        )

    contact_fields = identity.contact_fields()
    if not contact_fields:
        return

    para = document.add_paragraph()
    para.alignment = DOCX_PARAGRAPH_ALIGN.CENTER
    contact_font = {
        "font_size": theme.contact_font_size,
        "color": theme.body_color,
    }
    linkedin_url = identity.linkedin_url

    for index, contact_field in enumerate(contact_fields):
        if index > 0:
            _apply_font_properties(
                para.add_run(theme.contact_separator).font, contact_font
            )
        if linkedin_url and contact_field == linkedin_url:
            _add_hyperlink(para, contact_field, contact_field, theme)
        else:
            _apply_font_properties(para.add_run(contact_field).font, contact_font)

    _apply_paragraph_format_properties(
        para.paragraph_format,
        {"space_before": 0, "space_after": theme.contact_space_after},
    )


def _add_block(document: DOCX_Document, block: Block, theme: DocumentTheme) -> None:
    if isinstance(block, Spacer):
        _add_space_paragraph(document, theme.spacer_space_after)
    elif isinstance(block, SectionHeading):
        heading = document.add_heading(block.text, level=block.level)
        if block.level < 3:
            _add_bottom_rule(heading, theme)
    elif isinstance(block, Bullet):
        para = document.add_paragraph(style="List Bullet")
        _add_styled_runs(para, block.runs)
    elif isinstance(block, EducationEntry):
        _add_education_entry(document, block)
    elif isinstance(block, SkillsTable):
        _add_skills_table(document, block.items, theme)
        _add_space_paragraph(document, theme.spacer_space_after)
    elif isinstance(block, Paragraph):
        _add_styled_runs(document.add_paragraph(), block.runs)
    else:
        raise TypeError(f"Unknown block type: {type(block).__name__}")


def _add_styled_runs(paragraph: DOCX_Paragraph, runs: Iterable[StyledRun]) -> None:
    for styled in runs:
        run = paragraph.add_run(styled.text)
        if styled.bold:
            run.bold = True
        if styled.italic:
            run.italic = True


def _add_education_entry(document: DOCX_Document, entry: EducationEntry) -> None:
    """Add the degree line (bold) and institution line (italic) of an entry

    Args:
        document: The Word document object
        entry: The classified education entry
    """
    lines = [line for line in (entry.degree, entry.institution) if line]
    for index, line in enumerate(lines):
        para = document.add_paragraph()
        _add_styled_runs(para, [line])
        if index < len(lines) - 1:
            para.paragraph_format.space_after = Pt(0)


def _add_skills_table(
    document: DOCX_Document, items: Iterable[str], theme: DocumentTheme
) -> DOCX_Table:
    """Add the skills grid as a borderless, full-width table

    Args:
        document: The Word document object
        items: Skill strings in their original order
        theme: Stylesheet for the conversion

    Returns:
        docx.table.Table: The created table object
    """
    grid = skills_grid(items)
    columns = len(grid[0])
    table = _create_table(document, rows=len(grid), cols=columns)

    column_width = Emu(int(_printable_width(document) / columns))
    for column in table.columns:
        column.width = column_width

    for row, row_items in zip(table.rows, grid):
        for cell, item in zip(row.cells, row_items):
            cell.width = column_width
            para = cell.paragraphs[0]
            para.paragraph_format.space_after = Pt(theme.skills_space_after)
            if item is None:
                continue
            para.add_run(f"{theme.skills_bullet} ")
            _add_styled_runs(para, parse_inline(item))

    return table


def _create_table(document: DOCX_Document, rows: int = 1, cols: int = 1) -> DOCX_Table:
    """Create a full-width table with no visible borders

    Args:
        document: The Word document object
        rows: Number of rows in the table
        cols: Number of columns in the table

    Returns:
        docx.table.Table: The created table object
    """
    table = document.add_table(rows=rows, cols=cols)
    tblPr = table._tbl.tblPr

    tblW = tblPr.find(qn("w:tblW"))
    if tblW is None:
        tblW = OxmlElement("w:tblW")
        tblPr.append(tblW)
    tblW.set(qn("w:w"), "5000")
    tblW.set(qn("w:type"), "pct")

    existing_borders = tblPr.find(qn("w:tblBorders"))
    if existing_borders is not None:
        tblPr.remove(existing_borders)
    tblBorders = OxmlElement("w:tblBorders")
    for border in ["top", "left", "bottom", "right", "insideH", "insideV"]:
        border_elem = OxmlElement(f"w:{border}")
        border_elem.set(qn("w:val"), "nil")
        tblBorders.append(border_elem)

    # tblBorders must precede tblLook in tblPr
    tblLook = tblPr.find(qn("w:tblLook"))
    if tblLook is not None:
        tblLook.addprevious(tblBorders)
    else:
        tblPr.append(tblBorders)

    table.autofit = False

    return table


def _printable_width(document: DOCX_Document) -> int:
    section = document.sections[0]
    return section.page_width - section.left_margin - section.right_margin


def _add_bottom_rule(paragraph: DOCX_Paragraph, theme: DocumentTheme) -> None:
    """Draw a thin horizontal rule beneath a paragraph using a bottom border

    Args:
        paragraph: The paragraph to underline
        theme: Stylesheet providing the rule color and size
    """
    pPr = paragraph._p.get_or_add_pPr()
    pBdr = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), str(theme.rule_size))
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), theme.rule_color)
    pBdr.append(bottom)
    pPr.append(pBdr)


def _add_space_paragraph(document: DOCX_Document, space_after: float) -> DOCX_Paragraph:
    para = document.add_paragraph()
    _apply_paragraph_format_properties(
        para.paragraph_format, {"space_before": 0, "space_after": space_after}
    )
    return para


def _add_hyperlink(
    paragraph: DOCX_Paragraph, text: str, url: str, theme: DocumentTheme
) -> docx.oxml.shared.OxmlElement:
    """Add a hyperlink to a paragraph using direct formatting

    Args:
        paragraph: The paragraph to add the hyperlink to
        text (str): The text to display for the hyperlink
        url (str): The URL to link to
        theme: Stylesheet providing the link color and size

    Returns:
        OxmlElement: The created hyperlink element
    """
    r_id = paragraph.part.relate_to(url, DOCX_REL.HYPERLINK, is_external=True)

    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)

    new_run = OxmlElement("w:r")
    rPr = OxmlElement("w:rPr")

    color = OxmlElement("w:color")
    color.set(qn("w:val"), theme.accent_color)
    rPr.append(color)

    size = OxmlElement("w:sz")
    size.set(qn("w:val"), str(int(round(theme.contact_font_size * 2))))
    rPr.append(size)

    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    rPr.append(underline)

    new_run.append(rPr)
    new_run.text = text
    hyperlink.append(new_run)

    paragraph._p.append(hyperlink)

    return hyperlink


##############################
# Primary Helpers
##############################
def _apply_font_properties(font_obj: DOCX_FONT, properties: Dict[str, object]) -> None:
    """Copy theme font settings onto a style or run font

    Sizes are points and colors are hex RGB strings, as validated by
    ``_validate_style_properties``.

    Args:
        font_obj: The font object (from style.font or run.font)
        properties: Theme properties keyed by setting name
    """
    for setting, attribute in FONT_ATTRIBUTES.items():
        if setting in properties:
            setattr(font_obj, attribute, properties[setting])

    size = properties.get("font_size")
    if size is not None:
        font_obj.size = Pt(size)
    color = properties.get("color")
    if color is not None:
        font_obj.color.rgb = RGBColor.from_string(color.upper())


def _apply_paragraph_format_properties(
    paragraph_format: DOCX_ParagraphFormat, properties: Dict[str, object]
) -> None:
    """Apply paragraph format properties to a paragraph format object

    Args:
        paragraph_format: The paragraph format object
        properties: Dictionary containing paragraph format properties
    """
    if properties.get("line_spacing") is not None:
        paragraph_format.line_spacing = properties["line_spacing"]
    if properties.get("space_before") is not None:
        paragraph_format.space_before = Pt(properties["space_before"])
    if properties.get("space_after") is not None:
        paragraph_format.space_after = Pt(properties["space_after"])
    if properties.get("indent_left") is not None:
        paragraph_format.left_indent = Inches(properties["indent_left"])


def _apply_page_layout(document: DOCX_Document, theme: DocumentTheme) -> None:
    for section in document.sections:
        section.page_width = Inches(theme.page_width)
        section.page_height = Inches(theme.page_height)
        section.top_margin = Inches(theme.margin_top)
        section.bottom_margin = Inches(theme.margin_bottom)
        section.left_margin = Inches(theme.margin_left)
        section.right_margin = Inches(theme.margin_right)


def _clear_theme_fonts(style) -> None:
    """Remove theme font references so an explicit font name takes effect"""
    rFonts = style.element.get_or_add_rPr().find(qn("w:rFonts"))
    if rFonts is None:
        return
    for attribute in ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme"):
        rFonts.attrib.pop(qn(attribute), None)


def _validate_style_properties(properties: Dict[str, object]) -> Dict[str, object]:
    """Validate and clean style properties with type checking

    Args:
        properties: Raw properties dictionary

    Returns:
        dict: Validated and cleaned properties
    """
    valid_props = {}

    prop_types = {
        "font_name": str,
        "font_size": (int, float),
        "bold": bool,
        "italic": bool,
        "underline": bool,
        "color": str,
        "line_spacing": (int, float),
        "space_after": (int, float),
        "space_before": (int, float),
        "indent_left": (int, float),
    }

    for prop, expected_type in prop_types.items():
        if prop not in properties:
            continue
        value = properties[prop]
        if not isinstance(value, expected_type):
            logger.warning(
                "Invalid type for %s: got %s", prop, type(value).__name__
            )
        elif prop == "color" and not HEX_COLOR_PATTERN.match(value):
            logger.warning("Invalid color for %s: %s", prop, value)
        else:
            valid_props[prop] = value

    return valid_props


def _apply_document_styles(
    document: DOCX_Document, styles: Mapping[str, Mapping[str, object]]
) -> None:
    """Apply style settings to the document's named styles

    Args:
        document: The Word document object
        styles: Validated properties keyed by style name
    """
    for style_name, properties in styles.items():
        try:
            style = document.styles[style_name]
        except KeyError:
            logger.warning("Style '%s' not found in document, skipping", style_name)
            continue

        _apply_font_properties(style.font, properties)
        if "font_name" in properties:
            _clear_theme_fonts(style)

        if hasattr(style, "paragraph_format"):
            _apply_paragraph_format_properties(style.paragraph_format, properties)


##############################
# Main Entry
##############################
def main(argv: List[str] | None = None) -> int:
    program_description = """
    Convert a tailored markdown resume to a styled Word document.

    Section headings, job titles, bullets, education entries and a
    multi-column skills grid are inferred from the markdown, and an
    optional name/contact header is added from the command line options.
    """

    epilog_text = """
    Examples:
      resume-tailor-docx -i resume.md
          - Converts resume.md to resume.docx next to it

      resume-tailor-docx -i resume.md -o out/resume.docx --first-name Ana --phone 555-234-5677
          - Converts resume.md with a name and contact header

      resume-tailor-docx -i resume.md --print-blocks
          - Prints the markdown as the converter understood it
    """

    parser = argparse.ArgumentParser(
        prog="resume-tailor-docx",
        description=program_description,
        epilog=epilog_text,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i", "--input", dest="input_file", required=True, help="Input markdown file"
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_file",
        help='Output Word document (default: "<input_file>.docx")',
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        help="Path to YAML configuration file",
        default=DEFAULT_CONFIG_FILE,
    )
    parser.add_argument("--first-name", dest="first_name")
    parser.add_argument("--last-name", dest="last_name")
    parser.add_argument("--location", dest="location")
    parser.add_argument("--phone", dest="phone")
    parser.add_argument("--email", dest="email")
    parser.add_argument("--linkedin", dest="linkedin", help="LinkedIn handle or URL")
    parser.add_argument(
        "--print-blocks",
        dest="print_blocks",
        action="store_true",
        help="Print the classified blocks as markdown instead of writing a document",
    )

    args = parser.parse_args(argv)
    input_file = Path(args.input_file)

    if not input_file.exists():
        print(f"❌ File '{input_file}' does not exist.", file=sys.stderr)
        return 1

    if args.print_blocks:
        with open(input_file, "r", encoding="utf-8") as file:
            print(blocks_to_markdown(classify_markdown(file.read())))
        return 0

    identity = Identity(
        first_name=args.first_name,
        last_name=args.last_name,
        location=args.location,
        phone=args.phone,
        email=args.email,
        linkedin=args.linkedin,
    )
    output_file = (
        Path(args.output_file)
        if args.output_file
        else input_file.with_suffix(f".{DOCX_EXTENSION}")
    )

    try:
        result = create_tailored_resume(
            input_file, output_file, ConfigLoader(args.config_file), identity
        )
    except (DocumentExportError, ValueError, OSError) as e:
        print(f"❌ Conversion failed: {e}", file=sys.stderr)
        return 1

    print(f"✅ Tailored resume created: {result}")
    return 0


__all__ = [
    "Block",
    "Bullet",
    "ConfigLoader",
    "DocumentExportError",
    "DocumentTheme",
    "EducationEntry",
    "Identity",
    "MarkdownClassifier",
    "Paragraph",
    "ParserState",
    "ResumeSection",
    "SectionHeading",
    "SectionMode",
    "SkillsTable",
    "Spacer",
    "StyledRun",
    "DEFAULT_CONFIG_FILE",
    "DOCX_EXTENSION",
    "DOCX_MIMETYPE",
    "blocks_to_markdown",
    "build_contact_line",
    "build_resume_document",
    "classify_markdown",
    "create_tailored_resume",
    "export_docx",
    "normalize_linkedin",
    "normalize_phone",
    "parse_inline",
    "skills_column_count",
    "skills_grid",
    "split_education_line",
]


if __name__ == "__main__":
    sys.exit(main())
