"""Markdown helpers for the chunker and the cleaning embedder.

Handles:
- YAML frontmatter parsing
- Section splitting at a heading level
- Removal of authoring noise (frontmatter, shortcodes, callout blocks)
"""
import re
from typing import Any, Dict, List, Tuple
from dataclasses import dataclass, field
import yaml
import structlog

logger = structlog.get_logger()

PRELUDE_HEADING = "Prelude"

# YAML frontmatter (must be at start of file)
FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)

# Cleaning patterns, applied in order
ANY_FRONTMATTER_PATTERN = re.compile(r"---[\s\S]*?---")
CALLOUT_OPEN_PATTERN = re.compile(r"::[\w-]+\{[^}]*\}")
CALLOUT_CLOSE_PATTERN = re.compile(r"^::[ \t]*$", re.MULTILINE)
INLINE_SHORTCODE_PATTERN = re.compile(r":[\w-]+\{[^}]*\}")


@dataclass
class Section:
    """Lines of a document under one heading."""

    heading: str
    lines: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Extract YAML frontmatter from markdown content.

    Args:
        content: Full markdown content

    Returns:
        Tuple of (frontmatter_dict, content_without_frontmatter)
    """
    match = FRONTMATTER_PATTERN.match(content)

    if not match:
        return {}, content

    yaml_content = match.group(1)
    try:
        frontmatter = yaml.safe_load(yaml_content)
        if not isinstance(frontmatter, dict):
            frontmatter = {}
    except yaml.YAMLError as e:
        logger.warning(
            "frontmatter_parse_error",
            error=str(e),
            yaml_preview=yaml_content[:100],
        )
        frontmatter = {}

    return frontmatter, content[match.end() :]


def split_sections(content: str, heading_level: int = 2) -> List[Section]:
    """Split markdown into sections at headings of exactly `heading_level`.

    The heading line is kept as the first line of its section. Text before
    the first heading goes into a "Prelude" section. Sections with no lines
    are not returned; whitespace-only sections are (the chunker drops them).

    Args:
        content: Markdown content
        heading_level: Number of '#' characters that open a section

    Returns:
        List of Section objects in document order
    """
    marker = "#" * heading_level + " "
    sections: List[Section] = []
    current = Section(heading=PRELUDE_HEADING)

    for line in content.split("\n"):
        if line.startswith(marker):
            if current.lines:
                sections.append(current)
            current = Section(heading=line[len(marker) :].strip(), lines=[line])
        else:
            current.lines.append(line)

    if current.lines:
        sections.append(current)

    return sections


def clean_text(text: str) -> str:
    """Remove authoring-format markup that carries no meaning for embeddings.

    Strips frontmatter blocks, the markers of callout blocks like
    ::callout{type="info"} ... :: (their body text is kept)
    and inline shortcodes like :icon{name="x"}, then trims.
    """
    text = ANY_FRONTMATTER_PATTERN.sub("", text)
    text = CALLOUT_OPEN_PATTERN.sub("", text)
    text = CALLOUT_CLOSE_PATTERN.sub("", text)
    text = INLINE_SHORTCODE_PATTERN.sub("", text)
    return text.strip()


def document_lang(content: str, default: str) -> str:
    """Language declared in the frontmatter `lang` field, else `default`."""
    frontmatter, _ = parse_frontmatter(content)
    lang = frontmatter.get("lang")
    if isinstance(lang, str) and lang.strip():
        return lang.strip()
    return default
