"""Awesome-list markdown parsing: title, description, section tree and resources

The parser is a single left-to-right pass over the document lines. It never
raises on content: anything it cannot confidently read as a resource entry is
dropped.
"""

import re
from pathlib import Path
from typing import Optional

from awesync.core.models import ParsedResource, ParsedSection, ParseResult
from awesync.core.utils.tokens import code_line_indexes


TITLE_RE = re.compile(r'^#\s+(\S.*)$')
DESCRIPTION_RE = re.compile(r'^>\s+(\S.*)$')
HEADING_RE = re.compile(r'^(#{2,4})\s+(.+)$')
RESOURCE_RE = re.compile(r'^\s*[-*]\s+\[([^\]]+)\]\(([^)]+)\)(?:\s+[-–—]\s+(.*))?$')

SKIP_SECTIONS = frozenset({
    "contents",
    "table of contents",
    "toc",
    "license",
    "contributing",
    "contribute",
    "contributors",
    "acknowledgements",
    "acknowledgments",
    "related",
    "footnotes",
})

BADGE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r'shields\.io',
        r'badge',
        r'travis-ci',
        r'circleci',
        r'coveralls',
        r'codeclimate',
        r'awesome\.re',
        r'github\.com/sindresorhus/awesome',
        r'#contributing',
        r'#license',
        r'#contents',
    )
]


def is_skipped_section(name: str) -> bool:
    """True for boilerplate headings (Contents, License, Contributing, ...)."""
    return name.strip().lower() in SKIP_SECTIONS


def is_resource_url(url: str) -> bool:
    """False for badges, in-document anchors and anything that is not http(s)."""
    if url.startswith('#'):
        return False
    if not url.startswith(('http://', 'https://')):
        return False
    return not any(p.search(url) for p in BADGE_PATTERNS)


def parse_resource_line(line: str, line_number: int, category_path: list[str]) -> Optional[ParsedResource]:
    """Parse `- [Title](URL) - Description` into a ParsedResource, or None."""
    m = RESOURCE_RE.match(line)
    if not m:
        return None
    title, url, description = m.group(1).strip(), m.group(2).strip(), (m.group(3) or '').strip()
    if not title or not is_resource_url(url):
        return None
    return ParsedResource(
        title=title,
        url=url,
        description=description,
        category_path=list(category_path),
        source_line=line_number,
    )


class _Cursor:
    """Currently open category / subcategory / sub-subcategory."""

    def __init__(self):
        self.category: Optional[ParsedSection] = None
        self.subcategory: Optional[ParsedSection] = None
        self.sub_subcategory: Optional[ParsedSection] = None

    def open(self, level: int, name: str, sections: list[ParsedSection]) -> None:
        node = ParsedSection(level=level, name=name)
        if level == 2:
            sections.append(node)
            self.category, self.subcategory, self.sub_subcategory = node, None, None
        elif level == 3 and self.category is not None:
            self.category.children.append(node)
            self.subcategory, self.sub_subcategory = node, None
        elif level == 4 and self.subcategory is not None:
            self.subcategory.children.append(node)
            self.sub_subcategory = node

    def deepest(self) -> Optional[ParsedSection]:
        return self.sub_subcategory or self.subcategory or self.category

    def path(self) -> list[str]:
        return [s.name for s in (self.category, self.subcategory, self.sub_subcategory) if s is not None]


def parse_markdown(markdown: str) -> ParseResult:
    """Parse awesome-list markdown into a section tree plus a flat, URL-unique resource list.

    - the first `# ` heading, if no other heading precedes it, is the title
    - the first `> ` line after the title is the description
    - `##` / `###` / `####` open a category / subcategory / sub-subcategory
    - boilerplate sections (see SKIP_SECTIONS) are discarded up to the next
      heading of the same or shallower level
    - list entries are attached to the deepest open section; a URL seen
      earlier in the document is dropped
    - lines inside fenced code blocks are ignored
    """
    result = ParseResult()
    cursor = _Cursor()
    seen_urls: set[str] = set()
    code_lines = code_line_indexes(markdown)

    seen_heading = False
    skip_level: Optional[int] = None

    for index, raw in enumerate(markdown.split('\n')):
        if index in code_lines:
            continue
        line = raw.strip()
        if not line:
            continue

        if not seen_heading and (m := TITLE_RE.match(line)):
            result.title = m.group(1).strip()
            seen_heading = True
            continue

        if result.title and not result.description and (m := DESCRIPTION_RE.match(line)):
            result.description = m.group(1).strip()
            continue

        if m := HEADING_RE.match(line):
            seen_heading = True
            level, name = len(m.group(1)), m.group(2).strip()
            if skip_level is not None:
                if level > skip_level:
                    continue
                skip_level = None
            if is_skipped_section(name):
                skip_level = level
                continue
            cursor.open(level, name, result.sections)
            continue

        if skip_level is not None or cursor.category is None:
            continue

        resource = parse_resource_line(line, index + 1, cursor.path())
        if resource is None or resource.url in seen_urls:
            continue
        seen_urls.add(resource.url)
        cursor.deepest().resources.append(resource)
        result.resources.append(resource)

    return result


def parse_file(path: Path) -> ParseResult:
    """Read a UTF-8 markdown file and parse it."""
    return parse_markdown(Path(path).read_text(encoding='utf-8'))
