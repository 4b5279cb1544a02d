"""Structural lint rules for awesome-list markdown

Each rule is a pure function over the document lines returning
(errors, warnings). Errors block export; warnings are informational.
"""

import re
from typing import Callable

from awesync.core.models import LintIssue, LintResult
from awesync.core.utils.slug import anchor


Issues = tuple[list[LintIssue], list[LintIssue]]
Rule = Callable[[list[str]], Issues]

TITLE_RE = re.compile(r'^#\s+\S')
DESCRIPTION_RE = re.compile(r'^>\s+\S')
TOC_RE = re.compile(r'^##\s+Contents', re.IGNORECASE)
H2_RE = re.compile(r'^##\s+(.+)$')
ANY_HEADING_RE = re.compile(r'^(#{1,6})\s+')
SECTION_HEADING_RE = re.compile(r'^(#{2,6})\s+(.+)$')
TOC_LINK_RE = re.compile(r'^\s*-\s+\[([^\]]+)\]\(#([^)]+)\)')
LIST_LINK_RE = re.compile(r'^\s*[-*]\s+\[')
RESOURCE_LINE_RE = re.compile(r'^[-*]\s+\[([^\]]+)\]\(([^)]+)\)(?:\s+[-–—]\s+.*)?$')
RESOURCE_PREFIX_RE = re.compile(r'^[-*]\s+\[([^\]]+)\]\(([^)]+)\)')
CONTENTS_NAME_RE = re.compile(r'^Contents$', re.IGNORECASE)


def _error(line: int, rule: str, message: str) -> Issues:
    return [LintIssue(line=line, rule=rule, message=message)], []


def check_title(lines: list[str]) -> Issues:
    if any(TITLE_RE.match(line) for line in lines):
        return [], []
    return _error(1, "has-title", "Missing title: expected a # heading at the top of the document")


def check_description(lines: list[str]) -> Issues:
    if any(DESCRIPTION_RE.match(line) for line in lines):
        return [], []
    return _error(1, "has-description", "Missing description: expected a > blockquote after the title")


def check_toc(lines: list[str]) -> Issues:
    if any(TOC_RE.match(line) for line in lines):
        return [], []
    return _error(1, "has-toc", "Missing Table of Contents: expected a ## Contents section")


def check_toc_links(lines: list[str]) -> Issues:
    """Every `- [text](#anchor)` in the Contents block must name a ## section."""
    anchors = set()
    for line in lines:
        if m := H2_RE.match(line):
            name = m.group(1).strip()
            if not CONTENTS_NAME_RE.match(name):
                anchors.add(anchor(name))

    errors = []
    in_toc = False
    for i, line in enumerate(lines, start=1):
        if TOC_RE.match(line):
            in_toc = True
            continue
        if not in_toc:
            continue
        if H2_RE.match(line):
            in_toc = False
            continue
        if (m := TOC_LINK_RE.match(line)) and m.group(2) not in anchors:
            errors.append(LintIssue(
                line=i, rule="toc-link-resolves",
                message=f'TOC link "#{m.group(2)}" does not resolve to any section',
            ))
    return errors, []


def check_heading_hierarchy(lines: list[str]) -> Issues:
    """A heading may go at most one level deeper than the one before it."""
    errors = []
    last_level = 1
    for i, line in enumerate(lines, start=1):
        m = ANY_HEADING_RE.match(line)
        if not m:
            continue
        level = len(m.group(1))
        if level > last_level + 1:
            errors.append(LintIssue(
                line=i, rule="heading-hierarchy",
                message=f"Heading level {level} skips level {last_level + 1}. "
                        f"Found h{level} without preceding h{level - 1}",
            ))
        last_level = level
    return errors, []


def check_resource_format(lines: list[str]) -> Issues:
    errors = []
    for i, line in enumerate(lines, start=1):
        if not LIST_LINK_RE.match(line):
            continue
        m = RESOURCE_LINE_RE.match(line.strip())
        if not m:
            errors.append(LintIssue(
                line=i, rule="resource-format",
                message="Resource line does not match expected format: - [Title](URL) - Description",
            ))
            continue
        url = m.group(2)
        if not url.startswith(("http://", "https://", "#")):
            errors.append(LintIssue(
                line=i, rule="resource-format",
                message=f'URL "{url}" does not start with http:// or https://',
            ))
    return errors, []


def check_alphabetical_order(lines: list[str]) -> Issues:
    """Warn once per section at the first title that sorts before its predecessor."""
    warnings = []
    titles: list[tuple[str, int]] = []

    def flush():
        for (prev, _), (curr, line_no) in zip(titles, titles[1:]):
            if prev.lower() > curr.lower():
                warnings.append(LintIssue(
                    line=line_no, rule="alphabetical-order",
                    message=f'"{curr}" should come before "{prev}" (alphabetical order)',
                ))
                break
        titles.clear()

    for i, line in enumerate(lines, start=1):
        if SECTION_HEADING_RE.match(line):
            flush()
            continue
        m = RESOURCE_PREFIX_RE.match(line.strip())
        if m and m.group(2).startswith("http"):
            titles.append((m.group(1), i))
    flush()
    return [], warnings


def check_empty_sections(lines: list[str]) -> Issues:
    """A heading needs text or a child heading before the next heading."""
    headings = [
        (i, len(m.group(1)), m.group(2).strip())
        for i, line in enumerate(lines)
        if (m := SECTION_HEADING_RE.match(line))
    ]

    errors = []
    for h, (index, level, name) in enumerate(headings):
        if CONTENTS_NAME_RE.match(name):
            continue
        nxt = headings[h + 1] if h + 1 < len(headings) else None
        end = nxt[0] if nxt else len(lines)
        has_content = any(
            line.strip() and not line.strip().startswith("#")
            for line in lines[index + 1:end]
        )
        has_child = nxt is not None and nxt[1] > level
        if not has_content and not has_child:
            errors.append(LintIssue(
                line=index + 1, rule="no-empty-sections",
                message=f'Section "{name}" is empty (no resources or child sections)',
            ))
    return errors, []


RULES: list[Rule] = [
    check_title,
    check_description,
    check_toc,
    check_toc_links,
    check_heading_hierarchy,
    check_resource_format,
    check_alphabetical_order,
    check_empty_sections,
]


def lint_markdown(markdown: str, rules: list[Rule] = None) -> LintResult:
    """Run every rule over the document; valid iff no rule reported an error."""
    lines = markdown.split("\n")
    errors: list[LintIssue] = []
    warnings: list[LintIssue] = []
    for rule in rules or RULES:
        rule_errors, rule_warnings = rule(lines)
        errors.extend(rule_errors)
        warnings.extend(rule_warnings)
    return LintResult(valid=not errors, errors=errors, warnings=warnings)
