"""Canonical awesome-list markdown generation from catalog entries"""

from dataclasses import dataclass, field

from awesync.core.models import CatalogEntry, FormatResult
from awesync.core.utils.slug import anchor


@dataclass
class _SectionNode:
    """A heading in the output tree; resources are rendered before children."""
    name: str
    resources: list[CatalogEntry] = field(default_factory=list)
    children: dict[str, "_SectionNode"] = field(default_factory=dict)

    def child(self, name: str) -> "_SectionNode":
        if name not in self.children:
            self.children[name] = _SectionNode(name)
        return self.children[name]


def _by_name(nodes) -> list[_SectionNode]:
    return sorted(nodes, key=lambda n: (n.name.lower(), n.name))


def _by_title(entries: list[CatalogEntry]) -> list[CatalogEntry]:
    return sorted(entries, key=lambda e: (e.title.lower(), e.title, e.url))


def build_tree(entries: list[CatalogEntry]) -> dict[str, _SectionNode]:
    """Group entries by category / subcategory / sub-subcategory name."""
    tree: dict[str, _SectionNode] = {}
    for e in entries:
        if not e.category_name:
            continue
        node = tree.setdefault(e.category_name, _SectionNode(e.category_name))
        if e.subcategory_name:
            node = node.child(e.subcategory_name)
            if e.sub_subcategory_name:
                node = node.child(e.sub_subcategory_name)
        node.resources.append(e)
    return tree


def render_resource(entry: CatalogEntry) -> str:
    if entry.description:
        return f"- [{entry.title}]({entry.url}) - {entry.description}"
    return f"- [{entry.title}]({entry.url})"


def render_section(node: _SectionNode, level: int) -> list[str]:
    """Render a heading, its sorted resources, then its sorted child sections."""
    lines = [f"{'#' * level} {node.name}", ""]
    if node.resources:
        lines.extend(render_resource(e) for e in _by_title(node.resources))
        lines.append("")
    for child in _by_name(node.children.values()):
        lines.extend(render_section(child, level + 1))
    return lines


def render_toc(tree: dict[str, _SectionNode]) -> list[str]:
    lines = ["## Contents", ""]
    lines.extend(f"- [{cat.name}](#{anchor(cat.name)})" for cat in _by_name(tree.values()))
    lines.append("")
    return lines


def format_markdown(entries: list[CatalogEntry], title: str, description: str) -> FormatResult:
    """Render entries as a canonical awesome list.

    Output is a pure function of the inputs: every level is sorted
    case-insensitively, so re-parsing it yields the same entries.
    """
    tree = build_tree(entries)

    lines = [f"# {title}", "", f"> {description}", ""]
    lines.extend(render_toc(tree))
    for cat in _by_name(tree.values()):
        lines.extend(render_section(cat, 2))

    return FormatResult(
        markdown="\n".join(lines),
        resource_count=sum(1 for e in entries if e.category_name),
        category_count=len(tree),
    )
