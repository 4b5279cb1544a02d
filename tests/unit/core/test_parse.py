"""Unit tests for core/parse.py"""

import pytest

from awesync.core.parse import (
    is_resource_url, is_skipped_section, parse_file, parse_markdown, parse_resource_line,
)


def _urls(result) -> list[str]:
    return [r.url for r in result.resources]


# --- title / description ---

def test_parse_title_and_description(sample_md):
    """The first # heading is the title and the following blockquote the description."""
    result = parse_markdown(sample_md)
    assert result.title == "Awesome Python"
    assert result.description == "A curated list of Python things."


def test_parse_title_ignored_after_other_heading():
    """A # line after a ## heading is not taken as the title."""
    result = parse_markdown("## Intro\n\n# Late Title\n")
    assert result.title == ""


def test_parse_description_requires_title():
    """A blockquote before the title is not the description."""
    result = parse_markdown("> stray quote\n# T\n> real description\n> second quote\n")
    assert result.title == "T"
    assert result.description == "real description"


def test_parse_only_first_title_counts():
    result = parse_markdown("# First\n# Second\n")
    assert result.title == "First"


# --- section tree ---

def test_parse_sections_tree(sample_md):
    """## / ### / #### nest into category / subcategory / sub-subcategory."""
    result = parse_markdown(sample_md)
    assert [s.name for s in result.sections] == ["Web", "Data"]
    web = result.sections[0]
    assert web.level == 2
    assert [r.title for r in web.resources] == ["Flask", "Django"]
    apis = web.children[0]
    assert apis.name == "APIs" and apis.level == 3
    assert [r.title for r in apis.resources] == ["FastAPI", "Falcon"]
    testing = apis.children[0]
    assert testing.name == "Testing" and testing.level == 4
    assert [r.title for r in testing.resources] == ["Schemathesis"]


def test_parse_category_path_and_source_line(sample_md):
    """Resources carry their full heading path and 1-based line number."""
    result = parse_markdown(sample_md)
    by_title = {r.title: r for r in result.resources}
    assert by_title["Flask"].category_path == ["Web"]
    assert by_title["FastAPI"].category_path == ["Web", "APIs"]
    assert by_title["Schemathesis"].category_path == ["Web", "APIs", "Testing"]
    assert by_title["Flask"].source_line == 14
    assert by_title["Schemathesis"].source_line == 24


def test_parse_new_category_resets_subcategory():
    md = "## A\n### A1\n- [x](https://x.io)\n## B\n- [y](https://y.io)\n"
    result = parse_markdown(md)
    assert result.resources[1].category_path == ["B"]
    assert result.sections[1].children == []


def test_parse_subcategory_without_category_is_ignored():
    """A ### heading with no open category opens nothing; its entries are dropped."""
    result = parse_markdown("### Orphan\n- [A](https://a.example.com)\n")
    assert result.sections == []
    assert result.resources == []


def test_parse_sub_subcategory_without_subcategory_is_ignored():
    """A #### directly under ## is ignored and entries stay on the category."""
    result = parse_markdown("## Cat\n#### Deep\n- [A](https://a.example.com)\n")
    assert result.sections[0].children == []
    assert result.resources[0].category_path == ["Cat"]


def test_parse_resources_before_any_category_are_ignored():
    result = parse_markdown("# T\n- [A](https://a.example.com)\n")
    assert result.resources == []


# --- entries ---

@pytest.mark.parametrize("line,title,url,description", [
    ("- [Flask](https://flask.io) - Micro.", "Flask", "https://flask.io", "Micro."),
    ("* [Flask](https://flask.io)", "Flask", "https://flask.io", ""),
    ("- [Flask](https://flask.io) – En dash.", "Flask", "https://flask.io", "En dash."),
    ("- [Flask](https://flask.io) — Em dash.", "Flask", "https://flask.io", "Em dash."),
    ("  - [Nested](http://nested.io) - Indented.", "Nested", "http://nested.io", "Indented."),
])
def test_parse_resource_line_variants(line, title, url, description):
    """Bullets (- or *), dash styles and indentation are all accepted."""
    r = parse_resource_line(line, 1, ["Cat"])
    assert (r.title, r.url, r.description) == (title, url, description)


@pytest.mark.parametrize("line", [
    "- [Flask](https://flask.io) trailing words",
    "- Flask https://flask.io",
    "[Flask](https://flask.io)",
    "- [Local](./docs/local.md)",
    "- [Mail](mailto:someone@example.com)",
])
def test_parse_resource_line_rejects_malformed(line):
    assert parse_resource_line(line, 1, ["Cat"]) is None


@pytest.mark.parametrize("url", [
    "https://img.shields.io/badge/x-y-green.svg",
    "https://travis-ci.org/acme/repo.svg",
    "https://circleci.com/gh/acme/repo",
    "https://coveralls.io/repos/acme",
    "https://codeclimate.com/github/acme",
    "https://awesome.re",
    "https://github.com/sindresorhus/awesome",
    "#contributing",
    "#web",
    "ftp://mirror.example.com",
])
def test_is_resource_url_blocklist(url):
    assert not is_resource_url(url)


def test_parse_filters_badges(sample_md):
    """Entries pointing at shields.io never appear in the output."""
    result = parse_markdown(sample_md)
    assert not any("shields.io" in u for u in _urls(result))


def test_parse_deduplicates_urls_first_wins(sample_md):
    """A URL seen earlier in the document is dropped, even under another heading."""
    result = parse_markdown(sample_md)
    flask = [r for r in result.resources if r.url == "https://flask.palletsprojects.com"]
    assert len(flask) == 1
    assert flask[0].title == "Flask"
    assert flask[0].category_path == ["Web"]


def test_parse_flat_resources(sample_md):
    result = parse_markdown(sample_md)
    assert [r.title for r in result.resources] == [
        "Flask", "Django", "FastAPI", "Falcon", "Schemathesis", "pandas",
    ]


# --- skipped sections ---

@pytest.mark.parametrize("name", [
    "Contents", "table of contents", "TOC", "License", "Contributing", "contribute",
    "Contributors", "Acknowledgements", "acknowledgments", "Related", "Footnotes",
])
def test_is_skipped_section(name):
    assert is_skipped_section(name)


def test_parse_skipped_section_discards_nested_content():
    """A ## Contributing block, including its ### children, contributes nothing."""
    md = (
        "## Contributing\n"
        "- [Guide](https://example.com/guide)\n"
        "### Sub\n"
        "- [Hidden](https://example.com/hidden)\n"
        "## Tools\n"
        "- [Hammer](https://example.com/hammer)\n"
    )
    result = parse_markdown(md)
    assert [s.name for s in result.sections] == ["Tools"]
    assert _urls(result) == ["https://example.com/hammer"]


def test_parse_skipped_subsection_resumes_at_same_level():
    md = (
        "## Tools\n"
        "### Related\n"
        "- [Other](https://example.com/other)\n"
        "### Saws\n"
        "- [Saw](https://example.com/saw)\n"
    )
    result = parse_markdown(md)
    assert [c.name for c in result.sections[0].children] == ["Saws"]
    assert result.resources[0].category_path == ["Tools", "Saws"]


def test_parse_skip_list_heading_inside_skipped_section_keeps_outer_level():
    """A nested skip-list heading does not shorten the outer skipped span."""
    md = (
        "## Contributing\n"
        "### License\n"
        "### Other\n"
        "- [Hidden](https://example.com/hidden)\n"
    )
    assert parse_markdown(md).resources == []


# --- robustness ---

def test_parse_ignores_fenced_code():
    """Headings and entries inside fenced code blocks are not interpreted."""
    md = (
        "# T\n\n> D\n\n## Tools\n\n"
        "```markdown\n"
        "## Fake\n"
        "- [Fake](https://fake.example.com)\n"
        "```\n\n"
        "- [Real](https://real.example.com)\n"
    )
    result = parse_markdown(md)
    assert [s.name for s in result.sections] == ["Tools"]
    assert _urls(result) == ["https://real.example.com"]
    assert result.resources[0].source_line == 12


def test_parse_unclosed_fence_does_not_swallow_document():
    """A stray ``` with no closing marker is read as plain lines."""
    md = (
        "# T\n\n> D\n\n## Tools\n\nInstall with:\n```\n\n"
        "- [A](https://a.example.com) - x\n\n"
        "## More\n\n- [B](https://b.example.com)\n"
    )
    result = parse_markdown(md)
    assert [s.name for s in result.sections] == ["Tools", "More"]
    assert _urls(result) == ["https://a.example.com", "https://b.example.com"]


def test_parse_tilde_fence_is_ignored():
    md = "## Tools\n~~~\n- [Fake](https://fake.example.com)\n~~~~\n- [Real](https://real.example.com)\n"
    assert _urls(parse_markdown(md)) == ["https://real.example.com"]


@pytest.mark.parametrize("md", ["","\n\n", "###\n- [", "# \n> \n## \n- []()", "\x00\x01 garbage ]]]((("])
def test_parse_never_raises(md):
    result = parse_markdown(md)
    assert result.resources == []


def test_parse_handles_crlf():
    result = parse_markdown("# T\r\n\r\n## Cat\r\n- [A](https://a.example.com) - Desc\r\n")
    assert result.title == "T"
    assert result.resources[0].description == "Desc"


def test_parse_file(tmp_path, sample_md):
    path = tmp_path / "README.md"
    path.write_text(sample_md, encoding="utf-8")
    assert len(parse_file(path).resources) == 6
