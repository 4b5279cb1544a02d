"""Unit tests for gateway.py"""

import base64

import pytest
import requests

from awesync.gateway import GatewayError, GitHubGateway, MemoryGateway


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@pytest.fixture(name="github")
def github_fixture():
    return GitHubGateway("https://api.example.com/", token="t0k3n", timeout=7)


def _route(gw, responses: dict, calls: list):
    """Answer requests from a {(method, path): FakeResponse} table."""
    def request(method, url, timeout=None, **kwargs):
        calls.append((method, url, kwargs))
        path = url.removeprefix("https://api.example.com")
        return responses[(method, path)]
    gw.session.request = request


def test_github_headers(github):
    assert github.session.headers["Authorization"] == "Bearer t0k3n"
    assert github.session.headers["Accept"] == "application/vnd.github+json"
    assert github.api_url == "https://api.example.com"


def test_github_no_token_no_auth_header():
    assert "Authorization" not in GitHubGateway(token=None).session.headers


def test_github_get_file_decodes_base64(github):
    calls = []
    _route(github, {
        ("GET", "/repos/acme/list/contents/docs/LIST.md"): FakeResponse(payload={"content": _b64("# Hi ✓\n")}),
    }, calls)
    assert github.get_file("acme", "list", "/docs/LIST.md", "dev") == "# Hi ✓\n"
    assert calls[0][2]["params"] == {"ref": "dev"}


def test_github_get_file_directory_listing(github):
    _route(github, {
        ("GET", "/repos/acme/list/contents/docs"): FakeResponse(payload=[{"name": "a.md"}]),
    }, [])
    with pytest.raises(GatewayError, match="directory listing"):
        github.get_file("acme", "list", "docs")


def test_github_get_readme(github):
    _route(github, {
        ("GET", "/repos/acme/list/readme"): FakeResponse(payload={"content": _b64("# List\n")}),
    }, [])
    assert github.get_readme("acme", "list") == "# List\n"


def test_github_http_error_uses_api_message(github):
    _route(github, {
        ("GET", "/repos/acme/list/readme"): FakeResponse(404, payload={"message": "Not Found"}),
    }, [])
    with pytest.raises(GatewayError, match="HTTP 404: Not Found"):
        github.get_readme("acme", "list")


def test_github_network_error(github):
    def request(*args, **kwargs):
        raise requests.ConnectionError("connection refused")
    github.session.request = request
    with pytest.raises(GatewayError, match="connection refused"):
        github.get_readme("acme", "list")


def test_github_commit_file_updates_existing(github):
    calls = []
    _route(github, {
        ("GET", "/repos/acme/list/contents/README.md"): FakeResponse(payload={"sha": "blob123", "content": ""}),
        ("PUT", "/repos/acme/list/contents/README.md"): FakeResponse(201, payload={"commit": {"sha": "abc"}}),
    }, calls)

    sha = github.commit_file("acme", "list", "main", "README.md", "# New\n", "chore: update")

    assert sha == "abc"
    body = calls[1][2]["json"]
    assert body["sha"] == "blob123"
    assert body["branch"] == "main"
    assert base64.b64decode(body["content"]).decode() == "# New\n"


def test_github_commit_file_creates_new(github):
    calls = []
    _route(github, {
        ("GET", "/repos/acme/list/contents/README.md"): FakeResponse(404, payload={"message": "Not Found"}),
        ("PUT", "/repos/acme/list/contents/README.md"): FakeResponse(201, payload={"commit": {"sha": "def"}}),
    }, calls)

    assert github.commit_file("acme", "list", "main", "README.md", "# New\n", "chore: create") == "def"
    assert "sha" not in calls[1][2]["json"]


def test_github_search_awesome_lists(github):
    calls = []
    _route(github, {
        ("GET", "/search/repositories"): FakeResponse(payload={"items": [
            {"full_name": "vinta/awesome-python", "description": "Python", "html_url": "https://github.com/vinta/awesome-python",
             "stargazers_count": 200000, "topics": ["awesome", "python"]},
            {"full_name": "x/awesome-y", "description": None, "html_url": "https://github.com/x/awesome-y"},
        ]}),
    }, calls)

    results = github.search_awesome_lists("python", limit=5)

    assert [r.full_name for r in results] == ["vinta/awesome-python", "x/awesome-y"]
    assert results[0].stars == 200000
    assert results[1].topics == []
    assert calls[0][2]["params"]["q"] == "python topic:awesome"
    assert calls[0][2]["params"]["per_page"] == 5


# --- MemoryGateway ---

def test_memory_gateway_roundtrip():
    gw = MemoryGateway()
    sha = gw.commit_file("acme", "list", "main", "README.md", "# L\n", "msg")
    assert gw.get_readme("acme", "list") == "# L\n"
    assert gw.get_file("acme", "list", "README.md", "main") == "# L\n"
    assert gw.commits == [{"sha": sha, "path": "README.md", "branch": "main", "message": "msg"}]


def test_memory_gateway_missing_file():
    with pytest.raises(GatewayError):
        MemoryGateway().get_file("acme", "list", "README.md")
    with pytest.raises(GatewayError):
        MemoryGateway().get_readme("acme", "list")


def test_memory_gateway_simulated_failures():
    gw = MemoryGateway(fail_reads=True, fail_commits=True)
    gw.put("acme", "list", "README.md", "# L\n")
    with pytest.raises(GatewayError):
        gw.get_readme("acme", "list")
    with pytest.raises(GatewayError):
        gw.commit_file("acme", "list", "main", "README.md", "# L\n", "msg")
    assert gw.commits == []
