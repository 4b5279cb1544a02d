"""Remote repository gateway: fetch and commit list files

The sync pipeline only depends on the RepositoryGateway protocol. GitHubGateway
talks to the GitHub contents REST API; MemoryGateway keeps files in a dict.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

README_NAMES = ("README.md", "readme.md", "Readme.md", "README.markdown", "README")


class GatewayError(RuntimeError):
    """Any failure talking to the remote repository."""


class RepoSearchResult(BaseModel):
    full_name: str
    description: Optional[str] = None
    url: str
    stars: int = 0
    topics: list[str] = Field(default_factory=list)


class RepositoryGateway(Protocol):
    def get_file(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str: ...

    def get_readme(self, owner: str, repo: str, ref: Optional[str] = None) -> str: ...

    def commit_file(self, owner: str, repo: str, branch: str, path: str, content: str, message: str) -> str: ...


def _decode(payload: dict, what: str) -> str:
    content = payload.get("content")
    if not content:
        raise GatewayError(f"No content found for {what}")
    if payload.get("encoding", "base64") == "base64":
        return base64.b64decode(content).decode("utf-8")
    return content


class GitHubGateway:
    """RepositoryGateway over the GitHub REST API. Public repos work without a token."""

    def __init__(self, api_url: str = "https://api.github.com", token: Optional[str] = None, timeout: int = 30):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "awesync",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, allow_404: bool = False, **kwargs) -> Optional[dict | list]:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise GatewayError(f"{method} {url} failed: {exc}") from exc

        if allow_404 and response.status_code == 404:
            return None
        if not response.ok:
            message = response.text[:200]
            try:
                message = response.json().get("message", message)
            except ValueError:
                pass
            raise GatewayError(f"{method} {url} returned HTTP {response.status_code}: {message}")
        return response.json()

    def _contents(self, owner: str, repo: str, path: str, ref: Optional[str], allow_404: bool = False):
        params = {"ref": ref} if ref else None
        return self._request(
            "GET", f"/repos/{owner}/{repo}/contents/{path.lstrip('/')}", allow_404=allow_404, params=params,
        )

    def get_file(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str:
        """Return the UTF-8 content of a file in the repo."""
        data = self._contents(owner, repo, path, ref or "main")
        if isinstance(data, list):
            raise GatewayError(f"Expected file content but got directory listing for {path}")
        return _decode(data, path)

    def get_readme(self, owner: str, repo: str, ref: Optional[str] = None) -> str:
        """Return the repo README as detected by GitHub."""
        params = {"ref": ref} if ref else None
        data = self._request("GET", f"/repos/{owner}/{repo}/readme", params=params)
        return _decode(data, f"{owner}/{repo} README")

    def get_file_sha(self, owner: str, repo: str, path: str, ref: str) -> Optional[str]:
        """Blob SHA of an existing file, or None if it does not exist yet."""
        data = self._contents(owner, repo, path, ref, allow_404=True)
        if isinstance(data, dict):
            return data.get("sha")
        return None

    def commit_file(self, owner: str, repo: str, branch: str, path: str, content: str, message: str) -> str:
        """Create or update path on branch. Returns the commit SHA."""
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha := self.get_file_sha(owner, repo, path, branch):
            body["sha"] = sha
        data = self._request("PUT", f"/repos/{owner}/{repo}/contents/{path.lstrip('/')}", json=body)
        commit_sha = (data or {}).get("commit", {}).get("sha")
        if not commit_sha:
            raise GatewayError(f"Commit to {owner}/{repo}:{path} returned no commit SHA")
        logger.info("Committed %s/%s:%s on %s (%s)", owner, repo, path, branch, commit_sha)
        return commit_sha

    def search_awesome_lists(self, query: str, limit: int = 20) -> list[RepoSearchResult]:
        """Search repositories tagged with the `awesome` topic, most starred first."""
        data = self._request("GET", "/search/repositories", params={
            "q": f"{query} topic:awesome",
            "sort": "stars",
            "order": "desc",
            "per_page": limit,
        })
        return [
            RepoSearchResult(
                full_name=item["full_name"],
                description=item.get("description"),
                url=item["html_url"],
                stars=item.get("stargazers_count") or 0,
                topics=item.get("topics") or [],
            )
            for item in (data or {}).get("items", [])
        ]


@dataclass
class MemoryGateway:
    """RepositoryGateway backed by a dict keyed on (owner, repo, branch, path)."""
    files: dict[tuple[str, str, str, str], str] = field(default_factory=dict)
    commits: list[dict] = field(default_factory=list)
    fail_reads: bool = False
    fail_commits: bool = False

    def put(self, owner: str, repo: str, path: str, content: str, branch: str = "main") -> None:
        self.files[(owner, repo, branch, path)] = content

    def get_file(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str:
        if self.fail_reads:
            raise GatewayError(f"Simulated read failure for {owner}/{repo}:{path}")
        try:
            return self.files[(owner, repo, ref or "main", path)]
        except KeyError:
            raise GatewayError(f"{owner}/{repo}:{path} not found") from None

    def get_readme(self, owner: str, repo: str, ref: Optional[str] = None) -> str:
        for name in README_NAMES:
            if (owner, repo, ref or "main", name) in self.files:
                return self.get_file(owner, repo, name, ref)
        raise GatewayError(f"No README content found for {owner}/{repo}")

    def commit_file(self, owner: str, repo: str, branch: str, path: str, content: str, message: str) -> str:
        if self.fail_commits:
            raise GatewayError(f"Simulated commit failure for {owner}/{repo}:{path}")
        self.files[(owner, repo, branch, path)] = content
        sha = f"{len(self.commits) + 1:040x}"
        self.commits.append({"sha": sha, "path": path, "branch": branch, "message": message})
        return sha
