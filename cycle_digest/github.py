"""Fetch commit history and the live health document from GitHub."""
from __future__ import annotations

from typing import cast

import requests
from loguru import logger

from cycle_digest.models import Health, RawCommit
from cycle_digest.settings import Settings

GITHUB_API_URL = "https://api.github.com"
USER_AGENT = "cycle-digest"
PER_PAGE = 100
HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT = 30
JSONDict = dict[str, object]
JSONList = list[object]


def ensure_dict(value: object, _context: str) -> JSONDict:
    """Return a dictionary value or raise."""
    if isinstance(value, dict):
        return cast("JSONDict", value)
    raise TypeError


def ensure_list(value: object, _context: str) -> JSONList:
    """Return a list value or raise."""
    if isinstance(value, list):
        return cast("JSONList", value)
    raise TypeError


def ensure_str(value: object, _context: str, default: str = "") -> str:
    """Return a string value or a default."""
    if isinstance(value, str):
        return value
    if value is None:
        return default
    raise TypeError


class GitHubRequestError(RuntimeError):
    """Raised when a GitHub REST request fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a GitHub request error."""
        super().__init__(f"GitHub request failed ({status_code}): {text}")


def github_headers(settings: Settings) -> dict[str, str]:
    """Return GitHub API headers, authenticated when a token is configured."""
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
    token = settings.github_token or settings.gh_token
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def parse_commit_node(node: object) -> RawCommit:
    """Parse a RawCommit from a REST commit list entry."""
    node_dict = ensure_dict(node, "commit_node")
    commit = ensure_dict(node_dict.get("commit"), "commit")
    author = ensure_dict(commit.get("author") or {}, "commit.author")
    return RawCommit(
        message=ensure_str(commit.get("message"), "commit.message"),
        timestamp=ensure_str(author.get("date"), "commit.author.date"),
        sha=ensure_str(node_dict.get("sha"), "sha") or None,
    )


def fetch_commits(
    settings: Settings,
    repo: str,
    since_iso: str,
    until_iso: str,
) -> list[RawCommit]:
    """Fetch commits in a window, newest first, following pagination."""
    url = f"{GITHUB_API_URL}/repos/{repo}/commits"
    commits: list[RawCommit] = []
    for page in range(1, settings.cycle_max_pages + 1):
        response = requests.get(
            url,
            headers=github_headers(settings),
            params={
                "since": since_iso,
                "until": until_iso,
                "per_page": PER_PAGE,
                "page": page,
            },
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            raise GitHubRequestError(response.status_code, response.text)
        nodes = ensure_list(response.json(), "commits")
        logger.info("Retrieved commit page", page=page, count=len(nodes))
        commits.extend(parse_commit_node(node) for node in nodes)
        if len(nodes) < PER_PAGE:
            break
    return commits


def fetch_health(settings: Settings) -> Health | None:
    """Fetch the daemon health document; None when it is unavailable."""
    url = settings.health_url()
    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            logger.warning(
                "Health document unavailable",
                url=url,
                status_code=response.status_code,
            )
            return None
        return Health.model_validate(response.json())
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Health document unavailable", url=url, error=str(exc))
        return None
