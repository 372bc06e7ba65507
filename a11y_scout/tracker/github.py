# a11y_scout/tracker/github.py
"""
GitHub Issues client used as the issue tracker.

Only the handful of REST calls reconciliation needs are implemented. Every
failure (HTTP status >= 400, transport error, timeout) surfaces as
:class:`~a11y_scout.errors.TrackerError`; retry policy is left to callers.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from a11y_scout.errors import TrackerError
from a11y_scout.tracker.models import TrackedIssue

logger = logging.getLogger("A11yScout")

__all__ = ["GitHubIssueTracker", "IssueTracker"]

PER_PAGE = 100


class IssueTracker(Protocol):
    async def list_open_issues(self, label: str) -> List[TrackedIssue]: ...

    async def create_issue(self, title: str, body: str, labels: List[str]) -> Tuple[int, str]: ...

    async def update_issue(self, issue_id: int, body: str, labels: List[str]) -> None: ...

    async def close_issue(self, issue_id: int) -> None: ...

    async def add_comment(self, issue_id: int, body: str) -> None: ...


class GitHubIssueTracker:
    """Issues of one repository, accessed through the GitHub REST API."""

    def __init__(
        self,
        session: ClientSession,
        owner: str,
        repo: str,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.session = session
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self._timeout = ClientTimeout(total=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    @classmethod
    def from_config(cls, session: ClientSession, tracker_config) -> GitHubIssueTracker:
        return cls(
            session,
            tracker_config.owner,
            tracker_config.repo,
            tracker_config.token,
            api_url=tracker_config.api_url,
        )

    @property
    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    def issue_url(self, issue_id: int) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/issues/{issue_id}"

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with self.session.request(
                method, url, json=json, params=params, headers=self._headers, timeout=self._timeout
            ) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise TrackerError(operation, text[:200] or resp.reason or "", resp.status)
                if resp.status == 204:
                    return None
                return await resp.json(content_type=None)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise TrackerError(operation, str(exc) or type(exc).__name__) from exc

    async def list_open_issues(self, label: str) -> List[TrackedIssue]:
        issues: List[TrackedIssue] = []
        page = 1
        while True:
            data = await self._request(
                "list_open_issues",
                "GET",
                f"{self._repo_url}/issues",
                params={"labels": label, "state": "open", "per_page": PER_PAGE, "page": page},
            )
            data = data or []
            for item in data:
                if "pull_request" in item:
                    continue
                issues.append(
                    TrackedIssue(
                        id=int(item["number"]),
                        title=item.get("title") or "",
                        body=item.get("body") or "",
                        state=item.get("state") or "open",
                        url=item.get("html_url") or self.issue_url(int(item["number"])),
                        labels=[lbl.get("name", "") for lbl in item.get("labels") or [] if isinstance(lbl, dict)],
                    )
                )
            if len(data) < PER_PAGE:
                break
            page += 1
        logger.debug("Fetched %d open '%s' issue(s) from %s/%s", len(issues), label, self.owner, self.repo)
        return issues

    async def create_issue(self, title: str, body: str, labels: List[str]) -> Tuple[int, str]:
        data = await self._request(
            "create_issue",
            "POST",
            f"{self._repo_url}/issues",
            json={"title": title, "body": body, "labels": labels},
        )
        number = int(data["number"])
        return number, data.get("html_url") or self.issue_url(number)

    async def update_issue(self, issue_id: int, body: str, labels: List[str]) -> None:
        await self._request(
            "update_issue",
            "PATCH",
            f"{self._repo_url}/issues/{issue_id}",
            json={"body": body, "labels": labels},
        )

    async def close_issue(self, issue_id: int) -> None:
        await self._request(
            "close_issue",
            "PATCH",
            f"{self._repo_url}/issues/{issue_id}",
            json={"state": "closed", "state_reason": "completed"},
        )

    async def add_comment(self, issue_id: int, body: str) -> None:
        await self._request(
            "add_comment",
            "POST",
            f"{self._repo_url}/issues/{issue_id}/comments",
            json={"body": body},
        )
