# === FILE: a11y_scout/config.py ===
"""
Loading and validation of the a11y-scout scan configuration.
The schema is described with Pydantic; files may be YAML or JSON, and the
environment variables used by CI runners can override individual keys.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

from a11y_scout.errors import ConfigError

DEFAULT_EXCLUDE_PATTERNS: List[str] = [
    "/api/",
    "/admin/",
    ".pdf",
    ".zip",
    ".jpg",
    ".png",
    ".gif",
    ".svg",
    "/cdn-cgi/",
]


class TrackerConfig(BaseModel):
    """Where violation groups are reconciled to (a GitHub repository)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    owner: str = Field("", description="Repository owner.")
    repo: str = Field("", description="Repository name.")
    token: str = Field("", repr=False, description="API token.")
    label: str = Field("accessibility", min_length=1, description="Label shared by all tracked issues.")
    api_url: str = Field("https://api.github.com", description="REST API root.")
    close_resolved: bool = Field(True, description="Close issues whose signature disappeared.")

    @field_validator("api_url", mode="before")
    def _strip_api_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @property
    def is_complete(self) -> bool:
        return bool(self.owner and self.repo and self.token)


class ScannerConfig(BaseModel):
    """Configuration for a single scan run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(..., description="Root URL the crawl starts from.")
    max_pages: int = Field(50, ge=1, description="Hard limit on recorded pages.")
    max_depth: int = Field(3, ge=0, description="Maximum link depth from the root.")
    include_patterns: List[str] = Field(default_factory=list, description="Substrings a URL must contain.")
    exclude_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Substrings that exclude a URL.",
    )
    respect_robots: bool = Field(True, description="Honour robots.txt Disallow for '*'.")
    timeout: float = Field(30.0, gt=0, description="Per-navigation timeout (seconds).")
    user_agent: str = Field("A11yScoutBot/1.0", min_length=1, description="User-Agent header.")
    rate_limit: float = Field(5.0, gt=0, description="Requests per second.")
    retry_times: int = Field(2, ge=0, description="Retries on 5xx/429 responses.")
    concurrency: int = Field(1, ge=1, description="Parallel page fetches.")

    context_depth: int = Field(3, ge=0, description="Ancestor levels captured per violation.")
    rules: Optional[List[str]] = Field(None, description="Restrict the engine to these rule ids.")
    selectors: Optional[List[str]] = Field(None, description="Restrict the engine to these selectors.")
    axe_script: Optional[str] = Field(None, description="Path to axe.min.js for the browser engine.")

    tracker: Optional[TrackerConfig] = Field(None, description="Issue tracker settings.")

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    def require_tracker(self) -> TrackerConfig:
        """Return tracker settings or fail before any request is made."""
        if self.tracker is None or not self.tracker.is_complete:
            raise ConfigError("tracker owner, repo and token are required to reconcile issues")
        return self.tracker


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top-level YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top-level JSON must be a mapping, got {type(data).__name__}")
    return data


def _json_list(name: str, raw: str) -> List[str]:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{name} must be a JSON list: {exc}") from exc
    if not isinstance(value, list):
        raise ConfigError(f"{name} must be a JSON list")
    return [str(v) for v in value]


def apply_env_overrides(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay CI-style environment variables onto a raw config mapping."""
    merged = dict(data)
    if environ.get("WEBSITE_URL"):
        merged["base_url"] = environ["WEBSITE_URL"]
    for key, name in (("max_pages", "MAX_PAGES"), ("max_depth", "MAX_DEPTH"), ("context_depth", "CONTEXT_DEPTH")):
        if environ.get(name):
            try:
                merged[key] = int(environ[name])
            except ValueError as exc:
                raise ConfigError(f"{name} must be an integer, got {environ[name]!r}") from exc
    if environ.get("INCLUDE_PATTERNS"):
        merged["include_patterns"] = _json_list("INCLUDE_PATTERNS", environ["INCLUDE_PATTERNS"])
    if environ.get("EXCLUDE_PATTERNS"):
        merged["exclude_patterns"] = _json_list("EXCLUDE_PATTERNS", environ["EXCLUDE_PATTERNS"])

    tracker = dict(merged.get("tracker") or {})
    if environ.get("GITHUB_TOKEN"):
        tracker["token"] = environ["GITHUB_TOKEN"]
    repository = environ.get("GITHUB_REPOSITORY", "")
    if "/" in repository:
        owner, _, repo = repository.partition("/")
        tracker.setdefault("owner", owner)
        tracker.setdefault("repo", repo)
    if tracker:
        merged["tracker"] = tracker
    return merged


def load_config(
    path: Union[str, Path, None],
    environ: Optional[Mapping[str, str]] = None,
) -> ScannerConfig:
    """
    Read YAML or JSON and return a validated ScannerConfig.

    With ``path=None`` the default ``configs/default.yaml`` is used; when it
    is missing the environment alone must provide ``WEBSITE_URL``, otherwise
    FileNotFoundError is raised.
    """
    environ = environ or {}
    if path is None:
        if _DEFAULT_CFG.exists():
            path_obj: Optional[Path] = _DEFAULT_CFG
        elif environ.get("WEBSITE_URL"):
            path_obj = None
        else:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    data: dict[str, Any] = {}
    if path_obj is not None:
        suffix = path_obj.suffix.lower()
        if suffix in (".yaml", ".yml"):
            data = _read_yaml(path_obj)
        elif suffix == ".json":
            data = _read_json(path_obj)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    data = apply_env_overrides(data, environ)
    return ScannerConfig(**data)


__all__ = [
    "DEFAULT_EXCLUDE_PATTERNS",
    "ScannerConfig",
    "TrackerConfig",
    "apply_env_overrides",
    "load_config",
]
