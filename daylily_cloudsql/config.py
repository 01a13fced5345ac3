"""Request file loader.

Request search order:
1) CLOUDSQL_PLAN_REQUEST_PATH (explicit override)
2) ~/.config/cloudsql-plan/request-<name>.yaml (if CLOUDSQL_PLAN_REQUEST_NAME is set)
3) ~/.config/cloudsql-plan/request.yaml
4) ./config/request-<name>.yaml (if CLOUDSQL_PLAN_REQUEST_NAME is set, repo-local)
5) ./config/request.yaml (repo-local)

Notes:
- Duplicate mapping keys are rejected with their full key path.  Plain YAML
  loading keeps the last value silently, which would hide a repeated
  database or user name.
- CLOUDSQL_PLAN_PROJECT_ID / _REGION / _INSTANCE_NAME override file values.
- The file may hold the request at its root or under a ``request:`` key.
"""

from __future__ import annotations

import logging
import os
import stat
import warnings
from pathlib import Path
from typing import Any

import yaml

from daylily_cloudsql.errors import DuplicateIdentifierError, InvalidRequestError
from daylily_cloudsql.models.request import Request

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_FILENAME = "request.yaml"
ENV_PREFIX = "CLOUDSQL_PLAN_"

# Environment variable suffix -> request field.
ENV_OVERRIDES = {
    "PROJECT_ID": "project_id",
    "REGION": "region",
    "INSTANCE_NAME": "instance_name",
}


def _default_request_path() -> Path:
    """Return the user-level request path for the current HOME."""
    return Path.home() / ".config" / "cloudsql-plan" / DEFAULT_REQUEST_FILENAME


def _repo_request_path() -> Path:
    """Return the repo-local request path for the current CWD."""
    return Path.cwd() / "config" / DEFAULT_REQUEST_FILENAME


def _request_name() -> str | None:
    val = os.environ.get(f"{ENV_PREFIX}REQUEST_NAME")
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def _scoped_request_paths(name: str) -> list[Path]:
    filename = f"request-{name}.yaml"
    return [
        Path.home() / ".config" / "cloudsql-plan" / filename,
        Path.cwd() / "config" / filename,
    ]


def get_request_paths() -> list[Path]:
    """Return the ordered list of paths searched for a request file."""
    override = os.environ.get(f"{ENV_PREFIX}REQUEST_PATH")
    if override:
        return [Path(override).expanduser()]

    default_user = _default_request_path()
    default_repo = _repo_request_path()
    name = _request_name()
    if name:
        user_scoped, repo_scoped = _scoped_request_paths(name)
        return [user_scoped, default_user, repo_scoped, default_repo]
    return [default_user, default_repo]


def _check_duplicate_keys(node: yaml.Node, path: str = "") -> None:
    if isinstance(node, yaml.MappingNode):
        seen: set[Any] = set()
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            key = key_node.value
            child = f"{path}.{key}" if path else str(key)
            if key in seen:
                raise DuplicateIdentifierError(
                    child,
                    key,
                    f"key appears more than once (line {key_node.start_mark.line + 1})",
                )
            seen.add(key)
            _check_duplicate_keys(value_node, child)
    elif isinstance(node, yaml.SequenceNode):
        for i, item in enumerate(node.value):
            _check_duplicate_keys(item, f"{path}[{i}]")


def parse_request_text(raw: str) -> dict[str, Any]:
    """Parse YAML (or JSON) request text into a plain dict."""
    try:
        node = yaml.compose(raw, Loader=yaml.SafeLoader)
        if node is not None:
            _check_duplicate_keys(node)
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise InvalidRequestError("", None, f"request is not valid YAML: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequestError(
            "", type(data).__name__, "request root must be a mapping"
        )
    if set(data) == {"request"} and isinstance(data["request"], dict):
        data = data["request"]
    return data


def _read_request_file(path: Path) -> dict[str, Any]:
    # Requests may carry secret references; warn if others can read them.
    try:
        file_stat = os.stat(path)
        if file_stat.st_mode & (stat.S_IRGRP | stat.S_IROTH):
            warnings.warn(
                f"Request file {path} is readable by other users. "
                f"Run: chmod 600 {path}",
                stacklevel=3,
            )
    except OSError:
        pass
    return parse_request_text(path.read_text(encoding="utf-8"))


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Return ``data`` with CLOUDSQL_PLAN_* environment overrides applied."""
    result = dict(data)
    for suffix, field_name in ENV_OVERRIDES.items():
        val = os.environ.get(f"{ENV_PREFIX}{suffix}")
        if val is not None and val.strip():
            logger.debug("Overriding %s from %s%s", field_name, ENV_PREFIX, suffix)
            result[field_name] = val.strip()
    return result


def load_request_data(path: str | Path | None = None) -> dict[str, Any]:
    """Load the raw request mapping from ``path`` or the search paths."""
    if path is not None:
        candidates = [Path(path).expanduser()]
    else:
        candidates = get_request_paths()
    for candidate in candidates:
        if candidate.exists():
            logger.info("Loading deployment request from %s", candidate)
            return apply_env_overrides(_read_request_file(candidate))
    searched = ", ".join(str(p) for p in candidates)
    raise FileNotFoundError(f"No deployment request found (searched: {searched})")


def load_request(path: str | Path | None = None) -> Request:
    """Load and shape-check a deployment request."""
    return Request.from_mapping(load_request_data(path))
