"""Authentication configuration for mirroring protected sites.

``AuthConfig`` carries extra request headers and cookies that are attached
to every request of a mirror run.

Example usage:

    from sitemirror.auth import AuthConfig

    # With a session cookie
    auth = AuthConfig(cookies={"sessionid": "abc123"})

    # With bearer token header
    auth = AuthConfig(headers={"Authorization": "Bearer xyz"})
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

LOGGER = logging.getLogger(__name__)


class AuthConfigError(ValueError):
    """Raised when auth configuration cannot be parsed."""


@dataclass
class AuthConfig:
    """Headers and cookies sent with every request of a mirror run.

    Attributes:
        headers: Dict of custom HTTP headers (e.g. Authorization).
        cookies: Dict mapping cookie name to value.
    """

    headers: Optional[Dict[str, str]] = None
    cookies: Optional[Dict[str, str]] = None

    @property
    def is_empty(self) -> bool:
        """Return True if no auth configuration is set."""
        return not self.headers and not self.cookies


AuthInput = Union[AuthConfig, Mapping[str, Any]]


def resolve_auth(auth: Optional[AuthInput]) -> Optional[AuthConfig]:
    """Normalize an ``AuthConfig`` or a plain dict into an ``AuthConfig``."""
    if auth is None:
        return None
    if isinstance(auth, AuthConfig):
        return None if auth.is_empty else auth
    unknown = set(auth) - {"headers", "cookies"}
    if unknown:
        raise AuthConfigError(f"Unknown auth key(s): {', '.join(sorted(unknown))}")
    config = AuthConfig(
        headers=_string_map("headers", auth.get("headers")),
        cookies=_string_map("cookies", auth.get("cookies")),
    )
    return None if config.is_empty else config


def build_client_kwargs(auth: Optional[AuthConfig]) -> Dict[str, Any]:
    """Translate auth settings into ``httpx.AsyncClient`` keyword arguments."""
    if auth is None or auth.is_empty:
        return {}

    kwargs: Dict[str, Any] = {}
    if auth.headers:
        kwargs["headers"] = dict(auth.headers)
        LOGGER.info("Auth: injecting %d custom header(s)", len(auth.headers))
    if auth.cookies:
        kwargs["cookies"] = dict(auth.cookies)
        LOGGER.info("Auth: injecting %d cookie(s)", len(auth.cookies))
    return kwargs


def load_auth_from_env() -> Optional[AuthConfig]:
    """Load auth configuration from environment variables.

    Supported variables:
        SITEMIRROR_AUTH_HEADERS: JSON object of header name to value.
        SITEMIRROR_AUTH_COOKIES: JSON object of cookie name to value.

    Returns:
        AuthConfig if any env vars are set, None otherwise.
    """
    headers = _json_env("SITEMIRROR_AUTH_HEADERS")
    cookies = _json_env("SITEMIRROR_AUTH_COOKIES")
    if headers is None and cookies is None:
        return None
    return resolve_auth({"headers": headers, "cookies": cookies})


def load_auth_from_file(path: str) -> AuthConfig:
    """Load auth configuration from a JSON file with ``headers``/``cookies`` keys.

    Raises:
        FileNotFoundError: If the file does not exist.
        AuthConfigError: If the file is not a valid auth JSON object.
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise FileNotFoundError(f"Auth config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise AuthConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise AuthConfigError(f"Auth config must be a JSON object: {config_path}")
    return resolve_auth(data) or AuthConfig()


def _json_env(name: str) -> Optional[Dict[str, str]]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AuthConfigError(f"{name} is not valid JSON: {exc}") from exc
    return _string_map(name, value)


def _string_map(name: str, value: Any) -> Optional[Dict[str, str]]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise AuthConfigError(f"{name} must be a JSON object")
    return {str(key): str(item) for key, item in value.items()}
