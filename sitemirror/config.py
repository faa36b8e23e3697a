"""Mirror run options and their environment-driven defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_OUTPUT_DIR = "Output"
DEFAULT_FAILURE_REPORT = "failed_downloads.txt"
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "SiteMirror/1.0"

# Region selectors for anchor scoping: category navigation lives in the
# sidebar, the product page body holds a "recently viewed" rail.
SIDEBAR_SELECTOR = ".sidebar"
MAIN_CONTENT_SELECTOR = "article.product_page"

DEFAULT_PARSER = "html.parser"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class MirrorOptions:
    """Options for one mirror run."""

    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))
    failure_report_name: str = DEFAULT_FAILURE_REPORT
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    sidebar_selector: str = SIDEBAR_SELECTOR
    main_content_selector: str = MAIN_CONTENT_SELECTOR
    parser: str = DEFAULT_PARSER
    clean_output: bool = True

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir).expanduser()
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not self.failure_report_name or "/" in self.failure_report_name:
            raise ValueError(
                f"Invalid failure report name: {self.failure_report_name!r}"
            )

    @property
    def failure_report_path(self) -> Path:
        return self.output_dir / self.failure_report_name

    def with_overrides(self, **overrides: Any) -> "MirrorOptions":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls, **overrides: Any) -> "MirrorOptions":
        """Build options from ``SITEMIRROR_*`` environment variables.

        The environment is read at call time so that late ``.env`` loading
        and test monkeypatching both take effect.
        """
        env: Dict[str, Any] = {}

        output_dir = os.getenv("SITEMIRROR_OUTPUT_DIR")
        if output_dir:
            env["output_dir"] = Path(output_dir)

        report = os.getenv("SITEMIRROR_FAILURE_REPORT")
        if report:
            env["failure_report_name"] = report

        timeout = os.getenv("SITEMIRROR_TIMEOUT")
        if timeout:
            env["timeout"] = _parse_float("SITEMIRROR_TIMEOUT", timeout)

        for name, key in (
            ("SITEMIRROR_USER_AGENT", "user_agent"),
            ("SITEMIRROR_SIDEBAR_SELECTOR", "sidebar_selector"),
            ("SITEMIRROR_MAIN_SELECTOR", "main_content_selector"),
            ("SITEMIRROR_PARSER", "parser"),
        ):
            value = os.getenv(name)
            if value:
                env[key] = value

        clean = os.getenv("SITEMIRROR_CLEAN_OUTPUT")
        if clean:
            env["clean_output"] = _parse_bool("SITEMIRROR_CLEAN_OUTPUT", clean)

        return cls(**env).with_overrides(**overrides)


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _parse_bool(name: str, value: str) -> bool:
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def resolve_options(
    options: Optional[MirrorOptions] = None, **overrides: Any
) -> MirrorOptions:
    """Merge explicit *options* (or environment defaults) with overrides."""
    base = options if options is not None else MirrorOptions.from_env()
    return base.with_overrides(**overrides)
