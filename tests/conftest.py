"""Session guard: a run with skipped or xfail-marked tests fails.

Deselection (``-k``, ``-m``) is an explicit choice of the caller and is not
counted.
"""

from __future__ import annotations

from collections import Counter

pytest_plugins = ["pytester"]

_OUTCOMES: Counter = Counter()


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in ("setup", "call"):
        return
    if getattr(report, "wasxfail", False):
        _OUTCOMES["xfailed" if report.skipped else "xpassed"] += 1
    elif report.skipped:
        _OUTCOMES["skipped"] += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    counted = {name: count for name, count in sorted(_OUTCOMES.items()) if count}
    if not counted:
        return

    summary = ", ".join(f"{name}={count}" for name, count in counted.items())
    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep("=", f"Unexpected test outcomes: {summary}")
        reporter.write_line("Every collected test must run and pass.")
    session.exitstatus = 1
