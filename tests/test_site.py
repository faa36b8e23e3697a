"""Tests for sitemirror.site module."""

from __future__ import annotations

import asyncio
from typing import Dict, List

import httpx
import pytest

import sitemirror
from sitemirror.config import MirrorOptions
from sitemirror.site import MirrorResult, mirror_site_async
from sitemirror.storage import OutputDirectoryError


def _transport(pages: Dict[str, bytes], requests: List[str] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if requests is not None:
            requests.append(url)
        if url not in pages:
            return httpx.Response(404)
        return httpx.Response(200, content=pages[url])

    return httpx.MockTransport(handler)


SITE = {
    "http://site/index.html": (
        b'<link rel="stylesheet" href="site.css">'
        b'<div class="sidebar"><a href="books/a.html">A</a></div>'
    ),
    "http://site/site.css": b"body{}",
    "http://site/books/a.html": b'<img src="../img/a.png"><img src="../img/gone.png">',
    "http://site/img/a.png": b"PNG",
}


class TestMirrorSiteAsync:
    @pytest.mark.asyncio
    async def test_result_and_failure_report(self, tmp_path):
        out = tmp_path / "out"
        result = await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=out),
            transport=_transport(SITE),
        )

        assert isinstance(result, MirrorResult)
        assert result.pages_visited == 2
        assert result.pages_saved == 2
        assert result.assets_saved == 2
        assert result.failures == ["http://site/img/gone.png"]
        assert result.cancelled is False
        assert result.failure_report == out / "failed_downloads.txt"
        assert result.failure_report.read_text(encoding="utf-8") == (
            "http://site/img/gone.png\n"
        )
        assert (out / "books" / "a.html").is_file()

    @pytest.mark.asyncio
    async def test_no_report_without_failures(self, tmp_path):
        pages = dict(SITE)
        pages["http://site/img/gone.png"] = b"PNG"
        result = await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=tmp_path / "out"),
            transport=_transport(pages),
        )

        assert result.failures == []
        assert result.failure_report is None
        assert not (tmp_path / "out" / "failed_downloads.txt").exists()

    @pytest.mark.asyncio
    async def test_output_dir_shortcut_and_custom_report_name(self, tmp_path):
        result = await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(failure_report_name="errors.txt"),
            output_dir=tmp_path / "custom",
            transport=_transport(SITE),
        )
        assert result.output_dir == tmp_path / "custom"
        assert result.failure_report == tmp_path / "custom" / "errors.txt"

    @pytest.mark.asyncio
    async def test_output_dir_is_recreated(self, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "stale.html").write_text("old")
        await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=out),
            transport=_transport(SITE),
        )
        assert not (out / "stale.html").exists()

    @pytest.mark.asyncio
    async def test_keep_output_skips_existing_assets(self, tmp_path):
        out = tmp_path / "out"
        (out / "img").mkdir(parents=True)
        (out / "img" / "a.png").write_bytes(b"cached")
        requests: List[str] = []

        result = await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=out, clean_output=False),
            transport=_transport(SITE, requests),
        )

        assert "http://site/img/a.png" not in requests
        assert (out / "img" / "a.png").read_bytes() == b"cached"
        assert result.assets_skipped == 1

    @pytest.mark.asyncio
    async def test_on_complete_called_once(self, tmp_path):
        calls: List[MirrorResult] = []
        result = await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=tmp_path),
            transport=_transport(SITE),
            on_complete=calls.append,
        )
        assert calls == [result]

    @pytest.mark.asyncio
    async def test_invalid_seed(self, tmp_path):
        with pytest.raises(ValueError):
            await mirror_site_async(
                "books/index.html", options=MirrorOptions(output_dir=tmp_path)
            )

    @pytest.mark.asyncio
    async def test_output_directory_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(OutputDirectoryError):
            await mirror_site_async(
                "http://site/index.html",
                options=MirrorOptions(output_dir=blocker / "out"),
                transport=_transport(SITE),
            )

    @pytest.mark.asyncio
    async def test_auth_is_sent(self, tmp_path):
        seen: List[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"<p>ok</p>")

        await mirror_site_async(
            "http://site/index.html",
            options=MirrorOptions(output_dir=tmp_path),
            auth={"headers": {"Authorization": "Bearer t"}},
            transport=httpx.MockTransport(handler),
        )
        assert seen[0].headers["Authorization"] == "Bearer t"


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_run_returns_without_report_or_hook(self, tmp_path):
        started = asyncio.Event()
        calls: List[MirrorResult] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/slow.png":
                started.set()
                await asyncio.sleep(3600)
            if request.url.path == "/index.html":
                return httpx.Response(
                    200, content=b'<img src="missing.png"><img src="slow.png">'
                )
            return httpx.Response(404)

        task = asyncio.create_task(
            mirror_site_async(
                "http://site/index.html",
                options=MirrorOptions(output_dir=tmp_path),
                transport=httpx.MockTransport(handler),
                on_complete=calls.append,
            )
        )
        await started.wait()
        task.cancel()
        result = await task

        assert result.cancelled is True
        assert result.failures == ["http://site/missing.png"]
        assert result.failure_report is None
        assert not (tmp_path / "failed_downloads.txt").exists()
        assert calls == []


class TestResultSerialization:
    def test_to_dict(self, tmp_path):
        result = MirrorResult(
            seed_url="http://site/",
            output_dir=tmp_path,
            pages_visited=3,
            failures=["http://site/x.png"],
            failure_report=tmp_path / "failed_downloads.txt",
            elapsed=1.23456,
        )
        data = result.to_dict()
        assert data["output_dir"] == str(tmp_path)
        assert data["failure_report"] == str(tmp_path / "failed_downloads.txt")
        assert data["stats"]["pages_visited"] == 3
        assert data["stats"]["failed"] == 1
        assert data["stats"]["elapsed_seconds"] == 1.235


class TestSyncWrapper:
    def test_mirror_site_forwards_arguments(self, monkeypatch, tmp_path):
        captured = {}

        async def fake_async(url, **kwargs):
            captured["url"] = url
            captured.update(kwargs)
            return MirrorResult(seed_url=url, output_dir=tmp_path)

        monkeypatch.setattr("sitemirror.site.mirror_site_async", fake_async)
        result = sitemirror.mirror_site("http://site/", output_dir=tmp_path)

        assert result.seed_url == "http://site/"
        assert captured["output_dir"] == tmp_path
        assert captured["auth"] is None
