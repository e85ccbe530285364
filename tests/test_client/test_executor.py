"""Tests for HttpxExecutor option translation and error wrapping."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from apifoundation.client import Http, HttpxExecutor
from apifoundation.exceptions import TransportError
from apifoundation.models import RequestConfig


def _capturing_executor(seen: list[httpx.Request], **config) -> HttpxExecutor:
    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = httpx.Client(
        transport=httpx.MockTransport(handler),
        base_url=config.get("base_url", ""),
    )
    return HttpxExecutor(client=client)


class TestOptionTranslation:
    def test_query_becomes_params(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute("GET", "https://a.test/x", {"query": {"q": "1"}})
        assert seen[0].url.params["q"] == "1"

    def test_form_params_become_urlencoded_body(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute(
            "POST", "https://a.test/x", {"form_params": {"a": "1", "b": "two"}}
        )
        assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
        assert seen[0].content == b"a=1&b=two"

    def test_json_body(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute("POST", "https://a.test/x", {"json": {"k": [1, 2]}})
        assert seen[0].headers["content-type"] == "application/json"
        assert json.loads(seen[0].content) == {"k": [1, 2]}

    def test_headers_and_cookies(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute(
            "GET",
            "https://a.test/x",
            {"headers": {"X-Api": "v1"}, "cookies": {"sid": "abc"}},
        )
        assert seen[0].headers["X-Api"] == "v1"
        assert "sid=abc" in seen[0].headers["cookie"]

    def test_none_options_are_skipped(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute(
            "GET", "https://a.test/x", {"query": None, "json": None}
        )
        assert seen[0].content == b""

    def test_timeout_forwarded(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute("GET", "https://a.test/x", {"timeout": 2.5})
        assert seen[0].extensions["timeout"]["read"] == 2.5

    def test_relative_url_uses_base_url(self) -> None:
        seen: list[httpx.Request] = []
        executor = _capturing_executor(seen, base_url="https://api.example.com/v1")
        executor.execute("GET", "/users", {})
        assert str(seen[0].url) == "https://api.example.com/v1/users"

    def test_unknown_options_ignored(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute("GET", "https://a.test/x", {"curl": {"opt": 1}})
        assert len(seen) == 1


class TestMultipart:
    def test_file_and_form_parts_sent(self, tmp_path: Path) -> None:
        doc = tmp_path / "a.txt"
        doc.write_text("hello doc")
        pic1 = tmp_path / "b.jpg"
        pic1.write_bytes(b"JPEG-B")
        pic2 = tmp_path / "c.jpg"
        pic2.write_bytes(b"JPEG-C")

        seen: list[httpx.Request] = []
        http = Http(_capturing_executor(seen))
        http.upload(
            "https://a.test/upload",
            queries={"type": "image"},
            files={"doc": str(doc), "pics": [str(pic1), str(pic2)]},
            form={"title": "holiday"},
        )

        request = seen[0]
        body = request.content
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert request.url.params["type"] == "image"
        assert b'name="doc"; filename="a.txt"' in body
        assert body.count(b'name="pics[]"') == 2
        assert b'filename="b.jpg"' in body and b"JPEG-B" in body
        assert b'filename="c.jpg"' in body and b"JPEG-C" in body
        assert b'name="title"' in body and b"holiday" in body
        assert b"hello doc" in body

    def test_files_closed_after_request(self, tmp_path: Path, monkeypatch) -> None:
        path = tmp_path / "f.bin"
        path.write_bytes(b"data")
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            handle = real_open(*args, **kwargs)
            opened.append(handle)
            return handle

        monkeypatch.setattr(
            "apifoundation.client.executor.open", tracking_open, raising=False
        )
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute(
            "POST", "https://a.test/u", {"multipart": [{"name": "f", "path": str(path)}]}
        )
        assert opened and all(handle.closed for handle in opened)

    def test_non_string_contents_stringified(self) -> None:
        seen: list[httpx.Request] = []
        _capturing_executor(seen).execute(
            "POST", "https://a.test/u", {"multipart": [{"name": "n", "contents": 42}]}
        )
        assert b'name="n"' in seen[0].content
        assert b"42" in seen[0].content


class TestHandler:
    def test_handler_option_runs_request(self) -> None:
        seen: list[httpx.Request] = []
        executor = _capturing_executor(seen)
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.method)
            return executor.send(request)

        executor.execute("DELETE", "https://a.test/x", {"handler": handler})
        assert calls == ["DELETE"]
        assert len(seen) == 1

    def test_without_handler_sends_directly(self) -> None:
        seen: list[httpx.Request] = []
        response = _capturing_executor(seen).execute("GET", "https://a.test/x", {})
        assert response.status_code == 200


class TestErrors:
    @pytest.mark.parametrize(
        "error",
        [httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError],
    )
    def test_transport_errors_wrapped(self, error: type[httpx.TransportError]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error("boom", request=request)

        executor = HttpxExecutor(client=httpx.Client(transport=httpx.MockTransport(handler)))
        with pytest.raises(TransportError, match="GET https://a.test/x failed") as exc_info:
            executor.execute("GET", "https://a.test/x", {})
        assert isinstance(exc_info.value.__cause__, error)

    def test_http_error_status_is_not_raised(self) -> None:
        executor = HttpxExecutor(
            client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        )
        assert executor.execute("GET", "https://a.test/x", {}).status_code == 500


class TestClientLifecycle:
    def test_client_built_from_config(self) -> None:
        executor = HttpxExecutor(
            RequestConfig(base_url="https://api.example.com", timeout=7, ipv4_only=False)
        )
        client = executor.client
        assert str(client.base_url) == "https://api.example.com"
        assert client.timeout.read == 7
        assert executor.client is client
        executor.close()
        assert executor._client is None

    def test_ipv4_transport(self) -> None:
        executor = HttpxExecutor(RequestConfig(ipv4_only=True))
        assert isinstance(executor.client._transport, httpx.HTTPTransport)
        executor.close()

    def test_injected_client_not_closed(self) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        executor = HttpxExecutor(client=client)
        executor.close()
        assert not client.is_closed
        client.close()
