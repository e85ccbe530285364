"""Tests for logging helpers."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from apifoundation.log import REDACTED, configure_logging, redact_options


class TestRedactOptions:
    def test_top_level_and_nested_keys_masked(self) -> None:
        options = {
            "secret": "top",
            "query": {"appid": "wx1", "secret": "q"},
            "form_params": {"password": "p"},
            "json": {"refresh_token": "r", "keep": 1},
            "headers": {"Authorization": "Bearer t"},
        }
        redacted = redact_options(options)
        assert redacted["secret"] == REDACTED
        assert redacted["query"] == {"appid": "wx1", "secret": REDACTED}
        assert redacted["form_params"] == {"password": REDACTED}
        assert redacted["json"] == {"refresh_token": REDACTED, "keep": 1}
        assert redacted["headers"] == {"Authorization": REDACTED}

    def test_input_not_modified(self) -> None:
        options = {"query": {"secret": "q"}}
        redact_options(options)
        assert options == {"query": {"secret": "q"}}

    def test_multipart_reduced_to_names(self) -> None:
        options = {
            "multipart": [
                {"name": "media", "path": "/tmp/a.jpg"},
                {"name": "title", "contents": "x"},
            ]
        }
        assert redact_options(options)["multipart"] == ["media", "title"]

    def test_handler_replaced_by_name(self) -> None:
        def send_with_token(request):
            return request

        assert redact_options({"handler": send_with_token})["handler"] == "send_with_token"


@pytest.fixture()
def package_logger():
    logger = logging.getLogger("apifoundation")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


class TestConfigureLogging:
    def test_rich_handler_installed(self, package_logger: logging.Logger) -> None:
        logger = configure_logging(logging.DEBUG)
        assert logger is package_logger
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_plain_handler(self, package_logger: logging.Logger) -> None:
        configure_logging(rich=False)
        installed = [h for h in package_logger.handlers if getattr(h, "_apifoundation", False)]
        assert len(installed) == 1
        assert not isinstance(installed[0], RichHandler)

    def test_repeated_calls_replace_handler(self, package_logger: logging.Logger) -> None:
        configure_logging()
        configure_logging()
        installed = [h for h in package_logger.handlers if getattr(h, "_apifoundation", False)]
        assert len(installed) == 1
