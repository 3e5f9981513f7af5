"""Tests for outbound WhatsApp messaging via Meta - verifies NO PII in logs."""

import urllib.error
from unittest.mock import patch

import pytest

from helpers import LogRecorder
from orderlink.whatsapp.meta_sender import (
    MetaSender,
    MissingChannelCredentials,
    send_text_via_meta,
)

TEST_PHONE = "5511777766665"
MESSAGE_TEXT = "dummy_text_with_link"


@pytest.fixture
def meta_env(monkeypatch):
    monkeypatch.setenv("META_PHONE_NUMBER_ID", "123456789")
    monkeypatch.setenv("META_ACCESS_TOKEN", "test-access-token")


class TestSendTextViaMeta:
    def test_request_shape(self, meta_env):
        with patch(
            "orderlink.whatsapp.meta_sender._do_request",
            return_value={"messages": [{"id": "wamid.1"}]},
        ) as mock_request:
            send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT)

        url, headers, data = mock_request.call_args.args
        assert url == "https://graph.facebook.com/v18.0/123456789/messages"
        assert headers["Authorization"] == "Bearer test-access-token"
        assert b'"to": "5511777766665"' in data

    def test_permanent_token_fallback(self, monkeypatch):
        monkeypatch.setenv("META_PHONE_NUMBER_ID", "123456789")
        monkeypatch.setenv("META_ACCESS_PERMANENT_TOKEN", "perm-token")
        monkeypatch.setenv("META_GRAPH_API_VERSION", "v20.0")
        with patch("orderlink.whatsapp.meta_sender._do_request", return_value={}) as mock_request:
            send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT)

        url, headers, _ = mock_request.call_args.args
        assert "/v20.0/" in url
        assert headers["Authorization"] == "Bearer perm-token"

    def test_missing_config_raises(self):
        with pytest.raises(MissingChannelCredentials):
            send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT)

    def test_retries_once_on_network_error(self, meta_env):
        calls = []

        def flaky(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise urllib.error.URLError("reset")
            return {"ok": True}

        with patch("orderlink.whatsapp.meta_sender._do_request", side_effect=flaky), patch(
            "orderlink.whatsapp.meta_sender.time.sleep"
        ):
            assert send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT) == {"ok": True}
        assert len(calls) == 2

    def test_no_retry_on_4xx(self, meta_env):
        error = urllib.error.HTTPError("url", 400, "Bad Request", {}, None)
        with patch(
            "orderlink.whatsapp.meta_sender._do_request", side_effect=error
        ) as mock_request:
            with pytest.raises(urllib.error.HTTPError):
                send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT)
        assert mock_request.call_count == 1


class TestNoPiiLeakage:
    def test_success_logs_no_pii(self, meta_env):
        recorder = LogRecorder()
        with patch("orderlink.whatsapp.meta_sender.logger", recorder), patch(
            "orderlink.whatsapp.meta_sender._do_request", return_value={}
        ):
            send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT, correlation_id="c-1")

        logged = recorder.get_all_logged_content()
        assert TEST_PHONE not in logged, "Phone leaked!"
        assert MESSAGE_TEXT not in logged, "Message text leaked!"
        assert "test-access-token" not in logged
        assert recorder.has_extra_field("to_hash")
        assert recorder.has_extra_field("text_len")

    def test_error_logs_no_pii(self, meta_env):
        recorder = LogRecorder()
        with patch("orderlink.whatsapp.meta_sender.logger", recorder), patch(
            "orderlink.whatsapp.meta_sender._do_request",
            side_effect=urllib.error.URLError("down"),
        ), patch("orderlink.whatsapp.meta_sender.time.sleep"):
            with pytest.raises(urllib.error.URLError):
                send_text_via_meta(to_phone=TEST_PHONE, text=MESSAGE_TEXT)

        logged = recorder.get_all_logged_content()
        assert TEST_PHONE not in logged
        assert MESSAGE_TEXT not in logged
        assert any(level == "error" for level, _, _ in recorder.calls)


class TestMetaSender:
    def test_sent(self, meta_env):
        with patch("orderlink.whatsapp.meta_sender._do_request", return_value={}):
            outcome = MetaSender().deliver(TEST_PHONE, MESSAGE_TEXT)
        assert outcome.delivered

    def test_missing_credentials_skipped(self):
        outcome = MetaSender().deliver(TEST_PHONE, MESSAGE_TEXT)
        assert outcome.status == "skipped"
        assert outcome.reason == "missing_channel_credentials"

    def test_failure_never_raises(self, meta_env):
        with patch(
            "orderlink.whatsapp.meta_sender._do_request",
            side_effect=urllib.error.URLError("down"),
        ), patch("orderlink.whatsapp.meta_sender.time.sleep"):
            outcome = MetaSender().deliver(TEST_PHONE, MESSAGE_TEXT)

        assert outcome.status == "failed"
        assert outcome.reason == "URLError"
