"""Unit tests for the email client, config manager and scheduler wrapper."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from src.core import ConfigurationException, SendException
from src.sla.infrastructure.external import EmailClient, SLAConfigManager, SLAScheduler

API_URL = "https://mail.test/emails"


def make_client(handler, api_key: str | None = "re_test_key") -> EmailClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EmailClient(
        api_url=API_URL,
        api_key=api_key,
        from_address="Help Desk <helpdesk@example.com>",
        http_client=http_client,
    )


class TestEmailClient:
    async def test_posts_payload_with_bearer_token(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg_1"})

        client = make_client(handler)

        await client.send(["a@example.com", "b@example.com"], "Subject", "<p>Body</p>")

        assert captured["url"] == API_URL
        assert captured["auth"] == "Bearer re_test_key"
        assert captured["body"] == {
            "from": "Help Desk <helpdesk@example.com>",
            "to": ["a@example.com", "b@example.com"],
            "subject": "Subject",
            "html": "<p>Body</p>",
        }
        await client.close()

    async def test_non_success_status_raises(self) -> None:
        client = make_client(lambda request: httpx.Response(422, json={"error": "bad"}))

        with pytest.raises(SendException) as exc_info:
            await client.send(["a@example.com"], "S", "B")

        assert exc_info.value.status_code == 422
        assert exc_info.value.recipients == ["a@example.com"]
        assert exc_info.value.message.startswith("Email Service:")

    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(SendException) as exc_info:
            await client.send(["a@example.com"], "S", "B")

        assert "connection refused" in exc_info.value.message

    async def test_single_attempt_per_send(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        client = make_client(handler)

        with pytest.raises(SendException):
            await client.send(["a@example.com"], "S", "B")

        assert len(calls) == 1

    async def test_not_configured(self) -> None:
        client = make_client(lambda request: httpx.Response(200), api_key=None)

        assert client.is_configured is False
        with pytest.raises(SendException):
            await client.send(["a@example.com"], "S", "B")

    async def test_no_recipients(self) -> None:
        client = make_client(lambda request: httpx.Response(200))

        with pytest.raises(SendException):
            await client.send([], "S", "B")


class TestSLAConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        manager = SLAConfigManager()

        config = manager.load(tmp_path / "missing.yaml")

        assert config.warning_fraction is None
        assert manager.get_config() is config

    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "sla_config.yaml"
        path.write_text("warning_fraction: 0.6\nactive_statuses: [open]\n")
        manager = SLAConfigManager()

        config = manager.load(path)

        assert config.warning_fraction == 0.6
        assert config.active_statuses == ["open"]

    def test_invalid_yaml_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "sla_config.yaml"
        path.write_text("warning_fraction: 2\n")

        with pytest.raises(ConfigurationException):
            SLAConfigManager().load(path)

    def test_reload_picks_up_changes(self, tmp_path: Path) -> None:
        path = tmp_path / "sla_config.yaml"
        path.write_text("warning_fraction: 0.6\n")
        manager = SLAConfigManager()
        manager.load(path)

        path.write_text("warning_fraction: 0.9\n")

        assert manager.reload() is True
        assert manager.config.warning_fraction == 0.9

    def test_bad_reload_keeps_previous_config(self, tmp_path: Path) -> None:
        path = tmp_path / "sla_config.yaml"
        path.write_text("warning_fraction: 0.6\n")
        manager = SLAConfigManager()
        manager.load(path)

        path.write_text("active_statuses: []\n")

        assert manager.reload() is False
        assert manager.config.warning_fraction == 0.6

    def test_config_before_load_raises(self) -> None:
        with pytest.raises(RuntimeError):
            SLAConfigManager().config

    def test_watching_missing_file_is_noop(self, tmp_path: Path) -> None:
        manager = SLAConfigManager()
        manager.load(tmp_path / "missing.yaml")

        manager.start_watching()
        manager.stop_watching()


class TestSLAScheduler:
    async def test_start_registers_single_instance_job(self) -> None:
        async def job() -> None:
            return None

        scheduler = SLAScheduler(interval_seconds=60)

        await scheduler.start(job)
        try:
            assert scheduler.is_running
            registered = scheduler._scheduler.get_job("sla_check")
            assert registered.max_instances == 1
            assert registered.coalesce is True
        finally:
            await scheduler.stop()

        assert not scheduler.is_running
