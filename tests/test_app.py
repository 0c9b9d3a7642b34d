"""HTTP level: FastAPI app wired through build_context with an in-memory Drive."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.context import build_context
from src.server.app import create_app

from tests.fakes.fake_drive import issue_body, signed_headers


@pytest.fixture()
def backend() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def context(project_root, fake_drive, backend, clock):
    return build_context(project_root, drive=fake_drive, backend=backend, clock=clock)


@pytest.fixture()
def client(context):
    with TestClient(create_app(context)) as c:
        yield c


class TestWebhookEndpoint:
    def test_text_plain_gets_instructions(self, client, backend):
        body = issue_body()
        headers = {**signed_headers(body), "Content-Type": "text/plain"}
        r = client.post("/", content=body, headers=headers)
        assert r.status_code == 500
        assert r.text == "Update webhook to send 'application/json' format"
        assert r.headers["content-type"].startswith("text/plain")
        backend.add_job.assert_not_called()

    def test_opened_is_scheduled_and_provisioned_after_delay(self, client, context, fake_drive, clock):
        body = issue_body(number=42, title="Broken login")
        r = client.post("/", content=body, headers=signed_headers(body, delivery="gh-1"))
        assert r.status_code == 200
        assert r.text == "Scheduled job: 'opened'"

        job = context.scheduler.get("gh-1")
        assert job is not None
        assert fake_drive.folders == {}

        clock.advance(60)
        assert asyncio.run(context.scheduler.run_job("gh-1")) is True
        [issue_folder] = fake_drive.named("42 - Broken login")
        [workspace] = fake_drive.named("Issues")
        assert issue_folder["parents"] == [workspace["id"]]

    def test_missing_event_header(self, client):
        body = issue_body()
        headers = signed_headers(body)
        del headers["X-GitHub-Event"]
        r = client.post("/", content=body, headers=headers)
        assert r.status_code == 422
        assert r.text == "No Github Event found on request"

    def test_missing_delivery_header(self, client):
        body = issue_body()
        headers = signed_headers(body)
        del headers["X-GitHub-Delivery"]
        r = client.post("/", content=body, headers=headers)
        assert r.status_code == 401
        assert r.text == "No X-Github-Delivery found on request"

    def test_tampered_body(self, client, backend):
        body = issue_body()
        headers = signed_headers(body)
        r = client.post("/", content=body.replace(b"42", b"43"), headers=headers)
        assert r.status_code == 401
        backend.add_job.assert_not_called()


class TestHealth:
    def test_reports_coordinator_and_jobs(self, client):
        body = issue_body()
        client.post("/", content=body, headers=signed_headers(body))
        r = client.get("/health")
        assert r.json() == {"status": "ok", "coordinator": True, "scheduled_jobs": 1}

    def test_second_process_is_not_coordinator(self, project_root, fake_drive, backend, clock, client):
        other = build_context(project_root, drive=fake_drive, backend=MagicMock(), clock=clock)
        with TestClient(create_app(other)) as second:
            assert second.get("/health").json()["coordinator"] is False
            body = issue_body()
            r = second.post("/", content=body, headers=signed_headers(body))
            assert r.status_code == 503
            assert r.text == "Scheduler not running in this worker, redeliver 'opened'"
            assert other.scheduler.pending == []
