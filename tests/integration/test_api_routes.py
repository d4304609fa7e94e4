"""
End-to-end tests of the HTTP API against in-memory jobs and a fake provider.
"""

import time

import pytest
from fastapi.testclient import TestClient

from app.dependencies import (
    get_account_store,
    get_credential_resolver,
    get_deletion_runner,
    get_import_registry,
)
from app.jobs.deletion_job import DeletionJobRunner
from app.jobs.import_registry import ImportJobRegistry
from app.jobs.job_status_store import JobStatusStore
from app.main import app


@pytest.fixture
def registry(resolver):
    return ImportJobRegistry(resolver, max_delay_seconds=60)


@pytest.fixture
def runner(resolver):
    return DeletionJobRunner(resolver, JobStatusStore(retention_seconds=60), page_size=2)


@pytest.fixture
def client(account_store, resolver, registry, runner):
    app.dependency_overrides[get_account_store] = lambda: account_store
    app.dependency_overrides[get_credential_resolver] = lambda: resolver
    app.dependency_overrides[get_import_registry] = lambda: registry
    app.dependency_overrides[get_deletion_runner] = lambda: runner

    with TestClient(app) as test_client:
        yield test_client
        test_client.portal.call(registry.shutdown)
        test_client.portal.call(runner.shutdown)

    app.dependency_overrides.clear()


def _poll(client, url, predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(url).json()
        if predicate(body) or time.monotonic() > deadline:
            return body
        time.sleep(0.01)


def _start_import(client, text="a@x.com\nb@x.com\nc@x.com", delay=0.0, account_id="acc_1"):
    return client.post(
        "/api/imports",
        json={
            "account_id": account_id,
            "list_id": "list-1",
            "list_name": "Newsletter",
            "contacts_text": text,
            "delay_seconds": delay,
        },
    )


# ----------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_readyz_reports_components(client):
    response = client.get("/readyz")

    assert response.status_code == 200
    checks = response.json()["checks"]
    assert set(checks) == {"account_store", "imports", "deletions"}
    assert checks["imports"]["active_jobs"] == 0


def test_cors_preflight_for_ui_origin(client):
    response = client.options(
        "/api/accounts",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------


def test_account_crud(client):
    assert [a["id"] for a in client.get("/api/accounts").json()] == ["acc_1", "acc_2", "acc_pulse"]

    created = client.post(
        "/api/accounts", json={"name": "GR", "provider": "getresponse", "api_key": "gr"}
    )
    assert created.status_code == 201
    account_id = created.json()["id"]

    updated = client.put(f"/api/accounts/{account_id}", json={"name": "GetResponse"})
    assert updated.status_code == 200
    assert updated.json()["name"] == "GetResponse"
    assert updated.json()["api_key"] == "gr"

    deleted = client.delete(f"/api/accounts/{account_id}")
    assert deleted.json() == {"message": "Account deleted successfully"}
    assert client.delete(f"/api/accounts/{account_id}").status_code == 404
    assert client.put("/api/accounts/acc_missing", json={"name": "x"}).status_code == 404


def test_create_account_requires_name(client):
    assert client.post("/api/accounts", json={"provider": "sendx"}).status_code == 422


def test_check_status_connected(client):
    response = client.post("/api/accounts/acc_1/check-status")

    assert response.status_code == 200
    assert response.json()["status"] == "connected"


def test_check_status_reports_provider_failure_in_body(client, fake_gateway):
    fake_gateway.connection_error = "Invalid API key"

    response = client.post("/api/accounts/acc_1/check-status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["response"]["message"] == "Invalid API key"


def test_check_status_unknown_account(client):
    assert client.post("/api/accounts/acc_missing/check-status").status_code == 404


def test_account_lists(client):
    response = client.get("/api/accounts/acc_1/lists")

    assert response.status_code == 200
    assert response.json()["data"] == [{"id": "list-1", "name": "Newsletter"}]


def test_account_lists_with_rejected_credentials(client, fake_gateway):
    fake_gateway.auth_error = "Invalid API key"

    response = client.get("/api/accounts/acc_1/lists")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "AuthenticationError"


def test_single_contact_import(client, fake_gateway):
    response = client.post(
        "/api/accounts/acc_1/contacts",
        json={"list_id": "list-1", "email": " a@x.com ", "first_name": "Jo"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "a@x.com"
    assert fake_gateway.sent[0].first_name == "Jo"


def test_single_contact_rejected_by_provider(client, fake_gateway):
    fake_gateway.fail_calls = {1}

    response = client.post(
        "/api/accounts/acc_1/contacts", json={"list_id": "list-1", "email": "a@x.com"}
    )

    assert response.status_code == 502
    assert response.json()["detail"]["provider_response"]["message"] == "rejected"


def test_forget_subscriber(client, fake_gateway):
    response = client.post(
        "/api/accounts/acc_pulse/subscribers/forget",
        json={"list_id": "book-1", "email": "a@x.com"},
    )

    assert response.status_code == 200
    assert fake_gateway.deleted == [{"a@x.com"}]


# ----------------------------------------------------------------------
# Imports
# ----------------------------------------------------------------------


def test_import_runs_to_completion(client):
    response = _start_import(client, text="a@x.com,Jo,Doe\n\nb@x.com")

    assert response.status_code == 202
    job_id = response.json()["job_id"]
    assert response.json()["state"] == "running"

    body = _poll(client, f"/api/imports/{job_id}", lambda b: b["status"] == "completed")
    assert body["status"] == "completed"
    assert body["progress"] == 100
    assert body["processed"] == 2
    assert [r["index"] for r in body["results"]] == [2, 1]
    assert all(r["status"] == "success" for r in body["results"])


def test_import_with_provider_failures(client, fake_gateway):
    fake_gateway.fail_calls = {2}
    job_id = _start_import(client).json()["job_id"]

    body = _poll(client, f"/api/imports/{job_id}", lambda b: b["status"] == "completed")

    assert body["success_count"] == 2
    assert body["failed_count"] == 1
    failed = next(r for r in body["results"] if r["index"] == 2)
    assert failed["status"] == "failed"
    assert failed["data"]["message"] == "rejected"


def test_second_import_for_account_conflicts(client):
    first = _start_import(client, delay=30).json()["job_id"]

    response = _start_import(client)

    assert response.status_code == 409
    assert response.json()["detail"]["active_job_id"] == first

    # Another account is not blocked
    assert _start_import(client, account_id="acc_2", delay=30).status_code == 202


def test_pause_resume_cancel_flow(client):
    job_id = _start_import(client, delay=30).json()["job_id"]
    _poll(client, f"/api/imports/{job_id}", lambda b: b["processed"] == 1)

    paused = client.post(f"/api/imports/{job_id}/pause")
    assert paused.status_code == 200
    assert paused.json()["status"] == "paused"

    again = client.post(f"/api/imports/{job_id}/pause")
    assert again.status_code == 409
    assert again.json()["detail"]["state"] == "paused"

    resumed = client.post(f"/api/imports/{job_id}/resume")
    assert resumed.json()["status"] == "running"

    assert client.post(f"/api/imports/{job_id}/cancel").status_code == 200
    body = _poll(client, f"/api/imports/{job_id}", lambda b: b["status"] == "cancelled")

    assert body["status"] == "cancelled"
    assert body["processed"] == 1
    assert body["finished_at"] is not None


def test_list_and_remove_imports(client):
    job_id = _start_import(client, delay=30).json()["job_id"]

    listed = client.get("/api/imports", params={"account_id": "acc_1", "active_only": True})
    assert [j["id"] for j in listed.json()["jobs"]] == [job_id]
    assert client.get("/api/imports", params={"account_id": "acc_2"}).json()["total_count"] == 0

    assert client.delete(f"/api/imports/{job_id}").status_code == 409

    client.post(f"/api/imports/{job_id}/cancel")
    _poll(client, f"/api/imports/{job_id}", lambda b: b["status"] == "cancelled")

    assert client.delete(f"/api/imports/{job_id}").status_code == 204
    assert client.get(f"/api/imports/{job_id}").status_code == 404


def test_import_input_validation(client):
    assert _start_import(client, text="\n\n").status_code == 400
    assert _start_import(client, delay=-1).status_code == 422
    assert _start_import(client, account_id="acc_missing").status_code == 404


def test_unknown_import_job(client):
    assert client.get("/api/imports/nope").status_code == 404
    assert client.post("/api/imports/nope/pause").status_code == 404
    assert client.post("/api/imports/nope/cancel").status_code == 404


# ----------------------------------------------------------------------
# Deletions
# ----------------------------------------------------------------------


def test_delete_all_subscribers(client, fake_gateway):
    fake_gateway.subscribers = ["a@x.com", "b@x.com", "c@x.com"]

    response = client.post("/api/deletions", json={"account_id": "acc_pulse", "list_id": "book-1"})

    assert response.status_code == 202
    job_id = response.json()["job_id"]
    assert response.json()["state"] == "started"

    body = _poll(client, f"/api/deletions/{job_id}", lambda b: b["status"] == "completed")
    assert body["progress"] == 100
    assert body["total_count"] == 3
    assert body["message"] == "Deleted 3 subscribers"
    assert fake_gateway.deleted == [{"a@x.com", "b@x.com", "c@x.com"}]


def test_delete_all_reports_failure(client, fake_gateway):
    fake_gateway.subscribers = ["a@x.com"]
    fake_gateway.delete_error = "Address book is locked"

    job_id = client.post(
        "/api/deletions", json={"account_id": "acc_pulse", "list_id": "book-1"}
    ).json()["job_id"]

    body = _poll(client, f"/api/deletions/{job_id}", lambda b: b["status"] == "failed")
    assert body["message"] == "Address book is locked"


def test_delete_all_with_unknown_account(client):
    response = client.post("/api/deletions", json={"account_id": "acc_missing", "list_id": "b"})

    assert response.status_code == 404


def test_unknown_deletion_job(client):
    assert client.get("/api/deletions/nope").status_code == 404


# ----------------------------------------------------------------------
# Senders, templates, automations
# ----------------------------------------------------------------------


def test_sender_management(client, fake_gateway):
    added = client.post(
        "/api/accounts/acc_pulse/senders", json={"email": " news@x.com ", "name": "News"}
    )
    assert added.status_code == 200

    listed = client.get("/api/accounts/acc_pulse/senders").json()["data"]
    assert listed == [{"email": "news@x.com", "name": "News"}]

    assert client.delete("/api/accounts/acc_pulse/senders/news@x.com").status_code == 200
    assert fake_gateway.senders == []


def test_add_sender_requires_name(client):
    response = client.post("/api/accounts/acc_pulse/senders", json={"email": "news@x.com"})

    assert response.status_code == 422


def test_template_read_and_update(client, fake_gateway):
    listed = client.get("/api/accounts/acc_pulse/templates").json()["data"]
    assert listed == [{"id": "tpl-1", "name": "Welcome"}]

    detail = client.get("/api/accounts/acc_pulse/templates/tpl-1").json()["data"]
    assert detail["html"] == "<p>Hi</p>"

    updated = client.put(
        "/api/accounts/acc_pulse/templates/tpl-1", json={"html": "<p>Hello</p>"}
    )
    assert updated.status_code == 200
    assert fake_gateway.templates["tpl-1"]["html"] == "<p>Hello</p>"


def test_unknown_template_is_a_provider_error(client):
    response = client.get("/api/accounts/acc_pulse/templates/missing")

    assert response.status_code == 502
    assert response.json()["detail"]["message"] == "Template not found"


def test_automation_statistics_and_subscribers(client, fake_gateway):
    automations = client.get("/api/accounts/acc_pulse/automations").json()["data"]
    assert automations[0]["name"] == "Welcome"

    stats = client.get("/api/accounts/acc_pulse/automations/7/statistics").json()["data"]
    assert stats["opened"] == 4
    assert stats["automation"] == "7"

    subscribers = client.get(
        "/api/accounts/acc_pulse/automations/7/subscribers", params={"filter_type": "clicked"}
    )
    assert subscribers.json()["data"] == [{"email": "a@x.com"}]
    assert fake_gateway.action_filters == ["clicked"]


def test_action_subscribers_rejects_unknown_filter(client):
    response = client.get(
        "/api/accounts/acc_pulse/automations/7/subscribers", params={"filter_type": "bounced"}
    )

    assert response.status_code == 422


def test_provider_resources_for_unknown_account(client):
    assert client.get("/api/accounts/acc_missing/senders").status_code == 404
