from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError


def _broken(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


def test_query_storage_failure_is_a_generic_500(client: TestClient, make_tenant, monkeypatch, caplog) -> None:
    tenant = make_tenant()
    monkeypatch.setattr(
        "recruitflow.db.repositories.Repository.list_form_analytics_by_company",
        _broken,
    )

    resp = client.get("/api/analytics/conversions", headers=tenant.headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch conversion analytics"}
    assert "database is locked" not in resp.text
    assert any("Failed to fetch conversion analytics" in record.getMessage() for record in caplog.records)


def test_tracking_storage_failure_is_a_generic_500(client: TestClient, make_tenant, monkeypatch) -> None:
    tenant = make_tenant()
    monkeypatch.setattr("recruitflow.db.repositories.Repository.create_form_analytics", _broken)

    resp = client.post("/api/analytics/forms/start", json={"jobId": tenant.job_id, "sessionId": "s1"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to track form start"}


def test_session_lookup_failure_is_a_generic_500(client: TestClient, make_tenant, monkeypatch, caplog) -> None:
    tenant = make_tenant()
    monkeypatch.setattr("recruitflow.db.repositories.Repository.get_auth_session", _broken)

    resp = client.get("/api/analytics/conversions", headers=tenant.headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to resolve session"}
    assert any("Session lookup failed" in record.getMessage() for record in caplog.records)
