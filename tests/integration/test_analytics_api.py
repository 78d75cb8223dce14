from datetime import UTC, datetime, timedelta, timezone

from fastapi.testclient import TestClient

IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)


def _start(client: TestClient, job_id: int, session_id: str, **extra) -> dict:
    resp = client.post("/api/analytics/forms/start", json={"jobId": job_id, "sessionId": session_id, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_full_funnel_reports_perfect_conversion(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()

    started = _start(client, tenant.job_id, "s1", source="linkedin")
    assert started["success"] is True
    assert started["sessionId"] == "s1"
    assert isinstance(started["trackingId"], int)

    complete_resp = client.post(
        "/api/analytics/forms/complete",
        json={"sessionId": "s1", "fieldsCompleted": ["name", "email"]},
    )
    assert complete_resp.status_code == 200
    assert complete_resp.json()["analytics"]["formCompleted"] is True
    assert complete_resp.json()["analytics"]["fieldsCompleted"] == ["name", "email"]

    submit_resp = client.post("/api/analytics/forms/submit", json={"sessionId": "s1", "candidateId": 42})
    assert submit_resp.status_code == 200
    analytics = submit_resp.json()["analytics"]
    assert analytics["submitted"] is True
    assert analytics["candidateId"] == 42
    assert analytics["submissionTime"] is not None

    conversions = client.get("/api/analytics/conversions", headers=tenant.headers)
    assert conversions.status_code == 200
    body = conversions.json()
    assert body["totalStarted"] == 1
    assert body["totalCompleted"] == 1
    assert body["totalConverted"] == 1
    assert body["conversionRate"] == 100
    assert body["completionRate"] == 100


def test_source_breakdown_after_partial_completion(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1")
    _start(client, tenant.job_id, "s2")
    assert client.post("/api/analytics/forms/complete", json={"sessionId": "s1"}).status_code == 200

    resp = client.get("/api/analytics/sources", headers=tenant.headers)
    assert resp.status_code == 200
    rows = resp.json()
    assert len(rows) == 1
    assert rows[0] == {
        "source": "direct",
        "totalStarted": 2,
        "totalCompleted": 1,
        "totalSubmitted": 0,
        "completionRate": 50,
        "conversionRate": 0,
    }


def test_start_classifies_iphone_user_agent(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1", userAgent=IPHONE_SAFARI, referrer="https://t.co/x", ipAddress="10.0.0.1")

    rows = client.get(f"/api/analytics/job/{tenant.job_id}/forms", headers=tenant.headers).json()
    assert len(rows) == 1
    assert rows[0]["deviceType"] == "mobile"
    assert rows[0]["browserName"] == "safari"
    assert rows[0]["companyId"] == tenant.company_id
    assert rows[0]["referrer"] == "https://t.co/x"
    assert rows[0]["source"] == "direct"


def test_start_requires_job_and_session(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    resp = client.post("/api/analytics/forms/start", json={"jobId": tenant.job_id})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Job ID and session ID are required"}

    resp = client.post("/api/analytics/forms/start", json={"sessionId": "s1"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Job ID and session ID are required"


def test_start_for_unknown_job_is_not_found(client: TestClient) -> None:
    resp = client.post("/api/analytics/forms/start", json={"jobId": 999, "sessionId": "s1"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Job not found"}


def test_complete_and_submit_require_session_id(client: TestClient) -> None:
    for path in ("/api/analytics/forms/complete", "/api/analytics/forms/submit"):
        resp = client.post(path, json={})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Session ID is required"}


def test_complete_for_unknown_session_is_not_found(client: TestClient, make_tenant) -> None:
    make_tenant()
    resp = client.post("/api/analytics/forms/complete", json={"sessionId": "ghost"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Form session not found"}


def test_duplicate_start_keeps_one_record(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    first = _start(client, tenant.job_id, "s1", source="linkedin")
    second = _start(client, tenant.job_id, "s1", source="indeed")
    assert first["trackingId"] == second["trackingId"]

    rows = client.get(f"/api/analytics/job/{tenant.job_id}/forms", headers=tenant.headers).json()
    assert len(rows) == 1
    assert rows[0]["source"] == "linkedin"


def test_progress_feeds_abandonment_report(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1")
    _start(client, tenant.job_id, "s2")
    _start(client, tenant.job_id, "s3")
    assert client.post("/api/analytics/forms/progress", json={"sessionId": "s2", "stepReached": 2}).status_code == 200
    # lower step reports never move a session backwards
    resp = client.post("/api/analytics/forms/progress", json={"sessionId": "s2", "stepReached": 1, "totalSteps": 4})
    assert resp.json()["analytics"]["stepReached"] == 2
    assert resp.json()["analytics"]["totalSteps"] == 4
    client.post("/api/analytics/forms/complete", json={"sessionId": "s3"})

    steps = client.get("/api/analytics/abandonment", headers=tenant.headers).json()
    assert steps == [
        {"step": 1, "count": 1, "percentage": 50},
        {"step": 2, "count": 1, "percentage": 50},
    ]


def test_device_breakdown_groups_devices_and_browsers(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1", userAgent=IPHONE_SAFARI)
    _start(client, tenant.job_id, "s2", userAgent="Mozilla/5.0 (X11; Linux x86_64) Firefox/125.0")
    _start(client, tenant.job_id, "s3")

    body = client.get("/api/analytics/devices", headers=tenant.headers).json()
    devices = {row["device"]: row for row in body["devices"]}
    browsers = {row["browser"]: row for row in body["browsers"]}
    assert devices["mobile"] == {"device": "mobile", "count": 1, "percentage": 33}
    assert devices["desktop"]["count"] == 1
    assert devices["unknown"]["count"] == 1
    assert set(browsers) == {"safari", "firefox", "unknown"}
    assert 97 <= sum(row["percentage"] for row in body["devices"]) <= 103


def test_conversions_with_empty_tenant_returns_zero_rates(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    body = client.get("/api/analytics/conversions", headers=tenant.headers).json()
    assert body["totalStarted"] == 0
    assert body["conversionRate"] == 0
    assert body["completionRate"] == 0


def test_conversions_date_filter(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1")

    past = client.get(
        "/api/analytics/conversions",
        params={"startDate": "2020-01-01T00:00:00Z", "endDate": "2020-12-31T23:59:59Z"},
        headers=tenant.headers,
    )
    assert past.json()["totalStarted"] == 0

    open_ended = client.get(
        "/api/analytics/conversions",
        params={"startDate": "2020-01-01T00:00:00Z"},
        headers=tenant.headers,
    )
    assert open_ended.json()["totalStarted"] == 1


def test_reversed_date_range_is_rejected(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    resp = client.get(
        "/api/analytics/sources",
        params={"startDate": "2026-02-01T00:00:00Z", "endDate": "2026-01-01T00:00:00Z"},
        headers=tenant.headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "startDate must not be after endDate"}


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_form_timestamps_are_returned_with_utc_offset(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1")
    client.post("/api/analytics/forms/complete", json={"sessionId": "s1", "completionTime": "2026-10-01T10:00:00Z"})
    client.post("/api/analytics/forms/submit", json={"sessionId": "s1"})

    row = client.get(f"/api/analytics/job/{tenant.job_id}/forms", headers=tenant.headers).json()[0]
    for key in ("startTime", "completionTime", "submissionTime"):
        assert _parse_timestamp(row[key]).utcoffset() == timedelta(0), key
    assert _parse_timestamp(row["completionTime"]) == datetime(2026, 10, 1, 10, 0, tzinfo=UTC)


def test_completion_time_with_offset_counts_real_elapsed_seconds(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    _start(client, tenant.job_id, "s1")
    row = client.get(f"/api/analytics/job/{tenant.job_id}/forms", headers=tenant.headers).json()[0]
    started = _parse_timestamp(row["startTime"])

    finished = started.astimezone(timezone(timedelta(hours=2))) + timedelta(seconds=60)
    resp = client.post(
        "/api/analytics/forms/complete",
        json={"sessionId": "s1", "completionTime": finished.isoformat()},
    )
    assert resp.status_code == 200

    summary = client.get("/api/analytics/conversions", headers=tenant.headers).json()
    assert summary["totalCompleted"] == 1
    assert summary["avgTimeToComplete"] == 60


def test_malformed_payload_is_a_400_with_error_body(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()

    bad_job = client.post("/api/analytics/forms/start", json={"jobId": "abc", "sessionId": "s1"})
    assert bad_job.status_code == 400
    assert "jobId" in bad_job.json()["error"]

    _start(client, tenant.job_id, "s1")
    bad_step = client.post("/api/analytics/forms/progress", json={"sessionId": "s1", "stepReached": 0})
    assert bad_step.status_code == 400
    assert set(bad_step.json()) == {"error"}


def test_unparseable_date_filter_is_a_400(client: TestClient, make_tenant) -> None:
    tenant = make_tenant()
    resp = client.get("/api/analytics/conversions?startDate=yesterday", headers=tenant.headers)
    assert resp.status_code == 400
    assert "startDate" in resp.json()["error"]
