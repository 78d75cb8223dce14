from __future__ import annotations

import os
import tempfile
from types import SimpleNamespace

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="recruitflow-test-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from recruitflow.api.app import create_app  # noqa: E402
from recruitflow.db.base import Base  # noqa: E402
from recruitflow.db.repositories import Repository  # noqa: E402
from recruitflow.db.session import SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def make_tenant():
    """Create a company with one job and an authenticated user token."""

    def _make(name: str = "Acme", job_count: int = 1) -> SimpleNamespace:
        with SessionLocal() as db:
            repo = Repository(db)
            company = repo.create_company(name=name)
            user = repo.create_user(company_id=company.id, email=f"owner@{name.lower()}.example")
            jobs = [
                repo.create_job(company_id=company.id, title=f"{name} role {index}")
                for index in range(job_count)
            ]
            auth_session = repo.create_auth_session(user_id=user.id, ttl_minutes=60)
            return SimpleNamespace(
                company_id=company.id,
                user_id=user.id,
                job_id=jobs[0].id if jobs else None,
                job_ids=[job.id for job in jobs],
                token=auth_session.token,
                headers={"Authorization": f"Bearer {auth_session.token}"},
            )

    return _make
