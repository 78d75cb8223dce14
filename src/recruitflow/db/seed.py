from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from recruitflow.db.models import Company, Job, User
from recruitflow.db.repositories import Repository

DEMO_COMPANY = {"name": "Acme Recruiting", "industry": "Staffing"}
DEMO_USER = {"email": "owner@acme.example", "full_name": "Acme Owner", "role": "admin"}
DEMO_JOBS: list[dict[str, str]] = [
    {"title": "Senior Backend Engineer", "location": "Remote"},
    {"title": "Recruiting Coordinator", "location": "New York, NY"},
    {"title": "Product Designer", "location": "Austin, TX"},
]


def seed_demo_tenant(session: Session) -> dict[str, object]:
    """Create the demo company with one admin user and a few open jobs.

    Running it again returns the existing rows instead of duplicating them.
    """
    repo = Repository(session)
    company = session.scalar(select(Company).where(Company.name == DEMO_COMPANY["name"]))
    if company is None:
        company = repo.create_company(**DEMO_COMPANY)

    user = session.scalar(
        select(User).where(User.company_id == company.id, User.email == DEMO_USER["email"])
    )
    if user is None:
        user = repo.create_user(company_id=company.id, **DEMO_USER)

    existing_titles = set(session.scalars(select(Job.title).where(Job.company_id == company.id)).all())
    for item in DEMO_JOBS:
        if item["title"] not in existing_titles:
            repo.create_job(company_id=company.id, **item)

    return {
        "company_id": company.id,
        "user_id": user.id,
        "job_ids": [job.id for job in repo.list_jobs_by_company(company.id)],
    }
