from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from recruitflow.db.models import (
    ApplicationFormAnalytics,
    AuthSession,
    Company,
    Job,
    JobView,
    User,
)


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_company(self, name: str, industry: str = "") -> Company:
        company = Company(name=name, industry=industry)
        self.session.add(company)
        self.session.commit()
        self.session.refresh(company)
        return company

    def get_company(self, company_id: int) -> Company | None:
        return self.session.get(Company, company_id)

    def list_companies(self) -> list[Company]:
        return list(self.session.scalars(select(Company).order_by(Company.id)).all())

    def create_user(self, *, company_id: int, email: str, full_name: str = "", role: str = "user") -> User:
        user = User(company_id=company_id, email=email, full_name=full_name, role=role)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def create_auth_session(
        self,
        *,
        user_id: int,
        ttl_minutes: int,
        active_tenant_id: int | None = None,
    ) -> AuthSession:
        auth_session = AuthSession(
            token=generate_token(),
            user_id=user_id,
            active_tenant_id=active_tenant_id,
            expires_at=datetime.now(UTC) + timedelta(minutes=ttl_minutes),
        )
        self.session.add(auth_session)
        self.session.commit()
        self.session.refresh(auth_session)
        return auth_session

    def get_auth_session(self, token: str) -> AuthSession | None:
        return self.session.scalar(select(AuthSession).where(AuthSession.token == token))

    def create_job(self, *, company_id: int, title: str, location: str = "", status: str = "active") -> Job:
        job = Job(company_id=company_id, title=title, location=location, status=status)
        self.session.add(job)
        self.session.commit()
        self.session.refresh(job)
        return job

    def get_job(self, job_id: int) -> Job | None:
        return self.session.get(Job, job_id)

    def list_jobs_by_company(self, company_id: int) -> list[Job]:
        statement = select(Job).where(Job.company_id == company_id).order_by(Job.id)
        return list(self.session.scalars(statement).all())

    def create_form_analytics(self, **values: Any) -> ApplicationFormAnalytics:
        record = ApplicationFormAnalytics(**values)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get_form_analytics_by_session(self, session_id: str) -> ApplicationFormAnalytics | None:
        return self.session.scalar(
            select(ApplicationFormAnalytics).where(ApplicationFormAnalytics.session_id == session_id)
        )

    def update_form_analytics(self, record: ApplicationFormAnalytics, values: dict[str, Any]) -> ApplicationFormAnalytics:
        for key, value in values.items():
            setattr(record, key, value)
        self.session.commit()
        self.session.refresh(record)
        return record

    def list_form_analytics_by_job(self, job_id: int) -> list[ApplicationFormAnalytics]:
        statement = (
            select(ApplicationFormAnalytics)
            .where(ApplicationFormAnalytics.job_id == job_id)
            .order_by(ApplicationFormAnalytics.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def list_form_analytics_by_company(self, company_id: int) -> list[ApplicationFormAnalytics]:
        statement = (
            select(ApplicationFormAnalytics)
            .where(ApplicationFormAnalytics.company_id == company_id)
            .order_by(ApplicationFormAnalytics.id)
        )
        return list(self.session.scalars(statement).all())

    def count_form_analytics(self) -> int:
        return self.session.scalar(select(func.count()).select_from(ApplicationFormAnalytics)) or 0

    def create_job_view(
        self,
        *,
        job_id: int,
        company_id: int,
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
        viewed_at: datetime | None = None,
    ) -> JobView:
        view = JobView(
            job_id=job_id,
            company_id=company_id,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
            viewed_at=viewed_at or datetime.now(UTC),
        )
        self.session.add(view)
        self.session.commit()
        self.session.refresh(view)
        return view

    def list_job_views_by_job(self, job_id: int) -> list[JobView]:
        statement = select(JobView).where(JobView.job_id == job_id).order_by(JobView.viewed_at.desc())
        return list(self.session.scalars(statement).all())

    def list_job_view_times_by_company(self, company_id: int) -> list[datetime]:
        statement = select(JobView.viewed_at).where(JobView.company_id == company_id)
        return list(self.session.scalars(statement).all())

    def count_job_views_by_company(self, company_id: int) -> dict[int, int]:
        statement = (
            select(JobView.job_id, func.count(JobView.id))
            .where(JobView.company_id == company_id)
            .group_by(JobView.job_id)
        )
        return {job_id: count for job_id, count in self.session.execute(statement).all()}
