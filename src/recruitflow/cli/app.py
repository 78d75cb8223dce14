from __future__ import annotations

import json
from datetime import datetime

import typer
import uvicorn

from recruitflow.api.app import create_app
from recruitflow.config import get_settings
from recruitflow.core.tracker import FunnelTracker
from recruitflow.db.init import init_database
from recruitflow.db.repositories import Repository
from recruitflow.db.seed import seed_demo_tenant
from recruitflow.db.session import SessionLocal
from recruitflow.errors import RecruitFlowError
from recruitflow.logging_config import configure_logging
from recruitflow.types import DateRange

app = typer.Typer(help="RecruitFlow CLI")
company_app = typer.Typer(help="Manage tenant companies and their users")
jobs_app = typer.Typer(help="Job registry commands")
tokens_app = typer.Typer(help="Issue API session tokens")
analytics_app = typer.Typer(help="Application funnel reports")

app.add_typer(company_app, name="company")
app.add_typer(jobs_app, name="jobs")
app.add_typer(tokens_app, name="tokens")
app.add_typer(analytics_app, name="analytics")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def _date_range(start_date: datetime | None, end_date: datetime | None) -> DateRange:
    try:
        return DateRange(start_date=start_date, end_date=end_date)
    except ValueError as exc:
        raise typer.BadParameter("--start-date must not be after --end-date") from exc


def _echo(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("init")
def init_cmd() -> None:
    """Initialize the database and data directory."""
    configure_logging()
    result = init_database()
    _echo({"ok": True, **result})


@app.command("seed-demo")
def seed_demo() -> None:
    """Create a demo tenant with an admin user and open jobs."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        _echo(seed_demo_tenant(db))


@company_app.command("create")
def company_create(
    name: str = typer.Option(..., "--name"),
    industry: str = typer.Option("", "--industry"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        company = Repository(db).create_company(name=name, industry=industry)
        _echo({"id": company.id, "name": company.name})


@company_app.command("list")
def company_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        companies = Repository(db).list_companies()
        _echo([{"id": company.id, "name": company.name, "industry": company.industry} for company in companies])


@company_app.command("add-user")
def company_add_user(
    company_id: int = typer.Option(..., "--company-id"),
    email: str = typer.Option(..., "--email"),
    full_name: str = typer.Option("", "--full-name"),
    role: str = typer.Option("user", "--role"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        if not repo.get_company(company_id):
            raise typer.BadParameter(f"company {company_id} not found")
        user = repo.create_user(company_id=company_id, email=email, full_name=full_name, role=role)
        _echo({"id": user.id, "email": user.email, "company_id": user.company_id})


@jobs_app.command("create")
def jobs_create(
    company_id: int = typer.Option(..., "--company-id"),
    title: str = typer.Option(..., "--title"),
    location: str = typer.Option("", "--location"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        if not repo.get_company(company_id):
            raise typer.BadParameter(f"company {company_id} not found")
        job = repo.create_job(company_id=company_id, title=title, location=location)
        _echo({"id": job.id, "title": job.title, "company_id": job.company_id})


@jobs_app.command("list")
def jobs_list(company_id: int = typer.Option(..., "--company-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        jobs = Repository(db).list_jobs_by_company(company_id)
        _echo(
            [
                {
                    "id": job.id,
                    "title": job.title,
                    "location": job.location,
                    "status": job.status,
                    "created_at": job.created_at.isoformat() if job.created_at else None,
                }
                for job in jobs
            ]
        )


@tokens_app.command("issue")
def tokens_issue(
    user_id: int = typer.Option(..., "--user-id"),
    tenant_id: int | None = typer.Option(None, "--tenant-id", help="Act on another tenant than the user's own"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with SessionLocal() as db:
        repo = Repository(db)
        if not repo.get_user(user_id):
            raise typer.BadParameter(f"user {user_id} not found")
        if tenant_id is not None and not repo.get_company(tenant_id):
            raise typer.BadParameter(f"company {tenant_id} not found")
        auth_session = repo.create_auth_session(
            user_id=user_id,
            ttl_minutes=settings.session_ttl_min,
            active_tenant_id=tenant_id,
        )
        _echo({"token": auth_session.token, "expires_at": auth_session.expires_at.isoformat()})


@analytics_app.command("conversions")
def analytics_conversions(
    company_id: int = typer.Option(..., "--company-id"),
    start_date: datetime | None = typer.Option(None, "--start-date"),
    end_date: datetime | None = typer.Option(None, "--end-date"),
) -> None:
    configure_logging()
    ensure_initialized()
    date_range = _date_range(start_date, end_date)
    with SessionLocal() as db:
        summary = FunnelTracker(db).conversion_summary(company_id, date_range)
        _echo(summary.model_dump(mode="json", by_alias=True))


@analytics_app.command("sources")
def analytics_sources(
    company_id: int = typer.Option(..., "--company-id"),
    start_date: datetime | None = typer.Option(None, "--start-date"),
    end_date: datetime | None = typer.Option(None, "--end-date"),
) -> None:
    configure_logging()
    ensure_initialized()
    date_range = _date_range(start_date, end_date)
    with SessionLocal() as db:
        rows = FunnelTracker(db).source_performance(company_id, date_range)
        _echo([row.model_dump(mode="json", by_alias=True) for row in rows])


@analytics_app.command("devices")
def analytics_devices(company_id: int = typer.Option(..., "--company-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        breakdown = FunnelTracker(db).device_breakdown(company_id)
        _echo(breakdown.model_dump(mode="json", by_alias=True))


@analytics_app.command("job-forms")
def analytics_job_forms(
    company_id: int = typer.Option(..., "--company-id"),
    job_id: int = typer.Option(..., "--job-id"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            rows = FunnelTracker(db).job_form_analytics(company_id, job_id)
        except RecruitFlowError as exc:
            raise typer.BadParameter(exc.message) from exc
        _echo(
            [
                {
                    "id": row.id,
                    "session_id": row.session_id,
                    "source": row.source,
                    "device_type": row.device_type,
                    "browser_name": row.browser_name,
                    "form_completed": row.form_completed,
                    "submitted": row.submitted,
                    "start_time": row.start_time.isoformat() if row.start_time else None,
                }
                for row in rows
            ]
        )


@analytics_app.command("job-views")
def analytics_job_views(company_id: int = typer.Option(..., "--company-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        trend = FunnelTracker(db).job_view_trend(company_id)
        _echo(trend.model_dump(mode="json", by_alias=True))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
