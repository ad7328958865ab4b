# backend/app/metrics_repository.py
from __future__ import annotations

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, sessionmaker

from .db import SessionLocal
from .models import Certificate, Organization, Project, User, Volunteer
from .schemas import (
    EnvironmentalImpact,
    GlobalImpactMetrics,
    OrganizationImpactMetrics,
    ProjectImpactMetrics,
    ProjectStatusCounts,
    SocialImpact,
    VolunteerContribution,
)

# statuses reported in project_statuses; anything else is not counted
PROJECT_STATUSES = ("active", "completed", "archived")


def _scoped(stmt: Select[Any], criteria: tuple[Any, ...]) -> Select[Any]:
    return stmt.where(*criteria) if criteria else stmt


def _average(hours: float, volunteers: int) -> float:
    return hours / volunteers if volunteers > 0 else 0.0


class MetricsRepository:
    """Computes impact snapshots from the system of record.

    Every call opens its own session, so one repository can be shared across
    threads. Aggregates are computed in SQL; empty scopes come back zeroed
    rather than failing.

    Args:
        session_factory: Callable returning a new SQLAlchemy ``Session``.
            Defaults to the app-wide ``SessionLocal``.
    """

    def __init__(self, session_factory: sessionmaker[Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    # ------------------------- aggregates -------------------------

    def _project_count(self, db: Session, *criteria: Any) -> int:
        stmt = _scoped(select(func.count(Project.project_id)), criteria)
        return int(db.execute(stmt).scalar_one())

    def _status_counts(self, db: Session, *criteria: Any) -> ProjectStatusCounts:
        stmt = _scoped(
            select(Project.status, func.count(Project.project_id)),
            criteria,
        ).group_by(Project.status)
        counts = dict.fromkeys(PROJECT_STATUSES, 0)
        for status, n in db.execute(stmt):
            if status in counts:
                counts[status] = int(n)
        return ProjectStatusCounts(**counts)

    def _volunteer_totals(self, db: Session, *criteria: Any) -> tuple[int, float]:
        """Return (distinct volunteers, hours contributed) over matching projects."""
        stmt = _scoped(
            select(
                func.count(func.distinct(Volunteer.user_id)),
                func.coalesce(func.sum(Volunteer.hours_contributed), 0.0),
            )
            .select_from(Volunteer)
            .join(Project, Volunteer.project_id == Project.project_id),
            criteria,
        )
        volunteers, hours = db.execute(stmt).one()
        return int(volunteers), float(hours)

    def _certificate_count(self, db: Session, *criteria: Any) -> int:
        stmt = _scoped(
            select(func.count(Certificate.id))
            .select_from(Certificate)
            .join(Project, Certificate.project_id == Project.project_id),
            criteria,
        )
        return int(db.execute(stmt).scalar_one())

    def _impact(self, db: Session, *criteria: Any) -> tuple[EnvironmentalImpact, SocialImpact]:
        columns = (
            Project.co2_saved,
            Project.trees_planted,
            Project.waste_reduced,
            Project.lives_impacted,
            Project.communities_served,
            Project.education_hours,
        )
        stmt = _scoped(select(*(func.coalesce(func.sum(c), 0.0) for c in columns)), criteria)
        co2, trees, waste, lives, communities, education = (
            float(v) for v in db.execute(stmt).one()
        )
        return (
            EnvironmentalImpact(co2_saved=co2, trees_planted=trees, waste_reduced=waste),
            SocialImpact(
                lives_impacted=lives,
                communities_served=communities,
                education_hours=education,
            ),
        )

    def _volunteer_breakdown(self, db: Session, project_id: str) -> list[VolunteerContribution]:
        """Hours per user on one project, ordered by user id."""
        stmt = (
            select(
                Volunteer.user_id,
                User.name,
                User.last_name,
                func.coalesce(func.sum(Volunteer.hours_contributed), 0.0),
            )
            .select_from(Volunteer)
            .outerjoin(User, Volunteer.user_id == User.user_id)
            .where(Volunteer.project_id == project_id)
            .group_by(Volunteer.user_id, User.name, User.last_name)
            .order_by(Volunteer.user_id)
        )
        return [
            VolunteerContribution(
                user_id=user_id,
                user_name=f"{name or ''} {last_name or ''}".strip(),
                hours_contributed=float(hours),
            )
            for user_id, name, last_name, hours in db.execute(stmt)
        ]

    # ------------------------- Public API -------------------------

    def get_global_metrics(self) -> GlobalImpactMetrics:
        with self._session_factory() as db:
            volunteers, hours = self._volunteer_totals(db)
            environmental, social = self._impact(db)
            organizations = db.execute(select(func.count(Organization.org_id))).scalar_one()

            return GlobalImpactMetrics(
                total_projects=self._project_count(db),
                total_volunteers=volunteers,
                total_organizations=int(organizations),
                total_hours_volunteered=hours,
                total_certificates_issued=self._certificate_count(db),
                average_hours_per_volunteer=_average(hours, volunteers),
                project_statuses=self._status_counts(db),
                environmental_impact=environmental,
                social_impact=social,
            )

    def get_organization_metrics(self, organization_id: str) -> OrganizationImpactMetrics | None:
        """Return the organization's metrics, or None if it does not exist."""
        with self._session_factory() as db:
            org = db.get(Organization, organization_id)
            if org is None:
                return None

            scope = Project.org_id == organization_id
            volunteers, hours = self._volunteer_totals(db, scope)
            environmental, social = self._impact(db, scope)

            return OrganizationImpactMetrics(
                organization_id=organization_id,
                organization_name=org.name,
                total_projects=self._project_count(db, scope),
                total_volunteers=volunteers,
                total_hours_volunteered=hours,
                total_certificates_issued=self._certificate_count(db, scope),
                average_hours_per_volunteer=_average(hours, volunteers),
                project_statuses=self._status_counts(db, scope),
                environmental_impact=environmental,
                social_impact=social,
            )

    def get_project_metrics(self, project_id: str) -> ProjectImpactMetrics | None:
        """Return the project's metrics, or None if it does not exist."""
        with self._session_factory() as db:
            project = db.get(Project, project_id)
            if project is None:
                return None

            scope = Project.project_id == project_id
            volunteers, hours = self._volunteer_totals(db, scope)
            environmental, social = self._impact(db, scope)

            return ProjectImpactMetrics(
                project_id=project_id,
                project_name=project.name,
                organization_id=project.org_id,
                organization_name=project.org.name,
                status=project.status,
                start_date=project.start_date,
                end_date=project.end_date,
                total_volunteers=volunteers,
                total_hours_volunteered=hours,
                total_certificates_issued=self._certificate_count(db, scope),
                volunteer_breakdown=self._volunteer_breakdown(db, project_id),
                environmental_impact=environmental,
                social_impact=social,
            )
