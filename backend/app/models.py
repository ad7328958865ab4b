from __future__ import annotations
from datetime import date, datetime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Float, Date, DateTime, ForeignKey, func, Index


class Base(DeclarativeBase):
    pass


class Organization(Base):
    __tablename__ = "organizations"

    org_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")

    projects: Mapped[list[Project]] = relationship(
        back_populates="org", cascade="all, delete-orphan"
    )


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    last_name: Mapped[str | None] = mapped_column(String)

    volunteering: Mapped[list[Volunteer]] = relationship(back_populates="user")


class Project(Base):
    __tablename__ = "projects"

    project_id: Mapped[str] = mapped_column(String, primary_key=True)
    org_id: Mapped[str] = mapped_column(ForeignKey("organizations.org_id"), index=True)

    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    status: Mapped[str] = mapped_column(String, default="active", index=True)  # active/completed/archived
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)

    # environmental impact reported for the project
    co2_saved: Mapped[float] = mapped_column(Float, default=0.0)
    trees_planted: Mapped[float] = mapped_column(Float, default=0.0)
    waste_reduced: Mapped[float] = mapped_column(Float, default=0.0)

    # social impact reported for the project
    lives_impacted: Mapped[float] = mapped_column(Float, default=0.0)
    communities_served: Mapped[float] = mapped_column(Float, default=0.0)
    education_hours: Mapped[float] = mapped_column(Float, default=0.0)

    org: Mapped[Organization] = relationship(back_populates="projects")
    volunteers: Mapped[list[Volunteer]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )
    certificates: Mapped[list[Certificate]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )


class Volunteer(Base):
    """A user's registration on a project, with the hours they put in."""

    __tablename__ = "volunteers"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.project_id"), index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.user_id"), index=True)

    hours_contributed: Mapped[float] = mapped_column(Float, default=0.0)

    project: Mapped[Project] = relationship(back_populates="volunteers")
    user: Mapped[User] = relationship(back_populates="volunteering")


class Certificate(Base):
    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[str] = mapped_column(ForeignKey("projects.project_id"), index=True)
    user_id: Mapped[str] = mapped_column(String, index=True)

    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    project: Mapped[Project] = relationship(back_populates="certificates")


Index("ix_volunteers_project_user", Volunteer.project_id, Volunteer.user_id)
