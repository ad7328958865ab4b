from datetime import date

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt
from pydantic.alias_generators import to_camel


class _Snapshot(BaseModel):
    # camelCase on the wire; every field required, nothing extra accepted.
    # inf/nan are rejected since JSON would write them as null.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
        allow_inf_nan=False,
    )


class EnvironmentalImpact(_Snapshot):
    co2_saved: NonNegativeFloat
    trees_planted: NonNegativeFloat
    waste_reduced: NonNegativeFloat


class SocialImpact(_Snapshot):
    lives_impacted: NonNegativeFloat
    communities_served: NonNegativeFloat
    education_hours: NonNegativeFloat


class ProjectStatusCounts(_Snapshot):
    active: NonNegativeInt
    completed: NonNegativeInt
    archived: NonNegativeInt


class VolunteerContribution(_Snapshot):
    user_id: str
    user_name: str
    hours_contributed: NonNegativeFloat


class GlobalImpactMetrics(_Snapshot):
    total_projects: NonNegativeInt
    total_volunteers: NonNegativeInt
    total_organizations: NonNegativeInt
    total_hours_volunteered: NonNegativeFloat
    total_certificates_issued: NonNegativeInt
    average_hours_per_volunteer: NonNegativeFloat
    project_statuses: ProjectStatusCounts
    environmental_impact: EnvironmentalImpact
    social_impact: SocialImpact


class OrganizationImpactMetrics(_Snapshot):
    organization_id: str = Field(min_length=1)
    organization_name: str
    total_projects: NonNegativeInt
    total_volunteers: NonNegativeInt
    total_hours_volunteered: NonNegativeFloat
    total_certificates_issued: NonNegativeInt
    average_hours_per_volunteer: NonNegativeFloat
    project_statuses: ProjectStatusCounts
    environmental_impact: EnvironmentalImpact
    social_impact: SocialImpact


class ProjectImpactMetrics(_Snapshot):
    project_id: str = Field(min_length=1)
    project_name: str
    organization_id: str
    organization_name: str
    status: str
    start_date: date | None
    end_date: date | None
    total_volunteers: NonNegativeInt
    total_hours_volunteered: NonNegativeFloat
    total_certificates_issued: NonNegativeInt
    volunteer_breakdown: tuple[VolunteerContribution, ...]
    environmental_impact: EnvironmentalImpact
    social_impact: SocialImpact
