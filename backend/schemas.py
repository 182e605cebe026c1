"""
backend/schemas.py

Pydantic request schemas for auth, projects, phases and profiles.
Wire names are camelCase (startDate, hoursPerWeek, developerIds); Python
attributes are snake_case.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from backend.models import PhaseStatus, ProjectStatus, Task, UserRole


class RequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


def check_date_order(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("endDate must not be before startDate")


# ========================================================================
# AUTH SCHEMAS
# ========================================================================

class RegisterRequest(RequestSchema):
    """Developer self-registration. Every profile field is required."""
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    school: str = Field(..., min_length=1, max_length=200)
    grade: str = Field(..., min_length=1, max_length=50)
    hours_per_week: float = Field(..., ge=0, le=168)
    resume: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    skills: List[str] = Field(default_factory=list)

    @field_validator("name", "school", "grade", "resume", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, v):
        if "@" not in v:
            raise ValueError("email must be a valid address")
        return v

    @field_validator("password")
    @classmethod
    def fit_bcrypt_limit(cls, v):
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes")
        return v


class LoginRequest(RequestSchema):
    """Owners log in with username, developers with email."""
    type: UserRole = UserRole.developer
    username: Optional[str] = None
    email: Optional[str] = None
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("username", mode="before")
    @classmethod
    def trim_username(cls, v):
        return _strip(v)


# ========================================================================
# PROJECT SCHEMAS
# ========================================================================

class ProjectCreateRequest(RequestSchema):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    status: ProjectStatus = ProjectStatus.planning

    @field_validator("name", "description", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _strip(v)

    @model_validator(mode="after")
    def check_dates(self):
        check_date_order(self.start_date, self.end_date)
        return self


class ProjectUpdateRequest(RequestSchema):
    """Partial project update; only submitted fields are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _strip(v)

    @field_validator("name", "description", "status", "start_date", "end_date")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


# Wire name -> model field for project updates
PROJECT_UPDATE_WIRE_FIELDS = {
    "name": "name",
    "description": "description",
    "status": "status",
    "startDate": "start_date",
    "endDate": "end_date",
}


class DeveloperIdsRequest(RequestSchema):
    developer_ids: List[str] = Field(..., min_length=1)

    @field_validator("developer_ids")
    @classmethod
    def non_blank_ids(cls, v):
        if any(not isinstance(i, str) or not i.strip() for i in v):
            raise ValueError("developerIds must be non-empty strings")
        return v


# ========================================================================
# PHASE SCHEMAS
# ========================================================================

class PhaseCreateRequest(RequestSchema):
    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    tasks: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v):
        return _strip(v)

    @field_validator("tasks")
    @classmethod
    def drop_blank_tasks(cls, v):
        return [t.strip() for t in v if t and t.strip()]

    @model_validator(mode="after")
    def check_dates(self):
        check_date_order(self.start_date, self.end_date)
        return self


class PhaseUpdateRequest(RequestSchema):
    """Status and/or full task list replacement. At least one is required."""
    status: Optional[PhaseStatus] = None
    tasks: Optional[List[Task]] = None
    expected_version: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def require_change(self):
        if self.status is None and self.tasks is None:
            raise ValueError("Provide status and/or tasks")
        return self


# ========================================================================
# PROFILE SCHEMAS
# ========================================================================

class ProfileUpdateRequest(RequestSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    school: Optional[str] = Field(None, min_length=1, max_length=200)
    grade: Optional[str] = Field(None, min_length=1, max_length=50)
    hours_per_week: Optional[float] = Field(None, ge=0, le=168)
    resume: Optional[str] = Field(None, min_length=1)
    skills: Optional[List[str]] = None

    @field_validator("name", "school", "grade", "resume", mode="before")
    @classmethod
    def trim_text(cls, v):
        return _strip(v)

    def submitted(self) -> dict:
        """Fields the client actually sent with a non-null value."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


DEVELOPER_ONLY_PROFILE_FIELDS = {"school", "grade", "hours_per_week", "resume", "skills"}


def describe_validation_errors(errors) -> str:
    """Flatten pydantic error dicts into one readable message."""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        msg = err.get("msg", "invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid input"
