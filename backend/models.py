from datetime import date
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


# Enums
class UserRole(str, Enum):
    owner = "owner"
    developer = "developer"


class ProjectStatus(str, Enum):
    planning = "Planning"
    in_progress = "In Progress"
    completed = "Completed"
    on_hold = "On Hold"


class PhaseStatus(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class Document(BaseModel):
    """Base for stored documents: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Identities
class BaseIdentity(Document):
    id: str
    name: str
    email: str
    password_hash: str = Field(exclude=True)
    assigned_projects: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class OwnerProfile(BaseIdentity):
    role: Literal["owner"] = "owner"
    username: str


class DeveloperProfile(BaseIdentity):
    role: Literal["developer"] = "developer"
    school: str
    grade: str
    hours_per_week: float = Field(ge=0)
    resume: str
    skills: List[str] = Field(default_factory=list)


Identity = Annotated[Union[OwnerProfile, DeveloperProfile], Field(discriminator="role")]
IdentityAdapter = TypeAdapter(Identity)


# Projects and phases
class Task(Document):
    name: str = Field(..., min_length=1)
    completed: bool = False
    assigned_to: Optional[str] = None


class Project(Document):
    id: str
    name: str
    description: str
    status: ProjectStatus = ProjectStatus.planning
    start_date: date
    end_date: date
    owner_id: str
    assigned_developers: List[str] = Field(default_factory=list)
    phases: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def has_developer(self, user_id: str) -> bool:
        return user_id in self.assigned_developers


class Phase(Document):
    id: str
    project_id: str
    name: str
    status: PhaseStatus = PhaseStatus.pending
    start_date: date
    end_date: date
    tasks: List[Task] = Field(default_factory=list)
    version: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
