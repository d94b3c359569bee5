from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime, timezone

from duet.models.task import TaskKind, Interval, ActionKind


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC; SQLite would otherwise drop the offset"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        # bcrypt only reads the first 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value


class LoginRequest(Credentials):
    pass


class SignupRequest(Credentials):
    pass


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class ClaimsResponse(BaseModel):
    sub: str
    iss: str
    aud: str
    iat: int
    exp: int


class TaskCreate(BaseModel):
    kind: TaskKind = TaskKind.TASK
    title: str = Field(..., min_length=1, max_length=500)
    done: bool = False
    # Task fields
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    # Habit fields
    interval: Optional[Interval] = None
    frequency: Optional[int] = Field(None, ge=1)

    _utc_dates = field_validator("start_date", "end_date")(as_naive_utc)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TaskPatch(BaseModel):
    """Partial update: only fields explicitly set are written."""
    kind: Optional[TaskKind] = None
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    done: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    interval: Optional[Interval] = None
    frequency: Optional[int] = Field(None, ge=1)

    _utc_dates = field_validator("start_date", "end_date")(as_naive_utc)

    @model_validator(mode="after")
    def check_required_columns(self):
        for name in ("kind", "title", "done"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ActionCreate(BaseModel):
    task_id: str
    kind: ActionKind
    when: Optional[datetime] = None

    _utc_when = field_validator("when")(as_naive_utc)
