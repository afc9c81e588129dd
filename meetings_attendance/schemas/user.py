# meetings_attendance/schemas/user.py
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocalUserCreate(BaseModel):
    email: str = Field(..., min_length=3, examples=["alice@example.edu"])
    full_name: str = Field(default="", examples=["Alice Example"])

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("email must contain '@'")
        return value


class LocalUserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
