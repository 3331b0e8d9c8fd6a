from datetime import datetime

from pydantic import ConfigDict, Field

from src.core.schemas import Base, CamelCaseBase


class Identity(Base):
    """Minimal claims carried by every session token."""

    id: str
    username: str

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class LoginRequestModel(Base):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponseModel(CamelCaseBase):
    message: str
    access_expires_at: datetime
    refresh_expires_at: datetime


class RefreshResponseModel(CamelCaseBase):
    message: str
    access_expires_at: datetime
    # Only present when refresh-token rotation is enabled
    refresh_expires_at: datetime | None = None


class IdentityViewModel(Base):
    id: str
    username: str
