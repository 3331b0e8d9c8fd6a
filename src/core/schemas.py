from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, use_enum_values=True, extra="forbid"
    )


class CamelCaseBase(Base):
    """Serializes field names as camelCase for browser clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(Base):
    message: str
