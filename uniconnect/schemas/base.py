from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel


def _trim_lower(v):
    return v.strip().lower() if isinstance(v, str) else v


# Emails are compared case- and whitespace-insensitively everywhere
NormalizedEmail = Annotated[EmailStr, BeforeValidator(_trim_lower)]


class CamelModel(BaseModel):
    """
    The frontend speaks camelCase (fullName, linkedIn, createdAt).
    Responses are emitted with camelCase aliases; requests accept either form.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
