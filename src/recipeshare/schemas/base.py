"""Base schema configuration for all Pydantic models.

This module provides centralized base classes with consistent configuration.

Usage:
    - APIRequest: For incoming API request bodies
    - APIResponse: For outgoing API response bodies and core records
    - ExternalRecord: For rows of an external dataset fed to the bulk loader
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


# Exact in Python, a plain JSON number on the wire.
JsonDecimal = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class _BaseSchema(BaseModel):
    """Private base schema with common configuration.

    Do not use directly - inherit from one of the public subclasses.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,  # Accept both snake_case and camelCase
        use_enum_values=True,
        validate_default=True,
        serialize_by_alias=True,
    )


class APIRequest(_BaseSchema):
    """Base class for incoming API request schemas.

    Unknown fields sent by clients are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
    )


class APIResponse(_BaseSchema):
    """Base class for outgoing API response schemas.

    Only explicitly declared fields may be set.
    """

    model_config = ConfigDict(
        extra="forbid",
    )


class ExternalRecord(_BaseSchema):
    """Base class for records of an external dataset.

    Dataset exports carry columns the schema does not store; those are
    ignored rather than rejected.
    """

    model_config = ConfigDict(
        extra="ignore",
    )
