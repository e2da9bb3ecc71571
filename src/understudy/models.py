"""Pydantic models for the data properties of stub doubles."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PropertyOptions(BaseModel):
    """How a stub property is exposed."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: Any = Field(None, description="Fixed value returned by the property")
    enumerable: bool = Field(
        True, description="Whether the property is passed through to the double"
    )


class StubProperty(BaseModel):
    """A fixed, read-only data property attached to a stub."""

    name: str = Field(..., min_length=1, description="Attribute name on the stub")
    options: PropertyOptions = Field(default_factory=PropertyOptions)
