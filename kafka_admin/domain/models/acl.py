"""Access-control entry and resource models.

The enum types are kafka-python's own (``kafka.admin``) so that entries convert
to and from wire ACLs without a translation table. On input the enum fields
accept either the numeric wire value or the member name (``"TOPIC"``,
``"read"``); on output they serialise as the member name.
"""
from __future__ import annotations

from enum import IntEnum

from kafka.admin import ACLOperation, ACLPermissionType, ACLResourcePatternType, ResourceType
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def _enum_by_name(enum_type: type[IntEnum], v):
    if isinstance(v, str) and not v.isdigit():
        try:
            return enum_type[v.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown {enum_type.__name__}: {v}") from None
    return v


class Resource(BaseModel):
    """Target of a group of ACEs, e.g. topic ``orders``."""

    model_config = ConfigDict(frozen=True)

    resource_type: ResourceType
    name: str = Field(..., min_length=1)
    pattern_type: ACLResourcePatternType = ACLResourcePatternType.LITERAL

    @field_validator("resource_type", mode="before")
    @classmethod
    def _resource_type(cls, v):
        return _enum_by_name(ResourceType, v)

    @field_validator("pattern_type", mode="before")
    @classmethod
    def _pattern_type(cls, v):
        return _enum_by_name(ACLResourcePatternType, v)

    @field_serializer("resource_type", "pattern_type")
    def _names(self, v: IntEnum) -> str:
        return v.name

    def __str__(self) -> str:
        return f"{self.resource_type.name}:{self.pattern_type.name}:{self.name}"


class AccessControlEntry(BaseModel):
    """One permission grant or deny, e.g. ``User:alice`` may READ from any host."""

    model_config = ConfigDict(frozen=True)

    principal: str = Field(..., min_length=1, examples=["User:alice"])
    host: str = "*"
    operation: ACLOperation
    permission: ACLPermissionType = ACLPermissionType.ALLOW

    @field_validator("operation", mode="before")
    @classmethod
    def _operation(cls, v):
        return _enum_by_name(ACLOperation, v)

    @field_validator("permission", mode="before")
    @classmethod
    def _permission(cls, v):
        return _enum_by_name(ACLPermissionType, v)

    @field_serializer("operation", "permission")
    def _names(self, v: IntEnum) -> str:
        return v.name
