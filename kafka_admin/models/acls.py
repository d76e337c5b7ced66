from pydantic import BaseModel, Field
from typing import List

from kafka_admin.domain.models.acl import AccessControlEntry, Resource


class ResourceAcls(BaseModel):
    resource: Resource
    acls: List[AccessControlEntry]


class AclChange(BaseModel):
    acls: List[AccessControlEntry] = Field(..., description="Entries to add or remove")
