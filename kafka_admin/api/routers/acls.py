"""ACL endpoints, keyed by resource type and name."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from pydantic import ValidationError

from kafka_admin.api.dependencies import get_coordinator
from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.core.exceptions import PreconditionError
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.models.acls import AclChange, ResourceAcls

router = APIRouter()


def _resource(
    rtype: str = Path(..., description="Resource type, e.g. TOPIC or GROUP"),
    name: str = Path(..., description="Resource name"),
    pattern: str = Query(default="LITERAL", description="LITERAL or PREFIXED"),
) -> Resource:
    try:
        return Resource(resource_type=rtype, name=name, pattern_type=pattern)
    except ValidationError as exc:
        raise PreconditionError(f"invalid resource {rtype}/{name}: {exc}", operation="acls", target=name) from exc


def _sorted(aces) -> list[AccessControlEntry]:
    return sorted(aces, key=lambda a: (a.principal, a.host, a.operation, a.permission))


@router.get("/", response_model=list[ResourceAcls])
def list_acls(
    principal: str | None = Query(default=None, description="Only entries for this principal, e.g. User:alice"),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> list[ResourceAcls]:
    acl_map = svc.get_acls_for_principal(principal) if principal else svc.get_acls()
    return [
        ResourceAcls(resource=res, acls=_sorted(aces))
        for res, aces in sorted(acl_map.items(), key=lambda kv: str(kv[0]))
    ]


@router.get("/{rtype}/{name}", response_model=ResourceAcls)
def resource_acls(
    resource: Resource = Depends(_resource),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> ResourceAcls:
    return ResourceAcls(resource=resource, acls=_sorted(svc.get_acls_for_resource(resource)))


@router.post("/{rtype}/{name}", response_model=ResourceAcls)
def add_acls(
    payload: AclChange,
    resource: Resource = Depends(_resource),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> ResourceAcls:
    """Union *payload* into the entries of *resource*."""
    svc.add_acls(payload.acls, resource)
    return ResourceAcls(resource=resource, acls=_sorted(svc.get_acls_for_resource(resource)))


@router.delete("/{rtype}/{name}", response_model=ResourceAcls)
def remove_acls(
    payload: AclChange,
    resource: Resource = Depends(_resource),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> ResourceAcls:
    """Remove *payload* from the entries of *resource*."""
    svc.remove_acls(payload.acls, resource)
    return ResourceAcls(resource=resource, acls=_sorted(svc.get_acls_for_resource(resource)))
