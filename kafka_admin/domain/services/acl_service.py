"""Access-control entries grouped by resource."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Set

import kafka.errors as Errors

from kafka_admin.core.exceptions import AdminOperationError, PreconditionError
from kafka_admin.domain.models.acl import AccessControlEntry, Resource
from kafka_admin.infra.kafka.admin import KafkaAdminFacade

logger = logging.getLogger(__name__)


class AccessControlCoordinator:
    """
    Synchronous CRUD over ACLs. No polling and no retries: the store's client
    already retries transient network issues. Adding is a union with the
    existing entries of a resource; removing is a set difference.
    """

    def __init__(self, store: KafkaAdminFacade) -> None:
        self._store = store

    # ------------------------------------------------------------------ #
    # Queries                                                             #
    # ------------------------------------------------------------------ #
    def get_acls(self) -> Dict[Resource, Set[AccessControlEntry]]:
        logger.debug("Fetching all ACLs")
        return self._describe("get_acls", "*")

    def get_acls_for_principal(self, principal: Optional[str]) -> Dict[Resource, Set[AccessControlEntry]]:
        if not principal:
            raise PreconditionError("principal cannot be null", operation="get_acls")
        logger.debug("Fetching all ACLs for principal [%s]", principal)
        return self._describe("get_acls", principal, principal=principal)

    def get_acls_for_resource(self, resource: Optional[Resource]) -> Set[AccessControlEntry]:
        _require_resource(resource, "get_acls")
        logger.debug("Fetching all ACLs for resource [%s]", resource)
        return self._describe("get_acls", str(resource), resource=resource).get(resource, set())

    # ------------------------------------------------------------------ #
    # Commands                                                            #
    # ------------------------------------------------------------------ #
    def add_acls(self, aces: Optional[Iterable[AccessControlEntry]], resource: Optional[Resource]) -> None:
        aces = _require_aces(aces, "add_acls")
        _require_resource(resource, "add_acls")
        logger.debug("Adding ACLs %s for resource [%s]", aces, resource)
        try:
            self._store.create_acls(aces, resource)
        except Errors.KafkaError as exc:
            raise AdminOperationError(f"Unable to add ACLs for resource: {resource}",
                                      operation="add_acls", target=str(resource)) from exc

    def remove_acls(self, aces: Optional[Iterable[AccessControlEntry]], resource: Optional[Resource]) -> None:
        aces = _require_aces(aces, "remove_acls")
        _require_resource(resource, "remove_acls")
        logger.debug("Removing ACLs %s for resource [%s]", aces, resource)
        try:
            self._store.delete_acls(aces, resource)
        except Errors.KafkaError as exc:
            raise AdminOperationError(f"Unable to remove ACLs for resource: {resource}",
                                      operation="remove_acls", target=str(resource)) from exc

    def _describe(self, operation: str, target: str, **filters) -> Dict[Resource, Set[AccessControlEntry]]:
        try:
            return self._store.describe_acls(**filters)
        except Errors.KafkaError as exc:
            raise AdminOperationError(f"Unable to retrieve ACLs for {target}",
                                      operation=operation, target=target) from exc


def _require_resource(resource: Optional[Resource], operation: str) -> None:
    if resource is None:
        raise PreconditionError("resource cannot be null", operation=operation)


def _require_aces(aces: Optional[Iterable[AccessControlEntry]], operation: str) -> Set[AccessControlEntry]:
    if aces is None:
        raise PreconditionError("acls cannot be null", operation=operation)
    return set(aces)
