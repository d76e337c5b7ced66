"""Consumer-group listing and read-only inspection."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query

from kafka_admin.api.dependencies import get_coordinator
from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.models.consumers import (
    AssignedPartition,
    ConsumerGroupRow,
    ConsumerRow,
    GroupDetail,
    PartitionAssignment,
)

router = APIRouter()


@router.get("/", response_model=list[ConsumerGroupRow])
def list_consumer_groups(
    q: str | None = Query(default=None, description="Substring filter applied to group IDs (case-insensitive)."),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> list[ConsumerGroupRow]:
    rows = [ConsumerGroupRow(groupId=g, protocolType=p) for g, p in svc.list_consumer_groups()]
    if q:
        rows = [r for r in rows if q.lower() in r.groupId.lower()]
    return sorted(rows, key=lambda r: r.groupId)


@router.get("/{gid}", response_model=GroupDetail)
def group_detail(
    gid: str = Path(..., description="Consumer-group ID"),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> GroupDetail:
    """Return state and members of *gid*; an unknown group is reported as ``Dead``."""
    summary = svc.get_consumer_group_summary(gid)
    return GroupDetail(
        groupId=summary.group_id,
        state=summary.state,
        protocol=summary.protocol,
        consumers=[
            ConsumerRow(
                memberId=c.member_id,
                clientId=c.client_id,
                host=c.host,
                assignment=[AssignedPartition(topic=tp.topic, partition=tp.partition) for tp in c.assignment],
            )
            for c in summary.consumers
        ],
    )


@router.get("/{gid}/assignments", response_model=list[PartitionAssignment])
def group_assignments(
    gid: str = Path(..., description="Consumer-group ID"),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> list[PartitionAssignment]:
    assignments = svc.get_consumer_group_assignments(gid)
    return [
        PartitionAssignment(topic=tp.topic, partition=tp.partition, clientId=client_id)
        for tp, client_id in sorted(assignments.items())
    ]
