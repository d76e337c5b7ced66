"""Topic endpoints: every mutation blocks until the change is visible cluster-wide."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, Response, status

from kafka_admin.api.dependencies import get_coordinator
from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.domain.models.topic import TOPIC_NAME_PATTERN, Topic
from kafka_admin.models.topics import (
    PartitionDetail,
    PartitionsRequest,
    TopicConfig,
    TopicConfigUpdate,
    TopicDetail,
    TopicSummary,
)

router = APIRouter()


# ---------- routes -------------------------------------------------------------
@router.get("/", response_model=list[TopicSummary])
def list_topics(
    q: str | None = Query(default=None, description="Name filter (contains)"),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> list[TopicSummary]:
    """Return topics with partition count and replication factor."""
    names = sorted(svc.get_topics())
    if q:
        names = [n for n in names if q.lower() in n.lower()]
    described = svc.describe_topics(names) if names else {}
    return [
        TopicSummary(name=d.name, partitions=d.partition_count, replicationFactor=d.replication_factor)
        for n in names
        if (d := described.get(n)) is not None
    ]


@router.get("/{topic_name}", response_model=TopicDetail)
def topic_detail(
    topic_name: str = Path(..., pattern=TOPIC_NAME_PATTERN),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> TopicDetail:
    d = svc.reader.describe_topic(topic_name)
    return TopicDetail(
        name=d.name,
        internal=d.internal,
        replicationFactor=d.replication_factor,
        partitions=[
            PartitionDetail(id=p.partition, leader=p.leader, replicas=p.replicas, isr=p.isr)
            for p in d.partitions
        ],
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=TopicSummary)
def create_topic(
    topic: Topic,
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> TopicSummary:
    """Create *topic* and wait for it to converge."""
    svc.create_topic(topic.name, topic.partitions, topic.replication_factor, topic.configs)
    return TopicSummary(name=topic.name, partitions=topic.partitions, replicationFactor=topic.replication_factor)


@router.delete("/{topic_name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_name: str = Path(..., pattern=TOPIC_NAME_PATTERN),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> Response:
    """Delete *topic_name*; deleting an unknown topic succeeds."""
    svc.delete_topic(topic_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{topic_name}/partitions", response_model=TopicSummary)
def add_partitions(
    payload: PartitionsRequest,
    topic_name: str = Path(..., pattern=TOPIC_NAME_PATTERN),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> TopicSummary:
    """Grow *topic_name* to ``payload.partitions`` partitions."""
    svc.add_topic_partitions(topic_name, payload.partitions)
    return TopicSummary(
        name=topic_name,
        partitions=payload.partitions,
        replicationFactor=svc.get_topic_replication_factor(topic_name),
    )


@router.get("/{topic_name}/config", response_model=TopicConfig)
def get_config(
    topic_name: str = Path(..., pattern=TOPIC_NAME_PATTERN),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> TopicConfig:
    """Return the dynamic overrides of *topic_name*."""
    return TopicConfig(name=topic_name, configs=svc.get_topic_config(topic_name))


@router.put("/{topic_name}/config", response_model=TopicConfig)
def put_config(
    payload: TopicConfigUpdate,
    topic_name: str = Path(..., pattern=TOPIC_NAME_PATTERN),
    svc: KafkaAdminCoordinator = Depends(get_coordinator),
) -> TopicConfig:
    svc.update_topic_config(topic_name, payload.configs)
    return TopicConfig(name=topic_name, configs=payload.configs)
