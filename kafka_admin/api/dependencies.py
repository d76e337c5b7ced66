"""Global reusable FastAPI dependencies."""
from fastapi import Request

from kafka_admin.coordinator import KafkaAdminCoordinator


def get_coordinator(request: Request) -> KafkaAdminCoordinator:
    """Return the coordinator created by the application lifespan."""
    return request.app.state.coordinator
