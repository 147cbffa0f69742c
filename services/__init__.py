"""Package placeholder for services modules."""

from services.orchestrator import ServiceOrchestrator
from services.service import Service, ServiceTimings

__all__ = ["Service", "ServiceOrchestrator", "ServiceTimings"]
