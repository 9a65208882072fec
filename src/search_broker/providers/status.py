"""Mapping of control-plane lifecycle flags to instance status."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Tuple


class InstanceStatus(str, Enum):
    """Semantic status of a provisioned instance."""
    CREATING = "creating"
    AVAILABLE = "available"
    PROCESSING = "processing"
    UPGRADING = "upgrading"
    DELETED = "deleted"


@dataclass(frozen=True)
class LifecycleSnapshot:
    """Lifecycle flags reported by the control plane for one domain."""
    created: bool = False
    deleted: bool = False
    processing: bool = False
    upgrading: bool = False

    @classmethod
    def from_domain_status(cls, status: Mapping[str, Any]) -> "LifecycleSnapshot":
        """Read the flags from a boto3 ``DomainStatus`` structure.

        Missing flags count as false.
        """
        return cls(
            created=bool(status.get('Created', False)),
            deleted=bool(status.get('Deleted', False)),
            processing=bool(status.get('Processing', False)),
            upgrading=bool(status.get('UpgradeProcessing', False)),
        )


def resolve_status(snapshot: LifecycleSnapshot) -> InstanceStatus:
    """Resolve the semantic status; the first matching rule wins."""
    live = snapshot.created and not snapshot.deleted
    if live and snapshot.upgrading:
        return InstanceStatus.UPGRADING
    if live and snapshot.processing:
        return InstanceStatus.PROCESSING
    if snapshot.deleted:
        return InstanceStatus.DELETED
    if not snapshot.created:
        return InstanceStatus.CREATING
    return InstanceStatus.AVAILABLE


def is_ready(snapshot: LifecycleSnapshot) -> bool:
    """Whether the domain accepts traffic.

    Processing does not affect readiness: a domain applying a configuration
    change keeps serving.
    """
    return snapshot.created and not snapshot.deleted and not snapshot.upgrading


def resolve(snapshot: LifecycleSnapshot) -> Tuple[InstanceStatus, bool]:
    """Return the ``(status, ready)`` pair for a snapshot."""
    return resolve_status(snapshot), is_ready(snapshot)
