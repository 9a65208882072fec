"""Base provider interface and domain model."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .status import InstanceStatus


class ProviderKind(str, Enum):
    """Provider identifiers a plan may declare."""
    AWS_ES = "aws-es"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str) -> "ProviderKind":
        """Map a plan's provider string, falling back to UNKNOWN."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.UNKNOWN


class PlanDetails:
    """Opaque holder for a plan's private configuration.

    Masks itself when printed and refuses to be pickled or copied, so the
    configuration cannot leave the process through generic serialization.
    Only the provider that understands it calls ``reveal``.
    """

    __slots__ = ('_value',)

    def __init__(self, value: str = ""):
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __bool__(self) -> bool:
        return bool(self._value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PlanDetails) and other._value == self._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return "PlanDetails('**********')"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError("Private plan details cannot be serialized")


class ProviderPlan(BaseModel):
    """A plan template selecting a provider.

    Only ``id``, ``provider`` and ``scheme`` are model fields; the private
    configuration is a pydantic private attribute and is never part of
    ``model_dump`` or ``model_dump_json`` output.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    provider: ProviderKind
    scheme: str = "https"

    _details: PlanDetails = PrivateAttr(default_factory=PlanDetails)

    def __init__(self, private_details: str = "", **data: Any):
        super().__init__(**data)
        self._details = PlanDetails(private_details)

    @field_validator("provider", mode="before")
    @classmethod
    def parse_provider(cls, v: Any) -> Any:
        if isinstance(v, str) and not isinstance(v, ProviderKind):
            return ProviderKind.from_string(v)
        return v

    @property
    def private_details(self) -> PlanDetails:
        return self._details


@dataclass(frozen=True)
class Instance:
    """A provisioned search cluster.

    Instances are immutable; derive changed copies with ``dataclasses.replace``.
    """
    id: str
    name: str
    provider_id: str
    plan: ProviderPlan
    endpoint: str = ""
    scheme: str = "https"
    status: InstanceStatus = InstanceStatus.CREATING
    ready: bool = False
    engine: str = ""
    engine_version: str = ""
    # Credentials belong to a different collaborator; providers leave them empty
    username: str = field(default="", repr=False)
    password: str = field(default="", repr=False)

    def to_public_dict(self) -> Dict[str, Any]:
        """Projection safe to return to callers outside the broker."""
        return {
            'id': self.id,
            'name': self.name,
            'provider_id': self.provider_id,
            'plan': self.plan.model_dump(mode='json'),
            'endpoint': self.endpoint,
            'scheme': self.scheme,
            'status': self.status.value,
            'ready': self.ready,
            'engine': self.engine,
            'engine_version': self.engine_version,
        }


class Provider(ABC):
    """Uniform lifecycle contract over one control plane."""

    kind: ProviderKind = ProviderKind.UNKNOWN

    @abstractmethod
    def get_instance(self, name: str, plan: ProviderPlan) -> Instance:
        """Describe an instance by name.

        Raises:
            NotFoundError: If the control plane has no such resource
            TransientProviderError: On network or control-plane failures
        """

    @abstractmethod
    def provision(self, instance_id: str, plan: ProviderPlan, owner: str) -> Instance:
        """Create a new instance and tag it with its owner."""

    @abstractmethod
    def deprovision(self, instance: Instance, take_snapshot: bool) -> None:
        """Delete an instance."""

    @abstractmethod
    def modify(self, instance: Instance, plan: ProviderPlan) -> Instance:
        """Apply a plan's configuration to an existing instance."""

    @abstractmethod
    def tag(self, instance: Instance, key: str, value: str) -> None:
        """Attach a key-value tag to the instance's resource."""

    @abstractmethod
    def untag(self, instance: Instance, key: str) -> None:
        """Remove a tag from the instance's resource."""

    @abstractmethod
    def get_url(self, instance: Instance) -> Dict[str, str]:
        """Named connection URLs for an instance."""

    def perform_post_provision(self, instance: Instance) -> Instance:
        """Hook run after provisioning; returns the instance unchanged by default."""
        return instance

    def close(self) -> None:
        """Release background resources held by the provider."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
