"""Pydantic models for provider settings and plan configuration."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderSettings(BaseModel):
    """Process-wide settings shared by every provider call."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., min_length=1)
    account_id: str = Field(..., pattern="^[0-9]{12}$")
    security_group_id: Optional[str] = None
    subnet_ids: List[str] = Field(default_factory=list)
    # Domain names are limited to 28 characters; generated names add "-u" and 8 hex chars
    name_prefix: str = Field("es", min_length=1, max_length=18, pattern="^[a-z][a-z0-9-]*$")
    settle_delay: float = Field(10.0, ge=0, description="Seconds to wait before tagging a new domain")
    cache_clear_interval: float = Field(5.0, gt=0, description="Seconds between cache clears")
    billing_tag_key: str = Field("billingcode", min_length=1, max_length=128)

    @field_validator("subnet_ids", mode="before")
    @classmethod
    def split_subnet_ids(cls, v: Any) -> Any:
        """Accept the comma-separated form used in the environment."""
        if v is None:
            return []
        if isinstance(v, str):
            return [subnet.strip() for subnet in v.split(",") if subnet.strip()]
        return v

    @field_validator("security_group_id", mode="before")
    @classmethod
    def blank_security_group(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def network_placement_enabled(self) -> bool:
        """True when both a security group and at least one subnet are configured."""
        return bool(self.security_group_id) and bool(self.subnet_ids)


class ClusterConfig(BaseModel):
    """Node topology of a domain."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    instance_type: Optional[str] = Field(None, alias="InstanceType")
    instance_count: Optional[int] = Field(None, alias="InstanceCount", ge=1)
    dedicated_master_count: Optional[int] = Field(None, alias="DedicatedMasterCount", ge=1)

    @property
    def is_single_node(self) -> bool:
        """True for exactly one data node and no dedicated masters."""
        return self.instance_count == 1 and self.dedicated_master_count is None


class VPCOptions(BaseModel):
    """Network placement of a domain."""

    model_config = ConfigDict(populate_by_name=True)

    subnet_ids: List[str] = Field(default_factory=list, alias="SubnetIds")
    security_group_ids: List[str] = Field(default_factory=list, alias="SecurityGroupIds")


class DomainSettings(BaseModel):
    """Private plan configuration in the CreateElasticsearchDomain request shape.

    Keys this layer does not interpret are kept and passed through to the
    control plane unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    domain_name: Optional[str] = Field(None, alias="DomainName")
    elasticsearch_version: Optional[str] = Field(None, alias="ElasticsearchVersion")
    cluster_config: Optional[ClusterConfig] = Field(None, alias="ElasticsearchClusterConfig")
    vpc_options: Optional[VPCOptions] = Field(None, alias="VPCOptions")
    access_policies: Optional[str] = Field(None, alias="AccessPolicies")

    def to_request(self) -> Dict[str, Any]:
        """Render as boto3 keyword arguments."""
        return self.model_dump(by_alias=True, exclude_none=True)
