"""Resolution of plan configuration into Elasticsearch Service requests."""

import json
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from search_broker.config import DomainSettings, ProviderSettings, VPCOptions, parse_domain_settings
from search_broker.utils.logging import get_logger
from .base import ProviderPlan

logger = get_logger(__name__)

# Request keys accepted by UpdateElasticsearchDomainConfig besides DomainName
UPDATABLE_KEYS = frozenset({
    'AccessPolicies',
    'AdvancedOptions',
    'AdvancedSecurityOptions',
    'AutoTuneOptions',
    'CognitoOptions',
    'DomainEndpointOptions',
    'EBSOptions',
    'ElasticsearchClusterConfig',
    'EncryptionAtRestOptions',
    'LogPublishingOptions',
    'NodeToNodeEncryptionOptions',
    'SnapshotOptions',
    'VPCOptions',
})


@dataclass
class ResolvedRequest:
    """A fully resolved control-plane request for one domain."""
    domain_name: str
    params: Dict[str, Any]


def build_access_policy(region: str, account_id: str, domain_name: str) -> str:
    """Resource policy granting es:* on the named domain.

    The policy is broad at the resource level; tenants are isolated by
    network placement and the credential layer.
    """
    return json.dumps({
        'Version': '2012-10-17',
        'Statement': [{
            'Effect': 'Allow',
            'Principal': {'AWS': '*'},
            'Action': 'es:*',
            'Resource': f'arn:aws:es:{region}:{account_id}:domain/{domain_name}/*'
        }]
    }, separators=(',', ':'))


class PlanResolver:
    """Merges a plan's private configuration with the environment settings."""

    def __init__(self, settings: ProviderSettings, name_factory: Optional[Callable[[], str]] = None):
        """Initialize plan resolver.

        Args:
            settings: Provider settings with region, account and network values
            name_factory: Optional generator of domain names, defaults to random names
        """
        self.settings = settings
        self._name_factory = name_factory or self.create_name

    def create_name(self) -> str:
        """Generate a random domain name under the configured prefix."""
        token = uuid.uuid4().hex[:8]
        return f"{self.settings.name_prefix}-u{token}"

    def select_subnets(self, domain: DomainSettings) -> List[str]:
        """Pick subnets for a domain's topology.

        A single data node without dedicated masters can only live in one
        availability zone, so only the first subnet is used; every other
        topology spans all configured subnets.
        """
        if domain.cluster_config is not None and domain.cluster_config.is_single_node:
            return self.settings.subnet_ids[:1]
        return list(self.settings.subnet_ids)

    def apply_network_placement(self, domain: DomainSettings) -> None:
        if self.settings.network_placement_enabled:
            domain.vpc_options = VPCOptions(
                subnet_ids=self.select_subnets(domain),
                security_group_ids=[self.settings.security_group_id],
            )
        else:
            domain.vpc_options = None

    def _resolve(self, plan: ProviderPlan, domain_name: str) -> DomainSettings:
        domain = parse_domain_settings(plan.private_details.reveal())
        domain.domain_name = domain_name
        domain.access_policies = build_access_policy(
            self.settings.region, self.settings.account_id, domain_name
        )
        self.apply_network_placement(domain)
        return domain

    def resolve_create(self, plan: ProviderPlan) -> ResolvedRequest:
        """Resolve a CreateElasticsearchDomain request under a freshly generated name.

        Raises:
            ConfigurationError: If the plan configuration cannot be parsed
        """
        domain_name = self._name_factory()
        domain = self._resolve(plan, domain_name)
        logger.debug(
            f"Resolved create request for plan {plan.id} "
            f"(vpc={'yes' if domain.vpc_options else 'no'})",
            extra={'instance_name': domain_name, 'plan_id': plan.id, 'operation': 'resolve'}
        )
        return ResolvedRequest(domain_name=domain_name, params=domain.to_request())

    def resolve_update(self, plan: ProviderPlan, domain_name: str) -> ResolvedRequest:
        """Resolve an UpdateElasticsearchDomainConfig request for an existing domain.

        Raises:
            ConfigurationError: If the plan configuration cannot be parsed
        """
        domain = self._resolve(plan, domain_name)
        params = {
            key: value for key, value in domain.to_request().items()
            if key in UPDATABLE_KEYS
        }
        params['DomainName'] = domain_name
        logger.debug(
            f"Resolved update request for plan {plan.id} with keys {sorted(params)}",
            extra={'instance_name': domain_name, 'plan_id': plan.id, 'operation': 'resolve'}
        )
        return ResolvedRequest(domain_name=domain_name, params=params)
