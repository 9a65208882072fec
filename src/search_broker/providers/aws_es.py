"""Amazon Elasticsearch Service provider."""

import time
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional, Type

from botocore.exceptions import BotoCoreError, ClientError

from search_broker.config import ProviderSettings
from search_broker.utils.aws_client import AWSClientManager
from search_broker.utils.errors import (
    BrokerError,
    DeprovisionError,
    ErrorContext,
    ModifyError,
    PartialProvisionError,
    ProvisionError,
    TaggingError,
    TransientProviderError,
    error_handler,
)
from search_broker.utils.logging import get_logger
from .base import Instance, Provider, ProviderKind, ProviderPlan
from .cache import CacheJanitor, InstanceCache
from .plan_resolver import PlanResolver
from .status import LifecycleSnapshot, resolve

logger = get_logger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)


class AWSElasticsearchProvider(Provider):
    """Provider for Amazon Elasticsearch Service domains."""

    kind = ProviderKind.AWS_ES
    ENGINE = "elasticsearch"

    def __init__(
        self,
        settings: ProviderSettings,
        client: Any = None,
        client_manager: Optional[AWSClientManager] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize Elasticsearch provider.

        Args:
            settings: Provider settings (region, account, network, timings)
            client: Optional preconfigured boto3 ``es`` client
            client_manager: Optional client manager used when no client is given
            sleep: Blocking wait used for the settling delay
        """
        self.settings = settings
        if client is None:
            client_manager = client_manager or AWSClientManager(region=settings.region)
            client = client_manager.get_client('es')
        self.es_client = client
        self.resolver = PlanResolver(settings)
        self.cache = InstanceCache()
        self._sleep = sleep
        self._janitor = CacheJanitor(self.cache, settings.cache_clear_interval).start()
        logger.info(
            f"Initialized Elasticsearch provider - Region: {settings.region}, "
            f"VPC placement: {'enabled' if settings.network_placement_enabled else 'disabled'}"
        )

    def get_instance(self, name: str, plan: ProviderPlan) -> Instance:
        """Describe a domain, serving recent results from the cache.

        Args:
            name: Domain name
            plan: Plan the instance was provisioned with

        Returns:
            Instance built from the current domain status

        Raises:
            NotFoundError: If no domain has this name
            TransientProviderError: On network or control-plane failures
        """
        cached = self.cache.get(name, plan.id)
        if cached is not None:
            logger.debug("Serving instance from cache", extra={'instance_name': name, 'plan_id': plan.id})
            return cached

        context = ErrorContext(
            instance_name=name,
            plan_id=plan.id,
            operation='get_instance',
            aws_operation='DescribeElasticsearchDomain'
        )
        status = self._describe(name, context)

        # Instance ids are owned by the caller, not the control plane
        instance = self._to_instance('', name, plan, status)
        self.cache.put(instance)
        return instance

    def provision(self, instance_id: str, plan: ProviderPlan, owner: str) -> Instance:
        """Create a domain and tag it with its billing owner.

        Args:
            instance_id: Caller-assigned identifier
            plan: Plan to provision
            owner: Billing code written to the owner tag

        Returns:
            Instance for the new domain

        Raises:
            ConfigurationError: If the plan configuration cannot be parsed
            ProvisionError: If the control plane rejects the request
            PartialProvisionError: If the domain was created but not tagged
        """
        request = self.resolver.resolve_create(plan)
        context = ErrorContext(
            instance_name=request.domain_name,
            plan_id=plan.id,
            operation='provision',
            aws_operation='CreateElasticsearchDomain'
        )

        start = time.monotonic()
        try:
            response = self.es_client.create_elasticsearch_domain(**request.params)
        except AWS_ERRORS as e:
            raise self._fail(e, context, ProvisionError) from e

        instance = self._to_instance(instance_id, request.domain_name, plan, response['DomainStatus'])
        self._remember(instance)
        logger.info(
            f"Created domain {instance.name} for plan {plan.id}",
            extra={
                'instance_name': instance.name,
                'plan_id': plan.id,
                'operation': 'provision',
                'duration': round(time.monotonic() - start, 3),
            }
        )

        # A new domain cannot be tagged until the control plane has indexed its ARN
        self._sleep(self.settings.settle_delay)

        try:
            self.tag(instance, self.settings.billing_tag_key, owner)
        except BrokerError as e:
            error = PartialProvisionError(
                f"Domain {instance.name} was created but tagging it with owner {owner!r} failed",
                instance=instance,
                context=context,
                cause=e,
                suggestions=[
                    f"Describe domain {instance.name} before retrying; a new provision creates a second domain",
                    f"Tag the domain manually with {self.settings.billing_tag_key}={owner}"
                ]
            )
            error_handler.log_error(error)
            raise error from e

        return instance

    def modify(self, instance: Instance, plan: ProviderPlan) -> Instance:
        """Apply a plan to an existing domain and return its updated state.

        Raises:
            ConfigurationError: If the plan configuration cannot be parsed
            ModifyError: If the control plane rejects the update
            NotFoundError: If the domain no longer exists
            TransientProviderError: If the updated state cannot be read back
        """
        request = self.resolver.resolve_update(plan, instance.name)
        context = ErrorContext(
            instance_name=instance.name,
            plan_id=plan.id,
            operation='modify',
            aws_operation='UpdateElasticsearchDomainConfig'
        )

        try:
            self.es_client.update_elasticsearch_domain_config(**request.params)
        except AWS_ERRORS as e:
            raise self._fail(e, context, ModifyError) from e

        context.aws_operation = 'DescribeElasticsearchDomain'
        status = self._describe(instance.name, context)

        updated = self._to_instance(instance.id, instance.name, plan, status)
        self._remember(updated)
        logger.info(
            f"Updated domain {instance.name} to plan {plan.id}",
            extra={'instance_name': instance.name, 'plan_id': plan.id, 'operation': 'modify'}
        )
        return updated

    def deprovision(self, instance: Instance, take_snapshot: bool) -> None:
        """Delete a domain.

        Cached entries for the domain remain until the next cache clear.

        Raises:
            DeprovisionError: If the control plane rejects the delete
            NotFoundError: If the domain does not exist
        """
        extra = {'instance_name': instance.name, 'plan_id': instance.plan.id, 'operation': 'deprovision'}
        if take_snapshot:
            logger.warning(
                "Final snapshot requested but not supported; deleting domain without one",
                extra=extra
            )

        context = ErrorContext(
            instance_name=instance.name,
            plan_id=instance.plan.id,
            operation='deprovision',
            aws_operation='DeleteElasticsearchDomain'
        )
        try:
            self.es_client.delete_elasticsearch_domain(DomainName=instance.name)
        except AWS_ERRORS as e:
            raise self._fail(e, context, DeprovisionError) from e

        logger.info(f"Deleted domain {instance.name}", extra=extra)

    def tag(self, instance: Instance, key: str, value: str) -> None:
        """Add a tag to the domain, addressed by its ARN.

        Raises:
            TaggingError: If the tag cannot be added
        """
        context = ErrorContext(
            instance_name=instance.name,
            plan_id=instance.plan.id,
            operation='tag',
            aws_operation='AddTags'
        )
        try:
            self.es_client.add_tags(
                ARN=instance.provider_id,
                TagList=[{'Key': key, 'Value': value}]
            )
        except AWS_ERRORS as e:
            raise self._fail(e, context, TaggingError) from e

        logger.debug(f"Tagged domain with {key}", extra={'instance_name': instance.name})

    def untag(self, instance: Instance, key: str) -> None:
        """Remove a tag from the domain, addressed by its ARN.

        Raises:
            TaggingError: If the tag cannot be removed
        """
        context = ErrorContext(
            instance_name=instance.name,
            plan_id=instance.plan.id,
            operation='untag',
            aws_operation='RemoveTags'
        )
        try:
            self.es_client.remove_tags(ARN=instance.provider_id, TagKeys=[key])
        except AWS_ERRORS as e:
            raise self._fail(e, context, TaggingError) from e

        logger.debug(f"Removed tag {key} from domain", extra={'instance_name': instance.name})

    def get_url(self, instance: Instance) -> Dict[str, str]:
        base_url = f"{instance.scheme}://{instance.endpoint}"
        return {
            'ES_URL': base_url,
            'KIBANA_URL': f"{base_url}/_plugin/kibana",
        }

    def close(self) -> None:
        self._janitor.stop()

    def _remember(self, instance: Instance) -> None:
        """Cache an instance without its caller-assigned id.

        Ids are owned by the caller, so cached reads match a fresh describe.
        """
        self.cache.put(replace(instance, id='') if instance.id else instance)

    def _describe(self, name: str, context: ErrorContext) -> Mapping[str, Any]:
        try:
            response = self.es_client.describe_elasticsearch_domain(DomainName=name)
        except AWS_ERRORS as e:
            raise self._fail(e, context, TransientProviderError) from e
        return response['DomainStatus']

    def _to_instance(
        self,
        instance_id: str,
        name: str,
        plan: ProviderPlan,
        status: Mapping[str, Any]
    ) -> Instance:
        state, ready = resolve(LifecycleSnapshot.from_domain_status(status))
        return Instance(
            id=instance_id,
            name=name,
            provider_id=status.get('ARN', ''),
            plan=plan,
            endpoint=self._endpoint(status),
            scheme=plan.scheme or 'https',
            status=state,
            ready=ready,
            engine=self.ENGINE,
            engine_version=status.get('ElasticsearchVersion', ''),
        )

    @staticmethod
    def _endpoint(status: Mapping[str, Any]) -> str:
        """VPC endpoint when present, otherwise the public endpoint."""
        endpoints = status.get('Endpoints') or {}
        return endpoints.get('vpc') or status.get('Endpoint') or ''

    @staticmethod
    def _fail(error: Exception, context: ErrorContext, fallback: Type[BrokerError]) -> BrokerError:
        broker_error = error_handler.handle_exception(error, context, fallback)
        error_handler.log_error(broker_error)
        return broker_error
