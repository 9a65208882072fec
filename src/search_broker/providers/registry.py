"""Selection of provider implementations by plan."""

import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from search_broker.config import ProviderSettings, load_settings
from search_broker.utils.errors import ErrorContext, UnsupportedProviderError
from search_broker.utils.logging import get_logger
from .aws_es import AWSElasticsearchProvider
from .base import Provider, ProviderKind, ProviderPlan

logger = get_logger(__name__)

ProviderFactory = Callable[[ProviderSettings], Provider]


class ProviderRegistry:
    """Maps provider kinds to factories and caches one provider per kind.

    Each cached provider owns a cache janitor thread; ``close`` stops them.
    """

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any
    ):
        """Initialize provider registry.

        Args:
            settings: Provider settings; loaded from the environment on first use when omitted
            environ: Environment mapping used for that lazy load
            **overrides: Setting values that take precedence over the environment
        """
        self._settings = settings
        self._environ = environ
        self._overrides = overrides
        self._factories: Dict[ProviderKind, ProviderFactory] = {}
        self._providers: Dict[ProviderKind, Provider] = {}
        self._lock = threading.Lock()

    def register(self, kind: ProviderKind, factory: ProviderFactory) -> None:
        """Register a factory for a provider kind.

        Raises:
            ValueError: If the kind is UNKNOWN or already registered
        """
        if kind is ProviderKind.UNKNOWN:
            raise ValueError("Cannot register a factory for the unknown provider kind")
        if kind in self._factories:
            raise ValueError(f"Provider {kind.value} is already registered")
        self._factories[kind] = factory
        logger.debug(f"Registered provider factory for {kind.value}")

    def is_registered(self, kind: ProviderKind) -> bool:
        return kind in self._factories

    def registered_kinds(self) -> List[ProviderKind]:
        return list(self._factories)

    @property
    def settings(self) -> ProviderSettings:
        """Provider settings, read from the environment on first access.

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        if self._settings is None:
            self._settings = load_settings(self._environ, **self._overrides)
        return self._settings

    def resolve(self, plan: ProviderPlan) -> Provider:
        """Return the provider for a plan.

        Raises:
            UnsupportedProviderError: If no factory handles the plan's provider
            ConfigurationError: If provider settings are missing or invalid
        """
        factory = self._factories.get(plan.provider)
        if factory is None:
            raise UnsupportedProviderError(
                f"Unable to find provider for plan {plan.id} ({plan.provider.value})",
                context=ErrorContext(plan_id=plan.id, operation='resolve_provider'),
                suggestions=[f"Supported providers: {', '.join(k.value for k in self._factories) or 'none'}"]
            )

        with self._lock:
            provider = self._providers.get(plan.provider)
            if provider is None:
                provider = factory(self.settings)
                self._providers[plan.provider] = provider
                logger.info(f"Created {plan.provider.value} provider")
        return provider

    def close(self) -> None:
        """Close every provider created by this registry."""
        with self._lock:
            providers = list(self._providers.values())
            self._providers.clear()
        for provider in providers:
            provider.close()


def create_default_registry(
    settings: Optional[ProviderSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any
) -> ProviderRegistry:
    """Registry with every built-in provider registered."""
    registry = ProviderRegistry(settings=settings, environ=environ, **overrides)
    registry.register(ProviderKind.AWS_ES, AWSElasticsearchProvider)
    return registry


def get_provider_by_plan(
    name_prefix: str,
    plan: ProviderPlan,
    environ: Optional[Mapping[str, str]] = None
) -> Provider:
    """Build a new provider for a plan; the caller closes it.

    Raises:
        UnsupportedProviderError: If the plan's provider is not built in
        ConfigurationError: If provider settings are missing or invalid
    """
    registry = create_default_registry(environ=environ, name_prefix=name_prefix)
    return registry.resolve(plan)
