"""Providers module for search cluster lifecycle management."""

from .base import Instance, PlanDetails, Provider, ProviderKind, ProviderPlan
from .status import InstanceStatus, LifecycleSnapshot, is_ready, resolve, resolve_status
from .plan_resolver import PlanResolver, ResolvedRequest, build_access_policy
from .cache import CacheJanitor, InstanceCache
from .aws_es import AWSElasticsearchProvider
from .registry import ProviderRegistry, create_default_registry, get_provider_by_plan

__all__ = [
    'Instance',
    'PlanDetails',
    'Provider',
    'ProviderKind',
    'ProviderPlan',
    'InstanceStatus',
    'LifecycleSnapshot',
    'is_ready',
    'resolve',
    'resolve_status',
    'PlanResolver',
    'ResolvedRequest',
    'build_access_policy',
    'CacheJanitor',
    'InstanceCache',
    'AWSElasticsearchProvider',
    'ProviderRegistry',
    'create_default_registry',
    'get_provider_by_plan',
]
