"""Shared fixtures for provider tests."""

import json
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from search_broker.config import ProviderSettings
from search_broker.providers import AWSElasticsearchProvider, ProviderKind, ProviderPlan

ACCOUNT_ID = "123456789012"
REGION = "us-east-1"

SINGLE_NODE_PLAN = {
    "ElasticsearchVersion": "6.8",
    "ElasticsearchClusterConfig": {"InstanceType": "t2.small.elasticsearch", "InstanceCount": 1},
    "EBSOptions": {"EBSEnabled": True, "VolumeType": "gp2", "VolumeSize": 10},
}

CLUSTER_PLAN = {
    "ElasticsearchVersion": "6.8",
    "ElasticsearchClusterConfig": {
        "InstanceType": "m5.large.elasticsearch",
        "InstanceCount": 3,
        "ZoneAwarenessEnabled": True,
    },
    "EBSOptions": {"EBSEnabled": True, "VolumeType": "gp2", "VolumeSize": 100},
}


def make_plan(details=None, plan_id="es-small", scheme="https"):
    """Build a plan carrying the given private configuration."""
    raw = details if isinstance(details, str) else json.dumps(details or SINGLE_NODE_PLAN)
    return ProviderPlan(id=plan_id, provider=ProviderKind.AWS_ES, scheme=scheme, private_details=raw)


def domain_status(
    name="es-u1234abcd",
    created=True,
    deleted=False,
    processing=False,
    upgrading=False,
    vpc_endpoint="vpc-es-u1234abcd.us-east-1.es.amazonaws.com",
    endpoint=None,
):
    """Boto3 DomainStatus structure for a domain."""
    status = {
        "DomainId": f"{ACCOUNT_ID}/{name}",
        "DomainName": name,
        "ARN": f"arn:aws:es:{REGION}:{ACCOUNT_ID}:domain/{name}",
        "Created": created,
        "Deleted": deleted,
        "Processing": processing,
        "UpgradeProcessing": upgrading,
        "ElasticsearchVersion": "6.8",
        "ElasticsearchClusterConfig": {"InstanceCount": 1},
    }
    if vpc_endpoint:
        status["Endpoints"] = {"vpc": vpc_endpoint}
    if endpoint:
        status["Endpoint"] = endpoint
    return status


def client_error(code, operation="DescribeElasticsearchDomain", message="boom"):
    """A botocore ClientError as raised by the es client."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"RequestId": "req-1234"},
        },
        operation,
    )


@pytest.fixture
def settings():
    """Settings with VPC placement over three subnets."""
    return ProviderSettings(
        region=REGION,
        account_id=ACCOUNT_ID,
        security_group_id="sg-0123",
        subnet_ids=["a", "b", "c"],
        settle_delay=10,
        cache_clear_interval=3600,
    )


@pytest.fixture
def public_settings():
    """Settings without network placement."""
    return ProviderSettings(region=REGION, account_id=ACCOUNT_ID, cache_clear_interval=3600)


@pytest.fixture
def plan():
    return make_plan()


@pytest.fixture
def es_client():
    """Mock of the boto3 es client."""
    client = Mock()
    client.describe_elasticsearch_domain.return_value = {"DomainStatus": domain_status()}
    client.create_elasticsearch_domain.side_effect = lambda **params: {
        "DomainStatus": domain_status(
            name=params["DomainName"], created=False, processing=True, vpc_endpoint=None
        )
    }
    client.update_elasticsearch_domain_config.return_value = {"DomainConfig": {}}
    client.delete_elasticsearch_domain.return_value = {"DomainStatus": domain_status(deleted=True)}
    client.add_tags.return_value = {}
    client.remove_tags.return_value = {}
    return client


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def provider(settings, es_client, sleep):
    provider = AWSElasticsearchProvider(settings, client=es_client, sleep=sleep)
    yield provider
    provider.close()
