"""Example usage of the Elasticsearch provider through the registry."""

import json

from search_broker.providers import ProviderKind, ProviderPlan, create_default_registry
from search_broker.utils import BrokerError, PartialProvisionError, setup_logging


PLAN_DETAILS = {
    'ElasticsearchVersion': '6.8',
    'ElasticsearchClusterConfig': {
        'InstanceType': 't2.small.elasticsearch',
        'InstanceCount': 1
    },
    'EBSOptions': {'EBSEnabled': True, 'VolumeType': 'gp2', 'VolumeSize': 10}
}


def example_provision():
    """Example: Provision a domain and print its URLs.

    Requires AWS_REGION and AWS_ACCOUNT_ID; AWS_SECURITY_GROUP_ID and
    AWS_SUBNET_ID enable VPC placement.
    """
    print("=== Provision ===")

    plan = ProviderPlan(
        id='es-small',
        provider=ProviderKind.AWS_ES,
        private_details=json.dumps(PLAN_DETAILS)
    )

    registry = create_default_registry(name_prefix='example')
    try:
        provider = registry.resolve(plan)
        instance = provider.provision('example-instance', plan, owner='team-x')
        print(f"Created {instance.name} ({instance.status.value})")

        instance = provider.get_instance(instance.name, plan)
        for label, url in provider.get_url(instance).items():
            print(f"  {label}: {url}")
    except PartialProvisionError as e:
        print(e.to_user_message())
        print(f"Domain {e.instance.name} exists; verify it before retrying")
    except BrokerError as e:
        print(e.to_user_message())
    finally:
        registry.close()


if __name__ == '__main__':
    setup_logging('info')
    example_provision()
