"""Tests for the Elasticsearch Service provider."""

import json
import logging
import time
from dataclasses import FrozenInstanceError, replace
from unittest.mock import Mock

import pytest
from botocore.exceptions import EndpointConnectionError

from search_broker.providers import AWSElasticsearchProvider, Instance, InstanceStatus
from search_broker.utils.errors import (
    ConfigurationError,
    DeprovisionError,
    ModifyError,
    NotFoundError,
    PartialProvisionError,
    ProvisionError,
    TaggingError,
    TransientProviderError,
)

from conftest import CLUSTER_PLAN, client_error, domain_status, make_plan


class TestGetInstance:
    def test_builds_instance_from_domain_status(self, provider, plan):
        instance = provider.get_instance("es-u1234abcd", plan)

        assert instance.id == ""
        assert instance.name == "es-u1234abcd"
        assert instance.provider_id == "arn:aws:es:us-east-1:123456789012:domain/es-u1234abcd"
        assert instance.endpoint == "vpc-es-u1234abcd.us-east-1.es.amazonaws.com"
        assert instance.status is InstanceStatus.AVAILABLE
        assert instance.ready is True
        assert instance.engine == "elasticsearch"
        assert instance.engine_version == "6.8"
        assert instance.scheme == "https"
        assert instance.plan is plan

    def test_never_populates_credentials(self, provider, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        assert instance.username == ""
        assert instance.password == ""

    def test_falls_back_to_public_endpoint(self, provider, es_client, plan):
        es_client.describe_elasticsearch_domain.return_value = {
            "DomainStatus": domain_status(vpc_endpoint=None, endpoint="search-es.us-east-1.es.amazonaws.com")
        }
        assert provider.get_instance("es-u1234abcd", plan).endpoint == "search-es.us-east-1.es.amazonaws.com"

    def test_second_get_is_served_from_cache(self, provider, es_client, plan):
        first = provider.get_instance("es-u1234abcd", plan)
        second = provider.get_instance("es-u1234abcd", plan)

        assert second is first
        es_client.describe_elasticsearch_domain.assert_called_once_with(DomainName="es-u1234abcd")

    def test_callers_cannot_alter_cached_instance(self, provider, es_client, plan):
        first = provider.get_instance("es-u1234abcd", plan)
        with pytest.raises(FrozenInstanceError):
            first.status = InstanceStatus.DELETED
        changed = replace(first, status=InstanceStatus.DELETED, ready=False)

        second = provider.get_instance("es-u1234abcd", plan)

        assert changed.status is InstanceStatus.DELETED
        assert second.status is InstanceStatus.AVAILABLE
        assert second.ready is True
        es_client.describe_elasticsearch_domain.assert_called_once()

    def test_cache_clear_forces_new_describe(self, provider, es_client, plan):
        provider.get_instance("es-u1234abcd", plan)
        provider.cache.clear_all()
        provider.get_instance("es-u1234abcd", plan)

        assert es_client.describe_elasticsearch_domain.call_count == 2

    def test_janitor_interval_expires_entries(self, settings, es_client, plan):
        fast = settings.model_copy(update={"cache_clear_interval": 0.05})
        provider = AWSElasticsearchProvider(fast, client=es_client, sleep=Mock())
        try:
            provider.get_instance("es-u1234abcd", plan)
            time.sleep(0.3)
            provider.get_instance("es-u1234abcd", plan)
        finally:
            provider.close()

        assert es_client.describe_elasticsearch_domain.call_count == 2

    def test_missing_domain_raises_not_found(self, provider, es_client, plan):
        es_client.describe_elasticsearch_domain.side_effect = client_error("ResourceNotFoundException")
        with pytest.raises(NotFoundError) as exc_info:
            provider.get_instance("es-ugone", plan)
        assert exc_info.value.context.instance_name == "es-ugone"
        assert exc_info.value.context.request_id == "req-1234"

    def test_control_plane_failure_is_transient(self, provider, es_client, plan):
        es_client.describe_elasticsearch_domain.side_effect = client_error("InternalException")
        with pytest.raises(TransientProviderError):
            provider.get_instance("es-u1234abcd", plan)

    def test_network_failure_is_transient(self, provider, es_client, plan):
        es_client.describe_elasticsearch_domain.side_effect = EndpointConnectionError(
            endpoint_url="https://es.us-east-1.amazonaws.com"
        )
        with pytest.raises(TransientProviderError):
            provider.get_instance("es-u1234abcd", plan)

    def test_failures_are_not_cached(self, provider, es_client, plan):
        es_client.describe_elasticsearch_domain.side_effect = [
            client_error("InternalException"),
            {"DomainStatus": domain_status()},
        ]
        with pytest.raises(TransientProviderError):
            provider.get_instance("es-u1234abcd", plan)
        assert provider.get_instance("es-u1234abcd", plan).ready is True


class TestProvision:
    def test_creates_domain_and_tags_owner(self, provider, es_client, sleep, plan):
        instance = provider.provision("instance-1", plan, "team-x")

        params = es_client.create_elasticsearch_domain.call_args.kwargs
        assert params["DomainName"] == instance.name
        assert instance.name.startswith("es-u")
        assert params["VPCOptions"]["SubnetIds"] == ["a"]
        assert instance.id == "instance-1"
        es_client.add_tags.assert_called_once_with(
            ARN=instance.provider_id,
            TagList=[{"Key": "billingcode", "Value": "team-x"}],
        )

    def test_waits_before_tagging(self, provider, es_client, sleep, plan):
        order = []
        sleep.side_effect = lambda seconds: order.append(("sleep", seconds))
        es_client.add_tags.side_effect = lambda **kwargs: order.append(("tag", kwargs["ARN"]))

        provider.provision("instance-1", plan, "team-x")

        assert order[0] == ("sleep", 10)
        assert order[1][0] == "tag"

    def test_new_instance_is_creating(self, provider, plan):
        instance = provider.provision("instance-1", plan, "team-x")
        assert instance.status is InstanceStatus.CREATING
        assert instance.ready is False

    def test_get_after_provision_is_consistent(self, provider, es_client, plan):
        instance = provider.provision("instance-1", plan, "team-x")
        described = provider.get_instance(instance.name, plan)

        assert described.status is InstanceStatus.CREATING
        assert described.ready is False
        es_client.describe_elasticsearch_domain.assert_not_called()

    def test_cached_instance_has_no_caller_id(self, provider, es_client, plan):
        instance = provider.provision("instance-1", plan, "team-x")
        assert instance.id == "instance-1"

        cached = provider.get_instance(instance.name, plan)
        provider.cache.clear_all()
        es_client.describe_elasticsearch_domain.return_value = {
            "DomainStatus": domain_status(name=instance.name)
        }
        described = provider.get_instance(instance.name, plan)

        assert cached.id == ""
        assert described.id == ""

    def test_tag_failure_reports_partial_provision(self, provider, es_client, plan):
        es_client.add_tags.side_effect = client_error("ResourceNotFoundException", "AddTags")

        with pytest.raises(PartialProvisionError) as exc_info:
            provider.provision("instance-1", plan, "team-x")

        created = exc_info.value.instance
        assert isinstance(created, Instance)
        assert isinstance(exc_info.value, ProvisionError)
        es_client.create_elasticsearch_domain.assert_called_once()

        provider.cache.clear_all()
        es_client.describe_elasticsearch_domain.return_value = {
            "DomainStatus": domain_status(name=created.name, created=False, vpc_endpoint=None)
        }
        found = provider.get_instance(created.name, plan)
        assert found.name == created.name
        es_client.describe_elasticsearch_domain.assert_called_once_with(DomainName=created.name)

    def test_rejected_create_raises_provision_error(self, provider, es_client, plan):
        es_client.create_elasticsearch_domain.side_effect = client_error(
            "ValidationException", "CreateElasticsearchDomain"
        )
        with pytest.raises(ProvisionError) as exc_info:
            provider.provision("instance-1", plan, "team-x")
        assert not isinstance(exc_info.value, PartialProvisionError)
        es_client.add_tags.assert_not_called()

    def test_unparsable_plan_raises_configuration_error(self, provider, es_client):
        with pytest.raises(ConfigurationError):
            provider.provision("instance-1", make_plan("{broken"), "team-x")
        es_client.create_elasticsearch_domain.assert_not_called()

    def test_uses_plan_scheme(self, provider):
        instance = provider.provision("instance-1", make_plan(scheme="http"), "team-x")
        assert instance.scheme == "http"


class TestModify:
    def test_updates_existing_domain(self, provider, es_client, plan):
        existing = replace(provider.get_instance("es-u1234abcd", plan), id="instance-1")
        es_client.describe_elasticsearch_domain.return_value = {
            "DomainStatus": domain_status(processing=True)
        }
        bigger = make_plan(CLUSTER_PLAN, plan_id="es-large")

        updated = provider.modify(existing, bigger)

        params = es_client.update_elasticsearch_domain_config.call_args.kwargs
        assert params["DomainName"] == "es-u1234abcd"
        assert params["VPCOptions"]["SubnetIds"] == ["a", "b", "c"]
        assert "ElasticsearchVersion" not in params
        es_client.create_elasticsearch_domain.assert_not_called()
        assert updated.name == "es-u1234abcd"
        assert updated.id == "instance-1"
        assert provider.get_instance("es-u1234abcd", bigger).id == ""
        assert updated.plan is bigger
        assert updated.status is InstanceStatus.PROCESSING
        assert updated.ready is True

    def test_updated_instance_is_cached(self, provider, es_client, plan):
        existing = provider.get_instance("es-u1234abcd", plan)
        bigger = make_plan(CLUSTER_PLAN, plan_id="es-large")
        updated = provider.modify(existing, bigger)
        assert provider.get_instance("es-u1234abcd", bigger) is updated

    def test_rejected_update_raises_modify_error(self, provider, es_client, plan):
        existing = provider.get_instance("es-u1234abcd", plan)
        es_client.update_elasticsearch_domain_config.side_effect = client_error(
            "ValidationException", "UpdateElasticsearchDomainConfig"
        )
        with pytest.raises(ModifyError):
            provider.modify(existing, plan)

    def test_unparsable_plan_raises_configuration_error(self, provider, es_client, plan):
        existing = provider.get_instance("es-u1234abcd", plan)
        with pytest.raises(ConfigurationError):
            provider.modify(existing, make_plan("nope"))
        es_client.update_elasticsearch_domain_config.assert_not_called()


class TestDeprovision:
    def test_deletes_domain_by_name(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        provider.deprovision(instance, False)
        es_client.delete_elasticsearch_domain.assert_called_once_with(DomainName="es-u1234abcd")

    def test_snapshot_request_is_flagged(self, provider, plan, caplog):
        instance = provider.get_instance("es-u1234abcd", plan)
        with caplog.at_level(logging.WARNING):
            provider.deprovision(instance, True)
        assert "snapshot" in caplog.text

    def test_rejected_delete_raises_deprovision_error(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        es_client.delete_elasticsearch_domain.side_effect = client_error(
            "ValidationException", "DeleteElasticsearchDomain"
        )
        with pytest.raises(DeprovisionError):
            provider.deprovision(instance, False)

    def test_cached_entry_survives_until_clear(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        provider.deprovision(instance, False)
        assert provider.get_instance("es-u1234abcd", plan).status is InstanceStatus.AVAILABLE
        es_client.describe_elasticsearch_domain.assert_called_once()


class TestTagging:
    def test_tag_addresses_arn(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        provider.tag(instance, "team", "search")
        es_client.add_tags.assert_called_once_with(
            ARN=instance.provider_id, TagList=[{"Key": "team", "Value": "search"}]
        )

    def test_untag_addresses_arn(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        provider.untag(instance, "team")
        es_client.remove_tags.assert_called_once_with(ARN=instance.provider_id, TagKeys=["team"])

    def test_tagging_does_not_change_status(self, provider, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        provider.tag(instance, "team", "search")
        assert instance.status is InstanceStatus.AVAILABLE

    def test_tag_failure_raises_tagging_error(self, provider, es_client, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        es_client.remove_tags.side_effect = client_error("ValidationException", "RemoveTags")
        with pytest.raises(TaggingError):
            provider.untag(instance, "team")


class TestProjection:
    def test_post_provision_returns_instance_unchanged(self, provider, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        assert provider.perform_post_provision(instance) is instance

    def test_get_url(self, provider, plan):
        instance = provider.get_instance("es-u1234abcd", plan)
        assert provider.get_url(instance) == {
            "ES_URL": "https://vpc-es-u1234abcd.us-east-1.es.amazonaws.com",
            "KIBANA_URL": "https://vpc-es-u1234abcd.us-east-1.es.amazonaws.com/_plugin/kibana",
        }

    def test_public_dict_hides_private_data(self, provider):
        plan = make_plan({"ElasticsearchClusterConfig": {"InstanceCount": 1}, "SecretSetting": "s3cr3t"})
        instance = provider.get_instance("es-u1234abcd", plan)
        public = instance.to_public_dict()

        assert "password" not in public
        assert "username" not in public
        assert "s3cr3t" not in json.dumps(public)
        assert public["plan"] == {"id": "es-small", "provider": "aws-es", "scheme": "https"}


class TestLifecycle:
    def test_close_stops_janitor(self, settings, es_client):
        provider = AWSElasticsearchProvider(settings, client=es_client)
        assert provider._janitor.running
        provider.close()
        assert not provider._janitor.running

    def test_context_manager_closes(self, settings, es_client):
        with AWSElasticsearchProvider(settings, client=es_client) as provider:
            janitor = provider._janitor
        assert not janitor.running

    def test_builds_client_from_manager(self, settings):
        manager = Mock()
        provider = AWSElasticsearchProvider(settings, client_manager=manager)
        try:
            manager.get_client.assert_called_once_with("es")
            assert provider.es_client is manager.get_client.return_value
        finally:
            provider.close()
