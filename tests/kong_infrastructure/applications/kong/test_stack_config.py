from ipaddress import IPv4Network
from unittest import mock

import pytest
from pydantic import ValidationError

from kong_infrastructure.applications.kong.stack import (
    KongStackConfig,
    bootstrap_environment,
)
from kong_infrastructure.components.aws.database import DatabaseConfigBundle
from kong_infrastructure.lib.infra_types import BusinessUnit, Environment
from kong_infrastructure.lib.pulumi_helper import StackInfo

QA_STACK = StackInfo(
    namespace="applications.kong",
    environment=Environment.qa,
    full_name="applications.kong.QA",
)


def _pulumi_config(values):
    config = mock.MagicMock()
    config.get.side_effect = lambda key: values.get(key)
    config.get_int.side_effect = lambda key: (
        int(values[key]) if key in values else None
    )
    return config


def test_defaults():
    stack_config = KongStackConfig(environment="qa")
    assert stack_config.cidr_block == IPv4Network("10.0.0.0/16")
    assert stack_config.zone_count == 2  # noqa: PLR2004
    assert stack_config.desired_count == 1
    assert stack_config.business_unit == BusinessUnit.api_gateway
    assert stack_config.name_prefix == "kong-qa"
    assert stack_config.tags["OU"] == "api-gateway"
    assert stack_config.tags["Environment"] == "qa"


def test_unknown_environment_rejected():
    with pytest.raises(ValidationError):
        KongStackConfig(environment="staging")


def test_negative_desired_count_rejected():
    with pytest.raises(ValidationError):
        KongStackConfig(environment="qa", desired_count=-1)


def test_from_pulumi_config_uses_defaults():
    with mock.patch("pulumi.Config", return_value=_pulumi_config({})):
        stack_config = KongStackConfig.from_pulumi_config(
            _pulumi_config({}), QA_STACK
        )
    assert stack_config == KongStackConfig(environment=Environment.qa)


def test_from_pulumi_config_overrides():
    kong_config = _pulumi_config(
        {"cidr_block": "10.10.0.0/16", "zone_count": "3", "desired_count": "0"}
    )
    aws_config = _pulumi_config({"region": "us-west-2"})
    with mock.patch("pulumi.Config", return_value=aws_config):
        stack_config = KongStackConfig.from_pulumi_config(kong_config, QA_STACK)
    assert stack_config.cidr_block == IPv4Network("10.10.0.0/16")
    assert stack_config.zone_count == 3  # noqa: PLR2004
    assert stack_config.desired_count == 0
    assert stack_config.region == "us-west-2"


def test_bootstrap_environment_copies_bundle():
    bundle = DatabaseConfigBundle(
        host="kong.example.us-east-1.rds.amazonaws.com",
        port="5432",
        database_name="kong",
        user="kongadmin",
        password="not-a-real-password",  # noqa: S106
    )
    environment = bootstrap_environment(bundle)
    assert environment == {
        "DATABASE_BACKEND": "postgres",
        "DB_HOST": bundle.host,
        "DB_DATABASE_NAME": bundle.database_name,
        "DB_USER": bundle.user,
        "DB_PASSWORD": bundle.password,
        "DB_PORT": bundle.port,
    }
    assert bootstrap_environment(bundle) == environment
