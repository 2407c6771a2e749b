"""Shared pytest fixtures for the Kong infrastructure tests.

Configuration models only need plain values. Tests that declare resources set their
own Pulumi mocks at import time.
"""

from unittest import mock

import pytest
from pulumi_aws import ec2


@pytest.fixture
def mock_tags():
    """Return the required tags for test resources.

    Returns:
        dict: OU and Environment tags accepted by the AWS config models.
    """
    return {"OU": "api-gateway", "Environment": "qa"}


@pytest.fixture
def aws_region():
    """Return default AWS region for tests.

    Returns:
        str: AWS region identifier.
    """
    return "us-east-1"


@pytest.fixture
def mock_vpc_id():
    return "vpc-12345678"


@pytest.fixture
def mock_subnet_ids():
    """Mock private subnet IDs for tests.

    Returns:
        list[str]: List of mocked subnet identifiers.
    """
    return ["subnet-11111111", "subnet-22222222"]


@pytest.fixture
def mock_security_group():
    """Stand in for a declared security group without creating a resource.

    Returns:
        MagicMock: An object that passes isinstance checks for ec2.SecurityGroup.
    """
    security_group = mock.MagicMock(spec=ec2.SecurityGroup)
    security_group.id = "sg-12345678"
    return security_group


@pytest.fixture
def supported_db_engines():
    """Replace the RDS engine lookup so that config validation runs offline."""
    with mock.patch(
        "kong_infrastructure.components.aws.database.db_engines",
        return_value={"postgres": ["15.7", "16.4"], "mysql": ["8.0.36"]},
    ) as engines:
        yield engines
