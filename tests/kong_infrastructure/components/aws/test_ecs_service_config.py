import pytest
from pydantic import ValidationError

from kong_infrastructure.components.aws.ecs_service import (
    KongCapacityPoolConfig,
    KongEC2ServiceConfig,
)
from kong_infrastructure.lib.aws.ecs.container_definition_config import (
    KongContainerDefinitionConfig,
)
from kong_infrastructure.lib.aws.ecs.task_definition_config import (
    KongEC2TaskDefinitionConfig,
)


@pytest.fixture
def valid_config(mock_tags, mock_vpc_id, mock_subnet_ids, mock_security_group):
    return {
        "service_name": "kong-qa-bootstrap",
        "cluster_name": "kong-cluster",
        "vpc_id": mock_vpc_id,
        "subnet_ids": mock_subnet_ids,
        "security_groups": [mock_security_group],
        "task_definition_config": KongEC2TaskDefinitionConfig(
            task_def_name="kong-qa-bootstrap",
            container_definition_configs=[
                KongContainerDefinitionConfig(
                    container_name="kong-bootstrap",
                    image="public.ecr.aws/bitnami/kong",
                )
            ],
        ),
        "log_stream_prefix": "kong",
        "tags": mock_tags,
    }


def test_defaults(valid_config):
    service_config = KongEC2ServiceConfig(**valid_config)
    assert service_config.desired_count == 1
    assert service_config.capacity_pool.min_size == 1
    assert service_config.capacity_pool.max_size == 1
    assert service_config.capacity_pool.instance_type == "t2.micro"


def test_desired_count_can_stop_service(valid_config):
    service_config = KongEC2ServiceConfig(**valid_config, desired_count=0)
    assert service_config.desired_count == 0


def test_negative_desired_count_rejected(valid_config):
    with pytest.raises(ValidationError):
        KongEC2ServiceConfig(**valid_config, desired_count=-1)


def test_subnets_required(valid_config):
    valid_config["subnet_ids"] = []
    with pytest.raises(ValidationError):
        KongEC2ServiceConfig(**valid_config)


def test_security_groups_required(valid_config):
    valid_config["security_groups"] = []
    with pytest.raises(ValidationError):
        KongEC2ServiceConfig(**valid_config)


def test_capacity_pool_bounds():
    with pytest.raises(ValidationError):
        KongCapacityPoolConfig(min_size=3, max_size=1)
    assert KongCapacityPoolConfig(min_size=1, max_size=3).max_size == 3  # noqa: PLR2004
