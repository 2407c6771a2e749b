from enum import Enum, unique

from pydantic import BaseModel, ConfigDict, PositiveInt, field_validator

from kong_infrastructure.lib.aws.ecs.container_definition_config import (
    KongContainerDefinitionConfig,
)


@unique
class NetworkModes(str, Enum):
    bridge = "bridge"
    host = "host"
    awsvpc = "awsvpc"


class KongEC2TaskDefinitionConfig(BaseModel):
    """Maps to 'family' property which is unique name for Task Definition."""

    task_def_name: str
    # Containers on EC2 capacity share the host's docker bridge network
    network_mode: NetworkModes = NetworkModes.bridge
    # Memory allotment for the whole task, defaults to the sum of its containers
    memory_mib: PositiveInt | None = None
    # List of container definitions that will be attached to task
    container_definition_configs: list[KongContainerDefinitionConfig]
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("container_definition_configs")
    @classmethod
    def has_containers(
        cls, container_definition_configs: list[KongContainerDefinitionConfig]
    ) -> list[KongContainerDefinitionConfig]:
        if not container_definition_configs:
            msg = "At least one container definition must be defined"
            raise ValueError(msg)
        return container_definition_configs
