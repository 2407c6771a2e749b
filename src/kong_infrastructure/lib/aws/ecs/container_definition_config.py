from typing import Annotated, Any

from pulumi import Output
from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from bridge.lib.magic_numbers import HALF_GIGABYTE_MB


def build_container_log_options(
    log_group_name: Output[str] | str,
    region: str,
    stream_prefix: str,
) -> dict[str, Output[str] | str]:
    return {
        "awslogs-group": log_group_name,
        "awslogs-region": region,
        "awslogs-stream-prefix": stream_prefix,
    }


class KongContainerLogConfig(BaseModel):
    # Possible values are: "awslogs", "fluentd", "gelf", "json-file", "journald",
    # "logentries", "splunk", "syslog", "awsfirelens"
    log_driver: str = "awslogs"
    # Options to pass to log config
    options: dict[str, Output[str] | str] | None = None
    model_config = ConfigDict(arbitrary_types_allowed=True)


# Many more options available (in AWS) that are not defined in this configuration
# https://docs.aws.amazon.com/AmazonECS/latest/APIReference/API_ContainerDefinition.html
class KongContainerDefinitionConfig(BaseModel):
    container_name: Annotated[
        str,
        Field(
            description="Name of the container in the task config",
            parameter_name="name",
        ),
    ]
    image: Annotated[
        str,
        Field(
            description=(
                "Fully qualified (registry/repository:tag) where ECS agent "
                "can retrieve image"
            ),
            parameter_name="image",
        ),
    ]
    memory: Annotated[
        PositiveInt,
        Field(
            description=(
                "Memory reserved for this container. "
                "If container exceeds this amount, it will be killed"
            ),
            parameter_name="memory",
        ),
    ] = PositiveInt(HALF_GIGABYTE_MB)
    command: Annotated[
        list[str] | None,
        Field(
            description="The command that is passed to the container",
            parameter_name="command",
        ),
    ] = None
    is_essential: Annotated[
        bool,
        Field(
            description=(
                "Enabling this flag means if this container stops or fails, "
                "all other containers that are part of the task are stopped"
            ),
            parameter_name="essential",
        ),
    ] = True
    environment: Annotated[
        dict[str, Output[str] | str] | None,
        Field(
            description="Environment variables to pass to container",
            parameter_name="environment",
        ),
    ] = None
    log_configuration: Annotated[
        KongContainerLogConfig | None,
        Field(
            description="Configuration for setting up log outputs for this container",
            parameter_name="logConfiguration",
        ),
    ] = None
    model_config = ConfigDict(arbitrary_types_allowed=True)

    def container_definition(self) -> dict[str, Any]:
        """Render the container as an ECS container definition.

        Environment variables keep their insertion order and their values are passed
        through untouched, including values that are still Outputs.
        """
        log_config = None
        if self.log_configuration:
            log_config = {
                "logDriver": self.log_configuration.log_driver,
                "options": self.log_configuration.options,
            }

        environment = [
            {"name": key, "value": value}
            for key, value in (self.environment or {}).items()
        ]

        return {
            "name": self.container_name,
            "image": self.image,
            "memory": self.memory,
            "command": self.command,
            "environment": environment,
            "essential": self.is_essential,
            "logConfiguration": log_config,
        }
