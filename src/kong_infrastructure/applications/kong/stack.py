"""Compose the network, database and bootstrap service for Kong.

Each builder takes the handles it depends on as arguments and returns new ones, and
`build_kong_stack` calls them in dependency order:

network -> security groups (+ ingress rule) -> database -> bootstrap service

The bootstrap container runs `kong migrations bootstrap` as an ECS *service*, so it is
restarted after every exit and the migrations run again. Kong's bootstrap is
idempotent. To stop the loop, set `kong:desired_count` to 0 and deploy again.
"""

from dataclasses import dataclass
from ipaddress import IPv4Network
from typing import Any

import pulumi
from pulumi_aws import ec2
from pydantic import BaseModel, NonNegativeInt, PositiveInt

from bridge.lib.magic_numbers import DEFAULT_POSTGRES_PORT, HALF_GIGABYTE_MB
from kong_infrastructure.applications.kong.security_groups import (
    DatabaseIngressRule,
    allow_cluster_to_database,
    cluster_security_group,
    database_security_group,
)
from kong_infrastructure.components.aws.database import (
    DatabaseConfigBundle,
    KongPostgresDB,
    KongPostgresDBConfig,
)
from kong_infrastructure.components.aws.ecs_service import (
    KongCapacityPoolConfig,
    KongEC2Service,
    KongEC2ServiceConfig,
)
from kong_infrastructure.components.aws.vpc import KongVPC, KongVPCConfig
from kong_infrastructure.lib.aws.ecs.container_definition_config import (
    KongContainerDefinitionConfig,
)
from kong_infrastructure.lib.aws.ecs.task_definition_config import (
    KongEC2TaskDefinitionConfig,
)
from kong_infrastructure.lib.infra_types import BusinessUnit, Environment
from kong_infrastructure.lib.pulumi_helper import StackInfo

KONG_IMAGE = "public.ecr.aws/bitnami/kong"
KONG_BOOTSTRAP_COMMAND = ["kong", "migrations", "bootstrap"]
KONG_LOG_STREAM_PREFIX = "kong"
KONG_CLUSTER_NAME = "kong-cluster"
DATABASE_BACKEND = "postgres"


class KongStackConfig(BaseModel):
    """Inputs for one deployment of the Kong stack."""

    environment: Environment
    business_unit: BusinessUnit = BusinessUnit.api_gateway
    region: str = "us-east-1"
    cidr_block: IPv4Network = IPv4Network("10.0.0.0/16")
    zone_count: PositiveInt = PositiveInt(2)
    desired_count: NonNegativeInt = NonNegativeInt(1)

    @classmethod
    def from_pulumi_config(
        cls, config: pulumi.Config, stack_info: StackInfo
    ) -> "KongStackConfig":
        """Read the `kong` configuration namespace of the current stack."""
        settings: dict[str, Any] = {"environment": stack_info.environment}
        if cidr_block := config.get("cidr_block"):
            settings["cidr_block"] = cidr_block
        if (zone_count := config.get_int("zone_count")) is not None:
            settings["zone_count"] = zone_count
        if (desired_count := config.get_int("desired_count")) is not None:
            settings["desired_count"] = desired_count
        if business_unit := config.get("business_unit"):
            settings["business_unit"] = business_unit
        if region := pulumi.Config("aws").get("region"):
            settings["region"] = region
        return cls(**settings)

    @property
    def name_prefix(self) -> str:
        return f"kong-{self.environment.value}"

    @property
    def tags(self) -> dict[str, str]:
        return {
            "OU": self.business_unit.value,
            "Environment": self.environment.value,
            "Application": "kong",
        }


@dataclass(frozen=True)
class KongStack:
    """Every handle declared for one deployment of the Kong stack."""

    vpc: KongVPC
    database_security_group: ec2.SecurityGroup
    cluster_security_group: ec2.SecurityGroup
    database_ingress_rule: DatabaseIngressRule
    database_ingress_rule_resource: ec2.SecurityGroupRule
    database: KongPostgresDB
    config_bundle: DatabaseConfigBundle
    bootstrap_service: KongEC2Service


def build_network(stack_config: KongStackConfig) -> KongVPC:
    return KongVPC(
        KongVPCConfig(
            vpc_name=f"{stack_config.name_prefix}-vpc",
            cidr_block=stack_config.cidr_block,
            zone_count=stack_config.zone_count,
            tags=stack_config.tags,
            region=stack_config.region,
        )
    )


def build_database(
    stack_config: KongStackConfig,
    vpc: KongVPC,
    database_group: ec2.SecurityGroup,
) -> tuple[DatabaseConfigBundle, KongPostgresDB]:
    """Declare the Postgres instance in the private subnets of `vpc`.

    :returns: The connection settings for the database and the database component.

    :rtype: tuple[DatabaseConfigBundle, KongPostgresDB]
    """
    database = KongPostgresDB(
        KongPostgresDBConfig(
            instance_name=f"{stack_config.name_prefix}-db",
            subnet_group_name=vpc.db_subnet_group.name,
            security_groups=[database_group],
            port=DEFAULT_POSTGRES_PORT,
            tags=stack_config.tags,
            region=stack_config.region,
        )
    )
    return database.config_bundle, database


def bootstrap_environment(
    config_bundle: DatabaseConfigBundle,
) -> dict[str, pulumi.Output[str] | str]:
    """Map the database connection settings onto the variables the image reads.

    Values are passed through as is. These names are what the image expects and must
    not change.
    """
    return {
        "DATABASE_BACKEND": DATABASE_BACKEND,
        "DB_HOST": config_bundle.host,
        "DB_DATABASE_NAME": config_bundle.database_name,
        "DB_USER": config_bundle.user,
        "DB_PASSWORD": config_bundle.password,
        "DB_PORT": config_bundle.port,
    }


def build_bootstrap_service(
    stack_config: KongStackConfig,
    vpc: KongVPC,
    cluster_group: ec2.SecurityGroup,
    config_bundle: DatabaseConfigBundle,
    opts: pulumi.ResourceOptions | None = None,
) -> KongEC2Service:
    task_config = KongEC2TaskDefinitionConfig(
        task_def_name=f"{stack_config.name_prefix}-bootstrap",
        container_definition_configs=[
            KongContainerDefinitionConfig(
                container_name="kong-bootstrap",
                image=KONG_IMAGE,
                memory=HALF_GIGABYTE_MB,
                command=KONG_BOOTSTRAP_COMMAND,
                environment=bootstrap_environment(config_bundle),
            )
        ],
    )
    return KongEC2Service(
        KongEC2ServiceConfig(
            service_name=f"{stack_config.name_prefix}-bootstrap",
            cluster_name=KONG_CLUSTER_NAME,
            desired_count=stack_config.desired_count,
            vpc_id=vpc.kong_vpc.id,
            subnet_ids=[subnet.id for subnet in vpc.private_subnets],
            security_groups=[cluster_group],
            capacity_pool=KongCapacityPoolConfig(min_size=1, max_size=1),
            task_definition_config=task_config,
            log_stream_prefix=KONG_LOG_STREAM_PREFIX,
            tags=stack_config.tags,
            region=stack_config.region,
        ),
        opts=opts,
    )


def build_kong_stack(stack_config: KongStackConfig) -> KongStack:
    """Declare the whole Kong stack in dependency order.

    :param stack_config: Inputs for this deployment.
    :type stack_config: KongStackConfig

    :returns: Handles to every declared component.

    :rtype: KongStack
    """
    pulumi.log.info(
        f"building Kong stack {stack_config.name_prefix} in {stack_config.cidr_block} "
        f"across {stack_config.zone_count} zones"
    )
    vpc = build_network(stack_config)

    database_group = database_security_group(
        vpc, stack_config.name_prefix, stack_config.tags
    )
    cluster_group = cluster_security_group(
        vpc, stack_config.name_prefix, stack_config.tags
    )
    # Containers connect to the database on start, so the service waits for the rule
    ingress_rule, ingress_rule_resource = allow_cluster_to_database(
        stack_config.name_prefix, database_group, cluster_group
    )

    config_bundle, database = build_database(stack_config, vpc, database_group)
    bootstrap_service = build_bootstrap_service(
        stack_config,
        vpc,
        cluster_group,
        config_bundle,
        opts=pulumi.ResourceOptions(depends_on=[ingress_rule_resource]),
    )

    return KongStack(
        vpc=vpc,
        database_security_group=database_group,
        cluster_security_group=cluster_group,
        database_ingress_rule=ingress_rule,
        database_ingress_rule_resource=ingress_rule_resource,
        database=database,
        config_bundle=config_bundle,
        bootstrap_service=bootstrap_service,
    )


def stack_exports(kong_stack: KongStack) -> dict[str, Any]:
    """Values shown to operators after a deployment. Nothing reads them back."""
    return {
        "db_user_secret_name": kong_stack.database.db_user_secret.secret_name,
        "db_password_secret_name": kong_stack.database.db_password_secret.secret_name,
        "db_instance_endpoint": kong_stack.config_bundle.host,
        "db_instance_port": kong_stack.config_bundle.port,
        "vpc_id": kong_stack.vpc.kong_vpc.id,
        "ecs_cluster_name": kong_stack.bootstrap_service.cluster.name,
    }
