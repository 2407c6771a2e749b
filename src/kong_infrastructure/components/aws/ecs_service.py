# ruff: noqa: E501

"""This module defines a Pulumi component resource for running a container workload on
EC2 backed ECS capacity.

Included:
- ECS Cluster
- Launch template and auto scaling group providing container instances
- ECS Capacity Provider registered with the cluster
- ECS Task Definition with a CloudWatch log group
- ECS Service placed through the capacity provider

Required On Input:
- VPC (private subnets)
- Security group for the container instances

The service is long running. A container that exits, such as one running database
migrations, is restarted by ECS for as long as the desired count is above zero.
"""

import base64
import json

import pulumi
from pulumi_aws import autoscaling, cloudwatch, ec2, ecs, iam
from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeInt,
    PositiveInt,
    model_validator,
)

from kong_infrastructure.lib.aws.ec2_helper import (
    InstanceTypes,
    ecs_optimized_ami_id,
)
from kong_infrastructure.lib.aws.ecs.container_definition_config import (
    KongContainerLogConfig,
    build_container_log_options,
)
from kong_infrastructure.lib.aws.ecs.task_definition_config import (
    KongEC2TaskDefinitionConfig,
)
from kong_infrastructure.lib.infra_types import AWSBase

ECS_INSTANCE_ROLE_POLICY = (
    "arn:aws:iam::aws:policy/service-role/AmazonEC2ContainerServiceforEC2Role"
)


class KongCapacityPoolConfig(BaseModel):
    """Sizing of the auto scaling group that supplies the cluster with instances."""

    instance_type: str = InstanceTypes.burstable_micro.value
    min_size: PositiveInt = PositiveInt(1)
    max_size: PositiveInt = PositiveInt(1)
    capacity_weight: PositiveInt = PositiveInt(1)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_size > self.max_size:
            msg = f"min_size: {self.min_size} is larger than max_size: {self.max_size}"
            raise ValueError(msg)
        return self


class KongEC2ServiceConfig(AWSBase):
    """Configuration for constructing an ECS service on EC2 capacity."""

    # base name for all resources
    service_name: str
    # Name given to the ECS cluster that the service runs in
    cluster_name: str
    # Number of running copies of the task. Set to 0 to stop the workload.
    desired_count: NonNegativeInt = NonNegativeInt(1)
    # VPC that the container instances are launched into
    vpc_id: pulumi.Output[str] | str
    # Subnets for the container instances, normally the private subnets of the VPC
    subnet_ids: list[pulumi.Output[str] | str]
    # Security groups attached to the container instances
    security_groups: list[ec2.SecurityGroup]
    capacity_pool: KongCapacityPoolConfig = KongCapacityPoolConfig()
    # Task definition to be run by the service
    task_definition_config: KongEC2TaskDefinitionConfig
    # Retention for the container log group
    log_retention_days: PositiveInt = PositiveInt(30)
    # Prefix for the container log streams
    log_stream_prefix: str
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def check_network(self):
        if not self.subnet_ids:
            msg = "subnet_ids: at least one subnet is needed for container instances"
            raise ValueError(msg)
        if not self.security_groups:
            msg = "security_groups: container instances need a security group"
            raise ValueError(msg)
        return self


class KongEC2Service(pulumi.ComponentResource):
    def __init__(
        self,
        config: KongEC2ServiceConfig,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(
            "kong:infrastructure:aws:ecs:KongEC2Service",
            config.service_name,
            None,
            opts,
        )

        self.resource_options = pulumi.ResourceOptions(parent=self).merge(opts)

        pulumi.log.debug(f"creating ECS cluster {config.cluster_name}")
        self.cluster = ecs.Cluster(
            f"{config.service_name}-cluster",
            name=config.cluster_name,
            tags={**config.tags, "vpc_id": config.vpc_id},
            opts=self.resource_options,
        )

        self.build_capacity_pool(config)

        self.log_group = cloudwatch.LogGroup(
            f"{config.service_name}-log-group",
            name_prefix=f"ecs/{config.service_name}/",
            retention_in_days=config.log_retention_days,
            tags=config.tags,
            opts=self.resource_options,
        )

        task_config = config.task_definition_config
        self.container_definitions = self.build_container_definitions(config)
        pulumi.log.debug("container definitions constructed")

        self.task_definition = ecs.TaskDefinition(
            f"{config.service_name}-task-def",
            family=task_config.task_def_name,
            execution_role_arn=self.get_execution_role_arn(config),
            memory=task_config.memory_mib,
            network_mode=task_config.network_mode.value,
            requires_compatibilities=["EC2"],
            container_definitions=self.container_definitions,
            tags=config.tags,
            opts=self.resource_options,
        )

        pulumi.log.info(
            f"ECS service {config.service_name} desired count is "
            f"{config.desired_count}"
        )
        self.service = ecs.Service(
            f"{config.service_name}-service",
            name=f"{config.service_name}-service",
            cluster=self.cluster.arn,
            desired_count=config.desired_count,
            task_definition=self.task_definition.arn,
            capacity_provider_strategies=[
                ecs.ServiceCapacityProviderStrategyArgs(
                    capacity_provider=self.capacity_provider.name,
                    weight=config.capacity_pool.capacity_weight,
                )
            ],
            tags=config.tags,
            opts=pulumi.ResourceOptions.merge(
                self.resource_options,
                pulumi.ResourceOptions(depends_on=[self.cluster_capacity_providers]),
            ),
        )

        self.register_outputs(
            {
                "cluster": self.cluster,
                "capacity_provider": self.capacity_provider,
                "service": self.service,
                "task_definition": self.task_definition,
            }
        )

    def build_capacity_pool(self, config: KongEC2ServiceConfig):
        """Create the instances backing the cluster and register them with it.

        :param config: Configuration object for parameterizing the ECS service
        :type config: KongEC2ServiceConfig
        """
        pool_config = config.capacity_pool
        instance_role = iam.Role(
            f"{config.service_name}-instance-role",
            assume_role_policy=json.dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Principal": {"Service": "ec2.amazonaws.com"},
                            "Action": "sts:AssumeRole",
                        }
                    ],
                }
            ),
            tags=config.tags,
            opts=self.resource_options,
        )
        iam.RolePolicyAttachment(
            f"{config.service_name}-instance-role-policy-attachment",
            role=instance_role.name,
            policy_arn=ECS_INSTANCE_ROLE_POLICY,
            opts=self.resource_options,
        )
        instance_profile = iam.InstanceProfile(
            f"{config.service_name}-instance-profile",
            role=instance_role.name,
            opts=self.resource_options,
        )

        user_data = f"#!/bin/bash\necho ECS_CLUSTER={config.cluster_name} >> /etc/ecs/ecs.config\n"
        self.launch_template = ec2.LaunchTemplate(
            f"{config.service_name}-launch-template",
            name_prefix=f"{config.service_name}-",
            image_id=ecs_optimized_ami_id(),
            instance_type=pool_config.instance_type,
            iam_instance_profile=ec2.LaunchTemplateIamInstanceProfileArgs(
                arn=instance_profile.arn,
            ),
            vpc_security_group_ids=[group.id for group in config.security_groups],
            user_data=base64.b64encode(user_data.encode("utf8")).decode("utf8"),
            tags=config.tags,
            opts=self.resource_options,
        )

        pulumi.log.debug(
            f"capacity pool sized between {pool_config.min_size} and "
            f"{pool_config.max_size} {pool_config.instance_type} instances"
        )
        asg_tags = [
            autoscaling.GroupTagArgs(
                key=key_name,
                value=key_value,
                propagate_at_launch=True,
            )
            for key_name, key_value in config.merged_tags(
                {"AmazonECSManaged": "true"}
            ).items()
        ]
        self.auto_scale_group = autoscaling.Group(
            f"{config.service_name}-auto-scale-group",
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
            desired_capacity=pool_config.min_size,
            vpc_zone_identifiers=config.subnet_ids,
            launch_template=autoscaling.GroupLaunchTemplateArgs(
                id=self.launch_template.id,
                version="$Latest",
            ),
            tags=asg_tags,
            opts=self.resource_options,
        )

        self.capacity_provider = ecs.CapacityProvider(
            f"{config.service_name}-capacity-provider",
            auto_scaling_group_provider=ecs.CapacityProviderAutoScalingGroupProviderArgs(
                auto_scaling_group_arn=self.auto_scale_group.arn,
                managed_termination_protection="DISABLED",
                managed_scaling=ecs.CapacityProviderAutoScalingGroupProviderManagedScalingArgs(
                    status="ENABLED",
                    target_capacity=100,
                ),
            ),
            tags=config.tags,
            opts=self.resource_options,
        )
        self.cluster_capacity_providers = ecs.ClusterCapacityProviders(
            f"{config.service_name}-cluster-capacity-providers",
            cluster_name=self.cluster.name,
            capacity_providers=[self.capacity_provider.name],
            default_capacity_provider_strategies=[
                ecs.ClusterCapacityProvidersDefaultCapacityProviderStrategyArgs(
                    capacity_provider=self.capacity_provider.name,
                    weight=pool_config.capacity_weight,
                )
            ],
            opts=self.resource_options,
        )

    def build_container_definitions(
        self, config: KongEC2ServiceConfig
    ) -> pulumi.Output[str]:
        """Create the container definitions document for the task definition.

        :param config: Configuration object for parameterizing the ECS service
        :type config: KongEC2ServiceConfig

        :returns: The JSON encoded container definitions. Values that are only known
            once resources exist, such as the database endpoint, are resolved when the
            deployment runs.

        :rtype: pulumi.Output[str]
        """
        pulumi.log.debug("Creating container task definitions")

        definitions = []
        for container in config.task_definition_config.container_definition_configs:
            if container.log_configuration is None:
                container = container.model_copy(  # noqa: PLW2901
                    update={
                        "log_configuration": KongContainerLogConfig(
                            options=build_container_log_options(
                                self.log_group.name,
                                config.region,
                                config.log_stream_prefix,
                            )
                        )
                    }
                )
            definitions.append(container.container_definition())

        return pulumi.Output.json_dumps(definitions)

    def get_execution_role_arn(self, config: KongEC2ServiceConfig) -> pulumi.Output[str]:
        """Build an execution role with the base ECS managed policy.

        :param config: Configuration object for parameterizing the ECS service
        :type config: KongEC2ServiceConfig

        :returns: The ARN of an execution role to be used by the ECS service.

        :rtype: pulumi.Output[str]
        """
        pulumi.log.debug(
            "creating new task definition execution role with "
            "AmazonEcsTaskExecutionRolePolicy attached"
        )

        role = iam.Role(
            f"{config.task_definition_config.task_def_name}-role",
            assume_role_policy=json.dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "",
                            "Effect": "Allow",
                            "Principal": {"Service": "ecs-tasks.amazonaws.com"},
                            "Action": "sts:AssumeRole",
                        }
                    ],
                }
            ),
            tags=config.tags,
            opts=self.resource_options,
        )

        iam.RolePolicyAttachment(
            f"{config.task_definition_config.task_def_name}-policy-attachment",
            role=role.name,
            policy_arn=iam.ManagedPolicy.AMAZON_ECS_TASK_EXECUTION_ROLE_POLICY,
            opts=self.resource_options,
        )

        return role.arn
