from typing import NamedTuple

from pulumi import ResourceOptions
from pulumi_aws import ec2

from bridge.lib.magic_numbers import DEFAULT_POSTGRES_PORT
from kong_infrastructure.components.aws.vpc import KongVPC
from kong_infrastructure.lib.aws.ec2_helper import default_egress_args


class DatabaseIngressRule(NamedTuple):
    """The only inbound rule in the stack: cluster instances reaching Postgres."""

    protocol: str
    port: int
    source: ec2.SecurityGroup
    target: ec2.SecurityGroup


def database_security_group(
    vpc: KongVPC, name_prefix: str, tags: dict[str, str]
) -> ec2.SecurityGroup:
    """Create the security group that fronts the database.

    The group starts without inbound rules. Access is granted by
    `allow_cluster_to_database` with a reference to another group.

    :param vpc: The VPC that the security group is being created in.
    :type vpc: KongVPC

    :param name_prefix: Prefix for the security group name.
    :type name_prefix: str

    :param tags: Tags to apply to the security group.
    :type tags: dict[str, str]

    :returns: The security group for the database.

    :rtype: ec2.SecurityGroup
    """
    return ec2.SecurityGroup(
        f"{name_prefix}-db-security-group",
        name_prefix=f"{name_prefix}-db-",
        description="Access to the Kong Postgres database",
        vpc_id=vpc.kong_vpc.id,
        egress=default_egress_args,
        tags=tags,
    )


def cluster_security_group(
    vpc: KongVPC, name_prefix: str, tags: dict[str, str]
) -> ec2.SecurityGroup:
    """Create the security group attached to the ECS container instances."""
    return ec2.SecurityGroup(
        f"{name_prefix}-ecs-security-group",
        name_prefix=f"{name_prefix}-ecs-",
        description="ECS container instances running the Kong bootstrap",
        vpc_id=vpc.kong_vpc.id,
        egress=default_egress_args,
        tags=tags,
    )


def allow_cluster_to_database(
    name_prefix: str,
    database_group: ec2.SecurityGroup,
    cluster_group: ec2.SecurityGroup,
    port: int = DEFAULT_POSTGRES_PORT,
) -> tuple[DatabaseIngressRule, ec2.SecurityGroupRule]:
    """Allow the cluster security group to reach the database port.

    The source is the cluster security group rather than an address range, so only
    instances carrying that group can connect.

    :returns: A description of the rule and the declared rule resource.

    :rtype: tuple[DatabaseIngressRule, ec2.SecurityGroupRule]
    """
    ingress_rule = DatabaseIngressRule(
        protocol="tcp", port=port, source=cluster_group, target=database_group
    )
    rule_resource = ec2.SecurityGroupRule(
        f"{name_prefix}-postgres-from-ecs-rule",
        type="ingress",
        protocol=ingress_rule.protocol,
        from_port=ingress_rule.port,
        to_port=ingress_rule.port,
        description="Postgres access from the ECS cluster",
        source_security_group_id=cluster_group.id,
        security_group_id=database_group.id,
        opts=ResourceOptions(parent=database_group),
    )
    return ingress_rule, rule_resource
