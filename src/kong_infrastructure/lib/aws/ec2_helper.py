"""Helper functions for working with EC2 resources."""

from enum import Enum, unique

import pulumi
import pulumi_aws as aws
from pulumi_aws import ec2

ECS_OPTIMIZED_AMI_NAME = "amzn2-ami-ecs-hvm-*-x86_64-ebs"
AMAZON_AMI_OWNER = "amazon"

default_egress_args = [
    ec2.SecurityGroupEgressArgs(
        from_port=0,
        to_port=0,
        protocol="-1",
        cidr_blocks=["0.0.0.0/0"],
        ipv6_cidr_blocks=["::/0"],
        description="Allow all outbound traffic",
    )
]


@unique
class InstanceTypes(str, Enum):
    burstable_micro = "t2.micro"
    burstable_small = "t3a.small"
    burstable_medium = "t3a.medium"
    general_purpose_large = "m5a.large"


def availability_zones(zone_count: int) -> list[str]:
    """Return the first `zone_count` available zones in the current region.

    :param zone_count: The number of zones the caller needs to spread across.
    :type zone_count: int

    :raises ValueError: If the region offers fewer zones than requested.

    :returns: The ordered list of availability zone names.

    :rtype: list[str]
    """
    zones = aws.get_availability_zones(state="available").names
    pulumi.log.debug(f"available zones in region: {zones}")
    if len(zones) < zone_count:
        msg = (
            f"zone_count: {zone_count} zones were requested but only "
            f"{len(zones)} are available"
        )
        raise ValueError(msg)
    return list(zones[:zone_count])


def ecs_optimized_ami_id() -> str:
    """Look up the most recent ECS optimized Amazon Linux 2 AMI.

    :returns: The AMI ID used for ECS container instances.

    :rtype: str
    """
    ami = ec2.get_ami(
        filters=[
            ec2.GetAmiFilterArgs(name="name", values=[ECS_OPTIMIZED_AMI_NAME]),
            ec2.GetAmiFilterArgs(name="virtualization-type", values=["hvm"]),
        ],
        most_recent=True,
        owners=[AMAZON_AMI_OWNER],
    )
    return ami.id
