# ruff: noqa: E501

"""This module defines a Pulumi component resource for building the AWS VPC that hosts
the Kong database and its bootstrap cluster.

This includes:

- Create the named VPC with appropriate tags
- Create one public and one private subnet in each requested availability zone
- Create an internet gateway and a public route table
- Create NAT gateways so that private subnets have outbound access
- Create a route table per private subnet routed through a NAT gateway
- Create an RDS subnet group spanning the private subnets
- Capture accepted and rejected traffic with VPC flow logs in CloudWatch

"""

import json
from enum import Enum, unique
from ipaddress import IPv4Network
from typing import Literal, NamedTuple

from pulumi import ComponentResource, Output, ResourceOptions, log
from pulumi_aws import cloudwatch, ec2, iam, rds
from pydantic import PositiveInt, field_validator, model_validator

from bridge.lib.magic_numbers import FLOW_LOG_RETENTION_DAYS, SUBNET_PREFIX_V4
from kong_infrastructure.lib.aws.ec2_helper import availability_zones
from kong_infrastructure.lib.infra_types import AWSBase

MIN_ZONES = PositiveInt(2)
MAX_NET_PREFIX = SUBNET_PREFIX_V4 - 1  # A VPC must hold at least two /24 subnets


@unique
class SubnetTier(str, Enum):
    public = "public"
    private = "private"


DEFAULT_TIERS = (SubnetTier.public, SubnetTier.private)


class SubnetPlan(NamedTuple):
    tier: SubnetTier
    zone_index: int
    cidr_block: IPv4Network


def plan_subnets(
    cidr_block: IPv4Network,
    zone_count: int,
    tiers: tuple[SubnetTier, ...] = DEFAULT_TIERS,
) -> list[SubnetPlan]:
    """Lay out one /24 subnet per tier per availability zone.

    Subnets are allocated in order from the start of the VPC block, with every zone of
    a tier allocated before moving to the next tier.  For 10.0.0.0/16 across 2 zones
    that gives 10.0.0.0/24 and 10.0.1.0/24 as public and 10.0.2.0/24 and 10.0.3.0/24
    as private.

    :param cidr_block: The address block of the VPC.
    :type cidr_block: IPv4Network

    :param zone_count: The number of availability zones to spread across.
    :type zone_count: int

    :param tiers: The subnet tiers to create in every zone.
    :type tiers: tuple[SubnetTier, ...]

    :raises ValueError: If the block is too small for the requested subnets.

    :returns: The planned subnets, ordered by tier and then zone.

    :rtype: list[SubnetPlan]
    """
    network = IPv4Network(cidr_block)
    if zone_count < 1:
        msg = f"zone_count: {zone_count} must be a positive number of zones"
        raise ValueError(msg)
    required = zone_count * len(tiers)
    if network.prefixlen > SUBNET_PREFIX_V4:
        msg = f"cidr_block: {network} is smaller than a single /{SUBNET_PREFIX_V4} subnet"
        raise ValueError(msg)
    available = 2 ** (SUBNET_PREFIX_V4 - network.prefixlen)
    if required > available:
        msg = f"zone_count: {zone_count} zones need {required} /{SUBNET_PREFIX_V4} subnets but {network} only holds {available}"
        raise ValueError(msg)
    subnet_blocks = network.subnets(new_prefix=SUBNET_PREFIX_V4)
    return [
        SubnetPlan(tier=tier, zone_index=zone_index, cidr_block=next(subnet_blocks))
        for tier in tiers
        for zone_index in range(zone_count)
    ]


class KongVPCConfig(AWSBase):
    """Schema definition for VPC configuration values."""

    vpc_name: str
    cidr_block: IPv4Network
    zone_count: PositiveInt = MIN_ZONES
    nat_gateway_config: Literal["single", "all"] = "all"
    flow_log_retention_days: PositiveInt = PositiveInt(FLOW_LOG_RETENTION_DAYS)

    @field_validator("cidr_block")
    @classmethod
    def is_private_net(cls, network: IPv4Network) -> IPv4Network:
        """Ensure that only private subnets are assigned to VPC.

        :param network: CIDR block configured for the VPC to be created
        :type network: IPv4Network

        :raises ValueError: Raise a ValueError if the CIDR block is not for an RFC1918
            private network, or is too small

        :returns: IPv4Network object passed to validator function

        :rtype: IPv4Network
        """
        if not network.is_private:
            msg = "Specified CIDR block for VPC is not an RFC1918 private network"
            raise ValueError(msg)
        if network.prefixlen > MAX_NET_PREFIX:
            msg = f"Specified CIDR block has a prefix that is too large. Please specify a network with a prefix length of /{MAX_NET_PREFIX} or less"
            raise ValueError(msg)
        return network

    @field_validator("zone_count")
    @classmethod
    def min_zones(cls, zone_count: PositiveInt) -> PositiveInt:
        """Enforce that subnets are spread across enough availability zones.

        :param zone_count: Number of availability zones to create subnets in
        :type zone_count: PositiveInt

        :raises ValueError: Raise a ValueError if fewer than MIN_ZONES are requested

        :rtype: PositiveInt
        """
        if zone_count < MIN_ZONES:
            msg = f"There should be at least {MIN_ZONES} availability zones to allow for a multi-AZ database"
            raise ValueError(msg)
        return zone_count

    @model_validator(mode="after")
    def check_subnets_fit(self):
        plan_subnets(self.cidr_block, self.zone_count)
        return self


class KongVPC(ComponentResource):
    """Pulumi component for building all of the networking pieces that the database
    and the container cluster are deployed into.
    """

    def __init__(self, vpc_config: KongVPCConfig, opts: ResourceOptions | None = None):  # noqa: PLR0915
        """Build an AWS VPC with public and private subnets, gateways and flow logs.

        :param vpc_config: Configuration object for customizing the created VPC and
            associated resources.
        :type vpc_config: KongVPCConfig

        :param opts: Optional resource options to be merged into the defaults.  Useful
            for handling things like AWS provider overrides.
        :type opts: Optional[ResourceOptions]
        """
        super().__init__("kong:infrastructure:aws:VPC", vpc_config.vpc_name, None, opts)
        resource_options = ResourceOptions.merge(
            ResourceOptions(parent=self),
            opts,
        )
        self.vpc_config = vpc_config
        self.kong_vpc = ec2.Vpc(
            vpc_config.vpc_name,
            cidr_block=str(vpc_config.cidr_block),
            enable_dns_support=True,
            enable_dns_hostnames=True,
            tags=vpc_config.merged_tags({"Name": vpc_config.vpc_name}),
            opts=resource_options,
        )

        self.gateway = ec2.InternetGateway(
            f"{vpc_config.vpc_name}-internet-gateway",
            vpc_id=self.kong_vpc.id,
            tags=vpc_config.tags,
            opts=resource_options,
        )

        self.public_route_table = ec2.RouteTable(
            f"{vpc_config.vpc_name}-public-route-table",
            vpc_id=self.kong_vpc.id,
            tags=vpc_config.tags,
            opts=resource_options,
        )
        ec2.Route(
            f"{vpc_config.vpc_name}-default-external-network-route",
            route_table_id=self.public_route_table.id,
            destination_cidr_block="0.0.0.0/0",
            gateway_id=self.gateway.id,
            opts=resource_options,
        )

        self.zones: list[str] = availability_zones(vpc_config.zone_count)
        self.subnet_plan = plan_subnets(vpc_config.cidr_block, vpc_config.zone_count)
        log.debug(
            f"planned subnets for {vpc_config.vpc_name}: "
            f"{[(plan.tier.value, str(plan.cidr_block)) for plan in self.subnet_plan]}"
        )

        self.public_subnets: list[ec2.Subnet] = []
        self.private_subnets: list[ec2.Subnet] = []
        self.nat_gateways: list[ec2.NatGateway] = []
        self.private_route_tables: list[ec2.RouteTable] = []

        for plan in self.subnet_plan:
            if plan.tier != SubnetTier.public:
                continue
            net_name = f"{vpc_config.vpc_name}-public-subnet-{plan.zone_index + 1}"
            public_subnet = ec2.Subnet(
                net_name,
                cidr_block=str(plan.cidr_block),
                availability_zone=self.zones[plan.zone_index],
                vpc_id=self.kong_vpc.id,
                map_public_ip_on_launch=True,
                tags=vpc_config.merged_tags(
                    {"Name": net_name, "tier": SubnetTier.public.value}
                ),
                opts=resource_options,
            )
            ec2.RouteTableAssociation(
                f"{net_name}-route-table-association",
                subnet_id=public_subnet.id,
                route_table_id=self.public_route_table.id,
                opts=resource_options,
            )
            self.public_subnets.append(public_subnet)

            # With a single NAT gateway it lives in the first zone
            if vpc_config.nat_gateway_config == "all" or plan.zone_index == 0:
                elastic_ip_allocation = ec2.Eip(
                    f"{net_name}-nat-gateway-eip",
                    domain="vpc",
                    tags=vpc_config.tags,
                    opts=resource_options,
                )
                self.nat_gateways.append(
                    ec2.NatGateway(
                        f"{net_name}-nat-gateway",
                        subnet_id=public_subnet.id,
                        allocation_id=elastic_ip_allocation.id,
                        tags=vpc_config.merged_tags({"Name": f"{net_name}-nat"}),
                        opts=ResourceOptions.merge(
                            resource_options,
                            ResourceOptions(depends_on=[self.gateway]),
                        ),
                    )
                )

        for plan in self.subnet_plan:
            if plan.tier != SubnetTier.private:
                continue
            net_name = f"{vpc_config.vpc_name}-private-subnet-{plan.zone_index + 1}"
            private_subnet = ec2.Subnet(
                net_name,
                cidr_block=str(plan.cidr_block),
                availability_zone=self.zones[plan.zone_index],
                vpc_id=self.kong_vpc.id,
                map_public_ip_on_launch=False,
                tags=vpc_config.merged_tags(
                    {"Name": net_name, "tier": SubnetTier.private.value}
                ),
                opts=resource_options,
            )
            private_route_table = ec2.RouteTable(
                f"{net_name}-route-table",
                vpc_id=self.kong_vpc.id,
                tags=vpc_config.tags,
                opts=resource_options,
            )
            nat_gateway = self.nat_gateways[plan.zone_index % len(self.nat_gateways)]
            ec2.Route(
                f"{net_name}-default-external-network-route",
                route_table_id=private_route_table.id,
                destination_cidr_block="0.0.0.0/0",
                nat_gateway_id=nat_gateway.id,
                opts=resource_options,
            )
            ec2.RouteTableAssociation(
                f"{net_name}-route-table-association",
                subnet_id=private_subnet.id,
                route_table_id=private_route_table.id,
                opts=resource_options,
            )
            self.private_subnets.append(private_subnet)
            self.private_route_tables.append(private_route_table)

        self.db_subnet_group = rds.SubnetGroup(
            f"{vpc_config.vpc_name}-db-subnet-group",
            description=f"RDS subnet group for {vpc_config.vpc_name}",
            name=f"{vpc_config.vpc_name}-db-subnet-group",
            subnet_ids=[net.id for net in self.private_subnets],
            tags=vpc_config.tags,
            opts=resource_options,
        )

        self.flow_log_group = cloudwatch.LogGroup(
            f"{vpc_config.vpc_name}-flow-log-group",
            name_prefix=f"vpc/{vpc_config.vpc_name}/flow-logs-",
            retention_in_days=vpc_config.flow_log_retention_days,
            tags=vpc_config.tags,
            opts=resource_options,
        )
        self.flow_log_role = iam.Role(
            f"{vpc_config.vpc_name}-flow-log-role",
            assume_role_policy=json.dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Principal": {"Service": "vpc-flow-logs.amazonaws.com"},
                            "Action": "sts:AssumeRole",
                        }
                    ],
                }
            ),
            tags=vpc_config.tags,
            opts=resource_options,
        )
        iam.RolePolicy(
            f"{vpc_config.vpc_name}-flow-log-role-policy",
            role=self.flow_log_role.id,
            policy=Output.json_dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Action": [
                                "logs:CreateLogStream",
                                "logs:PutLogEvents",
                                "logs:DescribeLogGroups",
                                "logs:DescribeLogStreams",
                            ],
                            "Resource": [
                                self.flow_log_group.arn,
                                Output.concat(self.flow_log_group.arn, ":*"),
                            ],
                        }
                    ],
                }
            ),
            opts=resource_options,
        )
        self.flow_log = ec2.FlowLog(
            f"{vpc_config.vpc_name}-flow-log",
            vpc_id=self.kong_vpc.id,
            traffic_type="ALL",
            log_destination_type="cloud-watch-logs",
            log_destination=self.flow_log_group.arn,
            iam_role_arn=self.flow_log_role.arn,
            tags=vpc_config.tags,
            opts=resource_options,
        )

        self.register_outputs(
            {
                "kong_vpc": self.kong_vpc,
                "public_subnets": self.public_subnets,
                "private_subnets": self.private_subnets,
                "route_table": self.public_route_table,
                "rds_subnet_group": self.db_subnet_group,
                "flow_log": self.flow_log,
            }
        )

    @property
    def subnets(self) -> list[ec2.Subnet]:
        return self.public_subnets + self.private_subnets
