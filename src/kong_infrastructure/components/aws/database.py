"""This module defines a Pulumi component resource for the Postgres database that Kong
stores its configuration in.

This includes:

- Generate the master username and password and store them in Secrets Manager
- Create a parameter group for the database
- Create the DB instance in the private subnets of the VPC
- Derive the connection settings for consumers of the database
"""

from pulumi import ComponentResource, Output, ResourceOptions, log
from pulumi_aws import ec2, rds
from pydantic import (
    BaseModel,
    ConfigDict,
    PositiveInt,
    ValidationInfo,
    field_validator,
)

from bridge.lib.magic_numbers import (
    AWS_RDS_DEFAULT_DATABASE_CAPACITY,
    DEFAULT_POSTGRES_PORT,
)
from kong_infrastructure.components.aws.generated_secret import (
    KongGeneratedSecret,
    KongGeneratedSecretConfig,
)
from kong_infrastructure.lib.aws.rds_helper import (
    DBInstanceTypes,
    db_engines,
    engine_major_version,
)
from kong_infrastructure.lib.aws.secrets_helper import (
    PASSWORD_RULES,
    USERNAME_RULES,
    SecretGenerationRules,
)
from kong_infrastructure.lib.infra_types import AWSBase

POSTGRES_ENGINE_VERSION = "16.4"


class DatabaseConfigBundle(BaseModel):
    """Connection settings for the provisioned database.

    Every field other than the database name is only known once the deployment has
    created the instance and generated the credentials, so they are carried as Outputs.
    """

    host: Output[str] | str
    port: Output[str] | str
    database_name: str
    user: Output[str] | str
    password: Output[str] | str
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class KongDBConfig(AWSBase):
    engine: str
    engine_version: str
    instance_name: str  # The name of the RDS instance
    db_name: str  # The name of the database schema to create
    subnet_group_name: Output[str] | str
    security_groups: list[ec2.SecurityGroup]
    port: PositiveInt
    instance_size: str = DBInstanceTypes.medium.value
    storage: PositiveInt = PositiveInt(AWS_RDS_DEFAULT_DATABASE_CAPACITY)
    multi_az: bool = True
    public_access: bool = False
    iam_authentication: bool = True
    username_rules: SecretGenerationRules = USERNAME_RULES
    password_rules: SecretGenerationRules = PASSWORD_RULES
    parameter_overrides: list[dict[str, str | bool | int | float]] = []  # noqa: RUF012
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("engine")
    @classmethod
    def is_valid_engine(cls, engine: str) -> str:
        valid_engines = db_engines()
        if engine not in valid_engines:
            msg = "The specified DB engine is not a valid option in AWS."
            raise ValueError(msg)
        return engine

    @field_validator("engine_version")
    @classmethod
    def is_valid_version(cls, engine_version: str, info: ValidationInfo) -> str:
        engine = info.data.get("engine")
        engines_map = db_engines()
        if engine_version not in engines_map.get(engine, []):
            msg = f"The specified version of the {engine} engine is not supported in AWS."  # noqa: E501
            raise ValueError(msg)
        return engine_version

    @field_validator("public_access")
    @classmethod
    def is_not_public(cls, public_access: bool) -> bool:  # noqa: FBT001
        if public_access:
            msg = "Databases are only reachable from inside the VPC and can not be made public."  # noqa: E501
            raise ValueError(msg)
        return public_access

    @field_validator("security_groups")
    @classmethod
    def has_security_group(
        cls, security_groups: list[ec2.SecurityGroup]
    ) -> list[ec2.SecurityGroup]:
        if not security_groups:
            msg = "At least one security group must control access to the database."
            raise ValueError(msg)
        return security_groups


class KongPostgresDBConfig(KongDBConfig):
    engine: str = "postgres"
    engine_version: str = POSTGRES_ENGINE_VERSION
    db_name: str = "kong"
    port: PositiveInt = PositiveInt(DEFAULT_POSTGRES_PORT)
    parameter_overrides: list[dict[str, str | bool | int | float]] = [  # noqa: RUF012
        {"name": "client_encoding", "value": "UTF8"},
        {"name": "log_timezone", "value": "UTC"},
        {"name": "timezone", "value": "UTC"},
    ]


class KongPostgresDB(ComponentResource):
    """Postgres instance with generated credentials and derived connection settings."""

    def __init__(self, db_config: KongDBConfig, opts: ResourceOptions | None = None):
        super().__init__(
            "kong:infrastructure:aws:rds:PostgresDB",
            db_config.instance_name,
            None,
            opts,
        )

        resource_options = ResourceOptions(parent=self).merge(opts)

        # Both credentials must exist before the instance that consumes them
        self.db_user_secret = KongGeneratedSecret(
            KongGeneratedSecretConfig(
                secret_name=f"{db_config.instance_name}-db-user",
                description=f"Database user for {db_config.db_name}",
                rules=db_config.username_rules,
                tags=db_config.tags,
                region=db_config.region,
            ),
            opts=resource_options,
        )
        self.db_password_secret = KongGeneratedSecret(
            KongGeneratedSecretConfig(
                secret_name=f"{db_config.instance_name}-db-password",
                description=f"Database password for {db_config.db_name}",
                rules=db_config.password_rules,
                tags=db_config.tags,
                region=db_config.region,
            ),
            opts=resource_options,
        )

        self.parameter_group = rds.ParameterGroup(
            f"{db_config.instance_name}-{db_config.engine}-parameter-group",
            family=f"{db_config.engine}{engine_major_version(db_config.engine_version)}",
            name_prefix=f"{db_config.instance_name}-{db_config.engine}-",
            parameters=[
                rds.ParameterGroupParameterArgs(
                    name=str(parameter["name"]), value=str(parameter["value"])
                )
                for parameter in db_config.parameter_overrides
            ],
            tags=db_config.tags,
            opts=resource_options,
        )

        log.info(
            f"declaring {db_config.engine} {db_config.engine_version} instance "
            f"{db_config.instance_name} ({db_config.instance_size})"
        )
        self.db_instance = rds.Instance(
            f"{db_config.instance_name}-{db_config.engine}-instance",
            allocated_storage=db_config.storage,
            auto_minor_version_upgrade=True,
            copy_tags_to_snapshot=True,
            db_name=db_config.db_name,
            db_subnet_group_name=db_config.subnet_group_name,
            engine=db_config.engine,
            engine_version=db_config.engine_version,
            iam_database_authentication_enabled=db_config.iam_authentication,
            identifier_prefix=f"{db_config.instance_name}-",
            instance_class=db_config.instance_size,
            multi_az=db_config.multi_az,
            parameter_group_name=self.parameter_group.name,
            password=self.db_password_secret.value,
            port=db_config.port,
            publicly_accessible=False,
            final_snapshot_identifier=f"{db_config.instance_name}-{db_config.engine}-final-snapshot",  # noqa: E501
            skip_final_snapshot=False,
            storage_encrypted=True,
            tags=db_config.tags,
            username=self.db_user_secret.value,
            vpc_security_group_ids=[group.id for group in db_config.security_groups],
            opts=ResourceOptions.merge(
                resource_options,
                ResourceOptions(
                    depends_on=[self.db_user_secret, self.db_password_secret]
                ),
            ),
        )

        self.config_bundle = DatabaseConfigBundle(
            host=self.db_instance.address,
            port=self.db_instance.port.apply(str),
            database_name=db_config.db_name,
            user=self.db_user_secret.value,
            password=self.db_password_secret.value,
        )

        self.register_outputs(
            {
                "db_user_secret_name": self.db_user_secret.secret_name,
                "db_password_secret_name": self.db_password_secret.secret_name,
                "db_instance_endpoint": self.db_instance.address,
                "db_instance_port": self.config_bundle.port,
                "parameter_group": self.parameter_group,
                "rds_instance": self.db_instance,
            }
        )
