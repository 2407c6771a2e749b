"""Pulumi component for a credential that is generated at deploy time.

The value is produced by `pulumi_random` when the stack is applied, stored in AWS
Secrets Manager, and handed to consumers only as a secret Output. It never appears in
source or in configuration.
"""

import pulumi
import pulumi_random
from pulumi_aws import secretsmanager

from kong_infrastructure.lib.aws.secrets_helper import SecretGenerationRules
from kong_infrastructure.lib.infra_types import AWSBase


class KongGeneratedSecretConfig(AWSBase):
    secret_name: str
    description: str
    rules: SecretGenerationRules
    # Secrets are removed immediately when the stack is destroyed
    recovery_window_in_days: int = 0


class KongGeneratedSecret(pulumi.ComponentResource):
    def __init__(
        self,
        secret_config: KongGeneratedSecretConfig,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(
            "kong:infrastructure:aws:GeneratedSecret",
            secret_config.secret_name,
            None,
            opts,
        )
        resource_options = pulumi.ResourceOptions(parent=self).merge(opts)
        self.rules = secret_config.rules

        pulumi.log.debug(
            f"generating secret {secret_config.secret_name} with "
            f"{secret_config.rules.length} characters"
        )
        self.generated_value = pulumi_random.RandomPassword(
            f"{secret_config.secret_name}-value",
            opts=resource_options,
            **secret_config.rules.random_password_args(),
        )

        self.secret = secretsmanager.Secret(
            f"{secret_config.secret_name}-secret",
            name_prefix=f"{secret_config.secret_name}-",
            description=secret_config.description,
            recovery_window_in_days=secret_config.recovery_window_in_days,
            tags=secret_config.tags,
            opts=resource_options,
        )

        self.secret_version = secretsmanager.SecretVersion(
            f"{secret_config.secret_name}-secret-version",
            secret_id=self.secret.id,
            secret_string=self.generated_value.result,
            opts=resource_options,
        )

        self.secret_name: pulumi.Output[str] = self.secret.name
        self.value: pulumi.Output[str] = pulumi.Output.secret(
            self.generated_value.result
        )

        self.register_outputs(
            {
                "secret_name": self.secret_name,
                "secret_arn": self.secret.arn,
            }
        )
