import pytest
from pydantic import ValidationError

from kong_infrastructure.components.aws.database import (
    POSTGRES_ENGINE_VERSION,
    DatabaseConfigBundle,
    KongDBConfig,
    KongPostgresDBConfig,
)
from kong_infrastructure.lib.aws.secrets_helper import PASSWORD_RULES, USERNAME_RULES


@pytest.fixture
def valid_config(mock_tags, mock_security_group):
    return {
        "instance_name": "kong-qa-db",
        "subnet_group_name": "kong-qa-vpc-db-subnet-group",
        "security_groups": [mock_security_group],
        "tags": mock_tags,
    }


@pytest.mark.usefixtures("supported_db_engines")
def test_postgres_defaults(valid_config):
    db_config = KongPostgresDBConfig(**valid_config)
    assert db_config.engine == "postgres"
    assert db_config.engine_version == POSTGRES_ENGINE_VERSION
    assert db_config.db_name == "kong"
    assert db_config.port == 5432  # noqa: PLR2004
    assert db_config.multi_az is True
    assert db_config.public_access is False
    assert db_config.username_rules == USERNAME_RULES
    assert db_config.password_rules == PASSWORD_RULES


@pytest.mark.usefixtures("supported_db_engines")
def test_public_access_is_rejected(valid_config):
    with pytest.raises(ValidationError):
        KongPostgresDBConfig(**valid_config, public_access=True)


@pytest.mark.usefixtures("supported_db_engines")
def test_engine_validation(valid_config):
    with pytest.raises(ValidationError):
        KongPostgresDBConfig(**valid_config, engine="bad_engine")


@pytest.mark.usefixtures("supported_db_engines")
def test_engine_version_validation(valid_config):
    with pytest.raises(ValidationError):
        KongPostgresDBConfig(**valid_config, engine_version="badversion")


@pytest.mark.usefixtures("supported_db_engines")
def test_security_group_required(valid_config):
    valid_config["security_groups"] = []
    with pytest.raises(ValidationError):
        KongPostgresDBConfig(**valid_config)


@pytest.mark.usefixtures("supported_db_engines")
def test_generic_config_needs_engine(valid_config):
    with pytest.raises(ValidationError):
        KongDBConfig(**valid_config, db_name="kong", port=5432)


def test_config_bundle_is_immutable():
    bundle = DatabaseConfigBundle(
        host="kong.example.us-east-1.rds.amazonaws.com",
        port="5432",
        database_name="kong",
        user="kongadmin",
        password="not-a-real-password",  # noqa: S106
    )
    with pytest.raises(ValidationError):
        bundle.port = "5433"
