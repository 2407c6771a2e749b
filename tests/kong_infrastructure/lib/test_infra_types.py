import pytest
from pydantic import ValidationError

from kong_infrastructure.lib.infra_types import AWSBase, BusinessUnit

VALID_TAGS = {"OU": "api-gateway", "Environment": "qa"}


def test_tag_validation():
    with pytest.raises(ValueError):  # noqa: PT011
        AWSBase(tags={"foo": "bar", "Environment": "qa"})
    with pytest.raises(ValueError):  # noqa: PT011
        AWSBase(tags={"foo": "bar", "OU": "api-gateway"})
    with pytest.raises(ValidationError):
        AWSBase(tags={"Environment": "qa", "OU": "not-a-business-unit"})


def test_region_validation():
    with pytest.raises(ValueError):  # noqa: PT011
        AWSBase(tags=VALID_TAGS, region="us-east-0")


def test_merged_tags():
    base_config = AWSBase(tags=VALID_TAGS)
    new_tags = base_config.merged_tags({"Foo": "bar"}, {"Name": "kong"})
    assert new_tags == {
        "OU": "api-gateway",
        "Environment": "qa",
        "pulumi_managed": "true",
        "Foo": "bar",
        "Name": "kong",
    }


def test_pulumi_managed_tag():
    base_config = AWSBase(tags=VALID_TAGS)
    assert base_config.tags.pop("pulumi_managed") == "true"
    assert "pulumi_managed" not in VALID_TAGS


def test_business_unit_values():
    assert BusinessUnit("api-gateway") is BusinessUnit.api_gateway
