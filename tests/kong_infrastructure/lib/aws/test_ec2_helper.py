from unittest import mock

import pytest

from kong_infrastructure.lib.aws.ec2_helper import availability_zones

ZONES = ["us-east-1a", "us-east-1b", "us-east-1c"]


@pytest.fixture
def available_zones():
    with mock.patch(
        "kong_infrastructure.lib.aws.ec2_helper.aws.get_availability_zones",
        return_value=mock.Mock(names=ZONES),
    ) as get_zones:
        yield get_zones


def test_first_zones_returned(available_zones):
    assert availability_zones(2) == ["us-east-1a", "us-east-1b"]
    available_zones.assert_called_once_with(state="available")


def test_too_few_zones(available_zones):  # noqa: ARG001
    with pytest.raises(ValueError, match="zone_count"):
        availability_zones(4)
