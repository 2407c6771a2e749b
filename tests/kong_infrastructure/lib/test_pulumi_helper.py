from unittest import mock

import pytest

from kong_infrastructure.lib.infra_types import Environment
from kong_infrastructure.lib.pulumi_helper import StackInfo, parse_stack


def test_parse_running_stack():
    with mock.patch(
        "kong_infrastructure.lib.pulumi_helper.get_stack",
        return_value="applications.kong.QA",
    ):
        stack_info = parse_stack()
    assert stack_info == StackInfo(
        namespace="applications.kong",
        environment=Environment.qa,
        full_name="applications.kong.QA",
    )
    assert stack_info.application == "kong"


@pytest.mark.parametrize(
    ("stack_name", "environment"),
    [
        ("applications.kong.Production", Environment.production),
        ("applications.kong.CI", Environment.ci),
        ("qa", Environment.qa),
    ],
)
def test_parse_named_stack(stack_name, environment):
    assert parse_stack(stack_name).environment == environment


def test_unknown_environment_rejected():
    with pytest.raises(ValueError, match="applications.kong.Staging"):
        parse_stack("applications.kong.Staging")
