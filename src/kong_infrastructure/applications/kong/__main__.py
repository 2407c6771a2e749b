"""Create the database and bootstrap cluster that a Kong gateway stores its state in."""

from pulumi import Config, export

from kong_infrastructure.applications.kong.stack import (
    KongStackConfig,
    build_kong_stack,
    stack_exports,
)
from kong_infrastructure.lib.pulumi_helper import parse_stack

##################################
##    Setup + Config Retrival   ##
##################################

stack_info = parse_stack()
kong_config = Config("kong")
stack_config = KongStackConfig.from_pulumi_config(kong_config, stack_info)

kong_stack = build_kong_stack(stack_config)

for export_name, export_value in stack_exports(kong_stack).items():
    export(export_name, export_value)
