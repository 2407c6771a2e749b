"""Stack naming for the Kong program.

Stacks are named `<namespace>.<Environment>`, e.g. `applications.kong.QA`. The last
segment picks the deployment environment and every resource name is derived from it.
"""

from dataclasses import dataclass

from pulumi import get_stack

from kong_infrastructure.lib.infra_types import Environment


@dataclass(frozen=True)
class StackInfo:
    namespace: str
    environment: Environment
    full_name: str

    @property
    def application(self) -> str:
        """The last segment of the namespace, e.g. `kong`."""
        return self.namespace.rsplit(".", 1)[-1]


def parse_stack(stack_name: str | None = None) -> StackInfo:
    """Split a stack name into its namespace and deployment environment.

    :param stack_name: Fully qualified stack name. Defaults to the running stack.
    :type stack_name: str | None

    :raises ValueError: If the stack name does not end in a known environment.

    :returns: Parsed stack information for use in business logic.

    :rtype: StackInfo
    """
    full_name = stack_name or get_stack()
    namespace, _, environment_name = full_name.rpartition(".")
    try:
        environment = Environment(environment_name.lower())
    except ValueError as exc:
        valid_names = ", ".join(env.value for env in Environment)
        msg = f"Stack {full_name} must end in one of the environments: {valid_names}"
        raise ValueError(msg) from exc
    return StackInfo(
        namespace=namespace,
        environment=environment,
        full_name=full_name,
    )
