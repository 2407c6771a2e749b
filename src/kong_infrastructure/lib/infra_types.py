from enum import Enum, unique

from pydantic import BaseModel, field_validator

REQUIRED_TAGS = {"OU", "Environment"}
SUPPORTED_REGIONS = {
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "eu-west-1",
    "eu-central-1",
}


@unique
class BusinessUnit(str, Enum):
    """Canonical source of truth for defining valid OU tags.

    Resources are tagged with a valid OU to allow for cost allocation to the teams
    operating them.
    """

    api_gateway = "api-gateway"
    operations = "operations"
    platform = "platform"


@unique
class Environment(str, Enum):
    """Canonical reference for valid environment names."""

    ci = "ci"
    qa = "qa"
    production = "production"


class AWSBase(BaseModel):
    """Base class for configuration objects to pass to AWS component resources."""

    tags: dict[str, str]
    region: str = "us-east-1"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.tags.update({"pulumi_managed": "true"})

    @field_validator("tags")
    @classmethod
    def enforce_tags(cls, tags: dict[str, str]) -> dict[str, str]:
        if not REQUIRED_TAGS.issubset(tags.keys()):
            msg = f"Not all required tags have been specified. Missing tags: {REQUIRED_TAGS.difference(tags.keys())}"  # noqa: E501
            raise ValueError(msg)
        try:
            BusinessUnit(tags["OU"])
        except ValueError as exc:
            msg = "The OU tag specified is not a valid business unit"
            raise ValueError(msg) from exc
        return tags

    @field_validator("region")
    @classmethod
    def check_region(cls, region: str) -> str:
        if region not in SUPPORTED_REGIONS:
            msg = f"The specified region {region} is not one we deploy to"
            raise ValueError(msg)
        return region

    def merged_tags(self, *new_tags: dict[str, str]) -> dict[str, str]:
        """Return a dictionary of existing tags with the ones passed in.

        This generates a new dictionary of tags in order to allow for a broadly
        applicable set of tags to then be updated with specific tags to be set on child
        resources in a ComponentResource class.

        :param *new_tags: One or more dictionaries of specific tags to be set on
                            a child resource.
        :type new_tags: dict[str, str]

        :returns: Merged dictionary of base tags and specific tags to be set on a child
                  resource.

        :rtype: dict[str, str]
        """
        tag_dict = self.tags.copy()
        for tags in new_tags:
            tag_dict.update(tags)
        return tag_dict
