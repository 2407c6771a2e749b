from collections import defaultdict
from enum import Enum, unique
from functools import lru_cache

import boto3


@unique
class DBInstanceTypes(str, Enum):
    small = "db.t4g.small"
    medium = "db.t4g.medium"
    large = "db.t4g.large"
    general_purpose_large = "db.m7g.large"


@lru_cache
def rds_client():
    return boto3.client("rds")


@lru_cache
def db_engines() -> dict[str, list[str]]:
    """Generate a list of database engines and their currently available versions on
    RDS.

    :returns: Dictionary of engine names and the list of available versions

    :rtype: dict[str, list[str]]
    """
    all_engines_paginator = rds_client().get_paginator("describe_db_engine_versions")
    engines_versions = defaultdict(list)
    for engines_page in all_engines_paginator.paginate():
        for engine in engines_page["DBEngineVersions"]:
            engines_versions[engine["Engine"]].append(engine["EngineVersion"])
    return dict(engines_versions)


def engine_major_version(engine_version: str) -> str:
    return engine_version.split(".", maxsplit=1)[0]
