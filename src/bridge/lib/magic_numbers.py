"""
Module of meaningful integer values.

This module consists of constants that are used to provide meaningful representations of
integer values used in infrastructure management.
"""

DEFAULT_POSTGRES_PORT = 5432

HALF_GIGABYTE_MB = 512

AWS_RDS_DEFAULT_DATABASE_CAPACITY = 20  # GiB
FLOW_LOG_RETENTION_DAYS = 30
GENERATED_SECRET_LENGTH = 20
MINIMUM_SECRET_LENGTH = 8
SUBNET_PREFIX_V4 = 24
