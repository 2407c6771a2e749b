import string

import pytest
from pydantic import ValidationError

from kong_infrastructure.lib.aws.secrets_helper import (
    CONNECTION_STRING_UNSAFE_CHARACTERS,
    PASSWORD_RULES,
    USERNAME_RULES,
    SecretGenerationRules,
)


def test_username_rules_only_allow_lowercase():
    assert USERNAME_RULES.character_pool() == string.ascii_lowercase
    assert USERNAME_RULES.accepts("kongadminuserxyzabcd")


@pytest.mark.parametrize(
    "value",
    [
        "kongadminuser1234567",  # digits
        "KongAdminUserXyzAbcd",  # uppercase
        "kong-admin-user-xyza",  # punctuation
        "kongadmin",  # too short
    ],
)
def test_username_rules_reject(value):
    assert not USERNAME_RULES.accepts(value)


@pytest.mark.parametrize("char", list(CONNECTION_STRING_UNSAFE_CHARACTERS))
def test_password_pool_excludes_unsafe_characters(char):
    assert char not in PASSWORD_RULES.character_pool()
    assert not PASSWORD_RULES.accepts(char * PASSWORD_RULES.length)


def test_password_rules_keep_other_character_classes():
    pool = PASSWORD_RULES.character_pool()
    assert set(string.ascii_letters + string.digits).issubset(pool)
    assert "!" in pool
    assert PASSWORD_RULES.length == 20  # noqa: PLR2004


def test_random_password_args_for_username():
    assert USERNAME_RULES.random_password_args() == {
        "length": 20,
        "lower": True,
        "upper": False,
        "numeric": False,
        "special": False,
    }


def test_random_password_args_override_special():
    password_args = PASSWORD_RULES.random_password_args()
    assert password_args["special"] is True
    for char in CONNECTION_STRING_UNSAFE_CHARACTERS:
        assert char not in password_args["override_special"]


def test_rules_must_leave_characters():
    with pytest.raises(ValidationError):
        SecretGenerationRules(
            exclude_lowercase=True,
            exclude_uppercase=True,
            exclude_numbers=True,
            exclude_punctuation=True,
        )


def test_rules_minimum_length():
    with pytest.raises(ValidationError):
        SecretGenerationRules(length=4)


def test_rules_are_immutable():
    with pytest.raises(ValidationError):
        USERNAME_RULES.length = 30
