"""Rules for credentials that are generated at deploy time rather than written down.

The rules mirror the options of a Secrets Manager generated secret and are translated
into the inputs of a `pulumi_random.RandomPassword` so that the value only ever exists
as a secret output of the deployment.
"""

import string
from typing import Any

from pydantic import BaseModel, ConfigDict, PositiveInt, model_validator

from bridge.lib.magic_numbers import GENERATED_SECRET_LENGTH, MINIMUM_SECRET_LENGTH

# Characters that break a connection string or shell quoting when embedded in one
CONNECTION_STRING_UNSAFE_CHARACTERS = "/ @\"'"


class SecretGenerationRules(BaseModel):
    """Character constraints for a generated secret value."""

    length: PositiveInt = PositiveInt(GENERATED_SECRET_LENGTH)
    exclude_uppercase: bool = False
    exclude_lowercase: bool = False
    exclude_numbers: bool = False
    exclude_punctuation: bool = False
    exclude_characters: str = ""
    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_generatable(self):
        if self.length < MINIMUM_SECRET_LENGTH:
            msg = f"length: generated secrets must be at least {MINIMUM_SECRET_LENGTH} characters long"  # noqa: E501
            raise ValueError(msg)
        if not self.character_pool():
            msg = "exclude_characters: the rules leave no characters to generate from"
            raise ValueError(msg)
        return self

    def special_characters(self) -> str:
        if self.exclude_punctuation:
            return ""
        return "".join(
            char for char in string.punctuation if char not in self.exclude_characters
        )

    def character_pool(self) -> str:
        """Return every character a value generated under these rules may contain."""
        pool = ""
        if not self.exclude_lowercase:
            pool += string.ascii_lowercase
        if not self.exclude_uppercase:
            pool += string.ascii_uppercase
        if not self.exclude_numbers:
            pool += string.digits
        pool += self.special_characters()
        return "".join(char for char in pool if char not in self.exclude_characters)

    def accepts(self, value: str) -> bool:
        """Check a generated value against the rules.

        :param value: A concrete secret value, e.g. one read back from the secret store.
        :type value: str

        :returns: True if the value has the configured length and only allowed
            characters.

        :rtype: bool
        """
        allowed = set(self.character_pool())
        return len(value) == self.length and all(char in allowed for char in value)

    def random_password_args(self) -> dict[str, Any]:
        """Translate the rules into `pulumi_random.RandomPassword` arguments."""
        special = self.special_characters()
        password_args: dict[str, Any] = {
            "length": self.length,
            "lower": not self.exclude_lowercase,
            "upper": not self.exclude_uppercase,
            "numeric": not self.exclude_numbers,
            "special": bool(special),
        }
        if special:
            password_args["override_special"] = special
        return password_args


USERNAME_RULES = SecretGenerationRules(
    exclude_uppercase=True,
    exclude_numbers=True,
    exclude_punctuation=True,
)

PASSWORD_RULES = SecretGenerationRules(
    exclude_characters=CONNECTION_STRING_UNSAFE_CHARACTERS,
)
