"""Credential shared by every request of a run."""

import os
from dataclasses import dataclass, field

from .errors import ConfigurationError, MissingCredentialError

DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"


@dataclass(frozen=True)
class SessionContext:
    """
    Read-only credential threaded through every transport call.

    Created once per run and injected into the transport; immutable, so
    concurrent split branches read it without locking.
    """

    api_key: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key must be a non-empty string")

    def __repr__(self) -> str:
        return f"SessionContext(api_key='{self.masked_key}')"

    @property
    def masked_key(self) -> str:
        if len(self.api_key) <= 8:
            return "***"
        return f"{self.api_key[:3]}...{self.api_key[-4:]}"

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @classmethod
    def from_env(cls, var_name: str = DEFAULT_API_KEY_ENV) -> "SessionContext":
        """
        Build the context from an environment variable.

        Args:
            var_name: Name of the variable holding the API secret

        Raises:
            MissingCredentialError: If the variable is unset or empty
        """
        value = os.environ.get(var_name, "")
        if not value.strip():
            raise MissingCredentialError(
                f"Environment variable {var_name} is not set; "
                "export it or add it to a .env file"
            )
        return cls(api_key=value.strip())
