"""Connection configuration for MongoDataAccess.

Uses pydantic-settings so the same model is built from keyword arguments or
from the process environment.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import MongoConfigurationError


class MongoSettings(BaseSettings):
    """Where and how to connect.

    Exactly one connection shape is used: the emulator host when set,
    otherwise the managed-service host. Having neither is an error, raised
    when the URL is first built.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    env_prefix: str = Field(default="", validation_alias="ENV_PREFIX")
    db_name: str = Field(default="", validation_alias="MONGO_DB_NAME")
    username: str = Field(default="", validation_alias="MONGO_USERNAME")
    password: SecretStr = Field(
        default=SecretStr(""), validation_alias="MONGO_PASSWORD"
    )
    emulator_host: str | None = Field(
        default=None,
        validation_alias="MONGO_EMULATOR_HOST",
        description="host[:port] of a local emulator",
    )
    db_host: str | None = Field(
        default=None,
        validation_alias="MONGO_DB_HOST",
        description="Managed-service (SRV) host",
    )
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000

    @field_validator("emulator_host", "db_host", mode="before")
    @classmethod
    def _empty_host_is_unset(cls, value: str | None) -> str | None:
        return value or None

    @property
    def database_name(self) -> str:
        return f"{self.env_prefix}-{self.db_name}"

    def _credentials(self, mask_password: bool) -> str:
        if not self.username:
            return ""
        secret = self.password.get_secret_value()
        if mask_password and secret:
            secret = "****"
        return f"{quote_plus(self.username)}:{quote_plus(secret)}@"

    def connection_url(self, *, mask_password: bool = False) -> str:
        """Build the MongoDB URL for the configured shape.

        Raises:
            MongoConfigurationError: neither ``emulator_host`` nor ``db_host`` is set.
        """
        credentials = self._credentials(mask_password)
        if self.emulator_host:
            return f"mongodb://{credentials}{self.emulator_host}"
        if self.db_host:
            return (
                f"mongodb+srv://{credentials}{self.db_host}/{self.database_name}"
                "?retryWrites=true&w=majority"
            )
        raise MongoConfigurationError("Mongo host is missing")
