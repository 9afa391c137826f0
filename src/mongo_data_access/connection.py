"""MongoConnectionManager — a Motor client bound to one configured database."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from motor.motor_asyncio import AsyncIOMotorClient

from .exceptions import MongoConnectionError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

    from .settings import MongoSettings


class MongoConnectionManager:
    """Lazily opens one Motor client for a :class:`MongoSettings`.

    The URL is built at construction, so a configuration without any host
    fails before anything touches the network. Accessors sharing a manager
    share its pool; rebinding a collection never reconnects.
    """

    def __init__(self, settings: MongoSettings, **client_options: Any) -> None:
        self._url = settings.connection_url()
        self._database_name = settings.database_name
        self._client_options = {
            "serverSelectionTimeoutMS": settings.server_selection_timeout_ms,
            "connectTimeoutMS": settings.connect_timeout_ms,
            **client_options,
        }
        self._client: AsyncIOMotorClient[Any] | None = None

    @property
    def database_name(self) -> str:
        return self._database_name

    async def connect(self) -> AsyncIOMotorDatabase[Any]:
        """Open the client on first call and return the bound database."""
        if self._client is None:
            try:
                self._client = AsyncIOMotorClient(self._url, **self._client_options)
            except Exception as e:
                raise MongoConnectionError(str(e)) from e
        return self.database

    @property
    def database(self) -> AsyncIOMotorDatabase[Any]:
        if self._client is None:
            raise MongoConnectionError("Not connected; call connect() first")
        return self._client.get_database(self._database_name)

    def collection(self, name: str) -> AsyncIOMotorCollection[Any]:
        return self.database.get_collection(name)

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()
