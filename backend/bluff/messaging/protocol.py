"""Transport-independent connection interface used by the broadcaster."""

from abc import ABC, abstractmethod
from typing import Any

from bluff.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    A live client connection.

    The broadcaster and router only see this interface, so subscription and
    fan-out logic is testable without real WebSockets.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str: ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        return decode(await self.receive_bytes())
