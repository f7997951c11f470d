import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from bluff.messaging.encoder import DecodeError, decode
from bluff.messaging.protocol import ConnectionProtocol
from bluff.messaging.types import ConnectionErrorCode, error_message

if TYPE_CHECKING:
    from bluff.messaging.router import MessageRouter

logger = structlog.get_logger()

# Close after this many undecodable frames in a row
_MAX_DECODE_ERRORS = 5
_TOO_MANY_DECODE_ERRORS_CODE = 4004


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        """Receive the next frame. Text frames are passed on as UTF-8 bytes and fail decoding."""
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError("WebSocket already disconnected")
        if message.get("bytes") is not None:
            return message["bytes"]
        return (message.get("text") or "").encode()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def _serve(connection: WebSocketConnection, router: "MessageRouter") -> None:
    """Feed decoded frames to the router until the client goes away or exhausts its strikes."""
    strikes = 0
    while True:
        raw = await connection.receive_bytes()
        try:
            data = decode(raw)
        except DecodeError as e:
            strikes += 1
            logger.warning("undecodable frame", error=str(e), strikes=strikes)
            await connection.send_message(
                error_message(ConnectionErrorCode.INVALID_MESSAGE, str(e)).model_dump(mode="json"),
            )
            if strikes >= _MAX_DECODE_ERRORS:
                logger.info("closing after repeated decode errors")
                await connection.close(code=_TOO_MANY_DECODE_ERRORS_CODE, reason="too_many_decode_errors")
                return
            continue

        strikes = 0
        await router.handle_message(connection, data)


async def websocket_endpoint(websocket: WebSocket, router: "MessageRouter") -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    try:
        await _serve(connection, router)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):
        pass
    except Exception:
        logger.exception("unexpected error on websocket")
        await connection.close(code=1011, reason="internal_error")
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
