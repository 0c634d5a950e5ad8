# relaychat/api/v1/routes/ws.py
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import async_sessionmaker
from relaychat.core.exceptions import AuthenticationError
from relaychat.core.utils import get_registry, get_session_factory
from relaychat.repositories.user_repository import UserRepository
from relaychat.services.auth_service import AuthService
from relaychat.services.ws_manager import ConnectionRegistry
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/chat")
async def chat_socket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_registry),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    token = websocket.query_params.get("token")

    # Сессия БД нужна только на время проверки токена
    async with session_factory() as session:
        try:
            user = await AuthService(UserRepository(session)).get_current_user(token)
        except AuthenticationError as e:
            logger.warning(f"WS: rejected connection: {e.detail}")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
            return
    user_id = user.id

    await websocket.accept()
    await registry.register(user_id, websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"WS: user {user_id} disconnected")
    except Exception as e:
        logger.error(f"WS: socket error for user {user_id}: {e}")
    finally:
        await registry.unregister(user_id, websocket)
