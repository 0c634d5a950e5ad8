# relaychat/services/ws_manager.py
from typing import Dict, Any, List, Set, Tuple, Protocol
from dataclasses import dataclass
import asyncio
import json
import logging

logger = logging.getLogger(__name__)


class LiveConnection(Protocol):
    async def send_text(self, data: str) -> None: ...


@dataclass
class DeliveryResult:
    delivered: int = 0
    failed: int = 0


class ConnectionRegistry:
    """
    Реестр live-сессий: user_id -> множество открытых соединений.

    Перед каждой рассылкой берется снимок под блокировкой, поэтому отключение
    во время broadcast не ломает перебор.
    """

    def __init__(self):
        self._connections: Dict[int, Set[LiveConnection]] = {}
        self._lock = asyncio.Lock()

    # === ПОДКЛЮЧЕНИЕ/ОТКЛЮЧЕНИЕ ===
    async def register(self, user_id: int, connection: LiveConnection) -> None:
        async with self._lock:
            self._connections.setdefault(user_id, set()).add(connection)
        logger.info(f"User {user_id} connected ({self.connection_count()} live)")

    async def unregister(self, user_id: int, connection: LiveConnection) -> None:
        async with self._lock:
            sessions = self._connections.get(user_id)
            if sessions is None:
                return
            sessions.discard(connection)
            if not sessions:
                del self._connections[user_id]
        logger.info(f"User {user_id} disconnected")

    def is_connected(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def connection_count(self) -> int:
        return sum(len(sessions) for sessions in self._connections.values())

    # === ОТПРАВКА СООБЩЕНИЙ ===
    async def broadcast(self, payload: Dict[str, Any]) -> DeliveryResult:
        """Всем подключенным сессиям, параллельно"""
        async with self._lock:
            targets = [
                (user_id, connection)
                for user_id, sessions in self._connections.items()
                for connection in sessions
            ]
        return await self._fan_out(targets, payload)

    async def send_to(self, user_id: int, payload: Dict[str, Any]) -> DeliveryResult:
        """Только сессиям конкретного пользователя"""
        async with self._lock:
            targets = [(user_id, connection) for connection in self._connections.get(user_id, ())]
        return await self._fan_out(targets, payload)

    async def _fan_out(
        self,
        targets: List[Tuple[int, LiveConnection]],
        payload: Dict[str, Any],
    ) -> DeliveryResult:
        result = DeliveryResult()
        if not targets:
            return result

        text = json.dumps(payload, default=str)
        outcomes = await asyncio.gather(
            *(connection.send_text(text) for _, connection in targets),
            return_exceptions=True,
        )
        for (user_id, connection), outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                # Обрыв соединения во время отправки не ошибка рассылки
                logger.warning(f"Push to user {user_id} failed: {outcome!r}")
                result.failed += 1
                await self.unregister(user_id, connection)
            else:
                result.delivered += 1
        return result


registry = ConnectionRegistry()
