# relaychat/services/dispatcher.py
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass
import inspect
import logging

from relaychat.core.exceptions import DispatchFailure
from relaychat.services.ws_manager import ConnectionRegistry, DeliveryResult, registry

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Итог live-доставки одного сообщения. Передается слушателям для аудита / повтора"""
    message_id: Optional[int]
    mode: str                      # global / direct
    recipient: Optional[int] = None
    delivered: int = 0
    failed: int = 0
    error: Optional[str] = None


DispatchListener = Callable[[DispatchReport], Any]


class DeliveryDispatcher:
    """
    Вторая фаза отправки: best-effort рассылка уже сохраненного сообщения.

    Никогда не повторяет отправку и никогда не откатывает запись. Ошибка
    реестра превращается в DispatchFailure, попадает в отчет и в лог.
    """

    def __init__(self, connection_registry: ConnectionRegistry):
        self.registry = connection_registry
        self._listeners: List[DispatchListener] = []

    def add_listener(self, listener: DispatchListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: DispatchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def dispatch(self, payload: Dict[str, Any]) -> DispatchReport:
        recipient = payload.get("recipient")
        report = DispatchReport(
            message_id=payload.get("id"),
            mode="global" if recipient is None else "direct",
            recipient=recipient,
        )

        try:
            result = await self._deliver(recipient, payload)
        except DispatchFailure as e:
            report.error = e.detail
            logger.error(f"Dispatch of message {report.message_id} failed: {e.detail}")
        else:
            report.delivered = result.delivered
            report.failed = result.failed
            if report.mode == "direct" and result.delivered == 0:
                logger.info(f"Recipient {recipient} offline, message {report.message_id} left for history")

        await self._notify(report)
        return report

    async def _deliver(self, recipient: Optional[int], payload: Dict[str, Any]) -> DeliveryResult:
        try:
            if recipient is None:
                return await self.registry.broadcast(payload)
            return await self.registry.send_to(recipient, payload)
        except Exception as e:
            raise DispatchFailure(f"{type(e).__name__}: {e}") from e

    async def _notify(self, report: DispatchReport) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(report)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(f"Dispatch listener {listener!r} failed")


dispatcher = DeliveryDispatcher(registry)
