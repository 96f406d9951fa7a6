"""
Event routing for validated webhook payloads.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from .events import WebhookEvent
from .handlers import HandlerResult
from .validator import Payload
from ..utils.exceptions import UnboundHandler
from ..utils.logging_config import WEBHOOKS_LOG_NAME

logger = logging.getLogger(WEBHOOKS_LOG_NAME)

# callback(event, payload, status_code, body)
HookCallback = Callable[[WebhookEvent, Optional[dict], int, Optional[str]], None]


class EventRouter:
    """
    Dispatches a payload to the one handler bound to its event.

    There is no fallback handler. Observers registered with
    add_hook_after() run after the handler committed its result and only
    see that result; they cannot change the response.
    """

    def __init__(self, bindings: Dict[WebhookEvent, Callable[[Payload], HandlerResult]]):
        self.bindings = dict(bindings)
        self._hooks: List[Tuple[Optional[WebhookEvent], HookCallback]] = []

    def verify_bindings(self) -> None:
        """
        Check every known event has a handler.

        Raises:
            UnboundHandler: For the first event without handler
        """
        for event in WebhookEvent:
            if event not in self.bindings:
                raise UnboundHandler(event.value)

    def add_hook_after(self, callback: HookCallback, event: Optional[WebhookEvent] = None) -> None:
        """
        Register an observer run after a handler completes.

        Args:
            callback: Called with (event, payload, status_code, body)
            event: Only observe this event; None observes all events
        """
        self._hooks.append((event, callback))

    def dispatch(self, payload: Payload) -> HandlerResult:
        """
        Run the handler bound to the payload event, then the observers.

        Raises:
            UnboundHandler: If no handler is bound to the event
        """
        handler = self.bindings.get(payload.event)
        if handler is None:
            logger.error(f'_handle_webhook_data: no handler bound for {payload.event.value}')
            raise UnboundHandler(payload.event.value)

        result = handler(payload)
        self._run_hooks(payload.event, result)
        return result

    def _run_hooks(self, event: WebhookEvent, result: HandlerResult) -> None:
        for hook_event, callback in list(self._hooks):
            if hook_event is not None and hook_event != event:
                continue
            try:
                callback(event, result.payload, result.status_code, result.body)
            except Exception:
                logger.exception(f'Webhook hook {callback!r} failed for {event.value}')
