# app/events.py
"""Bus de eventos en proceso para cambios de jerarquía"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HierarchyChanged:
    organization_id: int
    employee_id: Optional[int]
    action: str  # created, updated, deleted, cleared


class EventBus:
    """
    Publicación/suscripción síncrona.
    Los suscriptores (notificaciones, auditoría) se registran por tipo de evento.
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type, handler: Callable) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def publish(self, event) -> None:
        logger.info(f"Evento emitido: {event}")
        for handler in list(self._handlers[type(event)]):
            # La escritura ya se confirmó: un suscriptor caído solo se registra
            try:
                handler(event)
            except Exception:
                logger.exception(f"Falló el suscriptor {handler!r} con el evento {event}")


# Instancia global usada por la capa de jerarquía
event_bus = EventBus()
