# ==============================================================================
# SERVICIO DE TIEMPO REAL - Canal de cambios y notificaciones
# ==============================================================================
# Cada escritura de un servicio publica un cambio:
#   {"table": "orders", "event": "INSERT", "new": {...}, "old": None, "ts": "..."}
#
# Los suscriptores (streams SSE) reciben los cambios en una cola propia.
# Si un suscriptor no consume, se descartan sus eventos más antiguos:
# publicar nunca bloquea a quien escribe.
# ==============================================================================

import json
import threading
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterable, List, Optional

from discobar.models import ChangeType, utc_now_iso


class Subscription:
    """
    Suscripción a cambios de una o varias relaciones.

    Attributes:
        tables: Relaciones de interés (None = todas)
        dropped: Eventos descartados por cola llena
    """

    def __init__(self, feed: 'ChangeFeed', tables: Optional[Iterable[str]] = None, max_queue: int = 100):
        self._feed = feed
        self.tables = frozenset(tables) if tables else None
        self.queue: Queue = Queue(maxsize=max_queue)
        self.dropped = 0
        self.closed = False

    def wants(self, table: str) -> bool:
        return self.tables is None or table in self.tables

    def offer(self, change: Dict[str, Any]) -> None:
        """Encola un cambio descartando el más antiguo si la cola está llena."""
        while True:
            try:
                self.queue.put_nowait(change)
                return
            except Full:
                try:
                    self.queue.get_nowait()
                    self.dropped += 1
                except Empty:
                    pass

    def get(self, timeout: float = None) -> Optional[Dict[str, Any]]:
        """
        Espera el siguiente cambio.

        Returns:
            El cambio, o None si se agotó el timeout
        """
        try:
            return self.queue.get(timeout=timeout)
        except Empty:
            return None

    def drain(self) -> List[Dict[str, Any]]:
        """Retira todos los cambios pendientes sin esperar."""
        items = []
        while True:
            try:
                items.append(self.queue.get_nowait())
            except Empty:
                return items

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._feed.unsubscribe(self)


class ChangeFeed:
    """
    Bus de cambios en memoria, thread-safe.

    Uso:
        feed = ChangeFeed()
        sub = feed.subscribe(['orders'])
        feed.publish('orders', ChangeType.INSERT, new=order)
        change = sub.get(timeout=1)
    """

    def __init__(self, max_queue: int = 100):
        self._max_queue = max_queue
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, tables: Optional[Iterable[str]] = None) -> Subscription:
        sub = Subscription(self, tables, self._max_queue)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(
        self,
        table: str,
        event: ChangeType,
        new: Dict[str, Any] = None,
        old: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """
        Publica un cambio a todos los suscriptores interesados.

        Args:
            table: Relación modificada (orders, products, tables...)
            event: INSERT, UPDATE o DELETE
            new: Registro después del cambio
            old: Registro antes del cambio

        Returns:
            El cambio publicado
        """
        change = {
            'table': table,
            'event': ChangeType(event).value,
            'new': dict(new) if new is not None else None,
            'old': dict(old) if old is not None else None,
            'ts': utc_now_iso(),
        }
        with self._lock:
            targets = [s for s in self._subscribers if s.wants(table)]
        for sub in targets:
            sub.offer(change)
        return change


def format_sse(data: Dict[str, Any], event: str = None) -> str:
    """Serializa un mensaje en formato Server-Sent Events."""
    lines = []
    if event:
        lines.append(f'event: {event}')
    lines.append('data: ' + json.dumps(data, ensure_ascii=False))
    return '\n'.join(lines) + '\n\n'


KEEP_ALIVE = ': keep-alive\n\n'


# ==============================================================================
# NOTIFICACIONES PARA ADMINISTRADORES
# ==============================================================================

def notifications_for(change: Dict[str, Any], threshold: int) -> List[Dict[str, Any]]:
    """
    Deriva avisos para el administrador a partir de un cambio.

    - Nuevo pedido (INSERT en orders) → info
    - Producto agotado (stock cruza de > 0 a <= 0) → error
    - Stock bajo (stock cruza de > umbral a (0, umbral]) → warning

    Args:
        change: Cambio publicado por ChangeFeed
        threshold: Umbral de stock bajo configurado

    Returns:
        Lista de notificaciones {level, title, description, duration}
    """
    table = change.get('table')
    event = change.get('event')
    new = change.get('new') or {}
    old = change.get('old') or {}

    if table == 'orders' and event == ChangeType.INSERT.value:
        total = float(new.get('total_amount', 0) or 0)
        return [{
            'level': 'info',
            'title': 'Nuevo pedido creado',
            'description': f'Mesa asignada — Total: ${total:.2f}',
            'duration': 8000,
        }]

    if table == 'products' and event == ChangeType.UPDATE.value and old:
        stock = int(new.get('stock_quantity', 0) or 0)
        old_stock = int(old.get('stock_quantity', 0) or 0)
        name = new.get('name', '')

        if stock <= 0 < old_stock:
            return [{
                'level': 'error',
                'title': f'Sin stock: {name}',
                'description': 'El producto se ha agotado completamente.',
                'duration': 15000,
            }]
        if 0 < stock <= threshold < old_stock:
            return [{
                'level': 'warning',
                'title': f'Stock bajo: {name}',
                'description': f'Quedan solo {stock} unidades.',
                'duration': 10000,
            }]

    return []
