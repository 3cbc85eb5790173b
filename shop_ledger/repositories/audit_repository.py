# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Registro de actividad legible ('shop_audit'), lista de diccionarios:
#   {"type": "VENTA", "message": "...", "timestamp": "...",
#    "related_id": "...", "details": {...}}
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List

from shop_ledger.errors import StorageError

from .base import BaseRepository


class AuditRepository(BaseRepository):

    KEY = 'shop_audit'

    # Límite de registros para evitar blobs muy grandes
    MAX_LOGS = 10000

    def __init__(self, store):
        super().__init__(store)
        self._logs: List[Dict[str, Any]] = []

    def _empty(self) -> List:
        return []

    def _decode(self, records: Any) -> None:
        if not isinstance(records, list):
            raise StorageError(self.KEY, "se esperaba una lista de eventos")
        self._logs = [r for r in records if isinstance(r, dict)]

    def _encode(self) -> List[Dict[str, Any]]:
        return self._logs

    def load(self) -> List[Dict[str, Any]]:
        """
        Returns:
            Lista de eventos (más recientes primero)
        """
        self._ensure_loaded()
        return sorted(self._logs, key=lambda x: x.get('timestamp', ''), reverse=True)

    def log(
        self,
        log_type: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None,
        timestamp: str = None,
    ) -> None:
        """
        Agrega un evento y persiste, respetando MAX_LOGS (se descartan los
        más antiguos).
        """
        self._ensure_loaded()
        self._logs.append({
            'type': log_type,
            'message': message,
            'timestamp': timestamp or datetime.now().isoformat(timespec='seconds'),
            'related_id': related_id,
            'details': details or {},
        })
        if len(self._logs) > self.MAX_LOGS:
            self._logs = self._logs[-self.MAX_LOGS:]
        self.save()
