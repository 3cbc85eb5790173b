# ==============================================================================
# REPOSITORIOS DE CLIENTES
# ==============================================================================
# 'shop_customers'         -> lista de clientes
# 'shop_customer_ledgers'  -> {customer_id: [movimientos...]}
#
# Son dos raíces independientes; CustomerService mantiene la cascada
# (borrar cliente => borrar su libro).
# ==============================================================================

import uuid
from typing import Any, Dict, List, Optional

from shop_ledger.errors import StorageError
from shop_ledger.models import Customer, LedgerEntry

from .base import BaseRepository, ListRepository


def _with_stable_id(customer_id: str, position: int, entry: Any) -> Any:
    """
    Los movimientos antiguos no traen id. Se deriva uno fijo a partir del
    cliente, la posición y el timestamp, así el mismo dato da el mismo id en
    cada carga hasta que el próximo guardado lo deje escrito.
    """
    if not isinstance(entry, dict) or entry.get('id'):
        return entry
    seed = f"{customer_id}:{position}:{entry.get('timestamp', '')}"
    return dict(entry, id=uuid.uuid5(uuid.NAMESPACE_URL, seed).hex)


class CustomerRepository(ListRepository):

    KEY = 'shop_customers'

    def __init__(self, store):
        super().__init__(store, Customer.from_dict)


class CustomerLedgerRepository(BaseRepository):
    """
    Libro de cuenta de cada cliente, en orden de inserción.

    Formato persistido:
    {"schema_version": 1, "records": {
        "cust_1700000000000": [
            {"id": "...", "timestamp": "...", "description": "Fiado",
             "debit": 500, "credit": 0}
        ]
    }}
    """

    KEY = 'shop_customer_ledgers'

    def __init__(self, store):
        super().__init__(store)
        self._ledgers: Dict[str, List[LedgerEntry]] = {}

    def _empty(self) -> Dict:
        return {}

    def _decode(self, records: Any) -> None:
        if not isinstance(records, dict):
            raise StorageError(self.KEY, "se esperaba un objeto {cliente: movimientos}")
        ledgers = {}
        for customer_id, entries in records.items():
            if not isinstance(entries, list):
                raise StorageError(self.KEY, f"libro inválido para el cliente {customer_id}")
            ledgers[str(customer_id)] = [
                LedgerEntry.from_dict(_with_stable_id(str(customer_id), index, e))
                for index, e in enumerate(entries)
            ]
        self._ledgers = ledgers

    def _encode(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            customer_id: [entry.to_dict() for entry in entries]
            for customer_id, entries in self._ledgers.items()
        }

    def get_ledger(self, customer_id: str) -> List[LedgerEntry]:
        """Copia del libro (lista vacía si el cliente no tiene movimientos)."""
        self._ensure_loaded()
        return list(self._ledgers.get(customer_id, []))

    def create_ledger(self, customer_id: str) -> None:
        self._ensure_loaded()
        self._ledgers.setdefault(customer_id, [])
        self.save()

    def append_entry(self, customer_id: str, entry: LedgerEntry) -> None:
        self._ensure_loaded()
        self._ledgers.setdefault(customer_id, []).append(entry)
        self.save()

    def remove_entry(self, customer_id: str, entry_id: str) -> Optional[LedgerEntry]:
        self._ensure_loaded()
        entries = self._ledgers.get(customer_id, [])
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                removed = entries.pop(index)
                self.save()
                return removed
        return None

    def delete_ledger(self, customer_id: str) -> None:
        self._ensure_loaded()
        if self._ledgers.pop(customer_id, None) is not None:
            self.save()
