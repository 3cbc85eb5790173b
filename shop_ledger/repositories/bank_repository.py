# ==============================================================================
# REPOSITORIO DEL LIBRO DE BANCO
# ==============================================================================
# Lista única 'bankTransactions', siempre ordenada por fecha ascendente.
# ==============================================================================

from shop_ledger.dates import to_date
from shop_ledger.models import BankTransaction

from .base import ListRepository


def _sort_key(transaction: BankTransaction):
    day = to_date(transaction.date)
    return day.toordinal() if day else 0


class BankRepository(ListRepository):

    KEY = 'bankTransactions'

    def __init__(self, store):
        super().__init__(store, BankTransaction.from_dict)

    def _decode(self, records) -> None:
        super()._decode(records)
        self._records.sort(key=_sort_key)

    def insert_sorted(self, transaction: BankTransaction) -> None:
        """
        Agrega un movimiento y reordena por fecha. El orden es estable:
        movimientos del mismo día quedan en orden de registro.
        """
        self._ensure_loaded()
        self._records.append(transaction)
        self._records.sort(key=_sort_key)
        self.save()
