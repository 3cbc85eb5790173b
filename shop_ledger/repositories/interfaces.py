# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
# Los servicios dependen de estos protocolos, no de las clases concretas.
# Para cambiar JSON por una base de datos basta con una nueva implementación
# y registrarla en app_container.py.
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from shop_ledger.models import (
    LedgerEntry,
    Product,
    ShopSettings,
)


@runtime_checkable
class IKeyValueStore(Protocol):
    """
    Almacén clave-valor de strings.
    get() retorna None cuando la clave no existe (colección vacía/por defecto).
    """

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


@runtime_checkable
class IRepository(Protocol):
    """Operaciones mínimas de cualquier repositorio."""

    def save(self) -> None:
        """Persiste la colección completa."""
        ...

    def reload(self) -> None:
        """Recarga datos desde el almacenamiento."""
        ...

    def clear(self) -> None:
        ...


@runtime_checkable
class IListRepository(IRepository, Protocol):
    """
    Colecciones en lista con id.
    Usado por: ventas, compras, servicios, gastos, clientes, banco.
    """

    def get_all(self) -> List[Any]:
        ...

    def find_by_id(self, record_id: str) -> Optional[Any]:
        ...

    def append(self, record: Any) -> None:
        ...

    def remove(self, record_id: str) -> Optional[Any]:
        ...


@runtime_checkable
class IProductRepository(IRepository, Protocol):
    """Inventario indexado por código de barras."""

    def get(self, barcode: str) -> Optional[Product]:
        ...

    def exists(self, barcode: str) -> bool:
        ...

    def get_all(self) -> List[Product]:
        ...

    def add(self, product: Product) -> None:
        ...

    def delete(self, barcode: str) -> Optional[Product]:
        ...


@runtime_checkable
class ICustomerLedgerRepository(IRepository, Protocol):
    """Libros de cuenta por cliente."""

    def get_ledger(self, customer_id: str) -> List[LedgerEntry]:
        ...

    def append_entry(self, customer_id: str, entry: LedgerEntry) -> None:
        ...

    def remove_entry(self, customer_id: str, entry_id: str) -> Optional[LedgerEntry]:
        ...

    def create_ledger(self, customer_id: str) -> None:
        ...

    def delete_ledger(self, customer_id: str) -> None:
        ...


@runtime_checkable
class ISettingsRepository(IRepository, Protocol):

    def load(self) -> ShopSettings:
        ...

    def update(self, settings: ShopSettings) -> None:
        ...


@runtime_checkable
class IAuditRepository(IRepository, Protocol):

    def load(self) -> List[Dict[str, Any]]:
        ...

    def log(
        self,
        log_type: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None,
        timestamp: str = None,
    ) -> None:
        ...


__all__ = [
    'IKeyValueStore',
    'IRepository',
    'IListRepository',
    'IProductRepository',
    'ICustomerLedgerRepository',
    'ISettingsRepository',
    'IAuditRepository',
]
