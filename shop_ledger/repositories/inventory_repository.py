# ==============================================================================
# REPOSITORIO DE INVENTARIO
# ==============================================================================
# Clave 'shop_products'. Se persiste como lista (orden de alta) y se indexa en
# memoria por código de barras.
# ==============================================================================

from typing import Any, Dict, List, Optional

from shop_ledger.errors import StorageError
from shop_ledger.models import Product

from .base import BaseRepository


class ProductRepository(BaseRepository):
    """
    Repositorio de productos.

    Formato persistido:
    {"schema_version": 1, "records": [
        {"barcode": "B1", "name": "...", "company": "...", "quantity": 10,
         "purchasePrice": 50, "sellingPrice": 80}
    ]}
    """

    KEY = 'shop_products'

    def __init__(self, store):
        super().__init__(store)
        self._products: Dict[str, Product] = {}

    def _empty(self) -> List:
        return []

    def _decode(self, records: Any) -> None:
        # Algunas copias antiguas guardaban {barcode: producto}
        if isinstance(records, dict):
            records = list(records.values())
        if not isinstance(records, list):
            raise StorageError(self.KEY, "se esperaba una lista de productos")
        products = {}
        for record in records:
            if not isinstance(record, dict):
                raise StorageError(self.KEY, f"producto inválido: {record!r}")
            product = Product.from_dict(record)
            products[product.barcode] = product
        self._products = products

    def _encode(self) -> List[Dict[str, Any]]:
        return [product.to_dict() for product in self._products.values()]

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get(self, barcode: str) -> Optional[Product]:
        self._ensure_loaded()
        return self._products.get(barcode)

    def exists(self, barcode: str) -> bool:
        self._ensure_loaded()
        return barcode in self._products

    def get_all(self) -> List[Product]:
        self._ensure_loaded()
        return list(self._products.values())

    # =========================================================================
    # MODIFICACIONES
    # =========================================================================

    def add(self, product: Product) -> None:
        """Agrega un producto (el servicio ya verificó que no exista)."""
        self._ensure_loaded()
        self._products[product.barcode] = product
        self.save()

    def delete(self, barcode: str) -> Optional[Product]:
        self._ensure_loaded()
        removed = self._products.pop(barcode, None)
        if removed is not None:
            self.save()
        return removed
