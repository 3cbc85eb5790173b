# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Productos indexados por código de barras. El stock solo cambia por ventas
# (resta), compras y devoluciones (suma); nunca queda negativo.
# ==============================================================================

import logging
from typing import Any, Callable, Dict, List, Optional

from shop_ledger.errors import DuplicateKey, InsufficientStock, NotFound, ValidationError
from shop_ledger.models import Product, StockStatus, money
from shop_ledger.repositories.interfaces import IProductRepository, ISettingsRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import (
    optional_text,
    require_non_negative_int,
    require_non_negative_number,
    require_text,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = frozenset(['name', 'barcode', 'any'])


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - Alta, edición y baja de productos
    - Control de stock (entradas y salidas)
    - Búsqueda y estado de stock (agotado / bajo / disponible)
    - Valorización del inventario
    """

    def __init__(
        self,
        product_repo: IProductRepository,
        settings_repo: ISettingsRepository,
        audit_service: AuditService = None
    ):
        """
        Args:
            product_repo: Repositorio de productos
            settings_repo: Repositorio de configuración (umbral de stock bajo)
            audit_service: Servicio de auditoría (opcional)
        """
        self.product_repo = product_repo
        self.settings_repo = settings_repo
        self.audit_service = audit_service
        self._initial_stock_recorder: Optional[Callable[[Product], Any]] = None

    def set_initial_stock_recorder(self, recorder: Callable[[Product], Any]) -> None:
        """
        Configura quién registra la compra implícita de un producto nuevo con
        stock inicial (ProcurementService.record_initial_stock).
        """
        self._initial_stock_recorder = recorder

    @property
    def low_stock_threshold(self) -> int:
        return self.settings_repo.load().low_stock_threshold

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self) -> List[Product]:
        return self.product_repo.get_all()

    def find(self, barcode: str) -> Optional[Product]:
        """Producto por código de barras o None."""
        return self.product_repo.get(str(barcode).strip())

    def get_product(self, barcode: str) -> Product:
        """
        Raises:
            NotFound: si el código no existe
        """
        product = self.find(barcode)
        if product is None:
            raise NotFound('Producto', barcode)
        return product

    def search(self, term: str, field: str = 'name') -> List[Product]:
        """
        Búsqueda por subcadena sin distinguir mayúsculas.

        Args:
            term: Texto a buscar (vacío = todos)
            field: 'name', 'barcode' o 'any' (nombre, código o empresa)
        """
        if field not in SEARCH_FIELDS:
            raise ValidationError(f"Campo de búsqueda inválido: {field}")
        needle = (term or '').strip().lower()
        products = self.product_repo.get_all()
        if not needle:
            return products

        def haystack(p: Product) -> List[str]:
            if field == 'name':
                return [p.name]
            if field == 'barcode':
                return [p.barcode]
            return [p.name, p.barcode, p.company]

        return [p for p in products if any(needle in (h or '').lower() for h in haystack(p))]

    def stock_status(self, product: Product) -> StockStatus:
        return product.stock_status(self.low_stock_threshold)

    def filter_by_status(self, status: str) -> List[Product]:
        """
        Args:
            status: 'all', 'out-of-stock', 'low-stock' o 'in-stock'
        """
        products = self.product_repo.get_all()
        if status == 'all':
            return products
        try:
            wanted = StockStatus(status)
        except ValueError:
            raise ValidationError(f"Estado de stock inválido: {status}")
        threshold = self.low_stock_threshold
        return [p for p in products if p.stock_status(threshold) == wanted]

    def low_stock_products(self) -> List[Product]:
        """Productos con 0 < cantidad <= umbral."""
        return self.filter_by_status(StockStatus.LOW_STOCK.value)

    def inventory_valuation(self) -> Dict[str, Any]:
        """
        Listado imprimible del inventario.

        Returns:
            {'rows': [...], 'total_products': int, 'total_value': float}
        """
        threshold = self.low_stock_threshold
        rows = []
        total_value = 0.0
        for product in self.product_repo.get_all():
            value = product.stock_value
            total_value += value
            rows.append({
                'barcode': product.barcode,
                'name': product.name,
                'company': product.company,
                'quantity': product.quantity,
                'purchase_price': product.purchase_price,
                'selling_price': product.selling_price,
                'stock_value': money(value),
                'status': product.stock_status(threshold).value,
            })
        return {
            'rows': rows,
            'total_products': len(rows),
            'total_value': money(total_value),
        }

    # =========================================================================
    # OPERACIONES DE PRODUCTOS
    # =========================================================================

    def add_product(
        self,
        barcode: str,
        name: str,
        company: str,
        quantity: Any = 0,
        purchase_price: Any = 0,
        selling_price: Any = 0
    ) -> Product:
        """
        Crea un producto. Si trae stock inicial se registra además una compra
        implícita con ese stock.

        Raises:
            ValidationError: datos obligatorios vacíos o números negativos
            DuplicateKey: el código de barras ya existe
        """
        barcode = require_text(barcode, 'El código de barras')
        name = require_text(name, 'El nombre del producto')
        company = require_text(company, 'La empresa')
        quantity = require_non_negative_int(quantity, 'La cantidad')
        purchase_price = require_non_negative_number(purchase_price, 'El precio de compra')
        selling_price = require_non_negative_number(selling_price, 'El precio de venta')

        if self.product_repo.exists(barcode):
            logger.warning("Alta rechazada: código duplicado %s", barcode)
            raise DuplicateKey(barcode)

        product = Product(
            barcode=barcode,
            name=name,
            company=company,
            quantity=quantity,
            purchase_price=money(purchase_price),
            selling_price=money(selling_price),
        )
        self.product_repo.add(product)
        logger.info("Producto creado %s (%s) stock=%d", barcode, name, quantity)

        if quantity > 0 and self._initial_stock_recorder is not None:
            self._initial_stock_recorder(product)

        if self.audit_service:
            self.audit_service.log_product_created(barcode, name, quantity)
        return product

    def update_product(
        self,
        barcode: str,
        name: str = None,
        company: str = None,
        purchase_price: Any = None,
        selling_price: Any = None
    ) -> Product:
        """
        Edita datos descriptivos y precios. La cantidad no se edita aquí:
        solo cambia por ventas, compras o ajustes.
        """
        product = self.get_product(barcode)
        updates = {}
        if name is not None:
            updates['name'] = require_text(name, 'El nombre del producto')
        if company is not None:
            updates['company'] = optional_text(company)
        if purchase_price is not None:
            updates['purchase_price'] = money(require_non_negative_number(purchase_price, 'El precio de compra'))
        if selling_price is not None:
            updates['selling_price'] = money(require_non_negative_number(selling_price, 'El precio de venta'))

        for attr, value in updates.items():
            setattr(product, attr, value)
        if updates:
            self.product_repo.save()
            logger.info("Producto %s actualizado: %s", barcode, sorted(updates))
        return product

    def remove_product(self, barcode: str) -> Product:
        """
        Elimina el producto. Las ventas y compras históricas conservan su copia
        del nombre y precios.
        """
        product = self.get_product(barcode)
        self.product_repo.delete(product.barcode)
        logger.info("Producto eliminado %s", product.barcode)
        if self.audit_service:
            self.audit_service.log_product_deleted(product.barcode, product.name)
        return product

    # =========================================================================
    # CONTROL DE STOCK
    # =========================================================================

    def check_stock_changes(self, changes: Dict[str, int]) -> None:
        """
        Verifica un conjunto de movimientos sin aplicarlos.

        Args:
            changes: {barcode: delta}

        Raises:
            NotFound: algún código no existe
            InsufficientStock: algún stock quedaría negativo
        """
        for barcode, delta in changes.items():
            product = self.get_product(barcode)
            if product.quantity + delta < 0:
                raise InsufficientStock(barcode, -delta, product.quantity)

    def apply_stock_changes(self, changes: Dict[str, int]) -> List[Product]:
        """
        Aplica varios movimientos de stock de una vez: valida todos y luego
        modifica y guarda (una sola escritura).
        """
        self.check_stock_changes(changes)
        touched = []
        for barcode, delta in changes.items():
            product = self.product_repo.get(barcode)
            product.quantity += delta
            touched.append(product)
        if touched:
            self.product_repo.save()
        return touched

    def adjust_stock(self, barcode: str, delta: Any) -> Product:
        """
        Suma (delta > 0) o resta (delta < 0) stock a un producto.

        Raises:
            NotFound: código inexistente
            InsufficientStock: el stock quedaría negativo
        """
        try:
            delta = int(delta)
        except (TypeError, ValueError):
            raise ValidationError("La variación de stock debe ser un número entero")
        product = self.get_product(barcode)
        self.apply_stock_changes({product.barcode: delta})
        logger.info("Stock %s %+d -> %d", product.barcode, delta, product.quantity)
        if self.audit_service:
            self.audit_service.log_stock_change(product.barcode, delta, product.quantity)
        return product
