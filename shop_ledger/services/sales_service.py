# ==============================================================================
# SERVICIO DE VENTAS
# ==============================================================================
# Venta en curso (batch) y registro de ventas completadas.
#
# FLUJO DE LA VENTA EN CURSO:
#   EMPTY ──add_line──> BUILDING ──complete──> COMMITTED (se abre otra vacía)
#                          │
#                          └──clear──> EMPTY
#
# Al completar: se descuenta el stock de TODAS las líneas y se agrega UN
# registro de venta inmutable. Si alguna línea ya no tiene stock, no se toca
# nada.
#
# El único cambio permitido sobre una venta histórica es adjust_sale
# (devolución parcial o total de una línea).
# ==============================================================================

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from shop_ledger.dates import Clock, system_clock
from shop_ledger.errors import (
    EmptySale,
    ExceedsQuantity,
    InsufficientStock,
    InvalidDiscount,
    NotFound,
    ValidationError,
)
from shop_ledger.models import BatchState, LineItem, ProductSale, ServiceSale, money, new_id
from shop_ledger.performance_logger import profile_function
from shop_ledger.repositories import persist_all
from shop_ledger.repositories.interfaces import IListRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.inventory_service import InventoryService
from shop_ledger.services.validators import require_positive_int

logger = logging.getLogger(__name__)


# ==============================================================================
# VENTA EN CURSO
# ==============================================================================

@dataclass
class SaleBatch:
    """Líneas y descuento de la venta que se está armando."""
    lines: List[LineItem] = field(default_factory=list)
    discount: float = 0.0
    committed: bool = False

    @property
    def state(self) -> BatchState:
        if self.committed:
            return BatchState.COMMITTED
        return BatchState.BUILDING if self.lines else BatchState.EMPTY

    @property
    def gross(self) -> float:
        return money(sum(line.total for line in self.lines))

    @property
    def final_total(self) -> float:
        return money(self.gross - self.discount)

    def find_line(self, barcode: str) -> Optional[LineItem]:
        for line in self.lines:
            if line.barcode == barcode:
                return line
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'items': [line.to_dict() for line in self.lines],
            'total': self.gross,
            'discount': self.discount,
            'finalTotal': self.final_total,
        }


@dataclass
class AdjustmentResult:
    """Resultado de ajustar una venta."""
    sale: ProductSale
    removed_item: LineItem
    quantity_removed: int
    sale_deleted: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sale': self.sale.to_dict(),
            'removed_item': self.removed_item.to_dict(),
            'quantity_removed': self.quantity_removed,
            'sale_deleted': self.sale_deleted,
        }


Sale = Union[ProductSale, ServiceSale]


class SalesService:
    """
    Servicio para gestión de ventas de productos.

    Responsabilidades:
    - Armar la venta en curso (líneas, descuento, vuelto)
    - Completar la venta descontando stock
    - Ajustar ventas ya registradas (devoluciones)
    - Consultar ventas
    """

    def __init__(
        self,
        sales_repo: IListRepository,
        inventory_service: InventoryService,
        audit_service: AuditService = None,
        clock: Clock = None
    ):
        """
        Args:
            sales_repo: Repositorio de ventas
            inventory_service: Servicio de inventario (stock y precios)
            audit_service: Servicio de auditoría (opcional)
            clock: Función que retorna la hora actual
        """
        self.sales_repo = sales_repo
        self.inventory_service = inventory_service
        self.audit_service = audit_service
        self._clock = clock or system_clock
        self.batch = SaleBatch()

    # =========================================================================
    # VENTA EN CURSO
    # =========================================================================

    def add_line(self, barcode: str, quantity: Any) -> SaleBatch:
        """
        Agrega un producto a la venta en curso. Si ya estaba, suma la cantidad.

        Raises:
            ValidationError: cantidad no entera o <= 0
            NotFound: código de barras inexistente
            InsufficientStock: la cantidad acumulada supera el stock
        """
        quantity = require_positive_int(quantity, 'La cantidad')
        product = self.inventory_service.get_product(barcode)

        line = self.batch.find_line(product.barcode)
        requested = quantity + (line.quantity if line else 0)
        if requested > product.quantity:
            logger.warning("Stock insuficiente para %s: pedido %d, disponible %d",
                           product.barcode, requested, product.quantity)
            raise InsufficientStock(product.barcode, requested, product.quantity)

        if line:
            line.quantity = requested
            line.total = money(requested * line.selling_price)
        else:
            self.batch.lines.append(LineItem(
                barcode=product.barcode,
                name=product.name,
                quantity=quantity,
                purchase_price=product.purchase_price,
                selling_price=product.selling_price,
                total=money(quantity * product.selling_price),
            ))
        return self.batch

    def remove_line(self, barcode: str) -> SaleBatch:
        """
        Quita una línea de la venta en curso. Si el descuento queda mayor al
        nuevo total (o la venta queda vacía) el descuento vuelve a 0.
        """
        line = self.batch.find_line(str(barcode).strip())
        if line is None:
            raise NotFound('Línea de venta', barcode)
        self.batch.lines.remove(line)
        if not self.batch.lines or self.batch.discount > self.batch.gross:
            self.batch.discount = 0.0
        return self.batch

    def apply_discount(self, amount: Any) -> SaleBatch:
        """
        Fija el descuento (monto absoluto) de toda la venta. Reemplaza al
        anterior, no se acumula.

        Raises:
            EmptySale: la venta no tiene líneas
            InvalidDiscount: negativo o mayor al total
        """
        if not self.batch.lines:
            raise EmptySale("Agregue productos antes de aplicar un descuento")
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("El descuento debe ser numérico")
        if math.isnan(value) or value < 0 or value > self.batch.gross:
            raise InvalidDiscount(
                f"El descuento debe estar entre 0 y {self.batch.gross:.2f}"
            )
        self.batch.discount = money(value)
        return self.batch

    def change_due(self, received: Any) -> float:
        """Vuelto a entregar según el monto recibido."""
        if not self.batch.lines:
            raise EmptySale("La venta está vacía")
        try:
            received = float(received)
        except (TypeError, ValueError):
            raise ValidationError("El monto recibido debe ser numérico")
        return money(received - self.batch.final_total)

    def clear(self) -> SaleBatch:
        """Descarta la venta en curso sin efectos secundarios."""
        self.batch = SaleBatch()
        return self.batch

    @profile_function(name="Completar venta")
    def complete(self) -> ProductSale:
        """
        Registra la venta en curso.

        1. Re-valida stock de todas las líneas (nada cambia si alguna falla)
        2. Descuenta stock
        3. Agrega la venta con finalTotal = total - descuento
        4. Abre una venta en curso vacía

        Raises:
            EmptySale: no hay líneas
            InsufficientStock / NotFound: el stock cambió desde que se armó
            StorageError: falló el guardado (la venta queda registrada en memoria)
        """
        batch = self.batch
        if not batch.lines:
            raise EmptySale("No hay productos en la venta")

        changes = {line.barcode: -line.quantity for line in batch.lines}
        self.inventory_service.check_stock_changes(changes)

        sale = ProductSale(
            id=new_id(),
            timestamp=self._clock().isoformat(),
            items=[
                LineItem(l.barcode, l.name, l.quantity, l.purchase_price, l.selling_price, l.total)
                for l in batch.lines
            ],
            total=batch.gross,
            discount=batch.discount,
            final_total=batch.final_total,
        )

        batch.committed = True
        self.batch = SaleBatch()

        persist_all(
            lambda: self.inventory_service.apply_stock_changes(changes),
            lambda: self.sales_repo.append(sale),
        )

        logger.info("Venta %s registrada (%s): total=%.2f descuento=%.2f final=%.2f",
                    sale.id, batch.state.value, sale.total, sale.discount, sale.final_total)
        if self.audit_service:
            self.audit_service.log_sale_completed(sale.id, sale.final_total, len(sale.items), sale.discount)
        return sale

    # =========================================================================
    # VENTAS REGISTRADAS
    # =========================================================================

    def list_sales(self) -> List[Sale]:
        return self.sales_repo.get_all()

    def get_sale(self, sale_id: str) -> Sale:
        sale = self.sales_repo.find_by_id(sale_id)
        if sale is None:
            raise NotFound('Venta', sale_id)
        return sale

    @profile_function(name="Ajustar venta")
    def adjust_sale(self, sale_id: str, item_index: Any, quantity_to_remove: Any) -> AdjustmentResult:
        """
        Devuelve unidades de una línea de una venta registrada.

        El producto recupera el stock (si todavía existe), la línea baja su
        cantidad y total en proporción, y los totales de la venta se recalculan
        manteniendo el descuento. Una línea en 0 se elimina; una venta sin
        líneas se elimina completa.

        Args:
            sale_id: Id de la venta
            item_index: Posición de la línea en la venta
            quantity_to_remove: Unidades a devolver (> 0)

        Raises:
            NotFound: venta o línea inexistente (las ventas de servicio no tienen líneas)
            ValidationError: cantidad <= 0
            ExceedsQuantity: cantidad mayor a la vendida en la línea
        """
        sale = self.get_sale(sale_id)
        if not isinstance(sale, ProductSale):
            raise NotFound('Línea de venta', f"{sale_id}#{item_index}")
        try:
            index = int(item_index)
        except (TypeError, ValueError):
            raise NotFound('Línea de venta', f"{sale_id}#{item_index}")
        if index < 0 or index >= len(sale.items):
            raise NotFound('Línea de venta', f"{sale_id}#{item_index}")

        quantity = require_positive_int(quantity_to_remove, 'La cantidad a devolver')
        item = sale.items[index]
        if quantity > item.quantity:
            raise ExceedsQuantity(item.barcode, quantity, item.quantity)

        # Cambios en memoria
        per_unit = item.total / item.quantity if item.quantity else 0.0
        removed = LineItem(item.barcode, item.name, quantity, item.purchase_price,
                           item.selling_price, money(per_unit * quantity))
        item.quantity -= quantity
        item.total = money(item.total - per_unit * quantity)
        if item.quantity == 0:
            sale.items.pop(index)

        sale_deleted = not sale.items
        sale.recalculate()

        steps = []
        if self.inventory_service.find(item.barcode) is not None:
            steps.append(lambda: self.inventory_service.apply_stock_changes({item.barcode: quantity}))
        else:
            logger.warning("Ajuste de venta %s: el producto %s ya no existe, no se reingresa stock",
                           sale.id, item.barcode)
        if sale_deleted:
            steps.append(lambda: self.sales_repo.remove(sale.id))
        else:
            steps.append(self.sales_repo.save)
        persist_all(*steps)

        logger.info("Venta %s ajustada: -%d %s%s", sale.id, quantity, item.barcode,
                    " (venta eliminada)" if sale_deleted else "")
        if self.audit_service:
            self.audit_service.log_sale_adjusted(sale.id, item.barcode, quantity, sale_deleted)
        return AdjustmentResult(sale=sale, removed_item=removed,
                                quantity_removed=quantity, sale_deleted=sale_deleted)
