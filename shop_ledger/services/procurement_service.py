# ==============================================================================
# SERVICIO DE COMPRAS (PROCUREMENT)
# ==============================================================================
# Compra en curso (batch) igual que la venta: EMPTY -> BUILDING -> COMMITTED.
#
# Al completar:
#   - suma el stock de cada línea
#   - el producto toma los precios de compra/venta de la línea (el último
#     precio registrado gana)
#   - agrega UN registro de compra inmutable
# ==============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shop_ledger.dates import Clock, system_clock
from shop_ledger.errors import EmptyBatch, NotFound
from shop_ledger.models import BatchState, LineItem, Procurement, Product, money, new_id
from shop_ledger.performance_logger import profile_function
from shop_ledger.repositories import persist_all
from shop_ledger.repositories.interfaces import IListRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.inventory_service import InventoryService
from shop_ledger.services.validators import require_positive_int, require_positive_number

logger = logging.getLogger(__name__)


@dataclass
class ProcurementBatch:
    """Líneas de la compra que se está armando."""
    lines: List[LineItem] = field(default_factory=list)
    committed: bool = False

    @property
    def state(self) -> BatchState:
        if self.committed:
            return BatchState.COMMITTED
        return BatchState.BUILDING if self.lines else BatchState.EMPTY

    @property
    def total(self) -> float:
        return money(sum(line.total for line in self.lines))

    def find_line(self, barcode: str) -> Optional[LineItem]:
        for line in self.lines:
            if line.barcode == barcode:
                return line
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'items': [line.to_dict() for line in self.lines],
            'total': self.total,
        }


class ProcurementService:
    """
    Servicio de compras a proveedores.

    Responsabilidades:
    - Armar la compra en curso
    - Completarla (stock + precios + registro)
    - Registrar la compra implícita del stock inicial de un producto nuevo
    """

    def __init__(
        self,
        procurement_repo: IListRepository,
        inventory_service: InventoryService,
        audit_service: AuditService = None,
        clock: Clock = None
    ):
        self.procurement_repo = procurement_repo
        self.inventory_service = inventory_service
        self.audit_service = audit_service
        self._clock = clock or system_clock
        self.batch = ProcurementBatch()

    # =========================================================================
    # COMPRA EN CURSO
    # =========================================================================

    def add_line(
        self,
        barcode: str,
        quantity: Any,
        purchase_price: Any,
        selling_price: Any
    ) -> ProcurementBatch:
        """
        Agrega una línea. Si el producto ya está en la compra se suma la
        cantidad y se recalcula total = cantidad x precio de compra (se
        mantienen los precios de la primera línea).

        Raises:
            ValidationError: cantidad o precios <= 0
            NotFound: producto inexistente
        """
        quantity = require_positive_int(quantity, 'La cantidad')
        purchase_price = money(require_positive_number(purchase_price, 'El precio de compra'))
        selling_price = money(require_positive_number(selling_price, 'El precio de venta'))
        product = self.inventory_service.get_product(barcode)

        line = self.batch.find_line(product.barcode)
        if line:
            line.quantity += quantity
            line.total = money(line.quantity * line.purchase_price)
        else:
            self.batch.lines.append(LineItem(
                barcode=product.barcode,
                name=product.name,
                quantity=quantity,
                purchase_price=purchase_price,
                selling_price=selling_price,
                total=money(quantity * purchase_price),
            ))
        return self.batch

    def remove_line(self, barcode: str) -> ProcurementBatch:
        line = self.batch.find_line(str(barcode).strip())
        if line is None:
            raise NotFound('Línea de compra', barcode)
        self.batch.lines.remove(line)
        return self.batch

    def clear(self) -> ProcurementBatch:
        self.batch = ProcurementBatch()
        return self.batch

    @profile_function(name="Completar compra")
    def complete(self) -> Procurement:
        """
        Registra la compra en curso.

        Raises:
            EmptyBatch: no hay líneas
            NotFound: algún producto fue eliminado mientras se armaba la compra
        """
        batch = self.batch
        if not batch.lines:
            raise EmptyBatch("No hay productos en la compra")

        changes: Dict[str, int] = {}
        for line in batch.lines:
            changes[line.barcode] = changes.get(line.barcode, 0) + line.quantity
        self.inventory_service.check_stock_changes(changes)

        # Último precio registrado gana
        for line in batch.lines:
            product = self.inventory_service.get_product(line.barcode)
            product.purchase_price = line.purchase_price
            product.selling_price = line.selling_price

        procurement = Procurement(
            id=new_id(),
            timestamp=self._clock().isoformat(),
            items=[
                LineItem(l.barcode, l.name, l.quantity, l.purchase_price, l.selling_price, l.total)
                for l in batch.lines
            ],
            total=batch.total,
        )
        batch.committed = True
        self.batch = ProcurementBatch()

        persist_all(
            lambda: self.inventory_service.apply_stock_changes(changes),
            lambda: self.procurement_repo.append(procurement),
        )

        logger.info("Compra %s registrada (%s): %d líneas, total=%.2f",
                    procurement.id, batch.state.value, len(procurement.items), procurement.total)
        if self.audit_service:
            self.audit_service.log_procurement_completed(procurement.id, procurement.total, len(procurement.items))
        return procurement

    # =========================================================================
    # COMPRA IMPLÍCITA Y CONSULTAS
    # =========================================================================

    def record_initial_stock(self, product: Product) -> Procurement:
        """
        Registra como compra el stock inicial de un producto recién creado.
        No modifica el stock (el producto ya se creó con esa cantidad).
        """
        procurement = Procurement(
            id=new_id(),
            timestamp=self._clock().isoformat(),
            items=[LineItem(
                barcode=product.barcode,
                name=product.name,
                quantity=product.quantity,
                purchase_price=product.purchase_price,
                selling_price=product.selling_price,
                total=money(product.quantity * product.purchase_price),
            )],
            total=money(product.quantity * product.purchase_price),
        )
        self.procurement_repo.append(procurement)
        logger.info("Compra inicial %s para el producto nuevo %s", procurement.id, product.barcode)
        return procurement

    def list_procurements(self) -> List[Procurement]:
        return self.procurement_repo.get_all()

    def get_procurement(self, procurement_id: str) -> Procurement:
        procurement = self.procurement_repo.find_by_id(procurement_id)
        if procurement is None:
            raise NotFound('Compra', procurement_id)
        return procurement
