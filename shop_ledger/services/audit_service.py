# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Registro de actividad con mensajes legibles. Es informativo: no garantiza
# inmutabilidad y un fallo al escribirlo NO revierte la operación de negocio.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from shop_ledger.errors import StorageError
from shop_ledger.formatting import format_amount
from shop_ledger.repositories.interfaces import IAuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """
    Servicio para registro y consulta de actividad.

    Categorías: VENTA, COMPRA, STOCK, PRODUCTO, CLIENTE, BANCO, GASTO, SISTEMA
    """

    TYPE_VENTA = 'VENTA'
    TYPE_COMPRA = 'COMPRA'
    TYPE_STOCK = 'STOCK'
    TYPE_PRODUCTO = 'PRODUCTO'
    TYPE_CLIENTE = 'CLIENTE'
    TYPE_BANCO = 'BANCO'
    TYPE_GASTO = 'GASTO'
    TYPE_SISTEMA = 'SISTEMA'

    def __init__(self, audit_repo: IAuditRepository, clock=None):
        """
        Args:
            audit_repo: Repositorio de auditoría
            clock: Función que retorna la hora actual (inyectable en tests)
        """
        self.audit_repo = audit_repo
        self._clock = clock

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento genérico.

        Args:
            log_type: Categoría (VENTA, COMPRA, STOCK...)
            message: Mensaje humanizado
            related_id: Id relacionado (venta, código de barras, cliente...)
            details: Detalles adicionales
        """
        timestamp = self._clock().isoformat(timespec='seconds') if self._clock else None
        try:
            self.audit_repo.log(log_type, message, related_id, details, timestamp)
        except StorageError:
            # La operación ya quedó registrada; solo se pierde la traza
            logger.exception("No se pudo registrar el evento de auditoría: %s", message)

    def log_sale_completed(self, sale_id: str, final_total: float, items_count: int, discount: float) -> None:
        message = (
            f"Venta {sale_id[:8]} registrada - Total: {format_amount(final_total)}"
            f" - {items_count} items"
        )
        if discount:
            message += f" - Descuento: {format_amount(discount)}"
        self.log(self.TYPE_VENTA, message, sale_id,
                 {'final_total': final_total, 'items_count': items_count, 'discount': discount})

    def log_sale_adjusted(self, sale_id: str, barcode: str, quantity: int, sale_deleted: bool) -> None:
        message = f"Venta {sale_id[:8]} ajustada: -{quantity} de {barcode} (reingresa al stock)"
        if sale_deleted:
            message += " - la venta quedó vacía y se eliminó"
        self.log(self.TYPE_VENTA, message, sale_id,
                 {'barcode': barcode, 'quantity': quantity, 'sale_deleted': sale_deleted})

    def log_service_sale(self, sale_id: str, service_name: str, amount: float) -> None:
        message = f"Servicio vendido: {service_name} - {format_amount(amount)}"
        self.log(self.TYPE_VENTA, message, sale_id, {'amount': amount})

    def log_procurement_completed(self, procurement_id: str, total: float, items_count: int) -> None:
        message = f"Compra {procurement_id[:8]} registrada - Total: {format_amount(total)} - {items_count} items"
        self.log(self.TYPE_COMPRA, message, procurement_id, {'total': total, 'items_count': items_count})

    def log_product_created(self, barcode: str, name: str, quantity: int) -> None:
        message = f"Producto creado: {name} ({barcode}) - Stock inicial: {quantity}"
        self.log(self.TYPE_PRODUCTO, message, barcode, {'quantity': quantity})

    def log_product_deleted(self, barcode: str, name: str) -> None:
        self.log(self.TYPE_PRODUCTO, f"Producto eliminado: {name} ({barcode})", barcode)

    def log_stock_change(self, barcode: str, delta: int, new_stock: int) -> None:
        sign = '+' if delta >= 0 else ''
        message = f"Stock {barcode}: {sign}{delta} - Nuevo stock: {new_stock}"
        self.log(self.TYPE_STOCK, message, barcode, {'delta': delta, 'new_stock': new_stock})

    def log_ledger_entry(self, customer_id: str, customer_name: str, debit: float, credit: float) -> None:
        message = (
            f"Cuenta de {customer_name}: débito {format_amount(debit)}"
            f" / crédito {format_amount(credit)}"
        )
        self.log(self.TYPE_CLIENTE, message, customer_id, {'debit': debit, 'credit': credit})

    def log_bank_transaction(self, transaction_id: str, tx_type: str, amount: float, deleted: bool = False) -> None:
        action = 'eliminado' if deleted else 'registrado'
        message = f"Movimiento bancario {action}: {tx_type} {format_amount(amount)}"
        self.log(self.TYPE_BANCO, message, transaction_id, {'type': tx_type, 'amount': amount})

    def log_expense(self, expense_id: str, description: str, amount: float, deleted: bool = False) -> None:
        action = 'eliminado' if deleted else 'registrado'
        self.log(self.TYPE_GASTO, f"Gasto {action}: {description} - {format_amount(amount)}",
                 expense_id, {'amount': amount})

    def log_system(self, message: str) -> None:
        self.log(self.TYPE_SISTEMA, message)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_logs(
        self,
        log_type: Optional[str] = None,
        query: Optional[str] = None,
        limit: int = 200
    ) -> List[Dict[str, Any]]:
        """
        Obtiene eventos filtrados (más recientes primero).

        Args:
            log_type: Categoría a filtrar
            query: Texto a buscar en mensaje o id relacionado
            limit: Máximo de resultados
        """
        logs = self.audit_repo.load()
        if log_type:
            logs = [entry for entry in logs if entry.get('type') == log_type]
        if query:
            q = query.strip().lower()
            logs = [
                entry for entry in logs
                if q in (entry.get('message') or '').lower()
                or q in str(entry.get('related_id') or '').lower()
            ]
        return logs[:limit]
