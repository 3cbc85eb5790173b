# ==============================================================================
# SERVICIO DE CLIENTES Y CUENTAS CORRIENTES
# ==============================================================================
# Cada cliente tiene un libro de movimientos en orden de inserción:
#   debit  -> el cliente queda debiendo (fiado)
#   credit -> el cliente paga / deja adelanto
#
# saldo = Σdebit - Σcredit   (positivo = el cliente debe a la tienda)
#
# El saldo NO se guarda: se recalcula recorriendo el libro cada vez.
# ==============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from shop_ledger.dates import Clock, system_clock
from shop_ledger.errors import EmptyTransaction, NotFound
from shop_ledger.models import Customer, LedgerEntry, money, new_id
from shop_ledger.repositories.interfaces import ICustomerLedgerRepository, IListRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import (
    optional_text,
    require_non_negative_number,
    require_text,
)

logger = logging.getLogger(__name__)


def balance(ledger: Iterable[LedgerEntry]) -> float:
    """Σdebit - Σcredit de un libro. Función pura."""
    debit = 0.0
    credit = 0.0
    for entry in ledger:
        debit += entry.debit
        credit += entry.credit
    return money(debit - credit)


@dataclass
class LedgerStatement:
    """Estado de cuenta de un cliente con saldo acumulado por movimiento."""
    customer: Customer
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_debit: float = 0.0
    total_credit: float = 0.0
    balance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'customer': self.customer.to_dict(),
            'rows': self.rows,
            'total_debit': self.total_debit,
            'total_credit': self.total_credit,
            'balance': self.balance,
        }


class CustomerService:
    """
    Servicio para clientes y sus cuentas.

    Responsabilidades:
    - Alta, edición, baja (con su libro) y búsqueda de clientes
    - Movimientos de cuenta (débito / crédito)
    - Saldos y estados de cuenta
    """

    def __init__(
        self,
        customer_repo: IListRepository,
        ledger_repo: ICustomerLedgerRepository,
        audit_service: AuditService = None,
        clock: Clock = None
    ):
        self.customer_repo = customer_repo
        self.ledger_repo = ledger_repo
        self.audit_service = audit_service
        self._clock = clock or system_clock

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def list_customers(self) -> List[Customer]:
        return self.customer_repo.get_all()

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.customer_repo.find_by_id(customer_id)
        if customer is None:
            raise NotFound('Cliente', customer_id)
        return customer

    def add_customer(self, name: str, phone: str, address: str = '') -> Customer:
        """
        Crea el cliente con un libro vacío.

        Raises:
            ValidationError: nombre o teléfono vacíos
        """
        customer = Customer(
            id=new_id(),
            name=require_text(name, 'El nombre del cliente'),
            phone=require_text(phone, 'El teléfono'),
            address=optional_text(address),
            created_at=self._clock().isoformat(),
        )
        self.customer_repo.append(customer)
        self.ledger_repo.create_ledger(customer.id)
        logger.info("Cliente creado %s (%s)", customer.name, customer.id)
        return customer

    def update_customer(
        self,
        customer_id: str,
        name: str = None,
        phone: str = None,
        address: str = None
    ) -> Customer:
        customer = self.get_customer(customer_id)
        updates = {}
        if name is not None:
            updates['name'] = require_text(name, 'El nombre del cliente')
        if phone is not None:
            updates['phone'] = require_text(phone, 'El teléfono')
        if address is not None:
            updates['address'] = optional_text(address)
        for attr, value in updates.items():
            setattr(customer, attr, value)
        if updates:
            self.customer_repo.save()
        return customer

    def delete_customer(self, customer_id: str) -> Customer:
        """Elimina el cliente y todo su libro de cuenta."""
        customer = self.get_customer(customer_id)
        self.customer_repo.remove(customer.id)
        self.ledger_repo.delete_ledger(customer.id)
        logger.info("Cliente eliminado %s con su libro", customer.id)
        return customer

    def search(self, query: str) -> List[Customer]:
        """Por nombre (sin distinguir mayúsculas) o por parte del teléfono."""
        needle = (query or '').strip().lower()
        customers = self.customer_repo.get_all()
        if not needle:
            return customers
        return [c for c in customers if needle in c.name.lower() or needle in c.phone]

    # =========================================================================
    # MOVIMIENTOS
    # =========================================================================

    def get_ledger(self, customer_id: str) -> List[LedgerEntry]:
        self.get_customer(customer_id)
        return self.ledger_repo.get_ledger(customer_id)

    def add_transaction(
        self,
        customer_id: str,
        debit: Any = 0,
        credit: Any = 0,
        description: str = ''
    ) -> LedgerEntry:
        """
        Agrega un movimiento. Débito y crédito pueden venir ambos, pero no
        ambos en cero.

        Raises:
            NotFound: cliente inexistente
            ValidationError: montos negativos o descripción vacía
            EmptyTransaction: débito y crédito en cero
        """
        customer = self.get_customer(customer_id)
        debit = money(require_non_negative_number(debit or 0, 'El débito'))
        credit = money(require_non_negative_number(credit or 0, 'El crédito'))
        if debit == 0 and credit == 0:
            raise EmptyTransaction("Ingrese un débito o un crédito")
        description = require_text(description, 'La descripción')

        entry = LedgerEntry(
            id=new_id(),
            timestamp=self._clock().isoformat(),
            description=description,
            debit=debit,
            credit=credit,
        )
        self.ledger_repo.append_entry(customer.id, entry)
        logger.info("Movimiento cliente %s: debit=%.2f credit=%.2f", customer.id, debit, credit)
        if self.audit_service:
            self.audit_service.log_ledger_entry(customer.id, customer.name, debit, credit)
        return entry

    def delete_transaction(self, customer_id: str, entry_id: str) -> LedgerEntry:
        """Elimina un movimiento por su id."""
        self.get_customer(customer_id)
        removed = self.ledger_repo.remove_entry(customer_id, entry_id)
        if removed is None:
            raise NotFound('Movimiento', entry_id)
        logger.info("Movimiento %s eliminado del cliente %s", entry_id, customer_id)
        return removed

    # =========================================================================
    # SALDOS
    # =========================================================================

    def customer_balance(self, customer_id: str) -> float:
        return balance(self.get_ledger(customer_id))

    def ledger_statement(self, customer_id: str) -> LedgerStatement:
        """Libro completo con saldo acumulado en cada fila."""
        customer = self.get_customer(customer_id)
        running = 0.0
        total_debit = 0.0
        total_credit = 0.0
        rows = []
        for entry in self.ledger_repo.get_ledger(customer_id):
            running += entry.net
            total_debit += entry.debit
            total_credit += entry.credit
            rows.append({
                'id': entry.id,
                'timestamp': entry.timestamp,
                'description': entry.description,
                'debit': entry.debit,
                'credit': entry.credit,
                'balance': money(running),
            })
        return LedgerStatement(
            customer=customer,
            rows=rows,
            total_debit=money(total_debit),
            total_credit=money(total_credit),
            balance=money(total_debit - total_credit),
        )

    def customer_summaries(self) -> List[Dict[str, Any]]:
        """Todos los clientes con su saldo actual."""
        return [
            {**customer.to_dict(), 'balance': balance(self.ledger_repo.get_ledger(customer.id))}
            for customer in self.customer_repo.get_all()
        ]
