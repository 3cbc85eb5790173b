# ==============================================================================
# SERVICIO DEL LIBRO DE BANCO
# ==============================================================================
# Una sola lista global de depósitos y retiros, ordenada por fecha.
#
# EXTRACTO PARA UNA VENTANA [desde, hasta]:
#   saldo inicial = neto de TODOS los movimientos con fecha < desde
#   saldo corrido = saldo inicial + cada movimiento de la ventana, en orden
#   saldo final   = saldo inicial + depósitos - retiros de la ventana
# ==============================================================================

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from shop_ledger.dates import Clock, require_date, resolve_window, system_clock, to_date
from shop_ledger.errors import NotFound, ValidationError
from shop_ledger.models import BankTransaction, BankTransactionType, money, new_id
from shop_ledger.performance_logger import profile_function
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import require_confirmation, require_positive_number, require_text

logger = logging.getLogger(__name__)


@dataclass
class BankStatement:
    opening_balance: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
    closing_balance: float = 0.0
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'opening_balance': self.opening_balance,
            'total_deposits': self.total_deposits,
            'total_withdrawals': self.total_withdrawals,
            'closing_balance': self.closing_balance,
            'rows': self.rows,
        }


class BankService:
    """
    Servicio para el libro de banco (efectivo depositado / retirado).
    """

    def __init__(self, bank_repo, audit_service: AuditService = None, clock: Clock = None):
        """
        Args:
            bank_repo: BankRepository (mantiene el orden por fecha)
            audit_service: Servicio de auditoría (opcional)
            clock: Función que retorna la hora actual
        """
        self.bank_repo = bank_repo
        self.audit_service = audit_service
        self._clock = clock or system_clock

    def list_transactions(self) -> List[BankTransaction]:
        return self.bank_repo.get_all()

    def add_transaction(self, date: Any, tx_type: str, purpose: str, amount: Any) -> BankTransaction:
        """
        Raises:
            ValidationError: fecha, tipo o motivo faltantes, monto <= 0
        """
        day = require_date(date)
        try:
            kind = BankTransactionType(str(tx_type or '').strip().lower())
        except ValueError:
            raise ValidationError("El tipo debe ser 'deposit' o 'withdrawal'")
        transaction = BankTransaction(
            id=new_id(),
            date=day.isoformat(),
            type=kind,
            purpose=require_text(purpose, 'El motivo'),
            amount=money(require_positive_number(amount, 'El monto')),
            timestamp=self._clock().isoformat(),
        )
        self.bank_repo.insert_sorted(transaction)
        logger.info("Movimiento bancario %s %s %.2f", transaction.date, kind.value, transaction.amount)
        if self.audit_service:
            self.audit_service.log_bank_transaction(transaction.id, kind.value, transaction.amount)
        return transaction

    def delete_transaction(self, transaction_id: str, confirmation: Any) -> BankTransaction:
        """
        Requiere la palabra CONFIRM exacta.

        Raises:
            ConfirmationRequired: confirmación distinta de 'CONFIRM'
            NotFound: id inexistente
        """
        require_confirmation(confirmation)
        removed = self.bank_repo.remove(transaction_id)
        if removed is None:
            raise NotFound('Movimiento bancario', transaction_id)
        logger.info("Movimiento bancario eliminado %s", transaction_id)
        if self.audit_service:
            self.audit_service.log_bank_transaction(removed.id, removed.type.value, removed.amount, deleted=True)
        return removed

    def balance(self) -> float:
        """Saldo actual: Σdepósitos - Σretiros."""
        return money(sum(t.signed_amount for t in self.bank_repo.get_all()))

    @profile_function(name="Extracto bancario")
    def statement(self, start: Any = None, end: Any = None) -> BankStatement:
        """
        Extracto con saldo corrido.

        Args:
            start: Fecha inicial (None = desde el primer movimiento)
            end: Fecha final (None = hasta el último movimiento)

        Raises:
            ValidationError: fechas inválidas o start > end
        """
        transactions = self.bank_repo.get_all()
        start_date = end_date = None
        if start not in (None, '') and end not in (None, ''):
            start_date, end_date = resolve_window(start, end)
        elif start not in (None, ''):
            start_date = require_date(start, 'fecha inicial')
        elif end not in (None, ''):
            end_date = require_date(end, 'fecha final')

        opening = 0.0
        deposits = 0.0
        withdrawals = 0.0
        rows = []

        for transaction in transactions:
            day = to_date(transaction.date)
            if day is None:
                logger.warning("Movimiento bancario %s sin fecha válida, se omite", transaction.id)
                continue
            if start_date and day < start_date:
                opening += transaction.signed_amount
                continue
            if end_date and day > end_date:
                continue
            if transaction.type == BankTransactionType.DEPOSIT:
                deposits += transaction.amount
            else:
                withdrawals += transaction.amount
            rows.append(transaction)

        running = opening
        statement_rows = []
        for transaction in rows:
            running += transaction.signed_amount
            statement_rows.append({
                'id': transaction.id,
                'date': transaction.date,
                'type': transaction.type.value,
                'purpose': transaction.purpose,
                'deposit': transaction.amount if transaction.type == BankTransactionType.DEPOSIT else 0.0,
                'withdrawal': transaction.amount if transaction.type == BankTransactionType.WITHDRAWAL else 0.0,
                'balance': money(running),
            })

        return BankStatement(
            opening_balance=money(opening),
            total_deposits=money(deposits),
            total_withdrawals=money(withdrawals),
            closing_balance=money(opening + deposits - withdrawals),
            rows=statement_rows,
        )
