# ==============================================================================
# SERVICIO DE GASTOS
# ==============================================================================

import logging
from typing import Any, List

from shop_ledger.dates import Clock, in_window, require_date, resolve_window, system_clock
from shop_ledger.errors import NotFound
from shop_ledger.models import Expense, money, new_id
from shop_ledger.repositories.interfaces import IListRepository
from shop_ledger.services.audit_service import AuditService
from shop_ledger.services.validators import require_confirmation, require_positive_number, require_text

logger = logging.getLogger(__name__)


class ExpenseService:
    """Gastos del negocio (alquiler, luz, internet...)."""

    def __init__(
        self,
        expense_repo: IListRepository,
        audit_service: AuditService = None,
        clock: Clock = None
    ):
        self.expense_repo = expense_repo
        self.audit_service = audit_service
        self._clock = clock or system_clock

    def list_expenses(self) -> List[Expense]:
        return self.expense_repo.get_all()

    def add_expense(self, date: Any, description: str, amount: Any) -> Expense:
        """
        Raises:
            ValidationError: fecha inválida, descripción vacía o monto <= 0
        """
        expense = Expense(
            id=new_id(),
            date=require_date(date).isoformat(),
            description=require_text(description, 'La descripción'),
            amount=money(require_positive_number(amount, 'El monto')),
            timestamp=self._clock().isoformat(),
        )
        self.expense_repo.append(expense)
        logger.info("Gasto registrado %s: %.2f", expense.description, expense.amount)
        if self.audit_service:
            self.audit_service.log_expense(expense.id, expense.description, expense.amount)
        return expense

    def delete_expense(self, expense_id: str, confirmation: Any) -> Expense:
        """Requiere escribir CONFIRM."""
        require_confirmation(confirmation)
        removed = self.expense_repo.remove(expense_id)
        if removed is None:
            raise NotFound('Gasto', expense_id)
        logger.info("Gasto eliminado %s", expense_id)
        if self.audit_service:
            self.audit_service.log_expense(removed.id, removed.description, removed.amount, deleted=True)
        return removed

    def expenses_in_range(self, start: Any, end: Any) -> List[Expense]:
        """Gastos con fecha dentro de [start, end], ambos inclusive."""
        start_date, end_date = resolve_window(start, end)
        return [e for e in self.expense_repo.get_all() if in_window(e.date, start_date, end_date)]
