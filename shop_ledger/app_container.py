# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Construye una vez cada repositorio y servicio y los entrega ya conectados.
# No es un singleton global: create_app() recibe (o crea) su contenedor y los
# tests crean uno nuevo sobre MemoryStore.
#
# Para cambiar el almacenamiento basta con pasar otro almacén clave-valor
# (cualquier objeto con get/set/delete) o nuevas clases de repositorio que
# cumplan las interfaces de repositories/interfaces.py.
# ==============================================================================

from typing import Optional

from shop_ledger.config import Config
from shop_ledger.dates import Clock, system_clock

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from shop_ledger.repositories import (
    AuditRepository,
    BankRepository,
    CustomerLedgerRepository,
    CustomerRepository,
    ExpenseRepository,
    JsonFileStore,
    MemoryStore,
    ProcurementRepository,
    ProductRepository,
    SalesRepository,
    ServiceRepository,
    SettingsRepository,
)
from shop_ledger.repositories.interfaces import IKeyValueStore

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from shop_ledger.services import (
    AuditService,
    BankService,
    CustomerService,
    ExpenseService,
    InventoryService,
    ProcurementService,
    ReportService,
    SalesService,
    ServiceCatalogService,
    SettingsService,
)


def build_store(config: Config) -> IKeyValueStore:
    """Almacén clave-valor según SHOP_STORAGE."""
    if config.STORAGE == 'memory':
        return MemoryStore()
    return JsonFileStore(config.DATA_DIR)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Uso:
        container = AppContainer(store=MemoryStore())
        container.inventory_service.add_product('B1', 'Lapicero', 'Pilot', 10, 5, 8)
        container.sales_service.add_line('B1', 2)
    """

    def __init__(self, store=None, config: Config = None, clock: Clock = None):
        """
        Args:
            store: Almacén clave-valor (si es None se crea según config)
            config: Configuración (si es None se lee del entorno)
            clock: Función que retorna la hora actual
        """
        self.config = config or Config()
        self.store = store if store is not None else build_store(self.config)
        self.clock = clock or system_clock

        # Repositorios (lazy loading)
        self._product_repo: Optional[ProductRepository] = None
        self._sales_repo: Optional[SalesRepository] = None
        self._procurement_repo: Optional[ProcurementRepository] = None
        self._service_repo: Optional[ServiceRepository] = None
        self._expense_repo: Optional[ExpenseRepository] = None
        self._customer_repo: Optional[CustomerRepository] = None
        self._ledger_repo: Optional[CustomerLedgerRepository] = None
        self._bank_repo: Optional[BankRepository] = None
        self._settings_repo: Optional[SettingsRepository] = None
        self._audit_repo: Optional[AuditRepository] = None

        # Servicios (lazy loading)
        self._audit_service: Optional[AuditService] = None
        self._inventory_service: Optional[InventoryService] = None
        self._sales_service: Optional[SalesService] = None
        self._procurement_service: Optional[ProcurementService] = None
        self._service_catalog_service: Optional[ServiceCatalogService] = None
        self._expense_service: Optional[ExpenseService] = None
        self._customer_service: Optional[CustomerService] = None
        self._bank_service: Optional[BankService] = None
        self._report_service: Optional[ReportService] = None
        self._settings_service: Optional[SettingsService] = None

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(self.store)
        return self._product_repo

    @property
    def sales_repo(self) -> SalesRepository:
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(self.store)
        return self._sales_repo

    @property
    def procurement_repo(self) -> ProcurementRepository:
        if self._procurement_repo is None:
            self._procurement_repo = ProcurementRepository(self.store)
        return self._procurement_repo

    @property
    def service_repo(self) -> ServiceRepository:
        if self._service_repo is None:
            self._service_repo = ServiceRepository(self.store)
        return self._service_repo

    @property
    def expense_repo(self) -> ExpenseRepository:
        if self._expense_repo is None:
            self._expense_repo = ExpenseRepository(self.store)
        return self._expense_repo

    @property
    def customer_repo(self) -> CustomerRepository:
        if self._customer_repo is None:
            self._customer_repo = CustomerRepository(self.store)
        return self._customer_repo

    @property
    def ledger_repo(self) -> CustomerLedgerRepository:
        if self._ledger_repo is None:
            self._ledger_repo = CustomerLedgerRepository(self.store)
        return self._ledger_repo

    @property
    def bank_repo(self) -> BankRepository:
        if self._bank_repo is None:
            self._bank_repo = BankRepository(self.store)
        return self._bank_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self.store)
        return self._settings_repo

    @property
    def audit_repo(self) -> AuditRepository:
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self.store)
        return self._audit_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo, self.clock)
        return self._audit_service

    @property
    def inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            self._inventory_service = InventoryService(
                self.product_repo,
                self.settings_repo,
                self.audit_service
            )
            # La compra implícita del stock inicial la registra ProcurementService
            self._inventory_service.set_initial_stock_recorder(
                lambda product: self.procurement_service.record_initial_stock(product)
            )
        return self._inventory_service

    @property
    def sales_service(self) -> SalesService:
        if self._sales_service is None:
            self._sales_service = SalesService(
                self.sales_repo,
                self.inventory_service,
                self.audit_service,
                self.clock
            )
        return self._sales_service

    @property
    def procurement_service(self) -> ProcurementService:
        if self._procurement_service is None:
            self._procurement_service = ProcurementService(
                self.procurement_repo,
                self.inventory_service,
                self.audit_service,
                self.clock
            )
        return self._procurement_service

    @property
    def service_catalog_service(self) -> ServiceCatalogService:
        if self._service_catalog_service is None:
            self._service_catalog_service = ServiceCatalogService(
                self.service_repo,
                self.sales_repo,
                self.audit_service,
                self.clock
            )
        return self._service_catalog_service

    @property
    def expense_service(self) -> ExpenseService:
        if self._expense_service is None:
            self._expense_service = ExpenseService(self.expense_repo, self.audit_service, self.clock)
        return self._expense_service

    @property
    def customer_service(self) -> CustomerService:
        if self._customer_service is None:
            self._customer_service = CustomerService(
                self.customer_repo,
                self.ledger_repo,
                self.audit_service,
                self.clock
            )
        return self._customer_service

    @property
    def bank_service(self) -> BankService:
        if self._bank_service is None:
            self._bank_service = BankService(self.bank_repo, self.audit_service, self.clock)
        return self._bank_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(
                self.sales_repo,
                self.procurement_repo,
                self.expense_repo,
                self.inventory_service,
                self.clock
            )
        return self._report_service

    @property
    def settings_service(self) -> SettingsService:
        if self._settings_service is None:
            self._settings_service = SettingsService(
                self.settings_repo,
                [
                    self.product_repo,
                    self.sales_repo,
                    self.procurement_repo,
                    self.service_repo,
                    self.expense_repo,
                    self.customer_repo,
                    self.ledger_repo,
                    self.bank_repo,
                ],
                self.audit_service
            )
        return self._settings_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset_all_data(self, confirmation) -> None:
        """Vacía todas las colecciones y descarta la venta y compra en curso."""
        self.settings_service.reset_all_data(confirmation)
        self.sales_service.clear()
        self.procurement_service.clear()

    def reload(self) -> None:
        """Descarta las cachés de los repositorios ya creados."""
        for repo in (
            self._product_repo, self._sales_repo, self._procurement_repo,
            self._service_repo, self._expense_repo, self._customer_repo,
            self._ledger_repo, self._bank_repo, self._settings_repo, self._audit_repo,
        ):
            if repo is not None:
                repo.reload()
