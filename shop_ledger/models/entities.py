# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio y sabe convertirse a/desde
# el formato JSON persistido (claves camelCase heredadas de la versión web).
#
# Las reglas de valores por defecto viven SOLO aquí (from_dict), de modo que
# los servicios y reportes nunca tienen que adivinar campos faltantes:
#   - discount ausente            -> 0
#   - finalTotal ausente          -> total - discount
#   - quantity de venta servicio  -> 1
#   - profit de venta servicio    -> amount (margen 100%)
#   - 'date' legado en servicios  -> 'timestamp' (único campo canónico)
#   - id ausente                  -> uuid nuevo
# ==============================================================================

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class StockStatus(str, Enum):
    """Estado de stock de un producto."""
    OUT_OF_STOCK = "out-of-stock"
    LOW_STOCK = "low-stock"
    IN_STOCK = "in-stock"


class BankTransactionType(str, Enum):
    """Tipos de movimiento bancario."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class BatchState(str, Enum):
    """Estados de una venta/compra en curso."""
    EMPTY = "empty"
    BUILDING = "building"
    COMMITTED = "committed"


VALID_THEMES = frozenset(['light', 'dark', 'auto'])


# ==============================================================================
# HELPERS DE CONVERSIÓN
# ==============================================================================

def new_id() -> str:
    return uuid.uuid4().hex


def to_float(value: Any, default: float = 0.0) -> float:
    """Convierte a float; None, NaN o basura -> default."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def money(value: float) -> float:
    """Redondeo estándar de montos."""
    return round(value, 2)


# ==============================================================================
# INVENTARIO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del inventario.

    Attributes:
        barcode: Código de barras (clave única)
        name: Nombre del producto
        company: Marca / proveedor
        quantity: Stock actual (nunca negativo)
        purchase_price: Precio de compra
        selling_price: Precio de venta
    """
    barcode: str
    name: str
    company: str = ''
    quantity: int = 0
    purchase_price: float = 0.0
    selling_price: float = 0.0

    def stock_status(self, threshold: int) -> StockStatus:
        if self.quantity <= 0:
            return StockStatus.OUT_OF_STOCK
        if self.quantity <= threshold:
            return StockStatus.LOW_STOCK
        return StockStatus.IN_STOCK

    @property
    def stock_value(self) -> float:
        """Valor del stock a precio de venta."""
        return money(self.quantity * self.selling_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'barcode': self.barcode,
            'name': self.name,
            'company': self.company,
            'quantity': self.quantity,
            'purchasePrice': self.purchase_price,
            'sellingPrice': self.selling_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            barcode=str(data['barcode']),
            name=data.get('name', ''),
            company=data.get('company', ''),
            quantity=to_int(data.get('quantity')),
            purchase_price=to_float(data.get('purchasePrice')),
            selling_price=to_float(data.get('sellingPrice')),
        )


# ==============================================================================
# LÍNEAS DE VENTA / COMPRA
# ==============================================================================

@dataclass
class LineItem:
    """
    Línea de una venta o compra. Guarda copia del nombre y precios del
    momento de la transacción (no se actualiza si cambia el producto).
    """
    barcode: str
    name: str
    quantity: int
    purchase_price: float
    selling_price: float
    total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'barcode': self.barcode,
            'name': self.name,
            'quantity': self.quantity,
            'purchasePrice': self.purchase_price,
            'sellingPrice': self.selling_price,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], price_basis: str = 'sellingPrice') -> 'LineItem':
        """
        Args:
            data: Diccionario persistido
            price_basis: Precio usado para reconstruir 'total' si falta
                         ('sellingPrice' en ventas, 'purchasePrice' en compras)
        """
        quantity = to_int(data.get('quantity'))
        total = data.get('total')
        if total is None:
            total = quantity * to_float(data.get(price_basis))
        return cls(
            barcode=str(data.get('barcode', '')),
            name=data.get('name', ''),
            quantity=quantity,
            purchase_price=to_float(data.get('purchasePrice')),
            selling_price=to_float(data.get('sellingPrice')),
            total=money(to_float(total)),
        )


# ==============================================================================
# VENTAS
# ==============================================================================

@dataclass
class ProductSale:
    """
    Venta de productos. Invariante: final_total = total - discount,
    0 <= discount <= total.
    """
    id: str
    timestamp: str
    items: List[LineItem] = field(default_factory=list)
    total: float = 0.0
    discount: float = 0.0
    final_total: float = 0.0

    kind = 'product'

    def recalculate(self) -> None:
        """Recalcula total y final_total desde las líneas; el descuento se limita al total."""
        self.total = money(sum(item.total for item in self.items))
        self.discount = min(self.discount, self.total)
        self.final_total = money(self.total - self.discount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'discount': self.discount,
            'finalTotal': self.final_total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductSale':
        items = [LineItem.from_dict(i) for i in data.get('items') or []]
        total = data.get('total')
        if total is None:
            total = sum(i.total for i in items)
        total = money(to_float(total))
        discount = money(to_float(data.get('discount')))

        # Campos de total final usados por distintas versiones
        final_total = data.get('finalTotal')
        if final_total is None:
            final_total = data.get('finalAmount')
        if final_total is None and items:
            final_total = sum(i.total for i in items) - discount
        if final_total is None:
            final_total = data.get('grandTotal', total - discount)

        return cls(
            id=str(data.get('id') or new_id()),
            timestamp=data.get('timestamp') or data.get('date') or '',
            items=items,
            total=total,
            discount=discount,
            final_total=money(to_float(final_total)),
        )


@dataclass
class ServiceSale:
    """Venta de un servicio (fotocopia, impresión, etc.). Sin stock."""
    id: str
    timestamp: str
    service_id: str
    service_name: str
    unit: str = 'N/A'
    quantity: float = 1
    customer_name: str = 'N/A'
    amount: float = 0.0
    profit: float = 0.0

    kind = 'service'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': 'service',
            'timestamp': self.timestamp,
            'serviceId': self.service_id,
            'serviceName': self.service_name,
            'unit': self.unit,
            'quantity': self.quantity,
            'customerName': self.customer_name,
            'amount': self.amount,
            'profit': self.profit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ServiceSale':
        amount = money(to_float(data.get('amount')))
        profit = data.get('profit')
        quantity = data.get('quantity')
        return cls(
            id=str(data.get('id') or new_id()),
            # 'date' era el campo de versiones anteriores; se migra aquí
            timestamp=data.get('timestamp') or data.get('date') or '',
            service_id=str(data.get('serviceId', '')),
            service_name=data.get('serviceName', ''),
            unit=data.get('unit') or data.get('serviceUnit') or 'N/A',
            quantity=1 if quantity in (None, '') else to_float(quantity, 1),
            customer_name=data.get('customerName') or 'N/A',
            amount=amount,
            profit=amount if profit is None else money(to_float(profit)),
        )


def sale_from_dict(data: Dict[str, Any]):
    """Crea ProductSale o ServiceSale según el campo 'type'."""
    if data.get('type') == 'service':
        return ServiceSale.from_dict(data)
    return ProductSale.from_dict(data)


# ==============================================================================
# COMPRAS (PROCUREMENT)
# ==============================================================================

@dataclass
class Procurement:
    """Compra a proveedor: entrada de stock."""
    id: str
    timestamp: str
    items: List[LineItem] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Procurement':
        items = [LineItem.from_dict(i, 'purchasePrice') for i in data.get('items') or []]
        total = data.get('total')
        if total is None:
            total = sum(i.total for i in items)
        return cls(
            id=str(data.get('id') or new_id()),
            timestamp=data.get('timestamp') or data.get('date') or '',
            items=items,
            total=money(to_float(total)),
        )


# ==============================================================================
# SERVICIOS Y GASTOS
# ==============================================================================

@dataclass
class Service:
    """Definición reutilizable de un servicio (no es una venta)."""
    id: str
    name: str
    unit: str
    created_date: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'unit': self.unit,
            'createdDate': self.created_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Service':
        return cls(
            id=str(data.get('id') or new_id()),
            name=data.get('name', ''),
            unit=data.get('unit', ''),
            created_date=data.get('createdDate', ''),
        )


@dataclass
class Expense:
    id: str
    date: str
    description: str
    amount: float
    timestamp: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'description': self.description,
            'amount': self.amount,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        return cls(
            id=str(data.get('id') or new_id()),
            date=data.get('date') or data.get('timestamp') or '',
            description=data.get('description', ''),
            amount=money(to_float(data.get('amount'))),
            timestamp=data.get('timestamp', ''),
        )


# ==============================================================================
# CLIENTES Y SU LIBRO DE CUENTA
# ==============================================================================

@dataclass
class Customer:
    id: str
    name: str
    phone: str
    address: str = ''
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        return cls(
            id=str(data.get('id') or new_id()),
            name=data.get('name', ''),
            phone=str(data.get('phone', '')),
            address=data.get('address', ''),
            created_at=data.get('createdAt', ''),
        )


@dataclass
class LedgerEntry:
    """
    Movimiento de la cuenta de un cliente.
    debit = el cliente queda debiendo; credit = el cliente paga.
    """
    id: str
    timestamp: str
    description: str
    debit: float = 0.0
    credit: float = 0.0

    @property
    def net(self) -> float:
        return self.debit - self.credit

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'description': self.description,
            'debit': self.debit,
            'credit': self.credit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerEntry':
        return cls(
            id=str(data.get('id') or new_id()),
            timestamp=data.get('timestamp', ''),
            description=data.get('description', ''),
            debit=money(to_float(data.get('debit'))),
            credit=money(to_float(data.get('credit'))),
        )


# ==============================================================================
# BANCO
# ==============================================================================

@dataclass
class BankTransaction:
    id: str
    date: str
    type: BankTransactionType
    purpose: str
    amount: float
    timestamp: str = ''

    @property
    def signed_amount(self) -> float:
        """Positivo para depósitos, negativo para retiros."""
        if self.type == BankTransactionType.DEPOSIT:
            return self.amount
        return -self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'type': self.type.value,
            'purpose': self.purpose,
            'amount': self.amount,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BankTransaction':
        return cls(
            id=str(data.get('id') or new_id()),
            date=data.get('date', ''),
            type=BankTransactionType(data.get('type', 'deposit')),
            purpose=data.get('purpose', ''),
            amount=money(to_float(data.get('amount'))),
            timestamp=data.get('timestamp', ''),
        )


# ==============================================================================
# CONFIGURACIÓN DE LA TIENDA
# ==============================================================================

@dataclass
class ShopSettings:
    """Identidad de la tienda y preferencias. No es dato contable."""
    shop_name: str = 'One Stop Cyber Cafe'
    shop_address: str = 'Joymontop Bazar, Singair, Manikganj'
    shop_phone: str = '01305681653'
    low_stock_threshold: int = 10
    currency: str = ' '
    theme: str = 'light'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'shopName': self.shop_name,
            'shopAddress': self.shop_address,
            'shopPhone': self.shop_phone,
            'lowStockThreshold': self.low_stock_threshold,
            'currency': self.currency,
            'theme': self.theme,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ShopSettings':
        defaults = cls()
        data = data or {}
        theme = data.get('theme') or data.get('darkMode') or defaults.theme
        return cls(
            shop_name=data.get('shopName', defaults.shop_name),
            shop_address=data.get('shopAddress', defaults.shop_address),
            shop_phone=data.get('shopPhone', defaults.shop_phone),
            low_stock_threshold=to_int(data.get('lowStockThreshold'), defaults.low_stock_threshold),
            currency=data.get('currency', defaults.currency),
            theme=theme if theme in VALID_THEMES else defaults.theme,
        )
