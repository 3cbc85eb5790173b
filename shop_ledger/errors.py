# ==============================================================================
# ERRORES DEL DOMINIO
# ==============================================================================
# Todos son recuperables: se reportan al usuario y el estado en memoria queda
# intacto (se valida ANTES de mutar). La excepción es StorageError: la mutación
# en memoria se mantiene, pero el error sube para que el usuario reintente.
#
# Jerarquía:
#   ShopError
#   ├── ValidationError
#   │   ├── EmptySale / EmptyBatch / EmptyTransaction
#   │   ├── InvalidDiscount
#   │   └── ConfirmationRequired
#   ├── DuplicateKey
#   ├── InsufficientStock
#   │   └── ExceedsQuantity
#   ├── NotFound
#   └── StorageError
# ==============================================================================

from typing import Any, Dict


class ShopError(Exception):
    """Error base de la aplicación."""

    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Respuesta JSON estándar {'ok': False, ...}."""
        return {'ok': False, 'error': self.message, 'code': self.code}


class ValidationError(ShopError):
    """Dato obligatorio vacío o valor fuera de rango."""
    pass


class EmptySale(ValidationError):
    """Se intentó operar sobre una venta sin líneas."""
    pass


class EmptyBatch(ValidationError):
    """Se intentó completar una compra sin líneas."""
    pass


class EmptyTransaction(ValidationError):
    """Movimiento de cliente con débito y crédito en cero."""
    pass


class InvalidDiscount(ValidationError):
    """Descuento negativo o mayor al total."""
    pass


class ConfirmationRequired(ValidationError):
    """Falta escribir CONFIRM para una operación destructiva."""
    pass


class DuplicateKey(ShopError):
    """Código de barras ya registrado."""

    http_status = 409

    def __init__(self, key: str, message: str = None):
        super().__init__(message or f"Ya existe un producto con el código {key}")
        self.key = key


class InsufficientStock(ShopError):
    """La cantidad pedida supera el stock disponible."""

    http_status = 409

    def __init__(self, barcode: str, requested: int, available: int, message: str = None):
        super().__init__(
            message or f"Stock insuficiente para {barcode}: pedido {requested}, disponible {available}"
        )
        self.barcode = barcode
        self.requested = requested
        self.available = available


class ExceedsQuantity(InsufficientStock):
    """Ajuste de venta mayor a la cantidad vendida en esa línea."""

    def __init__(self, barcode: str, requested: int, available: int):
        super().__init__(
            barcode, requested, available,
            f"No se pueden devolver {requested} unidades de {barcode}: la línea tiene {available}"
        )


class NotFound(ShopError):
    """Id o código de barras inexistente."""

    http_status = 404

    def __init__(self, kind: str, key: Any):
        super().__init__(f"{kind} no encontrado: {key}")
        self.kind = kind
        self.key = key


class StorageError(ShopError):
    """Falló la lectura o escritura de una colección."""

    http_status = 500

    def __init__(self, key: str, message: str):
        super().__init__(f"Error de almacenamiento en '{key}': {message}")
        self.key = key
