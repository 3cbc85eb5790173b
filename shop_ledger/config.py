# ==============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ==============================================================================
# Todo se lee de variables de entorno con valores por defecto para desarrollo.
#
#   SHOP_DATA_DIR      Carpeta donde viven los JSON (default: ./data)
#   SHOP_STORAGE       'file' o 'memory'
#   SHOP_SECRET_KEY    Clave de Flask (OBLIGATORIA en producción)
#   PRODUCTION_MODE    '1' para producción
#   LOG_LEVEL          DEBUG / INFO / WARNING ...
#   LOG_JSON           '1' para logs en formato JSON
#   ENABLE_PROFILING   '0' para desactivar el profiling
#
# Los datos del negocio (umbral de stock bajo, nombre de la tienda, tema)
# NO están aquí: viven en la colección de settings.
# ==============================================================================

import os

_DEFAULT_SECRET = "shop_ledger_dev_secret_key_change_in_production"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Configuración base (desarrollo)."""

    def __init__(self):
        self.DATA_DIR = os.environ.get('SHOP_DATA_DIR', os.path.join(os.getcwd(), 'data'))
        self.STORAGE = os.environ.get('SHOP_STORAGE', 'file')
        self.PRODUCTION_MODE = _env_flag('PRODUCTION_MODE', False)
        self.SECRET_KEY = os.environ.get('SHOP_SECRET_KEY') or _DEFAULT_SECRET
        self.LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
        self.LOG_JSON = _env_flag('LOG_JSON', False)
        self.ENABLE_PROFILING = _env_flag('ENABLE_PROFILING', True)
        self.TESTING = False

    def to_flask(self) -> dict:
        """Claves que se copian a app.config."""
        return {
            'SECRET_KEY': self.SECRET_KEY,
            'TESTING': self.TESTING,
        }


class TestingConfig(Config):
    """Configuración para tests: almacenamiento en memoria, sin profiling."""

    __test__ = False

    def __init__(self):
        super().__init__()
        self.STORAGE = 'memory'
        self.ENABLE_PROFILING = False
        self.TESTING = True
