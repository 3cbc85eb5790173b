# ==============================================================================
# CONFIGURACIÓN DE LOGGING
# ==============================================================================
# Un solo handler a stderr. Formato legible o JSON (LOG_JSON=1) para
# agregadores. Cada módulo usa logging.getLogger(__name__).
# ==============================================================================

import json
import logging
from datetime import datetime, timezone

from shop_ledger.config import Config


class JsonFormatter(logging.Formatter):
    """Formatea cada registro como una línea JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(config: Config = None) -> None:
    """
    Configura el logger raíz.

    Args:
        config: Configuración de la app (si es None se lee del entorno)
    """
    config = config or Config()
    level = getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler()
    if config.LOG_JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
