# ==============================================================================
# REPOSITORIO BASE - Almacén clave-valor y colecciones JSON versionadas
# ==============================================================================
# Cada colección (productos, ventas, gastos...) se guarda como UN blob JSON
# bajo su propia clave:
#
#   {"schema_version": 1, "records": [...]}
#
# Los blobs sin sobre (lista/objeto suelto) son la versión 0 (datos antiguos);
# se aceptan y se reescriben con sobre en el próximo guardado.
#
# La colección se carga una vez (lazy) y se reescribe COMPLETA después de cada
# comando que la modifica. Un solo escritor, sin escrituras parciales.
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from shop_ledger.errors import StorageError

from .interfaces import IKeyValueStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

T = TypeVar('T')


def persist_all(*steps: Callable[[], Any]) -> None:
    """
    Ejecuta varios pasos de guardado de un mismo comando.

    Si uno falla se ejecutan igual los siguientes (la memoria ya tiene el
    cambio completo) y al final se relanza el primer StorageError.
    """
    first_error: Optional[StorageError] = None
    for step in steps:
        try:
            step()
        except StorageError as exc:
            if first_error is None:
                first_error = exc
    if first_error is not None:
        raise first_error


# ==============================================================================
# ALMACENES CLAVE-VALOR
# ==============================================================================

class JsonFileStore:
    """
    Almacén clave-valor en disco: un archivo <clave>.json por colección.

    Escritura atómica: se escribe a un temporal y se reemplaza con os.replace.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, data_dir: str):
        """
        Args:
            data_dir: Carpeta donde se guardan los JSON (se crea si no existe)
        """
        self.data_dir = data_dir
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as exc:
            raise StorageError(data_dir, str(exc)) from exc

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        """Retorna el blob guardado o None si la clave no existe."""
        path = self._path(key)
        with self._file_lock:
            if not os.path.exists(path):
                return None
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    return f.read()
            except OSError as exc:
                raise StorageError(key, str(exc)) from exc

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        temp_path = path + '.tmp'
        with self._file_lock:
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(temp_path, path)
            except OSError as exc:
                # Limpiar archivo temporal si algo falla
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise StorageError(key, str(exc)) from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        with self._file_lock:
            try:
                if os.path.exists(path):
                    os.remove(path)
            except OSError as exc:
                raise StorageError(key, str(exc)) from exc


class MemoryStore:
    """Almacén en memoria (tests y modo SHOP_STORAGE=memory)."""

    def __init__(self, initial: Dict[str, str] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


# ==============================================================================
# REPOSITORIO BASE
# ==============================================================================

class BaseRepository(ABC):
    """
    Clase base para todos los repositorios.

    Se encarga de leer/escribir el blob de su clave, validar el sobre de
    versión y traducir fallos de parseo a StorageError. Las subclases solo
    definen cómo (de)serializar sus registros.
    """

    KEY: str = ''

    def __init__(self, store: IKeyValueStore):
        """
        Args:
            store: Almacén clave-valor (JsonFileStore, MemoryStore o similar)
        """
        self.store = store
        self._loaded = False

    # -------------------------------------------------------------------------
    # Hooks de subclases
    # -------------------------------------------------------------------------

    @abstractmethod
    def _empty(self) -> Any:
        """Estructura vacía de la colección."""

    @abstractmethod
    def _decode(self, records: Any) -> None:
        """Carga los registros crudos en la caché en memoria."""

    @abstractmethod
    def _encode(self) -> Any:
        """Serializa la caché en memoria a estructuras JSON."""

    # -------------------------------------------------------------------------
    # Lectura / escritura
    # -------------------------------------------------------------------------

    def _read_records(self) -> Any:
        raw = self.store.get(self.KEY)
        if raw is None or raw.strip() == '':
            return self._empty()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageError(self.KEY, f"JSON inválido: {exc}") from exc

        if isinstance(data, dict) and 'schema_version' in data and 'records' in data:
            version = data.get('schema_version')
            if not isinstance(version, int) or version > SCHEMA_VERSION:
                raise StorageError(self.KEY, f"versión de esquema no soportada: {version}")
            return data['records']

        # Versión 0: blob sin sobre
        if data is None:
            return self._empty()
        logger.info("Colección '%s' sin versión de esquema; se migrará al guardar", self.KEY)
        return data

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        records = self._read_records()
        try:
            self._decode(records)
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            raise StorageError(self.KEY, f"registro inválido: {exc}") from exc
        self._loaded = True

    def save(self) -> None:
        """
        Escribe la colección completa.

        Raises:
            StorageError: si el almacén falla (la caché en memoria se conserva)
        """
        payload = json.dumps(
            {'schema_version': SCHEMA_VERSION, 'records': self._encode()},
            ensure_ascii=False,
            indent=2,
        )
        try:
            self.store.set(self.KEY, payload)
        except StorageError:
            logger.exception("No se pudo guardar la colección '%s'", self.KEY)
            raise
        except OSError as exc:
            logger.exception("No se pudo guardar la colección '%s'", self.KEY)
            raise StorageError(self.KEY, str(exc)) from exc

    def reload(self) -> None:
        """Descarta la caché; la próxima lectura vuelve al almacén."""
        self._loaded = False

    def clear(self) -> None:
        """Vacía la colección y la persiste."""
        self._decode(self._empty())
        self._loaded = True
        self.save()


class ListRepository(BaseRepository, Generic[T]):
    """
    Repositorio para colecciones guardadas como lista ordenada de entidades
    con atributo 'id'.
    """

    def __init__(self, store, factory: Callable[[Dict[str, Any]], T]):
        """
        Args:
            store: Almacén clave-valor
            factory: Función dict -> entidad (normalmente Entidad.from_dict)
        """
        super().__init__(store)
        self._factory = factory
        self._records: List[T] = []

    def _empty(self) -> List:
        return []

    def _decode(self, records: Any) -> None:
        if not isinstance(records, list):
            raise StorageError(self.KEY, "se esperaba una lista de registros")
        decoded = []
        for record in records:
            if not isinstance(record, dict):
                raise StorageError(self.KEY, f"registro inválido: {record!r}")
            decoded.append(self._factory(record))
        self._records = decoded

    def _encode(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self._records]

    def get_all(self) -> List[T]:
        """Copia de la lista (las entidades son las mismas instancias)."""
        self._ensure_loaded()
        return list(self._records)

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._records)

    def find_by_id(self, record_id: str) -> Optional[T]:
        self._ensure_loaded()
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def append(self, record: T) -> None:
        """Agrega un registro al final y persiste."""
        self._ensure_loaded()
        self._records.append(record)
        self.save()

    def remove(self, record_id: str) -> Optional[T]:
        """
        Elimina un registro por id y persiste.

        Returns:
            El registro eliminado o None si no existía
        """
        self._ensure_loaded()
        for index, record in enumerate(self._records):
            if record.id == record_id:
                removed = self._records.pop(index)
                self.save()
                return removed
        return None
