# ==============================================================================
# REPOSITORIO BASE - Almacenamiento clave/valor en archivos JSON
# ==============================================================================
# Equivalente en disco del localStorage del navegador: cada clave es un
# archivo JSON dentro del directorio de datos. Escritura atómica (temp +
# replace) y cuota opcional en bytes para emular el límite del navegador.
# ==============================================================================

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class StorageQuotaExceeded(OSError):
    """El contenido a escribir supera la cuota configurada del almacenamiento."""
    pass


class BaseRepository(ABC):
    """
    Clase base abstracta para los repositorios locales.

    Proporciona lectura/escritura de un archivo JSON con un lock global para
    evitar escrituras concurrentes.
    """

    # Un solo lock para todos los archivos del directorio de datos
    _io_lock = threading.RLock()

    def __init__(self, file_path: str, max_bytes: int = 0):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON
            max_bytes: Cuota máxima del archivo en bytes (0 = sin límite)
        """
        self.file_path = file_path
        self.max_bytes = max_bytes
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía que se retorna si el archivo no existe o está corrupto."""
        pass

    def exists(self) -> bool:
        return os.path.exists(self.file_path)

    def _read_raw(self) -> Any:
        """
        Contenido del archivo ya parseado.

        Returns:
            Datos parseados, o la estructura vacía si el archivo no existe
            o tiene JSON inválido
        """
        with self._io_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Serializa y guarda los datos de forma atómica.

        Raises:
            StorageQuotaExceeded: Si el contenido supera `max_bytes`
            OSError: Si hay error de escritura
        """
        payload = json.dumps(data, ensure_ascii=False, indent=2)
        size = len(payload.encode('utf-8'))
        if self.max_bytes and size > self.max_bytes:
            raise StorageQuotaExceeded(
                f'{os.path.basename(self.file_path)}: {size} bytes superan la cuota de {self.max_bytes}'
            )
        with self._io_lock:
            # temp + replace: un lector nunca ve un archivo a medio escribir
            tmp_path = self.file_path + '.tmp'
            try:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_path, self.file_path)
            except Exception:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    def remove(self) -> None:
        """Elimina el archivo (equivalente a localStorage.removeItem)."""
        with self._io_lock:
            if os.path.exists(self.file_path):
                os.remove(self.file_path)


class DictRepository(BaseRepository):
    """
    Repositorio para datos almacenados como diccionario.

    Ejemplo: preferences.json -> {"theme": "dark", "currency": "PEN"}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.get_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Guarda una sola clave sin tocar las demás."""
        with self._io_lock:
            data = self.get_all()
            data[key] = value
            self._write_raw(data)

    def delete(self, key: str) -> Optional[Any]:
        with self._io_lock:
            data = self.get_all()
            removed = data.pop(key, None)
            if removed is not None:
                self._write_raw(data)
            return removed
