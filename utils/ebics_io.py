"""
EBICS I/O Utilities - Operazioni su file per keyring e order data

Questo modulo centralizza le operazioni di I/O usate dal client:
keyring JSON e file binari (order data scaricati, certificati DER).
"""

import json
import os
import tempfile
from typing import Any, Dict, Optional


class EbicsFileHandler:
    """Handler centralizzato per operazioni I/O del client EBICS"""

    @staticmethod
    def load_json_file(file_path: str) -> Optional[Dict[str, Any]]:
        """
        Carica dati JSON da file.

        Args:
            file_path: Path del file JSON da caricare

        Returns:
            Dizionario con i dati o None se il file non esiste

        Raises:
            json.JSONDecodeError: Se il file non è un JSON valido
        """
        if not os.path.exists(file_path):
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def save_json_file(data: Dict[str, Any], file_path: str, create_dirs: bool = True, indent: int = 2) -> None:
        """
        Salva dati in formato JSON su file.

        Args:
            data: Dizionario da salvare
            file_path: Path dove salvare il file
            create_dirs: Se True, crea directory se non esiste
            indent: Indentazione per pretty-print (default: 2)
        """
        directory = os.path.dirname(str(file_path)) or "."
        if create_dirs:
            EbicsFileHandler.ensure_directories(directory)

        # Scrivi su file temporaneo e rename atomico
        temp_fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp", text=True)
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=indent)
            os.replace(temp_path, file_path)
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    @staticmethod
    def load_binary_file(file_path: str) -> Optional[bytes]:
        """Carica dati binari da file, None se il file non esiste."""
        if not os.path.exists(file_path):
            return None

        with open(file_path, "rb") as f:
            return f.read()

    @staticmethod
    def save_binary_file(data: bytes, file_path: str, create_dirs: bool = True) -> None:
        """
        Salva dati binari su file (es: order data scaricati).

        Args:
            data: Dati binari da salvare
            file_path: Path dove salvare il file
            create_dirs: Se True, crea directory se non esiste
        """
        if create_dirs:
            EbicsFileHandler.ensure_directories(os.path.dirname(str(file_path)))

        with open(file_path, "wb") as f:
            f.write(data)

    @staticmethod
    def ensure_directories(*paths: str):
        """Crea le directory se non esistono (path vuoti ignorati)."""
        for path in paths:
            if path:
                os.makedirs(path, exist_ok=True)
