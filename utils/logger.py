"""
Centralized logger for the EBICS client.

Named, cached loggers with console and optional file output. Every handler
carries a SecretRedactionFilter: PEM private keys and keyring passwords never
reach the log output, even when they end up inside an exception message.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Dict, Optional

LOG_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_PEM_PRIVATE_KEY = re.compile(
    r"-----BEGIN (?:ENCRYPTED |RSA )?PRIVATE KEY-----.*?-----END (?:ENCRYPTED |RSA )?PRIVATE KEY-----",
    re.DOTALL,
)
_PASSWORD = re.compile(r"(password\s*[=:]\s*)\S+", re.IGNORECASE)


class SecretRedactionFilter(logging.Filter):
    """Maschera chiavi private PEM e password nei record di log."""

    REDACTED = "[REDACTED]"

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _PEM_PRIVATE_KEY.sub(self.REDACTED, message)
        redacted = _PASSWORD.sub(lambda match: match.group(1) + self.REDACTED, redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class EbicsLogger:
    """
    Registry of the loggers used by client, handlers and managers.

    Naming: "EbicsClient_<HostID>" for clients, class name otherwise.
    """

    _loggers: Dict[str, logging.Logger] = {}

    @staticmethod
    def get_logger(
        name: str,
        log_dir: Optional[str] = None,
        level: int = logging.INFO,
        console_output: bool = True,
    ) -> logging.Logger:
        """
        Ottiene o crea un logger configurato.

        Args:
            name: Nome del logger (es. "EbicsClient_MYHOSTID", "KeyringManager")
            log_dir: Directory per i file di log (opzionale)
            level: Livello minimo di log (default: INFO)
            console_output: Se True, stampa anche su console

        Returns:
            Logger configurato pronto all'uso
        """
        cached = EbicsLogger._loggers.get(name)
        if cached is not None:
            return cached

        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False
        logger.handlers.clear()

        # [2025-10-09 14:30:45] [EbicsClient_MYHOSTID] [INFO] HTD: download
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        handlers = []
        if console_output:
            handlers.append(logging.StreamHandler(sys.stdout))
        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path / f"{name}.log", encoding="utf-8"))

        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            handler.addFilter(SecretRedactionFilter())
            logger.addHandler(handler)

        EbicsLogger._loggers[name] = logger
        return logger

    @staticmethod
    def set_level(name: str, level: int):
        """Cambia il livello di un logger esistente e dei suoi handler."""
        logger = EbicsLogger._loggers.get(name)
        if logger is None:
            return
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    @staticmethod
    def clear_cache():
        EbicsLogger._loggers.clear()
