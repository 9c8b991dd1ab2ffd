from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
import os, functools, time
from pathlib import Path

_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
_CONSOLE_FMT = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s", "%Y-%m-%d %H:%M:%S")
_FILE_FMT = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s", "%Y-%m-%d %H:%M:%S")


class _LoggerManager:
    """Consola en el root + un fichero rotativo por módulo en LOG_DIR."""

    def __init__(self) -> None:
        self._log_dir: Path | None = None
        self._with_files: set[str] = set()

    def _ensure(self) -> Path:
        if self._log_dir is None:
            root = logging.getLogger()
            root.setLevel(_LEVEL)
            if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
                sh = logging.StreamHandler()
                sh.setFormatter(_CONSOLE_FMT)
                root.addHandler(sh)
            self._log_dir = Path(os.getenv("LOG_DIR", "./logs"))
            self._log_dir.mkdir(parents=True, exist_ok=True)
        return self._log_dir

    def setup_logger(self, name: str) -> logging.Logger:
        log_dir = self._ensure()
        logger = logging.getLogger(name)
        if name in self._with_files:
            return logger

        file_path = log_dir / f"{name.replace('.', '_')}.log"
        try:
            fh = RotatingFileHandler(
                file_path,
                maxBytes=int(os.getenv("LOG_MAX_BYTES", "1048576")),
                backupCount=int(os.getenv("LOG_BACKUP_COUNT", "3")),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"Sin fichero de log para {name}: {e}")
        else:
            fh.setFormatter(_FILE_FMT)
            logger.addHandler(fh)
        self._with_files.add(name)
        return logger

logger_manager = _LoggerManager()

def log_function(func):
    """Registra entrada, duración y excepciones (que se propagan) de ``func``."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logger_manager.setup_logger(func.__module__)
        # args[0] es self: no se vuelca
        logger.debug(f"→ {func.__qualname__} args={args[1:]} kwargs={kwargs}")
        t0 = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.exception(f"✗ {func.__qualname__}: {e}")
            raise
        logger.debug(f"← {func.__qualname__} ({(time.perf_counter()-t0)*1000:.1f} ms)")
        return result
    return wrapper
