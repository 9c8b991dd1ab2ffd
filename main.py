# main.py
from __future__ import annotations
import os
import sys
import time
import signal
import threading
import subprocess
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from controllers.session_controller import SessionClient
from utils.config import Settings
from utils.log_config import logger_manager
from views.session_view import LoggingView

logger = logger_manager.setup_logger(__name__)

# ------------------------------
# Configuración
# ------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent
UI_MODE = os.getenv("UI_MODE", "streamlit").lower()   # streamlit | console
STREAMLIT_APP = os.getenv("STREAMLIT_APP", str(PROJECT_ROOT / "streamlit_app" / "dashboard.py"))
STREAMLIT_PORT = os.getenv("STREAMLIT_PORT", "8501")

stop_all_evt = threading.Event()
streamlit_proc: subprocess.Popen | None = None

# ------------------------------
# Lanzadores
# ------------------------------
def start_streamlit_process() -> subprocess.Popen:
    """
    Lanza streamlit como proceso aparte.
    """
    app_path = Path(STREAMLIT_APP)
    if not app_path.exists():
        logger.error(f"Streamlit app no encontrada: {app_path}")
    cmd = [
        sys.executable, "-m", "streamlit", "run", str(app_path),
        "--server.headless=true",
        f"--server.port={STREAMLIT_PORT}",
    ]
    logger.info(f"Lanzando Streamlit: {' '.join(cmd)}")
    # heredamos entorno (PRIVATE_KEY, RPC_URLS etc.)
    return subprocess.Popen(cmd, cwd=str(PROJECT_ROOT))

def run_console() -> int:
    """
    Sesión sin interfaz: conecta, muestra balances y registra eventos en el log
    hasta recibir SIGINT/SIGTERM.
    """
    client = SessionClient(settings=Settings.from_env(), view=LoggingView())
    if not client.connect():
        return 1
    try:
        while not stop_all_evt.is_set():
            stop_all_evt.wait(0.5)
    finally:
        client.disconnect()
    return 0

# ------------------------------
# Señales / apagado limpio
# ------------------------------
def shutdown(*_):
    logger.info("🛑 Señal de apagado recibida, deteniendo servicios...")
    stop_all_evt.set()
    if streamlit_proc and streamlit_proc.poll() is None:
        try:
            if os.name == "nt":
                streamlit_proc.terminate()
            else:
                streamlit_proc.send_signal(signal.SIGTERM)
            for _ in range(10):
                if streamlit_proc.poll() is not None:
                    break
                time.sleep(0.3)
            if streamlit_proc.poll() is None:
                streamlit_proc.kill()
        except OSError as e:
            logger.error(f"No se pudo cerrar Streamlit: {e}")
    logger.info("✅ Apagado completado.")

# ------------------------------
# Main
# ------------------------------
def main() -> int:
    global streamlit_proc
    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    if UI_MODE == "console":
        logger.info("🚀 Iniciando sesión en modo consola...")
        return run_console()

    logger.info("🚀 Iniciando dashboard Streamlit...")
    streamlit_proc = start_streamlit_process()
    try:
        while not stop_all_evt.is_set():
            if streamlit_proc.poll() is not None:
                logger.warning("El proceso de Streamlit finalizó.")
                break
            time.sleep(0.5)
    finally:
        shutdown()
    return streamlit_proc.returncode or 0

if __name__ == "__main__":
    sys.exit(main())
