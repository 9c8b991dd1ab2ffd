from utils.logger import logger_manager, log_function

# Logger por defecto de la aplicación
# NOTA: cada módulo debería pedir el suyo con logger_manager.setup_logger(__name__)
logger = logger_manager.setup_logger("arsv_client")

__all__ = ["logger_manager", "log_function", "logger"]
