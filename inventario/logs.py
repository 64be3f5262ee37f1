# inventario/logs.py
import logging
import os
from logging.handlers import RotatingFileHandler

from colorama import Fore, Style
from flask import request

FORMATO = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
FORMATO_FECHA = '%Y-%m-%d %H:%M:%S'

COLORES_NIVEL = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}


class FormatoColor(logging.Formatter):
    """Colorea el nivel del mensaje en la consola."""

    def format(self, record: logging.LogRecord) -> str:
        texto = super().format(record)
        color = COLORES_NIVEL.get(record.levelno)
        if not color:
            return texto
        return texto.replace(record.levelname, f"{color}{record.levelname}{Style.RESET_ALL}", 1)


def configurar_logging(app):
    """Configura el logger "inventario"; app.logger (inventario.aplicacion) propaga hacia él."""
    nivel = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)
    handlers = []

    consola = logging.StreamHandler()
    consola.setFormatter(FormatoColor(FORMATO, datefmt=FORMATO_FECHA))
    handlers.append(consola)

    log_dir = app.config.get("LOG_DIR")
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        archivo = RotatingFileHandler(os.path.join(log_dir, app.config.get("LOG_FILE", "inventario.log")),
                                      maxBytes=5_000_000, backupCount=5, encoding="utf-8")
        archivo.setFormatter(logging.Formatter(FORMATO, datefmt=FORMATO_FECHA))
        handlers.append(archivo)

    log = logging.getLogger("inventario")
    log.setLevel(nivel)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    for handler in handlers:
        log.addHandler(handler)

    @app.teardown_request
    def registrar_excepcion(exc):
        if exc is not None:
            app.logger.error("Petición %s %s terminó con %s: %s", request.method, request.path, type(exc).__name__, exc)
