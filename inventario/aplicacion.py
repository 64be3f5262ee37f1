# inventario/aplicacion.py
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import click
from flask import Flask, jsonify

from . import database
from .auth import bp as auth_bp
from .config import Config, normalizar_rol
from .errors import ErrorBaseDatos, ErrorInventario
from .logs import configurar_logging
from .modules.bitacora import bp as bitacora_bp
from .modules.gestion_instrumentos import bp as instrumentos_bp
from .modules.gestion_usuarios import bp as usuarios_bp
from .modules.transferencia_excel import bp as excel_bp
from .sesion import SesionServidorInterface

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def create_app(config_override: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(
        __name__,
        static_folder=os.path.join(BASE_DIR, "public"),
        static_url_path="",
        template_folder=os.path.join(BASE_DIR, "templates"),
    )
    app.config.update(Config().to_flask_dict())
    if config_override:
        app.config.update(config_override)
    if "PERMANENT_SESSION_LIFETIME" not in (config_override or {}):
        app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=app.config["SESSION_LIFETIME_HOURS"])
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"

    configurar_logging(app)
    if not app.config["SESSION_COOKIE_SECURE"]:
        logger.warning("SESSION_COOKIE_SECURE desactivado: la cookie de sesión viaja también por HTTP")

    database.init_app(app)
    app.session_interface = SesionServidorInterface()

    app.register_blueprint(auth_bp)
    app.register_blueprint(instrumentos_bp)
    app.register_blueprint(usuarios_bp)
    app.register_blueprint(excel_bp)
    app.register_blueprint(bitacora_bp)

    registrar_manejadores_error(app)
    registrar_comandos(app)
    return app


def registrar_manejadores_error(app: Flask):
    @app.errorhandler(ErrorInventario)
    def manejar_error_inventario(error: ErrorInventario):
        if isinstance(error, ErrorBaseDatos):
            logger.error("%s: %s", error.mensaje, error.detalles)
        return jsonify(error.to_dict()), error.codigo_http

    @app.errorhandler(413)
    def archivo_demasiado_grande(error):
        return jsonify({"error": "El archivo supera el tamaño máximo permitido"}), 413


def registrar_comandos(app: Flask):
    @app.cli.command("init-db")
    def init_db_command():
        """Crea las tablas si no existen."""
        database.inicializar_db(app.config["DATABASE"])
        click.echo(f"Base de datos lista en {app.config['DATABASE']}")

    @app.cli.command("crear-codigo")
    @click.argument("codigo")
    @click.argument("rol")
    def crear_codigo_command(codigo: str, rol: str):
        """Registra un código de acceso que otorga ROL al registrarse."""
        db = database.obtener_db()
        if db.add_codigo(codigo, rol):
            click.echo(f"Código '{codigo}' creado (rol al registrarse: {normalizar_rol(rol).value})")
        else:
            raise click.ClickException(f"El código '{codigo}' ya existe")

    @app.cli.command("listar-codigos")
    def listar_codigos_command():
        """Muestra los códigos de acceso registrados."""
        codigos = database.obtener_db().get_all_codigos()
        if not codigos:
            click.echo("No hay códigos de acceso registrados.")
        for item in codigos:
            click.echo(f"{item['codigo']:<25} {item['rol']:<15} -> {normalizar_rol(item['rol']).value}")

    @app.cli.command("eliminar-codigo")
    @click.argument("codigo")
    def eliminar_codigo_command(codigo: str):
        """Elimina un código de acceso."""
        if database.obtener_db().delete_codigo(codigo) == 0:
            raise click.ClickException(f"El código '{codigo}' no existe")
        click.echo(f"Código '{codigo}' eliminado")

    @app.cli.command("purgar-sesiones")
    def purgar_sesiones_command():
        """Borra las sesiones caducadas."""
        ahora = datetime.now(timezone.utc).strftime(database.FORMATO_FECHA)
        borradas = database.obtener_db().purgar_sesiones(ahora)
        click.echo(f"{borradas} sesiones caducadas eliminadas")
