# inventario/auth.py
import logging

import bcrypt
from flask import Blueprint, current_app, jsonify, redirect, request, send_from_directory

from . import ui
from .acceso import requiere_sesion
from .config import PAGINA_LOGIN, PAGINA_POR_DEFECTO, PAGINAS_INICIO, normalizar_rol
from .database import DatabaseManager, obtener_db
from .errors import CodigoInvalido, CredencialesInvalidas, ErrorInventario, ErrorValidacion
from .sesion import Identidad, cerrar_sesion, guardar_identidad, identidad_actual
from .validators import es_vacio, validar_requeridos

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


def hash_contrasena(contrasena: str) -> str:
    rondas = current_app.config.get("BCRYPT_ROUNDS", 10)
    return bcrypt.hashpw(contrasena.encode('utf-8'), bcrypt.gensalt(rounds=rondas)).decode('utf-8')

def verificar_contrasena(contrasena: str, hash_almacenado: str) -> bool:
    try:
        return bcrypt.checkpw(contrasena.encode('utf-8'), hash_almacenado.encode('utf-8'))
    except ValueError:
        # Hash almacenado con formato inválido
        return False

def pagina_inicio(rol: str) -> str:
    return PAGINAS_INICIO.get(rol, PAGINA_POR_DEFECTO)


def registrar_usuario(db: DatabaseManager, username: str, correo: str, password: str, codigo: str) -> int:
    """Crea una cuenta a partir de un código de acceso. Devuelve el id del nuevo usuario."""
    if es_vacio(codigo):
        raise ErrorValidacion("Ingresa un código de acceso")

    rol_codigo = db.get_rol_de_codigo(codigo.strip())
    if rol_codigo is None:
        logger.info("Registro rechazado: código de acceso no encontrado")
        raise CodigoInvalido()

    validar_requeridos({"username": username, "correo": correo, "password": password},
                       ("username", "correo", "password"))

    rol = normalizar_rol(rol_codigo)
    user_id = db.insert_user(username, correo, hash_contrasena(password), rol.value)
    db.registrar_movimiento_sistema("Registro Usuario", f"Usuario '{correo}' registrado como {rol.value}", correo)
    logger.info("Usuario %s registrado como %s", correo, rol.value)
    return user_id


def autenticar(db: DatabaseManager, correo: str, password: str) -> Identidad:
    if es_vacio(correo) or es_vacio(password):
        raise ErrorValidacion("Ingresa correo y contraseña")

    user_data = db.get_user_by_email(correo)
    if not user_data or not verificar_contrasena(password, user_data['password_hash']):
        logger.warning("Intento de login fallido para %s", correo)
        raise CredencialesInvalidas()

    return Identidad(
        id=user_data['id'],
        nombre=user_data['nombre'],
        correo=user_data['correo'],
        tipo_usuario=user_data['rol'],
    )


# --- Rutas públicas ---
@bp.route("/registro", methods=["POST"])
def registro():
    form = request.form
    try:
        registrar_usuario(obtener_db(), form.get("username"), form.get("correo"),
                          form.get("password"), form.get("codigos_de_acceso"))
    except ErrorInventario as e:
        return ui.pagina_error_registro(e)
    return redirect(PAGINA_LOGIN)


@bp.route("/login", methods=["POST"])
def login():
    try:
        identidad = autenticar(obtener_db(), request.form.get("correo"), request.form.get("password"))
    except ErrorInventario as e:
        return ui.pagina_error_login(e)

    guardar_identidad(identidad)
    logger.info("Login exitoso: %s (%s)", identidad.correo, identidad.tipo_usuario)
    return redirect(pagina_inicio(identidad.tipo_usuario))


@bp.route("/logout")
def logout():
    usuario = identidad_actual()
    if usuario is not None:
        logger.info("Cierre de sesión: %s", usuario.correo)
    cerrar_sesion()
    return redirect(PAGINA_LOGIN)


# --- Rutas protegidas ---
@bp.route("/")
@requiere_sesion
def inicio(usuario: Identidad):
    pagina = pagina_inicio(usuario.tipo_usuario).lstrip("/")
    return send_from_directory(current_app.static_folder, pagina)


@bp.route("/api/usuario-actual")
@requiere_sesion
def usuario_actual(usuario: Identidad):
    return jsonify(usuario.to_dict())


@bp.route("/api/tipo-usuario")
@requiere_sesion
def tipo_usuario(usuario: Identidad):
    return jsonify({"tipo_usuario": usuario.tipo_usuario})
