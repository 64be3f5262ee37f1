# inventario/modules/gestion_usuarios.py
import logging
from datetime import datetime, timezone
from typing import Dict, List

from flask import Blueprint, jsonify

from ..acceso import requiere_rol
from ..auth import hash_contrasena
from ..config import Rol, rol_estricto
from ..database import DatabaseManager, obtener_db
from ..errors import (AutoEliminacionProhibida, CambioRolPropioProhibido, CorreoDuplicado,
                      ErrorValidacion, NoEncontrado)
from ..sesion import Identidad
from ..validators import datos_peticion, validar_requeridos

logger = logging.getLogger(__name__)

bp = Blueprint("usuarios", __name__, url_prefix="/api/usuarios")


def _rol_valido(texto: str) -> Rol:
    rol = rol_estricto(texto)
    if rol is None:
        raise ErrorValidacion(f"Rol no válido: {texto}")
    return rol


def listar_usuarios(db: DatabaseManager) -> List[Dict]:
    """
    Todas las cuentas, de la más reciente a la más antigua.

    La tabla no guarda fecha de creación: `created_at` es el instante de la
    consulta, un valor de relleno para el front end y NO la fecha real de alta.
    """
    ahora = datetime.now(timezone.utc).isoformat()
    return [{**usuario, "created_at": ahora} for usuario in db.get_all_users()]


def crear_usuario(db: DatabaseManager, admin: Identidad, datos: Dict) -> int:
    validar_requeridos(datos, ("nombre", "correo", "password", "rol"))
    rol = _rol_valido(datos["rol"])
    if db.check_if_email_exists(datos["correo"]):
        raise CorreoDuplicado()

    user_id = db.insert_user(datos["nombre"], datos["correo"], hash_contrasena(datos["password"]), rol.value)
    db.registrar_movimiento_sistema("Registro Usuario", f"Usuario '{datos['correo']}' ({rol.value}) creado por {admin.correo}", admin.correo)
    logger.info("Usuario %s (%s) creado por %s", datos["correo"], rol.value, admin.correo)
    return user_id


def actualizar_usuario(db: DatabaseManager, admin: Identidad, user_id: int, datos: Dict) -> int:
    validar_requeridos(datos, ("nombre", "correo", "rol"))
    rol = _rol_valido(datos["rol"])
    if user_id == admin.id and rol != admin.tipo_usuario:
        raise CambioRolPropioProhibido()

    filas = db.update_user(user_id, datos["nombre"], datos["correo"], rol.value)
    if filas == 0:
        raise NoEncontrado("Usuario no encontrado")

    db.registrar_movimiento_sistema("Edición Usuario", f"Usuario ID {user_id} actualizado ({rol.value})", admin.correo)
    logger.info("Usuario %s actualizado por %s", user_id, admin.correo)
    return filas


def eliminar_usuario(db: DatabaseManager, admin: Identidad, user_id: int):
    if user_id == admin.id:
        raise AutoEliminacionProhibida()
    if db.delete_user(user_id) == 0:
        raise NoEncontrado("Usuario no encontrado")
    db.registrar_movimiento_sistema("Eliminación Usuario", f"Usuario ID {user_id} eliminado", admin.correo)
    logger.info("Usuario %s eliminado por %s", user_id, admin.correo)


# --- Rutas (solo ADMIN) ---
@bp.route("", methods=["GET"])
@requiere_rol(Rol.ADMIN)
def listar(usuario: Identidad):
    return jsonify(listar_usuarios(obtener_db()))


@bp.route("", methods=["POST"])
@requiere_rol(Rol.ADMIN)
def crear(usuario: Identidad):
    user_id = crear_usuario(obtener_db(), usuario, datos_peticion())
    return jsonify({"success": True, "id": user_id, "message": "Usuario creado exitosamente"})


@bp.route("/<int:user_id>", methods=["PUT"])
@requiere_rol(Rol.ADMIN)
def actualizar(usuario: Identidad, user_id: int):
    filas = actualizar_usuario(obtener_db(), usuario, user_id, datos_peticion())
    return jsonify({
        "success": True,
        "message": "Usuario actualizado correctamente",
        "affectedRows": filas
    })


@bp.route("/<int:user_id>", methods=["DELETE"])
@requiere_rol(Rol.ADMIN)
def eliminar(usuario: Identidad, user_id: int):
    eliminar_usuario(obtener_db(), usuario, user_id)
    return jsonify({"success": True, "message": "Usuario eliminado"})
