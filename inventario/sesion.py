# inventario/sesion.py
"""
Sesiones del lado del servidor.

La cookie solo transporta un token opaco; los datos viven en la tabla
`sesiones`. La identidad guardada es una copia tomada al iniciar sesión:
los cambios posteriores a la cuenta no se reflejan hasta un nuevo login.
"""
import json
import secrets
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from flask import session
from flask.sessions import SessionInterface, SessionMixin
from werkzeug.datastructures import CallbackDict

from .database import FORMATO_FECHA, obtener_db


def _ahora() -> datetime:
    return datetime.now(timezone.utc)


class SesionServidor(CallbackDict, SessionMixin):
    def __init__(self, initial=None, token: Optional[str] = None, new: bool = False):
        def on_update(self):
            self.modified = True
        CallbackDict.__init__(self, initial, on_update)
        self.token = token or secrets.token_urlsafe(32)
        self.new = new
        self.modified = False

    def regenerar(self):
        """Cambia el token al iniciar sesión; el registro anterior se descarta."""
        if not self.new:
            obtener_db().delete_sesion(self.token)
        self.token = secrets.token_urlsafe(32)
        self.new = True


class SesionServidorInterface(SessionInterface):
    """Guarda el contenido de la sesión en SQLite, indexado por el token de la cookie."""

    def open_session(self, app, request) -> SesionServidor:
        token = request.cookies.get(self.get_cookie_name(app))
        if token:
            datos = obtener_db().get_sesion(token, _ahora().strftime(FORMATO_FECHA))
            if datos is not None:
                return SesionServidor(json.loads(datos), token=token)
        return SesionServidor(new=True)

    def save_session(self, app, session: SesionServidor, response):
        nombre = self.get_cookie_name(app)
        dominio = self.get_cookie_domain(app)
        ruta = self.get_cookie_path(app)

        if not session:
            if session.modified:
                obtener_db().delete_sesion(session.token)
                response.delete_cookie(nombre, domain=dominio, path=ruta)
            return

        if not self.should_set_cookie(app, session):
            return

        expira = _ahora() + app.permanent_session_lifetime
        obtener_db().guardar_sesion(session.token, json.dumps(dict(session)), expira.strftime(FORMATO_FECHA))
        response.set_cookie(
            nombre,
            session.token,
            expires=self.get_expiration_time(app, session),
            httponly=self.get_cookie_httponly(app),
            domain=dominio,
            path=ruta,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


# --- Identidad del usuario autenticado ---
@dataclass(frozen=True)
class Identidad:
    id: int
    nombre: str
    correo: str
    tipo_usuario: str

    def to_dict(self) -> dict:
        return asdict(self)


def guardar_identidad(identidad: Identidad):
    session.clear()
    session.regenerar()
    session.permanent = True
    session["user"] = identidad.to_dict()


def identidad_actual() -> Optional[Identidad]:
    datos = session.get("user")
    if not datos:
        return None
    return Identidad(
        id=datos["id"],
        nombre=datos["nombre"],
        correo=datos["correo"],
        tipo_usuario=datos["tipo_usuario"],
    )


def cerrar_sesion():
    session.clear()
