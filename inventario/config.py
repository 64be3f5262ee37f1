# inventario/config.py
import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

# --- Roles y Permisos ---
class Rol(str, Enum):
    ADMIN = "ADMIN"
    ASISTENTE = "ASISTENTE"
    AUDITOR = "AUDITOR"

# Familias de nombres de rol tal como aparecen en los códigos de acceso
_FAMILIAS_ROL = {
    "admin": Rol.ADMIN,
    "administrador": Rol.ADMIN,
    "asistente": Rol.ASISTENTE,
    "auditor": Rol.AUDITOR,
}

def normalizar_rol(texto: Optional[str]) -> Rol:
    """Convierte el rol de un código de acceso en un Rol. Sin coincidencia -> ASISTENTE."""
    return _FAMILIAS_ROL.get((texto or "").strip().lower(), Rol.ASISTENTE)

def rol_estricto(texto: Optional[str]) -> Optional[Rol]:
    """Igual que normalizar_rol pero devuelve None si el texto no es un rol conocido."""
    clave = (texto or "").strip()
    if clave.upper() in Rol.__members__:
        return Rol[clave.upper()]
    return _FAMILIAS_ROL.get(clave.lower())

ROLES_PERMISOS = {
    Rol.ADMIN: {
        "ver_inventario",
        "editar_instrumento",
        "crear_instrumento",
        "editar_marca_modelo",
        "poner_en_mantenimiento",
        "transferir_excel",
        "ver_bitacora"
    },
    Rol.ASISTENTE: {
        "ver_inventario",
        "editar_instrumento",
        "transferir_excel"
    },
    Rol.AUDITOR: {
        "ver_inventario",
        "editar_instrumento",
        "poner_en_mantenimiento",
        "transferir_excel"
    }
}

# --- Páginas ---
PAGINA_LOGIN = "/login.html"
PAGINA_REGISTRO = "/registro.html"
PAGINA_POR_DEFECTO = "/index.html"
PAGINAS_INICIO = {
    Rol.ADMIN: "/admin.html",
    Rol.ASISTENTE: "/asistente.html",
    Rol.AUDITOR: "/auditor.html",
}

# --- Instrumentos ---
ESTADO_POR_DEFECTO = "DISPONIBLE"
ESTADOS_MANTENIMIENTO = frozenset({"MANTENIMIENTO", "maintenance"})
CAMPOS_INSTRUMENTO = ("nombre", "categoria", "estado", "ubicacion", "descripcion", "marca", "modelo")
CAMPOS_SOLO_ADMIN = ("marca", "modelo")

# --- Configuración de la aplicación ---
def _env_bool(nombre: str, default: bool = False) -> bool:
    valor = os.getenv(nombre)
    if valor is None:
        return default
    return valor.strip().lower() in ("1", "true", "yes", "si", "sí")

class Config:
    """Valores leídos del entorno (y del archivo .env si existe)."""

    def __init__(self):
        load_dotenv()
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
        self.DB_PATH = os.getenv("DB_PATH", "data")
        self.DB_NAME = os.getenv("DB_NAME", "inventario.db")
        self.BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))
        # La cookie viaja sin Secure salvo que se active explícitamente (despliegues HTTPS)
        self.SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)
        self.SESSION_LIFETIME_HOURS = int(os.getenv("SESSION_LIFETIME_HOURS", "8"))
        self.MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(16 * 1024 * 1024)))
        self.LOG_DIR = os.getenv("LOG_DIR", "")
        self.LOG_FILE = os.getenv("LOG_FILE", "inventario.log")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.HOST = os.getenv("HOST", "127.0.0.1")
        self.PORT = int(os.getenv("PORT", "3000"))

    @property
    def DATABASE(self) -> str:
        return os.path.join(self.DB_PATH, self.DB_NAME)

    def to_flask_dict(self) -> dict:
        datos = {clave: valor for clave, valor in vars(self).items() if clave.isupper()}
        datos["DATABASE"] = self.DATABASE
        return datos
