# inventario/database.py
import logging
import os
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from flask import current_app, g

from .errors import CorreoDuplicado, ErrorBaseDatos, ErrorIntegridad

logger = logging.getLogger(__name__)

FORMATO_FECHA = "%Y-%m-%d %H:%M:%S"


def _pliegue(valor):
    """Minúsculas Unicode (Ó -> ó) para comparar sin distinguir mayúsculas fuera de ASCII."""
    return valor.casefold() if isinstance(valor, str) else valor


def _patron_like(texto: str) -> str:
    escapado = _pliegue(texto).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escapado}%"


class DatabaseManager:
    """
    Gestiona todas las operaciones de la base de datos SQLite de forma centralizada.
    """
    def __init__(self, db_name: str):
        self.db_name = db_name
        self.conn = None
        self.connect()

    def connect(self):
        """Conecta a la base de datos y configura el modo de fila."""
        try:
            self.conn = sqlite3.connect(self.db_name)
            self.conn.row_factory = sqlite3.Row
            self.conn.create_function("pliegue", 1, _pliegue, deterministic=True)
        except sqlite3.Error as e:
            logger.error("Error al conectar a la base de datos %s: %s", self.db_name, e)
            raise ErrorBaseDatos("No se pudo conectar a la base de datos", str(e)) from e

    def close(self):
        """Cierra la conexión a la base de datos."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def execute_query(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Ejecuta una consulta SQL traduciendo los errores de sqlite3."""
        cursor = self.conn.cursor()
        try:
            cursor.execute(query, params)
        except sqlite3.IntegrityError as e:
            raise ErrorIntegridad("Restricción de la base de datos violada", str(e)) from e
        except sqlite3.Error as e:
            logger.error("Error SQL: %s", e)
            raise ErrorBaseDatos("Error en la base de datos", str(e)) from e
        return cursor

    def commit(self):
        """Confirma los cambios en la base de datos."""
        self.conn.commit()

    def create_tables(self):
        """Crea las tablas de la base de datos si no existen."""
        self.conn.executescript('''
            CREATE TABLE IF NOT EXISTS usuarios (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                nombre TEXT NOT NULL,
                correo TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                rol TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS codigos_de_acceso (
                codigo TEXT PRIMARY KEY,
                rol TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS instrumentos (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                nombre TEXT NOT NULL,
                categoria TEXT,
                estado TEXT,
                ubicacion TEXT,
                descripcion TEXT,
                marca TEXT,
                modelo TEXT
            );
            CREATE TABLE IF NOT EXISTS sesiones (
                token TEXT PRIMARY KEY,
                datos TEXT NOT NULL,
                expira TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS log_sistema (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                accion TEXT NOT NULL,
                detalles TEXT NOT NULL,
                usuario TEXT NOT NULL,
                fecha TEXT NOT NULL
            );
        ''')
        self.commit()

    # --- Métodos de Gestión de Usuarios ---
    def get_user_by_email(self, correo: str) -> Optional[Dict]:
        row = self.execute_query("SELECT * FROM usuarios WHERE correo = ?", (correo,)).fetchone()
        return dict(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[Dict]:
        row = self.execute_query("SELECT id, nombre, correo, rol FROM usuarios WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None

    def check_if_email_exists(self, correo: str) -> bool:
        return self.execute_query("SELECT id FROM usuarios WHERE correo = ?", (correo,)).fetchone() is not None

    def get_all_users(self) -> List[Dict]:
        cursor = self.execute_query("SELECT id, nombre, correo, rol FROM usuarios ORDER BY id DESC")
        return [dict(row) for row in cursor.fetchall()]

    def insert_user(self, nombre: str, correo: str, password_hash: str, rol: str) -> int:
        try:
            cursor = self.execute_query(
                "INSERT INTO usuarios (nombre, correo, password_hash, rol) VALUES (?, ?, ?, ?)",
                (nombre, correo, password_hash, rol))
        except ErrorIntegridad as e:
            raise CorreoDuplicado() from e
        self.commit()
        return cursor.lastrowid

    def update_user(self, user_id: int, nombre: str, correo: str, rol: str) -> int:
        try:
            cursor = self.execute_query(
                "UPDATE usuarios SET nombre = ?, correo = ?, rol = ? WHERE id = ?",
                (nombre, correo, rol, user_id))
        except ErrorIntegridad as e:
            raise CorreoDuplicado() from e
        self.commit()
        return cursor.rowcount

    def delete_user(self, user_id: int) -> int:
        cursor = self.execute_query("DELETE FROM usuarios WHERE id = ?", (user_id,))
        self.commit()
        return cursor.rowcount

    # --- Métodos de Códigos de Acceso ---
    def get_rol_de_codigo(self, codigo: str) -> Optional[str]:
        row = self.execute_query("SELECT rol FROM codigos_de_acceso WHERE codigo = ?", (codigo,)).fetchone()
        return row["rol"] if row else None

    def add_codigo(self, codigo: str, rol: str) -> bool:
        try:
            self.execute_query("INSERT INTO codigos_de_acceso (codigo, rol) VALUES (?, ?)", (codigo, rol))
            self.commit(); return True
        except ErrorIntegridad: return False

    def get_all_codigos(self) -> List[Dict]:
        cursor = self.execute_query("SELECT codigo, rol FROM codigos_de_acceso ORDER BY codigo")
        return [dict(row) for row in cursor.fetchall()]

    def delete_codigo(self, codigo: str) -> int:
        cursor = self.execute_query("DELETE FROM codigos_de_acceso WHERE codigo = ?", (codigo,))
        self.commit()
        return cursor.rowcount

    # --- Métodos de Instrumentos ---
    def get_all_instrumentos(self) -> List[Dict]:
        cursor = self.execute_query("SELECT * FROM instrumentos ORDER BY id")
        return [dict(row) for row in cursor.fetchall()]

    def buscar_instrumentos(self, texto: str) -> List[Dict]:
        if not texto.strip():
            cursor = self.execute_query("SELECT * FROM instrumentos ORDER BY pliegue(nombre), id")
        else:
            patron = _patron_like(texto)
            cursor = self.execute_query('''
                SELECT * FROM instrumentos
                WHERE pliegue(nombre) LIKE ? ESCAPE '\\'
                   OR pliegue(categoria) LIKE ? ESCAPE '\\'
                   OR pliegue(estado) LIKE ? ESCAPE '\\'
                   OR pliegue(ubicacion) LIKE ? ESCAPE '\\'
                ORDER BY pliegue(nombre), id
            ''', (patron, patron, patron, patron))
        return [dict(row) for row in cursor.fetchall()]

    def get_instrumento(self, instrumento_id: int) -> Optional[Dict]:
        row = self.execute_query("SELECT * FROM instrumentos WHERE id = ?", (instrumento_id,)).fetchone()
        return dict(row) if row else None

    def insert_instrumento(self, datos: Dict) -> int:
        cursor = self.execute_query('''
            INSERT INTO instrumentos (nombre, categoria, estado, ubicacion, descripcion, marca, modelo)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        ''', (datos.get("nombre"), datos.get("categoria"), datos.get("estado"), datos.get("ubicacion"),
              datos.get("descripcion"), datos.get("marca"), datos.get("modelo")))
        self.commit()
        return cursor.lastrowid

    def update_instrumento(self, instrumento_id: int, campos: Dict) -> int:
        """Actualiza solo las columnas recibidas. Las claves deben venir de CAMPOS_INSTRUMENTO."""
        if not campos:
            row = self.execute_query("SELECT COUNT(id) AS count FROM instrumentos WHERE id = ?", (instrumento_id,)).fetchone()
            return row["count"]
        asignaciones = ", ".join(f"{columna} = ?" for columna in campos)
        cursor = self.execute_query(
            f"UPDATE instrumentos SET {asignaciones} WHERE id = ?",
            tuple(campos.values()) + (instrumento_id,))
        self.commit()
        return cursor.rowcount

    def delete_instrumento(self, instrumento_id: int) -> int:
        cursor = self.execute_query("DELETE FROM instrumentos WHERE id = ?", (instrumento_id,))
        self.commit()
        return cursor.rowcount

    # --- Métodos de Sesiones ---
    def get_sesion(self, token: str, ahora: str) -> Optional[str]:
        row = self.execute_query("SELECT datos, expira FROM sesiones WHERE token = ?", (token,)).fetchone()
        if row is None:
            return None
        if row["expira"] <= ahora:
            self.delete_sesion(token)
            return None
        return row["datos"]

    def guardar_sesion(self, token: str, datos: str, expira: str):
        self.execute_query('''
            INSERT INTO sesiones (token, datos, expira) VALUES (?, ?, ?)
            ON CONFLICT(token) DO UPDATE SET datos = excluded.datos, expira = excluded.expira
        ''', (token, datos, expira))
        self.commit()

    def delete_sesion(self, token: str):
        self.execute_query("DELETE FROM sesiones WHERE token = ?", (token,))
        self.commit()

    def purgar_sesiones(self, ahora: str) -> int:
        cursor = self.execute_query("DELETE FROM sesiones WHERE expira <= ?", (ahora,))
        self.commit()
        return cursor.rowcount

    # --- Métodos de Logs ---
    def registrar_movimiento_sistema(self, accion: str, detalles: str, usuario: str):
        fecha = datetime.now().strftime(FORMATO_FECHA)
        self.execute_query("INSERT INTO log_sistema (accion, detalles, usuario, fecha) VALUES (?, ?, ?, ?)", (accion, detalles, usuario, fecha))
        self.commit()

    def get_log_sistema_paginated(self, page: int, page_size: int) -> Tuple[List[Dict], int]:
        offset = (page - 1) * page_size
        total_rows = self.execute_query("SELECT COUNT(id) FROM log_sistema").fetchone()[0]
        total_pages = (total_rows + page_size - 1) // page_size if total_rows > 0 else 1
        logs = self.execute_query("SELECT * FROM log_sistema ORDER BY id DESC LIMIT ? OFFSET ?", (page_size, offset)).fetchall()
        return [dict(row) for row in logs], total_pages


# --- Conexión por petición ---
def obtener_db() -> DatabaseManager:
    """Devuelve el gestor de base de datos de la petición actual, creándolo si hace falta."""
    if "db" not in g:
        g.db = DatabaseManager(current_app.config["DATABASE"])
    return g.db

def cerrar_db(exc: Optional[BaseException] = None):
    db = g.pop("db", None)
    if db is not None:
        db.close()

def inicializar_db(ruta: str):
    directorio = os.path.dirname(ruta)
    if directorio and not os.path.exists(directorio):
        os.makedirs(directorio)
        logger.info("Directorio '%s' creado.", directorio)
    db = DatabaseManager(ruta)
    try:
        db.create_tables()
    finally:
        db.close()

def init_app(app):
    app.teardown_appcontext(cerrar_db)
    inicializar_db(app.config["DATABASE"])
