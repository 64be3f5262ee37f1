"""
Pytest configuration and fixtures.
"""
import pytest

from inventario.aplicacion import create_app
from inventario.database import obtener_db

CODIGOS = {
    "ADMIN": ("COD-ADMIN", "Administrador"),
    "ASISTENTE": ("COD-ASIS", "asistente"),
    "AUDITOR": ("COD-AUDI", "Auditor"),
}
PASSWORD = "secreto123"


@pytest.fixture
def app(tmp_path):
    """Application with a fresh SQLite file per test."""
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "DATABASE": str(tmp_path / "test.db"),
        "BCRYPT_ROUNDS": 4,
        "LOG_DIR": "",
    })
    with app.app_context():
        db = obtener_db()
        for codigo, rol in CODIGOS.values():
            db.add_codigo(codigo, rol)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    """Database manager bound to an app context for direct assertions."""
    with app.app_context():
        yield obtener_db()


def registrar(client, nombre, correo, password=PASSWORD, codigo="COD-ASIS"):
    return client.post("/registro", data={
        "username": nombre,
        "correo": correo,
        "password": password,
        "codigos_de_acceso": codigo,
    })


def login(client, correo, password=PASSWORD):
    return client.post("/login", data={"correo": correo, "password": password})


@pytest.fixture
def crear_sesion(app):
    """Factory: registers a user with the given role and returns a logged-in test client."""
    def _crear(rol="ADMIN", correo=None, nombre=None):
        client = app.test_client()
        correo = correo or f"{rol.lower()}@example.com"
        respuesta = registrar(client, nombre or f"Usuario {rol}", correo, codigo=CODIGOS[rol][0])
        assert respuesta.status_code == 302
        respuesta = login(client, correo)
        assert respuesta.status_code == 302
        client.user_id = client.get("/api/usuario-actual").get_json()["id"]
        return client
    return _crear


@pytest.fixture
def admin_client(crear_sesion):
    return crear_sesion("ADMIN")


@pytest.fixture
def asistente_client(crear_sesion):
    return crear_sesion("ASISTENTE")


@pytest.fixture
def auditor_client(crear_sesion):
    return crear_sesion("AUDITOR")


@pytest.fixture
def instrumentos(admin_client):
    """Seeds a small inventory through the API and returns the created ids by name."""
    datos = [
        {"nombre": "Violin", "categoria": "Cuerdas", "estado": "DISPONIBLE", "ubicacion": "Aula 1",
         "marca": "Yamaha", "modelo": "V5"},
        {"nombre": "Flauta", "categoria": "Viento", "estado": "PRESTADO", "ubicacion": "Bodega"},
        {"nombre": "Bateria", "categoria": "Percusion", "estado": "DISPONIBLE", "ubicacion": "Aula 2"},
        {"nombre": "Cello", "categoria": "Cuerdas", "estado": "MANTENIMIENTO", "ubicacion": "Taller"},
    ]
    ids = {}
    for item in datos:
        respuesta = admin_client.post("/api/instrumentos", json=item)
        assert respuesta.status_code == 200
        ids[item["nombre"]] = respuesta.get_json()["id"]
    return ids
