"""
Tests for the server-side session store.
"""
from datetime import timedelta

from conftest import login
from inventario.aplicacion import create_app


def _cookie(client, app):
    return client.get_cookie(app.config["SESSION_COOKIE_NAME"])


class TestSesionServidor:

    def test_cookie_holds_only_an_opaque_token(self, app, admin_client, db):
        cookie = _cookie(admin_client, app)

        assert cookie is not None
        assert "admin@example.com" not in cookie.value
        fila = db.execute_query("SELECT datos FROM sesiones WHERE token = ?", (cookie.value,)).fetchone()
        assert fila is not None
        assert "admin@example.com" in fila["datos"]

    def test_cookie_is_http_only(self, app, admin_client):
        assert _cookie(admin_client, app).http_only

    def test_anonymous_requests_store_nothing(self, client, db):
        client.get("/api/usuario-actual")
        client.get("/logout")
        assert db.execute_query("SELECT COUNT(*) FROM sesiones").fetchone()[0] == 0

    def test_logout_removes_stored_session(self, app, admin_client, db):
        token = _cookie(admin_client, app).value
        admin_client.get("/logout")

        assert db.execute_query("SELECT COUNT(*) FROM sesiones WHERE token = ?", (token,)).fetchone()[0] == 0
        assert _cookie(admin_client, app) is None

    def test_forged_token_is_anonymous(self, app, client):
        client.set_cookie(app.config["SESSION_COOKIE_NAME"], "token-inventado")
        assert client.get("/api/usuario-actual").status_code == 302

    def test_session_is_a_snapshot(self, admin_client, crear_sesion, db):
        otro = crear_sesion("ASISTENTE", correo="otro@example.com", nombre="Otro")
        admin_client.put(f"/api/usuarios/{otro.user_id}",
                         json={"nombre": "Renombrado", "correo": "otro@example.com", "rol": "AUDITOR"})

        datos = otro.get("/api/usuario-actual").get_json()
        assert datos["nombre"] == "Otro"
        assert datos["tipo_usuario"] == "ASISTENTE"

        login(otro, "otro@example.com")
        datos = otro.get("/api/usuario-actual").get_json()
        assert datos["nombre"] == "Renombrado"
        assert datos["tipo_usuario"] == "AUDITOR"

    def test_expired_session_is_rejected(self, admin_client, db):
        db.execute_query("UPDATE sesiones SET expira = ?", ("2000-01-01 00:00:00",))
        db.commit()

        assert admin_client.get("/api/usuario-actual").status_code == 302
        assert db.execute_query("SELECT COUNT(*) FROM sesiones").fetchone()[0] == 0

    def test_lifetime_comes_from_config(self, tmp_path):
        app = create_app({"TESTING": True, "DATABASE": str(tmp_path / "vida.db"), "SESSION_LIFETIME_HOURS": 2})
        assert app.permanent_session_lifetime == timedelta(hours=2)

    def test_login_issues_a_new_token(self, app, admin_client, db):
        anterior = _cookie(admin_client, app).value
        login(admin_client, "admin@example.com")
        nuevo = _cookie(admin_client, app).value

        assert nuevo != anterior
        assert db.execute_query("SELECT COUNT(*) FROM sesiones WHERE token = ?", (anterior,)).fetchone()[0] == 0
        assert admin_client.get("/api/usuario-actual").status_code == 200
