"""
Tests for the user administration API (ADMIN only).
"""
import pytest

from conftest import login


class TestListar:

    def test_ordered_by_id_desc_with_placeholder_date(self, admin_client, crear_sesion):
        crear_sesion("ASISTENTE")
        crear_sesion("AUDITOR")

        datos = admin_client.get("/api/usuarios").get_json()
        ids = [usuario["id"] for usuario in datos]
        assert ids == sorted(ids, reverse=True)
        assert len(datos) == 3
        for usuario in datos:
            assert set(usuario) == {"id", "nombre", "correo", "rol", "created_at"}
        assert len({usuario["created_at"] for usuario in datos}) == 1


class TestCrear:

    def test_admin_creates_user_that_can_log_in(self, app, admin_client, db):
        respuesta = admin_client.post("/api/usuarios", json={
            "nombre": "Nuevo", "correo": "nuevo@example.com", "password": "clave123", "rol": "AUDITOR"})

        cuerpo = respuesta.get_json()
        assert cuerpo["success"] is True
        assert cuerpo["message"] == "Usuario creado exitosamente"
        assert db.get_user_by_id(cuerpo["id"])["rol"] == "AUDITOR"

        client = app.test_client()
        assert login(client, "nuevo@example.com", "clave123").headers["Location"].endswith("/auditor.html")

    def test_all_fields_required(self, admin_client):
        respuesta = admin_client.post("/api/usuarios", json={
            "nombre": "Nuevo", "correo": "nuevo@example.com", "password": "", "rol": "AUDITOR"})

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": "Todos los campos son requeridos"}

    def test_duplicate_email(self, admin_client):
        respuesta = admin_client.post("/api/usuarios", json={
            "nombre": "Copia", "correo": "admin@example.com", "password": "x", "rol": "ADMIN"})

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": "El correo ya está registrado"}

    def test_unknown_role_is_rejected(self, admin_client, db):
        respuesta = admin_client.post("/api/usuarios", json={
            "nombre": "Nuevo", "correo": "nuevo@example.com", "password": "x", "rol": "GERENTE"})

        assert respuesta.status_code == 400
        assert db.get_user_by_email("nuevo@example.com") is None

    @pytest.mark.parametrize("campo, valor", [("rol", 1), ("password", 12345678), ("nombre", ["Nuevo"]), ("correo", {"a": 1})])
    def test_non_text_values_are_rejected(self, admin_client, db, campo, valor):
        datos = {"nombre": "Nuevo", "correo": "nuevo@example.com", "password": "clave123", "rol": "AUDITOR"}
        datos[campo] = valor

        respuesta = admin_client.post("/api/usuarios", json=datos)

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": f"El campo '{campo}' debe ser texto"}
        assert db.get_user_by_email("nuevo@example.com") is None


class TestActualizar:

    def test_admin_changes_another_users_role(self, admin_client, crear_sesion, db):
        otro = crear_sesion("ASISTENTE", correo="otro@example.com")
        respuesta = admin_client.put(f"/api/usuarios/{otro.user_id}", json={
            "nombre": "Otro", "correo": "otro@example.com", "rol": "AUDITOR"})

        assert respuesta.get_json() == {
            "success": True, "message": "Usuario actualizado correctamente", "affectedRows": 1}
        assert db.get_user_by_id(otro.user_id)["rol"] == "AUDITOR"

    def test_cannot_change_own_role(self, admin_client, db):
        respuesta = admin_client.put(f"/api/usuarios/{admin_client.user_id}", json={
            "nombre": "Jefe", "correo": "admin@example.com", "rol": "ASISTENTE"})

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": "No puedes cambiar tu propio rol"}
        assert db.get_user_by_id(admin_client.user_id)["rol"] == "ADMIN"

    def test_can_edit_own_name_keeping_role(self, admin_client, db):
        respuesta = admin_client.put(f"/api/usuarios/{admin_client.user_id}", json={
            "nombre": "Jefe", "correo": "admin@example.com", "rol": "ADMIN"})

        assert respuesta.status_code == 200
        assert db.get_user_by_id(admin_client.user_id)["nombre"] == "Jefe"

    def test_unknown_user(self, admin_client):
        respuesta = admin_client.put("/api/usuarios/9999", json={
            "nombre": "X", "correo": "x@example.com", "rol": "AUDITOR"})

        assert respuesta.status_code == 404
        assert respuesta.get_json() == {"error": "Usuario no encontrado"}

    @pytest.mark.parametrize("campo, valor", [("rol", 2), ("nombre", 7), ("correo", ["otro@example.com"])])
    def test_non_text_values_are_rejected(self, admin_client, crear_sesion, db, campo, valor):
        otro = crear_sesion("ASISTENTE", correo="otro@example.com", nombre="Otro")
        datos = {"nombre": "Otro", "correo": "otro@example.com", "rol": "AUDITOR"}
        datos[campo] = valor

        respuesta = admin_client.put(f"/api/usuarios/{otro.user_id}", json=datos)

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": f"El campo '{campo}' debe ser texto"}
        assert db.get_user_by_id(otro.user_id) == {
            "id": otro.user_id, "nombre": "Otro", "correo": "otro@example.com", "rol": "ASISTENTE"}

    def test_email_taken_by_another_account(self, admin_client, crear_sesion):
        otro = crear_sesion("ASISTENTE", correo="otro@example.com")
        respuesta = admin_client.put(f"/api/usuarios/{otro.user_id}", json={
            "nombre": "Otro", "correo": "admin@example.com", "rol": "ASISTENTE"})

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": "El correo ya está registrado"}


class TestEliminar:

    def test_cannot_delete_self(self, admin_client, db):
        respuesta = admin_client.delete(f"/api/usuarios/{admin_client.user_id}")

        assert respuesta.status_code == 400
        assert respuesta.get_json() == {"error": "No puedes eliminar tu propio usuario"}
        assert db.get_user_by_id(admin_client.user_id) is not None

    def test_delete_other_user(self, admin_client, crear_sesion):
        otro = crear_sesion("AUDITOR")
        respuesta = admin_client.delete(f"/api/usuarios/{otro.user_id}")

        assert respuesta.get_json() == {"success": True, "message": "Usuario eliminado"}
        ids = [usuario["id"] for usuario in admin_client.get("/api/usuarios").get_json()]
        assert otro.user_id not in ids

    def test_unknown_user(self, admin_client):
        assert admin_client.delete("/api/usuarios/9999").status_code == 404
