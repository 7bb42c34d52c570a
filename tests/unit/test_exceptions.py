"""Unit tests for the exception filters."""

from fastapi import FastAPI
from fastapi.testclient import TestClient


def _app(show_exception_details=False):
    from idsadmin.exceptions import NotFoundError, UserFriendlyError, add_exception_filters
    from idsadmin.options import AdminOptions

    app = FastAPI()
    options = AdminOptions(app)
    options.admin.show_exception_details = show_exception_details
    add_exception_filters(app, options)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Client cid_x does not exist", error_key="ClientDoesNotExist")

    @app.get("/friendly")
    async def friendly():
        raise UserFriendlyError("The passwords do not match")

    @app.get("/broken")
    async def broken():
        raise RuntimeError("database exploded")

    return app


class TestAdminErrors:
    def test_json_body(self):
        client = TestClient(_app())
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json() == {
            "detail": "Client cid_x does not exist",
            "error_key": "ClientDoesNotExist",
        }

    def test_default_error_key_is_the_class_name(self):
        client = TestClient(_app())
        response = client.get("/friendly")
        assert response.status_code == 400
        assert response.json()["error_key"] == "UserFriendlyError"

    def test_browsers_get_the_error_page(self):
        client = TestClient(_app())
        response = client.get("/missing", headers={"Accept": "text/html"})
        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Client cid_x does not exist" in response.text


class TestUnhandledErrors:
    def test_details_hidden_by_default(self):
        client = TestClient(_app(), raise_server_exceptions=False)
        response = client.get("/broken")
        assert response.status_code == 500
        assert response.json() == {
            "detail": "Internal server error",
            "error_key": "InternalServerError",
        }

    def test_details_shown_in_development(self):
        client = TestClient(_app(show_exception_details=True), raise_server_exceptions=False)
        response = client.get("/broken")
        assert response.status_code == 500
        assert response.json()["detail"] == "RuntimeError: database exploded"

    def test_status_codes(self):
        from idsadmin.exceptions import AdminUIError, ConflictError, NotFoundError, UserFriendlyError

        assert AdminUIError("x").status_code == 400
        assert UserFriendlyError("x").status_code == 400
        assert NotFoundError("x").status_code == 404
        assert ConflictError("x", error_key="Taken").error_key == "Taken"
