# backend/tests/test_main.py
from fastapi import status
from fastapi.testclient import TestClient

from docflow.api.deps import get_search
from docflow.database import get_db
from docflow.main import app


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Docflow API is running"}


def test_missing_identity_is_unauthorized(client):
    response = client.get("/api/documents")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Unauthorized"}


def test_request_validation_maps_to_bad_request(client, user_headers):
    response = client.get("/api/documents", params={"limit": 0}, headers=user_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "limit" in response.json()["error"]


def test_unexpected_errors_do_not_leak_details(db_session, user_headers):
    class ExplodingSearch:
        def search(self, db, params):
            raise RuntimeError("connection string postgres://secret@db")

    app.dependency_overrides[get_search] = lambda: ExplodingSearch()
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/api/documents", headers=user_headers)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error"}
