# backend/tests/api/test_sessions.py
from fastapi import status

from docflow.models import DownloadLog


def start_session(client, document_id, headers):
    return client.post(
        "/api/sessions",
        json={"documentId": document_id, "templateFileId": "template-file-1"},
        headers=headers
    )


def test_create_session(client, sample_document, user_headers):
    response = start_session(client, sample_document.id, user_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["editUrl"] == "https://docs.google.com/document/d/drive-file-1/edit"
    assert data["versionId"]


def test_create_session_requires_identity(client, sample_document):
    response = start_session(client, sample_document.id, {})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_session_bridge_failure(client, sample_document, user_headers, fake_bridge):
    fake_bridge.responses["copy"] = {"error": "Template not found"}

    response = start_session(client, sample_document.id, user_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Failed to start editing session"}


def test_full_editing_session(client, db_session, sample_document, user_headers, fake_bridge, fake_storage):
    version_id = start_session(client, sample_document.id, user_headers).json()["versionId"]

    drafts = client.get(f"/api/documents/{sample_document.id}/edit", headers=user_headers).json()
    assert drafts[0]["id"] == version_id
    assert drafts[0]["is_draft"] is True
    assert drafts[0]["version_name"] == "Draft 1"

    response = client.post(f"/api/sessions/{version_id}/finish", headers=user_headers)

    assert response.status_code == status.HTTP_200_OK
    path = f"user-1/{sample_document.id}/{version_id}/final.docx"
    assert response.json() == {"success": True, "fileUrl": f"https://storage.test/{path}?expires=3600"}
    assert path in fake_storage.objects
    assert fake_bridge.actions() == ["copy", "export"]

    versions = client.get(f"/api/documents/{sample_document.id}/edit", headers=user_headers).json()
    assert versions[0]["is_draft"] is False
    assert versions[0]["exported_file_path"] == path
    assert versions[0]["exported_file_size"] == str(len(fake_storage.objects[path][0]))
    assert db_session.query(DownloadLog).filter(DownloadLog.context == "Google Docs Export").count() == 1


def test_finish_other_users_session(client, draft_version, other_user_headers):
    response = client.post(f"/api/sessions/{draft_version.id}/finish", headers=other_user_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Version not found or unauthorized"}


def test_finish_twice_conflicts(client, draft_version, user_headers):
    assert client.post(f"/api/sessions/{draft_version.id}/finish", headers=user_headers).status_code == 200

    response = client.post(f"/api/sessions/{draft_version.id}/finish", headers=user_headers)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"error": "Editing session already finished"}


def test_finish_with_empty_export(client, draft_version, user_headers, fake_bridge):
    fake_bridge.responses["export"] = {"base64": ""}

    response = client.post(f"/api/sessions/{draft_version.id}/finish", headers=user_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Bridge returned empty DOCX data"}


def test_convert_document(client, sample_document, admin_headers, fake_storage):
    fake_storage.write(sample_document.file_path, b"docx")

    response = client.post(f"/api/documents/{sample_document.id}/convert", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "bridgeTemplateId": "template-file-1"}


def test_convert_requires_admin(client, sample_document, user_headers):
    response = client.post(f"/api/documents/{sample_document.id}/convert", headers=user_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
