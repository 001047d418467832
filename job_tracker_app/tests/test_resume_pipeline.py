"""
Test resume upload, storage and matching.
"""
import io
import os

import docx
import pytest
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

from job_tracker_app.backend.config.settings import get_settings
from job_tracker_app.backend.services import resume_service


def _upload(client, headers, name="resume.txt", content=b"Python developer with SQL", mime="text/plain", **form):
    return client.post("/api/resumes/", files={"file": (name, content, mime)}, data=form, headers=headers)


def _docx_bytes(text):
    document = docx.Document()
    document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestResumeUpload:
    """Uploading resume files."""

    def test_upload_text_resume(self, test_client, auth_headers, test_user, upload_dir):
        response = _upload(test_client, auth_headers, title="Backend CV", resume_type="technical")

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["title"] == "Backend CV"
        assert data["original_name"] == "resume.txt"
        assert data["resume_type"] == "technical"
        assert data["mime_type"] == "text/plain"
        assert data["user_id"] == test_user.id
        assert data["download_count"] == 0
        assert data["file_name"].startswith(f"user_{test_user.id}_")
        assert os.path.exists(os.path.join(str(upload_dir), data["file_name"]))

    def test_title_defaults_to_file_name(self, test_client, auth_headers):
        data = _upload(test_client, auth_headers).json()
        assert data["title"] == "resume.txt"

    def test_upload_docx_extracts_text(self, test_client, auth_headers, test_db_session):
        from job_tracker_app.backend.services.resume_service import get_resume

        response = _upload(
            test_client, auth_headers,
            name="resume.docx",
            content=_docx_bytes("Senior Python engineer, Docker and PostgreSQL"),
            mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

        assert response.status_code == status.HTTP_201_CREATED
        stored = get_resume(test_db_session, response.json()["id"])
        assert "PostgreSQL" in stored.content_text

    def test_unsupported_extension(self, test_client, auth_headers):
        response = _upload(test_client, auth_headers, name="resume.exe", mime="application/octet-stream")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_resume_type(self, test_client, auth_headers):
        response = _upload(test_client, auth_headers, resume_type="poetry")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_empty_file(self, test_client, auth_headers):
        response = _upload(test_client, auth_headers, content=b"")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_file_too_large(self, test_client, auth_headers, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_file_size", 10)

        response = _upload(test_client, auth_headers, content=b"x" * 11)
        assert response.status_code == 413

    def test_upload_requires_token(self, test_client):
        response = _upload(test_client, {})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestResumeManagement:
    """Listing, updating, downloading and deleting resumes."""

    def test_list_only_own_resumes(self, test_client, auth_headers, other_auth_headers):
        _upload(test_client, auth_headers, title="Mine")
        _upload(test_client, other_auth_headers, title="Theirs")

        response = test_client.get("/api/resumes/", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert [resume["title"] for resume in response.json()] == ["Mine"]

    def test_update_metadata(self, test_client, auth_headers):
        resume = _upload(test_client, auth_headers).json()

        response = test_client.put(
            f"/api/resumes/{resume['id']}",
            json={"title": "Updated", "resume_type": "executive", "is_active": False},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Updated"
        assert data["resume_type"] == "executive"
        assert data["is_active"] is False

    def test_null_metadata_rejected(self, test_client, auth_headers):
        resume = _upload(test_client, auth_headers).json()

        for field in ("title", "resume_type", "is_active"):
            response = test_client.put(f"/api/resumes/{resume['id']}", json={field: None}, headers=auth_headers)
            assert response.status_code == 422

        data = test_client.get(f"/api/resumes/{resume['id']}", headers=auth_headers).json()
        assert data["is_active"] is True
        assert data["resume_type"] == "general"

    def test_download_counts(self, test_client, auth_headers):
        resume = _upload(test_client, auth_headers, content=b"Plain resume text").json()

        response = test_client.get(f"/api/resumes/{resume['id']}/download", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"Plain resume text"
        assert "resume.txt" in response.headers["content-disposition"]

        data = test_client.get(f"/api/resumes/{resume['id']}", headers=auth_headers).json()
        assert data["download_count"] == 1

    def test_other_user_cannot_access(self, test_client, auth_headers, other_auth_headers):
        resume = _upload(test_client, auth_headers).json()

        for method, path in (
            ("get", f"/api/resumes/{resume['id']}"),
            ("get", f"/api/resumes/{resume['id']}/download"),
            ("delete", f"/api/resumes/{resume['id']}"),
        ):
            response = getattr(test_client, method)(path, headers=other_auth_headers)
            assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_removes_file_and_unlinks_jobs(self, test_client, auth_headers, upload_dir):
        resume = _upload(test_client, auth_headers).json()
        job = test_client.post(
            "/api/jobs/", json={"company": "Acme", "position": "Dev", "resume_id": resume["id"]}, headers=auth_headers
        ).json()
        assert job["resume"]["id"] == resume["id"]

        response = test_client.delete(f"/api/resumes/{resume['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert not os.path.exists(os.path.join(str(upload_dir), resume["file_name"]))
        job = test_client.get(f"/api/jobs/{job['id']}", headers=auth_headers).json()
        assert job["resume_id"] is None

    def test_failed_commit_removes_stored_file(self, test_db_session, test_user, upload_dir, monkeypatch):
        def failing_commit():
            raise SQLAlchemyError("commit failed")

        monkeypatch.setattr(test_db_session, "commit", failing_commit)

        with pytest.raises(SQLAlchemyError):
            resume_service.create_resume_for_user(
                test_db_session,
                user_id=test_user.id,
                data=b"Python developer",
                original_name="resume.txt",
                mime_type="text/plain",
                extension=".txt",
            )

        assert list(upload_dir.iterdir()) == []

    def test_missing_resume(self, test_client, auth_headers):
        response = test_client.get("/api/resumes/9999", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestResumeMatches:
    """Scoring one resume against every tracked job."""

    def test_matches_sorted_best_first(self, test_client, auth_headers):
        test_client.post("/api/jobs/", json={
            "company": "Weak", "position": "Dev", "requirements": "Kubernetes, Rust and Oracle experience",
        }, headers=auth_headers)
        test_client.post("/api/jobs/", json={
            "company": "Strong", "position": "Dev", "requirements": "Python and SQL",
        }, headers=auth_headers)
        resume = _upload(test_client, auth_headers, content=b"Python developer with SQL").json()

        response = test_client.get(f"/api/resumes/{resume['id']}/matches", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        matches = response.json()
        assert [m["company"] for m in matches] == ["Strong", "Weak"]
        assert matches[0]["match"]["percentage"] == 100
        assert matches[1]["match"]["percentage"] == 0

    def test_unreadable_file_uses_fallback_content(self, test_client, auth_headers):
        test_client.post("/api/jobs/", json={
            "company": "Acme", "position": "Team Lead", "requirements": "Leadership and communication",
        }, headers=auth_headers)
        resume = _upload(test_client, auth_headers, content=b"\xff\xfe\xfa\xfb", resume_type="executive").json()

        matches = test_client.get(f"/api/resumes/{resume['id']}/matches", headers=auth_headers).json()

        assert matches[0]["match"]["is_estimate"] is True
        assert matches[0]["match"]["percentage"] > 0
