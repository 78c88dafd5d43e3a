"""
Tests for the resume API: PDF upload, presigned viewing, deletion and ATS analysis.
"""

import io
import json

from applymate import documents


def upload(client, data, filename="My Resume.pdf", content_type="application/pdf", name=None):
    form = {"file": (io.BytesIO(data), filename, content_type)}
    if name is not None:
        form["name"] = name
    return client.post("/api/resume/upload", data=form, content_type="multipart/form-data")


class TestUpload:
    def test_upload_pdf(self, auth_client, s3, pdf_bytes):
        response = upload(auth_client, pdf_bytes)

        assert response.status_code == 201
        resume = response.get_json()["resume"]
        assert resume["name"] == "My Resume"
        assert resume["fileUrl"].startswith("resumes/user-alice/")
        assert resume["fileUrl"].endswith("-My_Resume.pdf")
        assert resume["parsedText"] == ""
        assert resume["atsScore"] is None

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "test-bucket"
        assert kwargs["ContentType"] == "application/pdf"
        assert kwargs["Body"] == pdf_bytes

    def test_upload_uses_given_name(self, auth_client, pdf_bytes):
        response = upload(auth_client, pdf_bytes, name="Data Science")

        assert response.get_json()["resume"]["name"] == "Data Science"

    def test_extracted_text_is_stored(self, auth_client, pdf_bytes, monkeypatch):
        monkeypatch.setattr(documents, "extract_pdf_text", lambda data: "Jane Doe\nPython")

        response = upload(auth_client, pdf_bytes)

        assert response.get_json()["resume"]["parsedText"] == "Jane Doe\nPython"

    def test_rejects_oversize_upload(self, app, auth_client, s3, pdf_bytes):
        app.config["MAX_CONTENT_LENGTH"] = 1000

        response = upload(auth_client, pdf_bytes + b"\0" * 5000)

        assert response.status_code == 413
        s3.put_object.assert_not_called()

    def test_rejects_non_pdf(self, auth_client, s3):
        response = upload(auth_client, b"plain text", filename="resume.txt", content_type="text/plain")

        assert response.status_code == 400
        assert response.get_json()["error"] == "Only PDF files are allowed"
        s3.put_object.assert_not_called()

    def test_rejects_unreadable_pdf(self, auth_client, s3):
        response = upload(auth_client, b"this is not really a pdf")

        assert response.status_code == 400
        s3.put_object.assert_not_called()

    def test_requires_file(self, auth_client):
        response = auth_client.post(
            "/api/resume/upload", data={}, content_type="multipart/form-data"
        )

        assert response.status_code == 400


class TestViewAndDelete:
    def test_list_is_scoped(self, auth_client, other_client, make_resume):
        make_resume(name="First")
        make_resume(name="Second")
        make_resume(user="bob", name="Bob's")

        names = [r["name"] for r in auth_client.get("/api/resume").get_json()["resumes"]]

        assert sorted(names) == ["First", "Second"]
        assert len(other_client.get("/api/resume").get_json()["resumes"]) == 1

    def test_get_returns_presigned_url(self, auth_client, make_resume, s3):
        resume_id = make_resume()

        resume = auth_client.get(f"/api/resume/{resume_id}").get_json()["resume"]

        assert resume["fileUrl"] == "https://signed.example.com/object"
        kwargs = s3.generate_presigned_url.call_args.kwargs
        assert kwargs["Params"]["Key"] == "resumes/user-alice/1-resume.pdf"
        assert kwargs["ExpiresIn"] == 3600

    def test_other_users_resume_not_found(self, other_client, make_resume):
        resume_id = make_resume()

        assert other_client.get(f"/api/resume/{resume_id}").status_code == 404
        assert other_client.delete(f"/api/resume/{resume_id}").status_code == 404

    def test_delete_keeps_jobs(self, auth_client, make_job, make_resume, s3):
        resume_id = make_resume()
        job = make_job(resumeId=resume_id)

        response = auth_client.delete(f"/api/resume/{resume_id}")

        assert response.status_code == 200
        s3.delete_object.assert_called_once_with(
            Bucket="test-bucket", Key="resumes/user-alice/1-resume.pdf"
        )
        detail = auth_client.get(f"/api/jobs/{job['id']}").get_json()["job"]
        assert detail["resume"] is None

    def test_delete_survives_storage_failure(self, auth_client, make_resume, s3):
        from botocore.exceptions import ClientError

        s3.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "DeleteObject"
        )
        resume_id = make_resume()

        response = auth_client.delete(f"/api/resume/{resume_id}")

        assert response.status_code == 200
        assert auth_client.get(f"/api/resume/{resume_id}").status_code == 404


class TestAnalyze:
    def test_analyze_stores_result(self, auth_client, make_resume, ai):
        resume_id = make_resume()
        ai.queue(json.dumps({
            "atsScore": 74,
            "grade": "B",
            "improvementActions": ["Quantify impact"],
        }))

        response = auth_client.post(f"/api/resume/{resume_id}/analyze")

        assert response.status_code == 200
        resume = response.get_json()["resume"]
        assert resume["atsScore"] == 74
        assert resume["atsGrade"] == "B"
        assert resume["improvementActions"] == ["Quantify impact"]

        listed = auth_client.get("/api/resume").get_json()["resumes"][0]
        assert listed["atsScore"] == 74

    def test_analyze_without_text(self, auth_client, make_resume):
        resume_id = make_resume(text="")

        response = auth_client.post(f"/api/resume/{resume_id}/analyze")

        assert response.status_code == 400
