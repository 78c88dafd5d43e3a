"""
Tests for the jobs API: CRUD, ownership, match scoring, coach chat,
URL parsing and per-job uploads.
"""

import io
import json

import pytest

from applymate import documents


class TestCreateAndList:
    def test_create_job(self, auth_client, make_resume):
        resume_id = make_resume()

        response = auth_client.post("/api/jobs", json={
            "company": "Acme Corp",
            "role": "Backend Engineer",
            "jobUrl": "https://jobs.example.com/acme/1",
            "jobDescription": "Build Python services on AWS with Flask.",
            "resumeId": resume_id,
        })

        assert response.status_code == 201
        body = response.get_json()
        assert body["message"] == "Job added successfully"
        assert body["job"]["status"] == "saved"
        assert body["job"]["userId"] == "user-alice"
        assert body["suggestion"]["matchScore"] == 0
        assert body["suggestion"]["missingSkills"] == []

    def test_add_alias(self, auth_client, make_resume):
        response = auth_client.post("/api/jobs/add", json={
            "company": "Acme",
            "role": "Engineer",
            "jobUrl": "https://jobs.example.com/2",
            "resumeId": make_resume(),
        })

        assert response.status_code == 201

    def test_create_requires_own_resume(self, auth_client, make_resume):
        bobs_resume = make_resume(user="bob")

        response = auth_client.post("/api/jobs", json={
            "company": "Acme",
            "role": "Engineer",
            "jobUrl": "https://jobs.example.com/3",
            "resumeId": bobs_resume,
        })

        assert response.status_code == 404
        assert response.get_json()["error"] == "Resume not found"

    def test_create_validation(self, auth_client):
        response = auth_client.post("/api/jobs", json={"company": "Acme"})

        assert response.status_code == 400
        fields = response.get_json()["fieldErrors"]
        assert {"role", "jobUrl", "resumeId"} <= set(fields)

    def test_list_filters_and_search(self, auth_client, make_job):
        make_job(company="Acme Corp", role="Backend Engineer")
        make_job(company="Globex", role="Data Scientist", status="applied")
        make_job(company="Initech", role="100%_Remote Engineer")

        all_jobs = auth_client.get("/api/jobs").get_json()["jobs"]
        assert [j["company"] for j in all_jobs] == ["Initech", "Globex", "Acme Corp"]
        assert all_jobs[0]["resumeUsed"] == "Backend Resume"
        assert all_jobs[0]["resumeId"]
        # the empty suggestion has score 0, which lists as null
        assert all_jobs[0]["matchScore"] is None

        applied = auth_client.get("/api/jobs?status=applied").get_json()["jobs"]
        assert [j["company"] for j in applied] == ["Globex"]

        everything = auth_client.get("/api/jobs?status=all").get_json()["jobs"]
        assert len(everything) == 3

        search = auth_client.get("/api/jobs?search=GLOB").get_json()["jobs"]
        assert [j["company"] for j in search] == ["Globex"]

        # LIKE wildcards in the search term are literal
        literal = auth_client.get("/api/jobs?search=100%25_").get_json()["jobs"]
        assert [j["company"] for j in literal] == ["Initech"]

        oldest = auth_client.get("/api/jobs?sort=oldest").get_json()["jobs"]
        assert oldest[0]["company"] == "Acme Corp"

    def test_search_folds_non_ascii_case(self, auth_client, make_job):
        make_job(company="École Polytechnique", role="Ingénieur Logiciel")
        make_job(company="Acme Corp")

        for term in ("École", "école", "ÉCOLE", "INGÉNIEUR"):
            found = auth_client.get("/api/jobs", query_string={"search": term}).get_json()["jobs"]
            assert [j["company"] for j in found] == ["École Polytechnique"], term

    def test_list_is_scoped_to_user(self, auth_client, other_client, make_job):
        make_job()

        assert other_client.get("/api/jobs").get_json()["jobs"] == []


class TestDetail:
    def test_get_job_detail(self, auth_client, make_job):
        job = make_job()

        body = auth_client.get(f"/api/jobs/{job['id']}").get_json()["job"]

        assert body["resume"]["name"] == "Backend Resume"
        assert body["aiResult"]["matchScore"] == 0
        assert body["chats"] == []

    def test_other_users_job_is_not_found(self, other_client, make_job):
        job = make_job()

        assert other_client.get(f"/api/jobs/{job['id']}").status_code == 404
        assert other_client.patch(f"/api/jobs/{job['id']}", json={"status": "applied"}).status_code == 404
        assert other_client.delete(f"/api/jobs/{job['id']}").status_code == 404

    def test_update_job(self, auth_client, make_job, make_resume):
        job = make_job()
        new_resume = make_resume(name="Data Resume")

        response = auth_client.patch(f"/api/jobs/{job['id']}", json={
            "status": "interview",
            "notes": "Phone screen Tuesday",
            "resumeId": new_resume,
        })

        assert response.status_code == 200
        body = response.get_json()["job"]
        assert body["status"] == "interview"
        assert body["notes"] == "Phone screen Tuesday"
        assert body["resume"]["id"] == new_resume
        assert body["updatedAt"] >= job["updatedAt"]

    def test_update_rejects_bad_status(self, auth_client, make_job):
        job = make_job()

        response = auth_client.patch(f"/api/jobs/{job['id']}", json={"status": "ghosted"})

        assert response.status_code == 400

    def test_delete_job(self, auth_client, make_job):
        job = make_job()

        response = auth_client.delete(f"/api/jobs/{job['id']}")

        assert response.status_code == 200
        assert auth_client.get(f"/api/jobs/{job['id']}").status_code == 404


class TestMatchScore:
    def test_match_score_stored(self, auth_client, make_job, ai):
        job = make_job()
        ai.queue(json.dumps({
            "matchScore": 82,
            "missingItems": ["Kubernetes"],
            "skillsMatched": ["Python", "AWS"],
            "suggestedBullets": ["Built APIs"],
            "improvedSummary": "Backend engineer",
            "relevantExperience": ["Acme"],
            "improvements": [],
        }))

        response = auth_client.post(f"/api/jobs/{job['id']}/match-score")

        assert response.status_code == 200
        suggestion = response.get_json()["suggestion"]
        assert suggestion["matchScore"] == 82
        assert suggestion["missingSkills"] == ["Kubernetes"]
        assert suggestion["atsKeywords"] == ["Python", "AWS"]

        listed = auth_client.get("/api/jobs").get_json()["jobs"][0]
        assert listed["matchScore"] == 82

        # re-running replaces the single stored row
        ai.queue('{"matchScore": 40}')
        auth_client.post(f"/api/jobs/{job['id']}/match-score")
        detail = auth_client.get(f"/api/jobs/{job['id']}").get_json()["job"]
        assert detail["aiResult"]["matchScore"] == 40
        assert detail["aiResult"]["missingSkills"] == []

    def test_match_score_needs_description(self, auth_client, make_job):
        job = make_job(jobDescription=None)

        response = auth_client.post(f"/api/jobs/{job['id']}/match-score")

        assert response.status_code == 400

    def test_match_score_needs_resume_text(self, auth_client, make_job, make_resume):
        job = make_job(resumeId=make_resume(text=""))

        response = auth_client.post(f"/api/jobs/{job['id']}/match-score")

        assert response.status_code == 400


class TestChat:
    def test_user_message_gets_reply(self, auth_client, make_job, ai):
        job = make_job()
        ai.queue("Lead with your AWS work.")

        response = auth_client.post(f"/api/jobs/{job['id']}/chat", json={"message": "How do I stand out?"})

        assert response.status_code == 201
        body = response.get_json()
        assert body["userMessage"]["role"] == "user"
        assert body["assistantMessage"]["message"] == "Lead with your AWS work."

        prompt = ai.prompts[-1]
        assert "Acme Corp" in prompt
        assert "Python Flask PostgreSQL AWS engineer" in prompt
        assert "How do I stand out?" in prompt

        messages = auth_client.get(f"/api/jobs/{job['id']}/chat").get_json()["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]

    def test_assistant_message_is_stored_without_ai(self, auth_client, make_job, ai):
        job = make_job()
        calls_before = len(ai.prompts)

        response = auth_client.post(
            f"/api/jobs/{job['id']}/chat", json={"message": "Saved note", "role": "assistant"}
        )

        assert response.status_code == 201
        assert response.get_json()["message"]["role"] == "assistant"
        assert len(ai.prompts) == calls_before

    def test_chat_failure(self, auth_client, make_job, ai):
        job = make_job()
        ai.queue(ConnectionError("down"))

        response = auth_client.post(f"/api/jobs/{job['id']}/chat", json={"message": "Hi"})

        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to process chat message"

    def test_empty_message_rejected(self, auth_client, make_job):
        job = make_job()

        response = auth_client.post(f"/api/jobs/{job['id']}/chat", json={"message": ""})

        assert response.status_code == 400


class TestParseUrl:
    def test_parse_url(self, auth_client, ai, monkeypatch):
        monkeypatch.setattr(
            documents, "fetch_page", lambda url: "<html><body>Staff Engineer at Acme</body></html>"
        )
        ai.queue(json.dumps({"jobTitle": "Staff Engineer", "company": "Acme"}))

        response = auth_client.post("/api/jobs/parse-url", json={"url": "https://jobs.example.com/9"})

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["job"]["jobTitle"] == "Staff Engineer"
        assert body["job"]["location"] is None

    def test_invalid_url(self, auth_client):
        response = auth_client.post("/api/jobs/parse-url", json={"url": "ftp://nope"})

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid URL"

    def test_fetch_failure(self, auth_client, monkeypatch):
        def fail(url):
            raise documents.DocumentError("HTTP 404")

        monkeypatch.setattr(documents, "fetch_page", fail)

        response = auth_client.post("/api/jobs/parse-url", json={"url": "https://jobs.example.com/9"})

        assert response.status_code == 400

    def test_unparseable_page(self, auth_client, ai, monkeypatch):
        monkeypatch.setattr(documents, "fetch_page", lambda url: "<html></html>")
        ai.queue("I could not find a job here")

        response = auth_client.post("/api/jobs/parse-url", json={"url": "https://jobs.example.com/9"})

        assert response.status_code == 500


class TestFiles:
    def test_upload_and_view_cover_letter(self, auth_client, make_job, s3, pdf_bytes):
        job = make_job()

        response = auth_client.post(
            f"/api/jobs/{job['id']}/upload",
            data={"file": (io.BytesIO(pdf_bytes), "cover.pdf", "application/pdf"), "type": "coverLetter"},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        key = response.get_json()["job"]["uploadedCoverLetterKey"]
        assert key.startswith(f"jobs/user-alice/{job['id']}/coverLetter/")
        assert key.endswith("-cover.pdf")
        assert s3.put_object.call_args.kwargs["Bucket"] == "test-bucket"

        files = auth_client.get(f"/api/jobs/{job['id']}/files").get_json()["files"]
        assert files == {"coverLetter": {"url": "https://signed.example.com/object", "key": key}}

        redirect = auth_client.get(f"/api/jobs/{job['id']}/files/coverLetter")
        assert redirect.status_code == 302
        assert redirect.headers["Location"] == "https://signed.example.com/object"
        params = s3.generate_presigned_url.call_args.kwargs["Params"]
        assert params["ResponseContentDisposition"] == "inline"

    def test_replacing_upload_deletes_old_object(self, auth_client, make_job, s3, pdf_bytes):
        job = make_job()
        for _ in range(2):
            auth_client.post(
                f"/api/jobs/{job['id']}/upload",
                data={"file": (io.BytesIO(pdf_bytes), "resume.pdf", "application/pdf"), "type": "resume"},
                content_type="multipart/form-data",
            )

        assert s3.delete_object.call_count == 1

    def test_upload_rejects_bad_type(self, auth_client, make_job, pdf_bytes):
        job = make_job()

        response = auth_client.post(
            f"/api/jobs/{job['id']}/upload",
            data={"file": (io.BytesIO(pdf_bytes), "x.pdf", "application/pdf"), "type": "portfolio"},
            content_type="multipart/form-data",
        )

        assert response.status_code == 400

    def test_upload_too_large(self, app, auth_client, make_job, s3, pdf_bytes):
        job = make_job()
        app.config["MAX_CONTENT_LENGTH"] = 1000

        response = auth_client.post(
            f"/api/jobs/{job['id']}/upload",
            data={"file": (io.BytesIO(pdf_bytes + b"\0" * 5000), "big.pdf", "application/pdf"),
                  "type": "resume"},
            content_type="multipart/form-data",
        )

        assert response.status_code == 413
        s3.put_object.assert_not_called()

    def test_upload_rejects_non_pdf(self, auth_client, make_job):
        job = make_job()

        response = auth_client.post(
            f"/api/jobs/{job['id']}/upload",
            data={"file": (io.BytesIO(b"hello"), "notes.txt", "text/plain"), "type": "resume"},
            content_type="multipart/form-data",
        )

        assert response.status_code == 400

    def test_missing_file_view(self, auth_client, make_job):
        job = make_job()

        assert auth_client.get(f"/api/jobs/{job['id']}/files/resume").status_code == 404
