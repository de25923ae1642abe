import base64
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep API tests deterministic: no real AI calls and no rate limiting.
os.environ.setdefault("COACH_LLM_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from fastapi.testclient import TestClient  # noqa: E402

from career_coach.ai.types import CompletionError, CompletionTimeout  # noqa: E402
from career_coach.core.store import CoachStore  # noqa: E402
from career_coach.main import app  # noqa: E402

SAMPLE_RESUME = (
    "Jane Doe\njane@x.com | 555-1234\n\nProfessional Summary\nSenior engineer with 5 years experience.\n\n"
    "Technical Skills\n• Python\n• AWS\n\nProfessional Experience\n• Acme Corp, Data Engineer, 2019 - 2024\n"
    "• Built pipelines"
)
JOB_DESCRIPTION = "Looking for a Python and AWS engineer"
AI_RESUME = (
    "PROFESSIONAL SUMMARY\nSenior engineer shipping Python and AWS data pipelines.\n\n"
    "TECHNICAL SKILLS\n• Python\n• AWS\n• Docker\n\n"
    "PROFESSIONAL EXPERIENCE\n• Built pipelines on AWS that cut reporting time by 40%"
)


class FakeCompletionClient:
    """Returns canned replies in order (the last one repeats) or raises ``error``."""

    def __init__(self, *replies, error=None):
        self.replies = list(replies) or ["Keep going!"]
        self.error = error
        self.calls = []

    def complete(self, *, system_prompt, user_prompt, max_output_tokens, timeout_s=None):
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        if self.error is not None:
            raise self.error
        if len(self.replies) > 1:
            return self.replies.pop(0)
        return self.replies[0]


def _provider(client):
    return lambda: client


def _unavailable():
    raise CompletionError("AI is not configured; set OPENAI_API_KEY.", code="llm_disabled")


class CoachApiTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmp = tempfile.TemporaryDirectory()
        cls.store = CoachStore(os.path.join(cls._tmp.name, "coach.db"))
        app.state.store = cls.store
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        app.state.store = None
        cls.store.close()
        cls._tmp.cleanup()

    def setUp(self):
        self.store.clear()

    def use_ai(self, client):
        patcher = patch("career_coach.services.coach_service.get_completion_client", _provider(client))
        patcher.start()
        self.addCleanup(patcher.stop)
        return client

    def use_no_ai(self):
        patcher = patch("career_coach.services.coach_service.get_completion_client", _unavailable)
        patcher.start()
        self.addCleanup(patcher.stop)

    def register_and_login(self, email="jane@example.com"):
        self.client.post("/api/register", json={"name": "Jane Doe", "email": email, "password": "s3cret!"})
        response = self.client.post("/api/login", json={"email": email, "password": "s3cret!"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}


class HealthTests(CoachApiTestCase):
    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["store"], "ready")
        self.assertIn(body["llm"], {"configured", "disabled"})


class ChatApiTests(CoachApiTestCase):
    def test_chat_reply_and_usage(self):
        fake = self.use_ai(FakeCompletionClient("Focus on measurable impact."))
        response = self.client.post("/api/chat", json={"message": "Hello", "userId": "u1"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["response"], "Focus on measurable impact.")
        self.assertEqual(body["usage"]["chat"], 1)

        self.client.post("/api/chat", json={"message": "And my resume?", "userId": "u1"})
        self.assertIn("Previous conversation context: user: Hello", fake.calls[1]["user_prompt"])

    def test_chat_includes_resume_context(self):
        fake = self.use_ai(FakeCompletionClient("SCORE: 80/100", "Sure."))
        self.client.post("/api/resume-analysis", json={"resume": SAMPLE_RESUME, "userId": "u1"})
        self.client.post("/api/chat", json={"message": "Thoughts?", "userId": "u1"})
        self.assertIn("User's resume context", fake.calls[-1]["user_prompt"])

    def test_chat_limit_on_free_trial(self):
        self.use_ai(FakeCompletionClient("ok"))
        for _ in range(10):
            response = self.client.post("/api/chat", json={"message": "Hi", "userId": "u1"})
            self.assertEqual(response.status_code, 200)
        response = self.client.post("/api/chat", json={"message": "Hi", "userId": "u1"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["detail"], "Free trial limit reached for chat. Please upgrade to continue.")

    def test_chat_without_ai_is_unavailable(self):
        self.use_no_ai()
        response = self.client.post("/api/chat", json={"message": "Hi", "userId": "u1"})
        self.assertEqual(response.status_code, 503)
        self.assertEqual(self.store.recent_chat("u1"), [])

    def test_empty_message_rejected(self):
        response = self.client.post("/api/chat", json={"message": "", "userId": "u1"})
        self.assertEqual(response.status_code, 422)


class ResumeApiTests(CoachApiTestCase):
    def test_analysis_fallback_when_ai_unavailable(self):
        self.use_no_ai()
        response = self.client.post(
            "/api/resume-analysis",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["note"], "Analysis generated with fallback because the AI service is unavailable")
        self.assertEqual(body["keywords"]["matchedKeywords"], ["aws", "python"])
        self.assertEqual(body["keywords"]["keywordScore"], 100)
        self.assertTrue(0 <= body["score"] <= 100)
        self.assertTrue(0 <= body["jobAlignment"] <= 100)
        self.assertEqual(body["usage"], {})

    def test_analysis_timeout_note(self):
        self.use_ai(FakeCompletionClient(error=CompletionTimeout()))
        response = self.client.post("/api/resume-analysis", json={"resume": SAMPLE_RESUME, "userId": "u1"})
        self.assertEqual(response.json()["note"], "Analysis generated with fallback due to timeout")

    def test_analysis_parses_ai_reply(self):
        self.use_ai(
            FakeCompletionClient(
                "SCORE: 88/100\nSTRENGTHS: Python depth, AWS delivery\nIMPROVEMENTS: Add metrics\n"
                "ANALYSIS: Strong match.\nJOB_ALIGNMENT: 91"
            )
        )
        response = self.client.post(
            "/api/resume-analysis",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        body = response.json()
        self.assertEqual(body["score"], 88)
        self.assertEqual(body["strengths"], ["Python depth", "AWS delivery"])
        self.assertEqual(body["jobAlignment"], 91)
        self.assertNotIn("note", body)

    def test_short_resume_rejected(self):
        response = self.client.post("/api/resume-analysis", json={"resume": "too short", "userId": "u1"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("at least 50 characters", response.json()["detail"])

    def test_cover_letter_fallback(self):
        self.use_no_ai()
        response = self.client.post(
            "/api/cover-letter",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIn("Dear Hiring Manager", body["coverLetter"])
        self.assertIn("Jane Doe", body["coverLetter"])
        self.assertIn("fallback", body["note"])

    def test_update_resume_fallback_is_never_blank(self):
        self.use_no_ai()
        response = self.client.post("/api/update-resume", json={"resume": SAMPLE_RESUME, "userId": "u1"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["source"], "fallback")
        self.assertIn("PROFESSIONAL SUMMARY", body["optimizedResume"])
        for name in ("summary", "skills", "experience", "projects", "education", "achievements"):
            self.assertTrue(body["sections"][name], f"{name} is empty")

    def test_update_resume_uses_ai_sections(self):
        self.use_ai(FakeCompletionClient(AI_RESUME))
        response = self.client.post(
            "/api/update-resume",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        body = response.json()
        self.assertEqual(body["source"], "ai")
        self.assertIn("Docker", body["sections"]["skills"])
        self.assertTrue(body["optimizedResume"].startswith("Jane Doe"))

    def test_generate_resume_and_cover_letter(self):
        fake = self.use_ai(FakeCompletionClient(AI_RESUME, "Dear team, I am excited to apply."))
        response = self.client.post(
            "/api/generate-resume-coverletter",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["source"], "ai")
        self.assertEqual(body["coverLetter"], "Dear team, I am excited to apply.")
        self.assertEqual(len(fake.calls), 2)
        self.assertEqual(body["usage"], {})

    def test_generate_falls_back_for_both_documents(self):
        self.use_no_ai()
        response = self.client.post(
            "/api/generate-resume-coverletter",
            json={"resume": SAMPLE_RESUME, "jobDescription": JOB_DESCRIPTION, "userId": "u1"},
        )
        body = response.json()
        self.assertEqual(body["source"], "fallback")
        self.assertIn("Dear Hiring Manager", body["coverLetter"])
        self.assertTrue(body["optimizedResume"].strip())


class InterviewAndPlanningApiTests(CoachApiTestCase):
    def test_interview_prep_requires_role_or_description(self):
        response = self.client.post("/api/interview-prep", json={"userId": "u1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Please provide either a role or job description")

    def test_interview_prep_fallback_counts(self):
        self.use_no_ai()
        standard = self.client.post("/api/interview-prep", json={"role": "Data Engineer", "userId": "u1"}).json()
        interactive = self.client.post(
            "/api/interview-prep",
            json={"jobDescription": "Backend engineer building Python APIs", "type": "interactive", "userId": "u1"},
        ).json()
        self.assertEqual(len(standard["questions"]), 5)
        self.assertEqual(len(interactive["questions"]), 7)
        self.assertEqual(interactive["role"], "Backend engineer building Python APIs role")
        self.assertIn("Question 1:", standard["rawText"])
        self.assertEqual(interactive["usage"]["interviewPrep"], 2)

    def test_interview_prep_parses_ai_questions(self):
        self.use_ai(FakeCompletionClient("Question 1: Why Python? (Tip: Be specific)\nQuestion 2: Describe AWS work."))
        body = self.client.post("/api/interview-prep", json={"role": "Data Engineer", "userId": "u1"}).json()
        self.assertEqual(body["questions"][0], {"question": "Why Python?", "tip": "Be specific"})
        self.assertEqual(len(body["questions"]), 2)

    def test_career_planning(self):
        response = self.client.post("/api/career-planning", json={"currentRole": "Analyst", "userId": "u1"})
        self.assertEqual(response.status_code, 400)

        self.use_ai(FakeCompletionClient("Month 1: learn SQL."))
        response = self.client.post(
            "/api/career-planning",
            json={"currentRole": "Analyst", "targetRole": "Data Scientist", "experience": 3, "userId": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["plan"], "Month 1: learn SQL.")
        self.assertEqual(self.store.get_context("u1")["targetRole"], "Data Scientist")

    def test_career_planning_without_ai(self):
        self.use_no_ai()
        response = self.client.post(
            "/api/career-planning",
            json={"currentRole": "Analyst", "targetRole": "Data Scientist", "experience": "3", "userId": "u1"},
        )
        self.assertEqual(response.status_code, 503)

    def test_career_development(self):
        response = self.client.post("/api/career-development", json={"userId": "u1"})
        self.assertEqual(response.status_code, 400)

        self.use_ai(FakeCompletionClient("Weekly Milestones: ..."))
        response = self.client.post(
            "/api/career-development",
            json={"goals": "Become a tech lead", "currentSkills": "Python", "userId": "u1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["usage"]["careerPlanning"], 1)


class MarketApiTests(CoachApiTestCase):
    def test_job_search_filters(self):
        response = self.client.post("/api/job-search", json={"jobTitle": "engineer", "userId": "u1"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        titles = [job["title"] for job in body["jobs"]]
        self.assertEqual(titles, ["Senior Software Engineer", "DevOps Engineer"])
        self.assertEqual(body["totalJobs"], 2)
        self.assertEqual(body["searchCriteria"]["jobTitle"], "engineer")

    def test_job_search_without_filters_returns_all(self):
        body = self.client.post("/api/job-search", json={}).json()
        self.assertEqual(body["totalJobs"], 5)

    def test_job_analytics_profiles(self):
        body = self.client.post("/api/job-analytics", json={"query": "Machine Learning Engineer"}).json()
        self.assertEqual(body["averageSalary"], "$130,000")
        default = self.client.post("/api/job-analytics", json={"query": "maintainer"}).json()
        self.assertEqual(default["averageSalary"], "$115,000")


class AccountApiTests(CoachApiTestCase):
    def test_register_login_profile(self):
        response = self.client.post(
            "/api/register",
            json={"name": "Jane Doe", "email": "Jane@Example.com", "password": "s3cret!"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["email"], "jane@example.com")

        duplicate = self.client.post(
            "/api/register",
            json={"name": "Jane", "email": "jane@example.com", "password": "other"},
        )
        self.assertEqual(duplicate.status_code, 409)

        missing = self.client.post("/api/register", json={"email": "x@example.com"})
        self.assertEqual(missing.status_code, 400)

        wrong = self.client.post("/api/login", json={"email": "jane@example.com", "password": "nope"})
        self.assertEqual(wrong.status_code, 401)

        user_id, headers = self.register_and_login()
        profile = self.client.get("/api/user-profile", headers=headers)
        self.assertEqual(profile.status_code, 200)
        body = profile.json()
        self.assertEqual(body["id"], user_id)
        self.assertEqual(body["name"], "Jane Doe")
        self.assertIsNotNone(body["lastLogin"])

    def test_profile_requires_token(self):
        self.assertEqual(self.client.get("/api/user-profile").status_code, 401)
        bad = self.client.get("/api/user-profile", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(bad.status_code, 401)

    def test_token_identifies_user_for_usage(self):
        self.use_ai(FakeCompletionClient("ok"))
        user_id, headers = self.register_and_login()
        self.assertEqual(self.client.get("/api/user-analytics", headers=headers).status_code, 404)

        self.client.post("/api/chat", json={"message": "Hi"}, headers=headers)
        analytics = self.client.get("/api/user-analytics", headers=headers)
        self.assertEqual(analytics.status_code, 200)
        body = analytics.json()
        self.assertEqual(body["totalUsage"], 1)
        self.assertEqual(body["featuresUsed"], ["chat"])
        self.assertEqual(body["currentPlan"], "free")
        self.assertEqual(body["daysRemaining"], 7)

        profile = self.client.get("/api/user-profile", headers=headers).json()
        self.assertEqual(profile["subscription"]["plan"], "free")
        self.assertEqual(profile["analytics"]["totalUsage"], 1)
        self.assertEqual(self.store.recent_chat(user_id)[0]["content"], "Hi")


class BillingApiTests(CoachApiTestCase):
    def test_payment_plans(self):
        body = self.client.get("/api/payment-plans").json()
        self.assertEqual(set(body), {"free", "starter", "professional"})
        self.assertEqual(body["starter"]["price"], 9.99)
        self.assertEqual(body["free"]["limits"]["chat"], 10)

    def test_process_payment_and_system_analytics(self):
        invalid = self.client.post("/api/process-payment", json={"planName": "gold", "userId": "u1"}).json()
        self.assertEqual(invalid, {"success": False, "message": "Invalid plan selected"})

        upgraded = self.client.post(
            "/api/process-payment",
            json={"planName": "starter", "paymentMethod": "card", "userId": "u1"},
        ).json()
        self.assertEqual(upgraded, {"success": True, "message": "Successfully upgraded to Starter Plan"})
        self.assertEqual(self.store.get_subscription("u1")["plan"], "starter")

        self.client.post("/api/job-search", json={"userId": "u1"})
        stats = self.client.get("/api/system-analytics").json()
        self.assertEqual(stats["totalRevenue"], 9.99)
        self.assertEqual(stats["activeUsers"], 1)
        self.assertEqual(stats["featureStats"]["jobSearch"], {"totalUsage": 1, "uniqueUsers": 1})

    def test_paid_plan_lifts_free_limit(self):
        self.use_ai(FakeCompletionClient("ok"))
        self.client.post("/api/process-payment", json={"planName": "professional", "userId": "u1"})
        for _ in range(12):
            response = self.client.post("/api/chat", json={"message": "Hi", "userId": "u1"})
            self.assertEqual(response.status_code, 200)


class DocumentApiTests(CoachApiTestCase):
    def test_upload_text_document(self):
        payload = {
            "fileData": base64.b64encode(SAMPLE_RESUME.encode("utf-8")).decode("ascii"),
            "fileName": "resume.txt",
            "fileType": "text/plain",
        }
        response = self.client.post("/api/upload-document", json=payload)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["sourceType"], "txt")
        self.assertIn("Senior engineer with 5 years experience.", body["extractedText"])

    def test_upload_rejects_bad_input(self):
        unsupported = self.client.post(
            "/api/upload-document",
            json={"fileData": base64.b64encode(b"\x89PNG").decode("ascii"), "fileName": "photo.png"},
        )
        self.assertEqual(unsupported.status_code, 400)
        not_base64 = self.client.post("/api/upload-document", json={"fileData": "%%%", "fileName": "cv.txt"})
        self.assertEqual(not_base64.status_code, 400)
        self.assertEqual(not_base64.json()["detail"], "fileData must be base64 encoded.")

    def test_download_word(self):
        response = self.client.post("/api/download-word", json={"content": "Line one\nLine two", "title": "My Notes"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.content.startswith(b"PK"))
        self.assertIn('filename="My_Notes.docx"', response.headers["content-disposition"])

    def test_download_resume_formats(self):
        word = self.client.post("/api/download-resume-word", json={"content": AI_RESUME})
        self.assertTrue(word.content.startswith(b"PK"))
        self.assertIn("Optimized_Resume.docx", word.headers["content-disposition"])

        pdf = self.client.post("/api/download-resume-pdf", json={"content": SAMPLE_RESUME})
        self.assertEqual(pdf.headers["content-type"], "application/pdf")
        self.assertTrue(pdf.content.startswith(b"%PDF"))

    def test_download_cover_letter_formats(self):
        letter = "Dear Hiring Manager,\n\nI am excited to apply.\n\nSincerely,\nJane Doe"
        word = self.client.post("/api/download-coverletter-word", json={"content": letter})
        self.assertIn("Cover_Letter.docx", word.headers["content-disposition"])
        pdf = self.client.post("/api/download-coverletter-pdf", json={"content": letter})
        self.assertTrue(pdf.content.startswith(b"%PDF"))
        self.assertIn("Cover_Letter.pdf", pdf.headers["content-disposition"])

    def test_hyphenated_cover_letter_word_route(self):
        response = self.client.post("/api/download-cover-letter-word", json={"content": "Dear Hiring Manager,"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.content.startswith(b"PK"))
        self.assertIn("Cover_Letter.docx", response.headers["content-disposition"])


if __name__ == "__main__":
    unittest.main()
