"""
Integration tests for API endpoints
"""
import json
from unittest.mock import patch

import pytest

from quizgen.services.ingestion import MAX_UPLOAD_BYTES
from tests.helpers import make_question, model_response, mock_openai_client

LESSON = "Quang hợp là quá trình cây xanh tạo chất hữu cơ. Diệp lục hấp thụ ánh sáng.".encode("utf-8")


def upload(name="bai-hoc.txt", data=LESSON, media_type="text/plain"):
    return {"file": (name, data, media_type)}


def generate_form(**overrides):
    form = {"subject": "Sinh học", "question_count": "2", "question_type": "MULTIPLE_CHOICE"}
    form.update(overrides)
    return form


def batch(prefix, count, **kwargs):
    return model_response([make_question(question=f"{prefix} {i}", **kwargs) for i in range(count)])


@pytest.fixture
def question_set(client):
    with patch("quizgen.services.llm._get_client") as mock_get_client:
        mock_get_client.return_value = mock_openai_client(batch("Câu", 2, answers=("B",)))
        response = client.post(
            "/questions/generate",
            files=upload(),
            data=generate_form(),
            params={"user_id": "user-1"},
        )
    assert response.status_code == 200
    return response.json()["data"]


class TestHealthEndpoints:
    def test_health_check(self, client):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert "status" in data
        assert "timestamp" in data
        assert data["checks"]["database"]["status"] == "healthy"

    def test_request_id_header(self, client):
        assert len(client.get("/health").headers["X-Request-ID"]) == 32
        echoed = client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert echoed.headers["X-Request-ID"] == "trace-123"

    def test_metrics_endpoint(self, client):
        """Test metrics endpoint"""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "ai_generation_requests_total" in response.text


class TestGenerateEndpoint:
    def test_generate_from_text_file(self, question_set):
        assert question_set["subject"] == "Sinh học"
        assert question_set["type"] == "MULTIPLE_CHOICE"
        assert question_set["fileName"] == "bai-hoc.txt"
        assert question_set["userId"] == "user-1"
        assert question_set["title"].startswith("Sinh học - ")
        assert [q["correctAnswers"] for q in question_set["questions"]] == [["B"], ["B"]]
        assert [q["order"] for q in question_set["questions"]] == [1, 2]
        info = question_set["textProcessingInfo"]
        assert info["wasTruncated"] is False
        assert info["originalLength"] == info["truncatedLength"]

    @patch("quizgen.services.llm._get_client")
    def test_generate_repairs_completion_questions(self, mock_get_client, client):
        mock_get_client.return_value = mock_openai_client(batch("Thủ đô của Pháp là Paris", 1))
        response = client.post(
            "/questions/generate",
            files=upload(),
            data=generate_form(question_count="1", question_type="COMPLETION", title="Địa lý"),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Địa lý"
        assert "_____" in data["questions"][0]["content"]

    @patch("quizgen.services.llm._get_client")
    def test_prompt_carries_tone_and_difficulty(self, mock_get_client, client):
        client_double = mock_openai_client(batch("Câu", 1))
        mock_get_client.return_value = client_double
        client.post(
            "/questions/generate",
            files=upload(),
            data=generate_form(question_count="1", tone="Thân thiện", difficulty="Khó"),
        )
        kwargs = client_double.with_options.return_value.chat.completions.create.call_args.kwargs
        prompt = kwargs["messages"][0]["content"]
        assert "Thân thiện" in prompt
        assert "Khó" in prompt
        assert "Quang hợp" in prompt

    def test_invalid_media_type(self, client):
        response = client.post("/questions/generate", files=upload("anh.png", b"\x89PNG", "image/png"), data=generate_form())
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "Only PDF and TXT" in response.json()["detail"]

    @pytest.mark.parametrize("count", ["0", "51"])
    def test_question_count_out_of_range(self, client, count):
        response = client.post("/questions/generate", files=upload(), data=generate_form(question_count=count))
        assert response.status_code == 400

    def test_unknown_question_type(self, client):
        response = client.post("/questions/generate", files=upload(), data=generate_form(question_type="ESSAY"))
        assert response.status_code == 400

    def test_non_numeric_question_count(self, client):
        response = client.post("/questions/generate", files=upload(), data=generate_form(question_count="abc"))
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "question_count" in response.json()["detail"]

    def test_missing_file(self, client):
        response = client.post("/questions/generate", data=generate_form())
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "file" in response.json()["detail"]

    def test_parameters_checked_before_upload(self, client):
        """A bad count is reported even when the upload is also too large"""
        oversized = b"a" * (MAX_UPLOAD_BYTES + 1)
        response = client.post(
            "/questions/generate", files=upload(data=oversized), data=generate_form(question_count="0")
        )
        assert response.status_code == 400
        assert "question_count" in response.json()["detail"]
        assert "too large" not in response.json()["detail"]

    def test_empty_document(self, client):
        response = client.post("/questions/generate", files=upload(data=b"   \n\n  "), data=generate_form())
        assert response.status_code == 400

    @patch("quizgen.services.llm._get_client")
    def test_unparseable_model_output(self, mock_get_client, client):
        mock_get_client.return_value = mock_openai_client("Tôi không thể giúp việc này.")
        response = client.post("/questions/generate", files=upload(), data=generate_form())
        assert response.status_code == 502
        assert client.get("/questions/sets").json()["data"] == []


class TestGenerateMultipleEndpoint:
    @patch("quizgen.services.llm._get_client")
    def test_json_array_of_types(self, mock_get_client, client):
        mock_get_client.return_value = mock_openai_client(batch("MC", 2), batch("TF", 2, answers=("False",)))
        response = client.post(
            "/questions/generate-multiple",
            files=upload(),
            data={
                "subject": "Sinh học",
                "question_count": "3",
                "question_types": json.dumps(["MULTIPLE_CHOICE", "TRUE_FALSE"]),
            },
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["type"] == "MULTIPLE_CHOICE"
        assert [q["type"] for q in data["questions"]] == ["MULTIPLE_CHOICE", "MULTIPLE_CHOICE", "TRUE_FALSE"]
        assert data["questions"][2]["correctAnswers"] == ["False"]
        assert [c["label"] for c in data["questions"][2]["choices"]] == ["True", "False"]

    @patch("quizgen.services.llm._get_client")
    def test_repeated_form_fields(self, mock_get_client, client):
        mock_get_client.return_value = mock_openai_client(batch("M", 1), batch("R", 1))
        response = client.post(
            "/questions/generate-multiple",
            files=upload(),
            data={"subject": "Sử", "question_count": "2", "question_types": ["MATCHING", "MULTIPLE_RESPONSE"]},
        )
        assert response.status_code == 200
        questions = response.json()["data"]["questions"]
        assert questions[0]["correctAnswers"] == ["A", "B", "C", "D"]
        assert len(questions[1]["correctAnswers"]) == 2

    @patch("quizgen.services.llm._get_client")
    def test_one_failing_type_fails_request(self, mock_get_client, client):
        mock_get_client.return_value = mock_openai_client(batch("MC", 2), "không phải JSON")
        response = client.post(
            "/questions/generate-multiple",
            files=upload(),
            data={"subject": "Sử", "question_count": "4", "question_types": '["MULTIPLE_CHOICE", "COMPLETION"]'},
        )
        assert response.status_code == 502
        assert "COMPLETION" in response.json()["detail"]

    def test_empty_type_list(self, client):
        response = client.post(
            "/questions/generate-multiple",
            files=upload(),
            data={"subject": "Sử", "question_count": "4", "question_types": "[]"},
        )
        assert response.status_code == 400


class TestQuestionSetEndpoints:
    def test_get_set(self, client, question_set):
        response = client.get(f"/questions/sets/{question_set['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["questions"] == question_set["questions"]

    def test_missing_set(self, client):
        response = client.get("/questions/sets/12345")
        assert response.status_code == 404
        assert response.json() == {"success": False, "detail": "Question set not found"}

    def test_list_sets_by_user(self, client, question_set):
        assert [s["id"] for s in client.get("/questions/sets", params={"user_id": "user-1"}).json()["data"]] == [
            question_set["id"]
        ]
        assert client.get("/questions/sets", params={"user_id": "user-2"}).json()["data"] == []

    def test_delete_set(self, client, question_set):
        url = f"/questions/sets/{question_set['id']}"
        assert client.delete(url, params={"user_id": "user-2"}).status_code == 404
        assert client.delete(url, params={"user_id": "user-1"}).status_code == 200
        assert client.get(url).status_code == 404


class TestPracticeEndpoints:
    def start(self, client, question_set):
        response = client.post("/practice/start", json={"questionSetId": question_set["id"], "userId": "user-1"})
        assert response.status_code == 200
        return response.json()["data"]

    def test_practice_flow(self, client, question_set):
        practice = self.start(client, question_set)
        assert practice["totalQuestions"] == 2
        assert "correctAnswers" not in practice["questionSet"]["questions"][0]

        first, second = (q["id"] for q in question_set["questions"])
        right = client.post("/practice/answer", json={"sessionId": practice["id"], "questionId": first, "selectedChoices": ["B"]})
        assert right.status_code == 200
        assert right.json()["data"]["isCorrect"] is True
        assert right.json()["message"] == "Correct answer!"

        wrong = client.post("/practice/answer", json={"sessionId": practice["id"], "questionId": second, "selectedChoices": ["A"]})
        assert wrong.json()["data"]["isCorrect"] is False
        assert wrong.json()["data"]["score"] == 1

        completed = client.post("/practice/complete", json={"sessionId": practice["id"]})
        assert completed.status_code == 200
        data = completed.json()["data"]
        assert data["isCompleted"] is True
        assert data["score"] == 1
        assert len(data["answers"]) == 2
        assert data["questionSet"]["questions"][0]["correctAnswers"] == ["B"]

        sessions = client.get("/practice/sessions", params={"user_id": "user-1"}).json()["data"]
        assert [s["id"] for s in sessions] == [practice["id"]]
        assert client.get(f"/practice/sessions/{practice['id']}").json()["data"]["isCompleted"] is True

    def test_double_answer_conflicts(self, client, question_set):
        practice = self.start(client, question_set)
        body = {"sessionId": practice["id"], "questionId": question_set["questions"][0]["id"], "selectedChoices": ["B"]}
        assert client.post("/practice/answer", json=body).status_code == 200
        assert client.post("/practice/answer", json=body).status_code == 409

    def test_set_with_sessions_cannot_be_deleted(self, client, question_set):
        self.start(client, question_set)
        assert client.delete(f"/questions/sets/{question_set['id']}").status_code == 409

    def test_unknown_set_or_session(self, client):
        assert client.post("/practice/start", json={"questionSetId": 999}).status_code == 404
        assert client.post("/practice/complete", json={"sessionId": 999}).status_code == 404
        assert client.get("/practice/sessions/999").status_code == 404
