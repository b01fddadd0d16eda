"""Flask test-client tests for the chat blueprint."""
import pytest

from app.utils.exceptions import CompletionError


def _post_message(client, **body):
    payload = {"prompt": "Plan a fractions lesson", "userId": "u1"}
    payload.update(body)
    return client.post("/api/chat/message", json=payload)


class TestSendMessage:
    """Tests for POST /api/chat/message."""

    def test_success_response_shape(self, client, mock_llm):
        mock_llm.complete.return_value = "Start with pizza slices."

        resp = _post_message(client)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "SUCCESS"
        assert data["content"] == "Start with pizza slices."
        assert data["sessionId"].startswith("session_")
        assert data["messageId"].startswith("msg_")
        assert data["aiModel"] == "test/standard-model"
        assert data["tokensUsed"] == len("Start with pizza slices.") // 4
        assert len(data["suggestedPrompts"]) <= 5
        assert resp.headers["X-Request-ID"]

    def test_pipeline_error_is_200_with_error_status(self, client, mock_llm):
        mock_llm.complete.side_effect = CompletionError("Completion API error: 500")

        resp = _post_message(client)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ERROR"
        assert "Completion API error: 500" in data["errorMessage"]

    def test_validation_error_reported_in_body(self, client):
        resp = _post_message(client, prompt="", userId=None)

        data = resp.get_json()
        assert resp.status_code == 200
        assert data["status"] == "ERROR"
        assert data["errorMessage"] == (
            "Parameter validation failed: User ID is required, Prompt content is required"
        )

    def test_prompt_reaches_backend_verbatim(self, client, mock_llm):
        prompt = '5 < 6 & "x" is Tom\'s'
        client.post("/api/chat/action", json={
            "prompt": prompt,
            "userId": "u1",
            "actionType": "TRANSLATE",
            "actionParams": {"targetLanguage": "French"},
        })

        sent = mock_llm.complete.call_args.args[0]
        assert prompt in sent
        assert "&amp;" not in sent
        assert "&#39;" not in sent

    def test_long_prompt_with_ampersands_not_cut(self, client, mock_llm):
        prompt = "a" * 3990 + " & b&c"
        resp = _post_message(client, prompt=prompt)

        assert resp.get_json()["status"] == "SUCCESS"
        assert prompt in mock_llm.complete.call_args.args[0]

    def test_title_and_stored_content_verbatim(self, client):
        prompt = "Q&A: fractions & decimals for grade 5"
        session_id = _post_message(client, prompt=prompt).get_json()["sessionId"]

        data = client.get(f"/api/chat/history/{session_id}?userId=u1").get_json()
        assert data["title"] == prompt
        assert data["messages"][0]["content"] == prompt

    def test_invalid_json(self, client):
        resp = client.post("/api/chat/message", data="not json", content_type="application/json")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_overlong_prompt_is_422(self, client):
        resp = _post_message(client, prompt="x" * 4001)
        assert resp.status_code == 422
        assert resp.get_json()["error"]["details"]

    def test_conversation_continues(self, client):
        first = _post_message(client).get_json()
        second = _post_message(client, prompt="Now a quiz", sessionId=first["sessionId"]).get_json()
        assert second["sessionId"] == first["sessionId"]


class TestPerformAction:
    """Tests for POST /api/chat/action."""

    def test_missing_action_type_is_400(self, client, mock_llm):
        resp = client.post("/api/chat/action", json={"prompt": "Hello", "userId": "u1"})
        assert resp.status_code == 400
        assert "Action type is required" in resp.get_json()["error"]["message"]
        mock_llm.complete.assert_not_called()

    def test_translate_action(self, client, mock_llm):
        mock_llm.complete.return_value = "Bonjour la classe"
        resp = client.post("/api/chat/action", json={
            "prompt": "Translate: Hello class",
            "userId": "u1",
            "actionType": "TRANSLATE",
            "actionParams": {"targetLanguage": "French"},
        })

        data = resp.get_json()
        assert data["status"] == "SUCCESS"
        assert data["actionMetadata"]["actionType"] == "TRANSLATE"
        assert data["actionMetadata"]["targetLanguage"] == "French"

    def test_overlong_action_type_is_422(self, client, mock_llm):
        resp = client.post("/api/chat/action", json={
            "prompt": "Hello",
            "userId": "u1",
            "actionType": "X" * 200,
        })
        assert resp.status_code == 422
        mock_llm.complete.assert_not_called()

    def test_malformed_param_value(self, client, mock_llm):
        resp = client.post("/api/chat/action", json={
            "prompt": "Photosynthesis notes",
            "userId": "u1",
            "actionType": "QUESTION_GENERATION",
            "actionParams": {"questionTypes": {"a": 1}},
        })
        data = resp.get_json()
        assert data["status"] == "ERROR"
        assert "questionTypes has an invalid value" in data["errorMessage"]
        assert "QuestionGenerationParams" not in data["errorMessage"]
        mock_llm.complete.assert_not_called()

    def test_bad_question_count(self, client):
        resp = client.post("/api/chat/action", json={
            "prompt": "Photosynthesis notes",
            "userId": "u1",
            "actionType": "QUESTION_GENERATION",
            "actionParams": {"questionCount": -1},
        })
        data = resp.get_json()
        assert data["status"] == "ERROR"
        assert "questionCount must be a positive integer" in data["errorMessage"]


class TestSessions:
    """Tests for history, listing and deactivation endpoints."""

    @pytest.fixture
    def session_id(self, client):
        return _post_message(client, prompt="Hello there").get_json()["sessionId"]

    def test_history(self, client, session_id):
        resp = client.get(f"/api/chat/history/{session_id}?userId=u1")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["sessionId"] == session_id
        assert data["title"] == "Hello there"
        assert [m["sender"] for m in data["messages"]] == ["USER", "ASSISTANT"]

    def test_history_of_other_user_is_404(self, client, session_id):
        resp = client.get(f"/api/chat/history/{session_id}?userId=u2")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["message"] == f"Session not found: {session_id}"

    def test_history_missing_is_404(self, client):
        assert client.get("/api/chat/history/session_00000000?userId=u1").status_code == 404

    def test_history_requires_user_id(self, client, session_id):
        assert client.get(f"/api/chat/history/{session_id}").status_code == 400

    def test_list_and_deactivate(self, client, session_id):
        listed = client.get("/api/chat/sessions?userId=u1").get_json()
        assert listed["count"] == 1
        assert listed["sessions"][0]["sessionId"] == session_id

        resp = client.post(f"/api/chat/sessions/{session_id}/deactivate?userId=u1")
        assert resp.get_json() == {"success": True, "sessionId": session_id}

        assert client.get("/api/chat/sessions?userId=u1").get_json()["count"] == 0

    def test_deactivate_other_users_session_is_404(self, client, session_id):
        resp = client.post(f"/api/chat/sessions/{session_id}/deactivate?userId=u2")
        assert resp.status_code == 404


class TestPrompts:
    """Tests for suggested prompt endpoints."""

    def test_suggested_prompts(self, client):
        data = client.get("/api/chat/prompts?subject=math&actionType=TRANSLATE").get_json()
        assert 0 < data["count"] <= 5

    def test_add_custom_prompt(self, client, app):
        resp = client.post("/api/chat/prompts/custom", json={"category": "Music", "prompt": "Clap the rhythm"})

        assert resp.status_code == 201
        assert app.config["SUGGESTED_PROMPTS"].prompts_by_category("music") == ["Clap the rhythm"]

    def test_add_custom_prompt_invalid(self, client):
        resp = client.post("/api/chat/prompts/custom", json={"category": "Music"})
        assert resp.status_code == 422
