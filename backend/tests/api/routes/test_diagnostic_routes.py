from unittest.mock import AsyncMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from backend.app.database.models import DiagnosticQuestion


@pytest.fixture
def questions(db):
    """Replace the seeded questionnaire with two known questions."""
    db.query(DiagnosticQuestion).delete()
    first = DiagnosticQuestion(
        question="Avez-vous désigné un responsable de la protection des données ?",
        category="Gouvernance",
        order=1,
        action_plan_no="Désigner un DPO ou un référent RGPD",
        risk_level_no="critique",
        action_plan_yes="",
    )
    second = DiagnosticQuestion(
        question="Tenez-vous un registre des traitements ?",
        category="Registre",
        order=2,
        action_plan_no="Créer le registre des traitements",
        risk_level_no="elevé",
        action_plan_yes="Mettre à jour le registre une fois par an",
        risk_level_yes="faible",
    )
    db.add_all([first, second])
    db.commit()
    return first.id, second.id


class TestDiagnosticRouter:

    # Active questions are listed in order to any logged-in user
    def test_list_questions(self, client, register, questions):
        register(client)

        response = client.get("/api/diagnostic/questions")

        assert response.status_code == 200

        assert [q["id"] for q in response.json()] == list(questions)

    # Answers are normalized and replaced on a second submission
    def test_save_response(self, owner, company_url, questions):
        client, _, _ = owner

        first = client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "OUI"})

        assert first.status_code == 200

        assert first.json()["response"] == "oui"

        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "non"})

        responses = client.get(f"{company_url}/diagnostic/responses").json()

        assert len(responses) == 1

        assert responses[0]["response"] == "non"

    # Only "oui" and "non" are accepted
    def test_save_invalid_response(self, owner, company_url, questions):
        client, _, _ = owner

        response = client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "peut-être"})

        assert response.status_code == 400

    # An unknown question answers 404
    def test_save_response_unknown_question(self, owner, company_url, questions):
        client, _, _ = owner

        response = client.post(f"{company_url}/diagnostic/responses", json={"question_id": 9999, "response": "oui"})

        assert response.status_code == 404

    # The analysis creates one action per answer with a plan and scores the risk
    def test_analyze(self, owner, company_url, questions):
        client, _, _ = owner
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "non"})
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[1], "response": "non"})

        response = client.post(f"{company_url}/diagnostic/analyze")

        assert response.status_code == 200

        body = response.json()

        assert body["total_actions"] == 2

        assert body["overall_risk_score"] == 40

        assert body["risk_distribution"]["critique"] == 1

        assert body["actions"][0]["priority"] == "urgent"

        assert body["actions"][0]["title"].startswith("Action pour: Avez-vous désigné")

        actions = client.get(f"{company_url}/actions").json()

        assert len(actions) == 2

    # A "oui" with an empty plan produces no action, and re-analysing does not duplicate
    def test_analyze_skips_empty_plans(self, owner, company_url, questions):
        client, _, _ = owner
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "oui"})
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[1], "response": "oui"})

        first = client.post(f"{company_url}/diagnostic/analyze").json()
        client.post(f"{company_url}/diagnostic/analyze")

        assert first["total_actions"] == 1

        assert first["overall_risk_score"] == 5

        assert len(client.get(f"{company_url}/actions").json()) == 1

    # The AI action plan requires answers
    def test_ai_action_plan_without_answers(self, owner, company_url, questions):
        client, _, _ = owner

        response = client.post(f"{company_url}/diagnostic/ai-action-plan")

        assert response.status_code == 400

    # The AI action plan is returned as parsed from the model
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_ai_action_plan(self, mock_generate, owner, company_url, questions):
        client, _, _ = owner
        mock_generate.return_value = {
            "actions": [{"title": "Nommer un DPO", "priority": "urgent"}, "ignored"],
            "overall_risk_score": 60,
            "summary": "Plan",
        }
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "non"})

        response = client.post(f"{company_url}/diagnostic/ai-action-plan")

        assert response.status_code == 200

        assert response.json()["actions"] == [{"title": "Nommer un DPO", "priority": "urgent"}]

        assert response.json()["overall_risk_score"] == 60

    # Without an API key the AI action plan answers 503
    def test_ai_action_plan_unavailable(self, owner, company_url, questions):
        client, _, _ = owner
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "non"})

        response = client.post(f"{company_url}/diagnostic/ai-action-plan")

        assert response.status_code == 503

        assert response.json()["error_type"] == "AIServiceUnavailableError"

    # A request refused by the model also answers 503
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_ai_action_plan_model_error(self, mock_generate, owner, company_url, questions):
        client, _, _ = owner
        mock_generate.side_effect = google_exceptions.InvalidArgument("bad model")
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "non"})

        response = client.post(f"{company_url}/diagnostic/ai-action-plan")

        assert response.status_code == 503

        assert response.json()["error_type"] == "AIServiceUnavailableError"
