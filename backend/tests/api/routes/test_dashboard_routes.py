import pytest

from backend.app.database.models import DiagnosticQuestion


@pytest.fixture
def questions(db):
    db.query(DiagnosticQuestion).delete()
    rows = [
        DiagnosticQuestion(question="Avez-vous un registre ?", category="Registre", order=1,
                           action_plan_no="Créer le registre", risk_level_no="elevé"),
        DiagnosticQuestion(question="Informez-vous les personnes ?", category="Droits", order=2,
                           action_plan_no="Rédiger les mentions", risk_level_no="critique"),
        DiagnosticQuestion(question="Avez-vous un DPO ?", category="Droits", order=3,
                           action_plan_no="Désigner un DPO", risk_level_no="moyen"),
    ]
    db.add_all(rows)
    db.commit()
    return [row.id for row in rows]


class TestDashboardRouter:

    # An empty company has a zero score and no snapshot
    def test_empty_dashboard(self, owner, company_url, questions):
        client, _, _ = owner

        response = client.get(f"{company_url}/dashboard")

        assert response.status_code == 200

        assert response.json()["score"] == 0

        assert response.json()["total_questions"] == 3

        assert client.get(f"{company_url}/compliance-snapshots").json() == []

    # Scores, risks, actions and requests are aggregated
    def test_dashboard(self, owner, company_url, questions):
        client, _, _ = owner
        for question_id, answer in zip(questions, ("oui", "non", "non")):
            client.post(f"{company_url}/diagnostic/responses", json={"question_id": question_id, "response": answer})
        client.post(f"{company_url}/diagnostic/analyze")
        client.post(f"{company_url}/requests", json={"requester_email": "a@example.fr", "request_type": "access"})

        body = client.get(f"{company_url}/dashboard").json()

        assert body["score"] == 33

        assert body["diagnostic_progress"] == 100

        assert body["category_scores"]["Registre"]["score"] == 100

        assert body["category_scores"]["Droits"]["score"] == 0

        assert body["risk_mapping"]["Droits"]["severity"] == "critique"

        assert body["actions"]["total"] == 2

        assert body["actions"]["urgent"] == 1

        assert body["priority_actions"][0]["priority"] == "urgent"

        assert body["requests"] == {"pending": 1, "overdue": 0}

    # One snapshot is kept per day
    def test_snapshots(self, owner, company_url, questions):
        client, _, _ = owner
        client.post(f"{company_url}/diagnostic/responses", json={"question_id": questions[0], "response": "oui"})
        client.get(f"{company_url}/dashboard")
        client.get(f"{company_url}/dashboard")

        snapshots = client.get(f"{company_url}/compliance-snapshots", params={"limit": 5}).json()

        assert len(snapshots) == 1

        assert snapshots[0]["overall_score"] == 100

    # A limit outside the accepted range is refused
    def test_snapshots_invalid_limit(self, owner, company_url):
        client, _, _ = owner

        assert client.get(f"{company_url}/compliance-snapshots", params={"limit": 0}).status_code == 422
