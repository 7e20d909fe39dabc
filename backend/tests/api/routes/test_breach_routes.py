from unittest.mock import AsyncMock, patch

BREACH = {
    "description": "Ordinateur portable volé",
    "incident_date": "2024-03-01T08:00:00",
    "discovery_date": "2024-03-02T10:00:00",
    "data_categories": ["Identité", "Coordonnées"],
    "affected_persons": 120,
}

ANALYSIS = {
    "notification_required": True,
    "data_subject_notification_required": False,
    "justification": "Risque pour les droits des personnes",
    "risk_level": "elevé",
    "recommendations": ["Notifier la CNIL"],
}


class TestBreachRouter:

    # The notification deadline is 72 hours after discovery
    def test_create_breach(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/breaches", json=BREACH)

        assert response.status_code == 201

        body = response.json()

        assert body["status"] == "draft"

        assert body["notification_deadline"] == "2024-03-05T10:00:00"

        assert body["deadline_exceeded"] is True

    # The description is mandatory
    def test_create_breach_without_description(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/breaches", json={**BREACH, "description": ""})

        assert response.status_code == 400

    # A discovery before the incident is refused
    def test_create_breach_inconsistent_dates(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/breaches", json={**BREACH, "discovery_date": "2024-02-01T00:00:00"})

        assert response.status_code == 400

    # A malformed date is refused with the field name
    def test_create_breach_invalid_date(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/breaches", json={**BREACH, "incident_date": "hier"})

        assert response.status_code == 400

        assert "incident_date" in response.json()["error"]

    # Reporting stamps the notification dates
    def test_report_breach(self, owner, company_url):
        client, _, _ = owner
        breach = client.post(f"{company_url}/breaches", json=BREACH).json()

        response = client.post(f"{company_url}/breaches/{breach['id']}/report", json={"notify_data_subjects": True})

        assert response.status_code == 200

        assert response.json()["status"] == "reported"

        assert response.json()["notification_date"] is not None

        assert response.json()["data_subject_notification_date"] is not None

        assert response.json()["deadline_exceeded"] is False

    # Updating keeps the breach consistent
    def test_update_breach(self, owner, company_url):
        client, _, _ = owner
        breach = client.post(f"{company_url}/breaches", json=BREACH).json()

        response = client.put(f"{company_url}/breaches/{breach['id']}", json={"measures": "Mots de passe changés"})

        assert response.status_code == 200

        assert response.json()["measures"] == "Mots de passe changés"

        assert client.put(f"{company_url}/breaches/{breach['id']}", json={"status": "closed"}).status_code == 400

    # The AI analysis stores an analysed breach
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_analyze_breach(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.return_value = ANALYSIS

        response = client.post(f"{company_url}/breaches/analyze", json=BREACH)

        assert response.status_code == 201

        breach = response.json()["breach"]

        assert breach["status"] == "analyzed"

        assert breach["notification_required"] is True

        assert breach["ai_recommendation_authority"] == "notify"

        assert breach["ai_recommendation_data_subject"] == "no_notify"

        assert response.json()["analysis"]["risk_level"] == "elevé"

    # Without the model the analysis answers 503 and stores nothing
    def test_analyze_breach_unavailable(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/breaches/analyze", json=BREACH)

        assert response.status_code == 503

        assert response.json()["error"].startswith("Service d'analyse temporairement indisponible")

        assert client.get(f"{company_url}/breaches").json() == []
