from unittest.mock import AsyncMock, patch

import pytest
from google.api_core import exceptions as google_exceptions


@pytest.fixture
def record(owner, company_url):
    client, _, _ = owner
    response = client.post(f"{company_url}/records", json={
        "name": "Vidéosurveillance",
        "purpose": "Sécurité des locaux",
        "data_categories": ["Images"],
    })
    return response.json()


class TestDpiaRouter:

    # The CNIL catalogue can be filtered by category
    def test_security_measures(self, owner, company_url):
        client, _, _ = owner

        response = client.get(f"{company_url}/dpia/security-measures", params={"category": "Chiffrement"})

        assert response.status_code == 200

        assert response.json()["measures"]

        assert {m["category"] for m in response.json()["measures"]} == {"Chiffrement"}

        assert "Authentification" in response.json()["categories"]

    # An assessment starts as a draft attached to its record
    def test_create_assessment(self, owner, company_url, record):
        client, _, _ = owner

        response = client.post(f"{company_url}/dpia", json={
            "processing_record_id": record["id"],
            "general_description": "Caméras à l'entrée",
        })

        assert response.status_code == 201

        assert response.json()["status"] == "draft"

        dpia_id = response.json()["id"]

        fetched = client.get(f"{company_url}/dpia/{dpia_id}")

        assert fetched.json()["general_description"] == "Caméras à l'entrée"

    # An assessment needs a record of the same company
    def test_create_assessment_unknown_record(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/dpia", json={"processing_record_id": 999})

        assert response.status_code == 404

    # Validation requires the DPO advice and the controller validation
    def test_validate_assessment(self, owner, company_url, record):
        client, _, _ = owner
        dpia = client.post(f"{company_url}/dpia", json={"processing_record_id": record["id"]}).json()
        url = f"{company_url}/dpia/{dpia['id']}"

        refused = client.patch(url, json={"status": "validated", "dpo_advice": "Favorable"})

        assert refused.status_code == 400

        accepted = client.patch(url, json={
            "status": "validated",
            "dpo_advice": "Favorable",
            "controller_validation": "Validé par la gérante",
        })

        assert accepted.status_code == 200

        assert accepted.json()["status"] == "validated"

    # Deleting an assessment releases its record
    def test_delete_assessment(self, owner, company_url, record):
        client, _, _ = owner
        dpia = client.post(f"{company_url}/dpia", json={"processing_record_id": record["id"]}).json()

        assert client.delete(f"{company_url}/dpia/{dpia['id']}").status_code == 200

        assert client.get(f"{company_url}/dpia/{dpia['id']}").status_code == 404

        assert client.delete(f"{company_url}/records/{record['id']}").status_code == 200

    # AI assistance drafts one field from the company context
    @patch("backend.app.services.llm_service.gemini_helper.generate_text", new_callable=AsyncMock)
    def test_ai_assist(self, mock_generate, owner, company_url, record):
        client, _, _ = owner
        mock_generate.return_value = "Le traitement consiste à filmer l'entrée du magasin."
        dpia = client.post(f"{company_url}/dpia", json={"processing_record_id": record["id"]}).json()

        response = client.post(f"{company_url}/dpia/ai-assist", json={
            "field": "generalDescription",
            "dpia_id": dpia["id"],
        })

        assert response.status_code == 200

        assert response.json() == {
            "response": "Le traitement consiste à filmer l'entrée du magasin.",
            "field": "generalDescription",
        }

        prompt = mock_generate.call_args.args[0]

        assert "Vidéosurveillance" in prompt

    # AI assistance answers 503 without the model
    def test_ai_assist_unavailable(self, owner, company_url, record):
        client, _, _ = owner

        response = client.post(f"{company_url}/dpia/ai-assist", json={"field": "generalDescription"})

        assert response.status_code == 503

    # The risk assessment stores the three scenarios and starts the work
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_risk_assessment(self, mock_generate, owner, company_url, record):
        client, _, _ = owner
        mock_generate.return_value = {"risks": [
            {"risk_type": "illegitimate_access", "risk_sources": "Intrus", "severity": "Significant", "likelihood": "limited"},
            {"risk_type": "unknown_type", "severity": "maximum"},
        ]}
        dpia = client.post(f"{company_url}/dpia", json={"processing_record_id": record["id"]}).json()

        response = client.post(f"{company_url}/dpia/{dpia['id']}/risk-assessment")

        assert response.status_code == 200

        scenarios = response.json()["risk_scenarios"]

        assert set(scenarios) == {"illegitimate_access", "unwanted_modification", "data_disappearance"}

        assert scenarios["illegitimate_access"]["severity"] == "significant"

        assert scenarios["data_disappearance"]["severity"] == "limited"

        assert response.json()["status"] == "inprogress"

    # A full AI assessment is stored as a completed DPIA of the record
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_assess(self, mock_generate, owner, company_url, record):
        client, _, _ = owner
        mock_generate.return_value = {
            "risk_assessment": {"likelihood": "moyen", "severity": "elevé", "overall_risk": "elevé"},
            "measures": {"technical": ["Chiffrement des enregistrements"]},
            "conclusion": "AIPD nécessaire",
            "dpia_required": "oui",
        }

        response = client.post(f"{company_url}/dpia/assess", json={"processing_record_id": record["id"]})

        assert response.status_code == 201

        assert response.json()["status"] == "completed"

        assert response.json()["processing_record_id"] == record["id"]

        assert response.json()["general_description"] == "Sécurité des locaux"

        evaluation = response.json()["evaluation"]

        assert evaluation["risk_assessment"]["overall_risk"] == "elevé"

        assert evaluation["dpia_required"] is True

        prompt = mock_generate.call_args.args[0]

        assert "Vidéosurveillance" in prompt

        listed = client.get(f"{company_url}/dpia").json()

        assert [dpia["id"] for dpia in listed] == [response.json()["id"]]

    # The assessed record must belong to the company
    def test_assess_unknown_record(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/dpia/assess", json={"processing_record_id": 999})

        assert response.status_code == 404

    # A model failure answers 503 and stores nothing
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_assess_model_error(self, mock_generate, owner, company_url, record):
        client, _, _ = owner
        mock_generate.side_effect = google_exceptions.InvalidArgument("bad model")

        response = client.post(f"{company_url}/dpia/assess", json={
            "processing_record_id": record["id"],
            "processing_description": "Caméras à l'entrée",
        })

        assert response.status_code == 503

        assert client.get(f"{company_url}/dpia").json() == []


class TestDpiaEvaluationRouter:

    # Two criteria make the DPIA required
    def test_create_evaluation_required(self, owner, company_url, record):
        client, _, _ = owner

        response = client.post(f"{company_url}/dpia-evaluations", json={
            "record_id": record["id"],
            "criteria_answers": {"has_systematic_monitoring": True, "has_large_scale": "true"},
        })

        assert response.status_code == 201

        assert response.json()["score"] == 2

        assert response.json()["recommendation"] == "required"

    # The score is recomputed on update
    def test_update_evaluation(self, owner, company_url, record):
        client, _, _ = owner
        evaluation = client.post(f"{company_url}/dpia-evaluations", json={
            "record_id": record["id"],
            "criteria_answers": {"has_scoring": True},
        }).json()

        assert evaluation["recommendation"] == "recommended"

        response = client.put(f"{company_url}/dpia-evaluations/{evaluation['id']}", json={"criteria_answers": {}})

        assert response.json()["recommendation"] == "not_required"

        matched = client.put(f"{company_url}/dpia-evaluations/{evaluation['id']}", json={"cnil_list_match": True})

        assert matched.json()["recommendation"] == "required"

        assert len(client.get(f"{company_url}/dpia-evaluations").json()) == 1
