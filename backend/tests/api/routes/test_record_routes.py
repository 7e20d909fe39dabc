from unittest.mock import AsyncMock, patch

from google.api_core import exceptions as google_exceptions

RECORD = {
    "name": "Gestion de la paie",
    "purpose": "Verser les salaires",
    "legal_basis": "Obligation légale",
    "data_categories": ["Identité", "Coordonnées bancaires"],
    "retention": "5 ans",
}


class TestRecordRouter:

    # A record is created as a controller record by default
    def test_create_record(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/records", json=RECORD)

        assert response.status_code == 201

        assert response.json()["type"] == "controller"

        assert response.json()["data_categories"] == ["Identité", "Coordonnées bancaires"]

        assert len(client.get(f"{company_url}/records").json()) == 1

    # Name and purpose are mandatory
    def test_create_record_missing_purpose(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/records", json={"name": "Paie", "purpose": "   "})

        assert response.status_code == 400

    # Unknown record types are refused
    def test_create_record_invalid_type(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/records", json={**RECORD, "type": "subcontractor"})

        assert response.status_code == 400

    # A partial update keeps the other fields
    def test_update_record(self, owner, company_url):
        client, _, _ = owner
        record = client.post(f"{company_url}/records", json=RECORD).json()

        response = client.put(f"{company_url}/records/{record['id']}", json={"retention": "10 ans"})

        assert response.status_code == 200

        assert response.json()["retention"] == "10 ans"

        assert response.json()["purpose"] == "Verser les salaires"

    # Deleting an unknown record answers 404
    def test_delete_unknown_record(self, owner, company_url):
        client, _, _ = owner

        assert client.delete(f"{company_url}/records/999").status_code == 404

    # A record referenced by a DPIA cannot be deleted
    def test_delete_record_used_by_dpia(self, owner, company_url):
        client, _, _ = owner
        record = client.post(f"{company_url}/records", json=RECORD).json()
        client.post(f"{company_url}/dpia", json={"processing_record_id": record["id"]})

        response = client.delete(f"{company_url}/records/{record['id']}")

        assert response.status_code == 409

    # Two CNIL criteria make the DPIA mandatory and the result is stored on the record
    def test_dpia_precheck_required(self, owner, company_url):
        client, _, _ = owner
        record = client.post(f"{company_url}/records", json={
            **RECORD, "has_sensitive_data": True, "has_large_scale": True,
        }).json()

        response = client.post(f"{company_url}/records/{record['id']}/dpia-precheck")

        assert response.status_code == 200

        assert response.json()["dpia_required"] is True

        assert response.json()["criteria_count"] == 2

        assert response.json()["justification"].startswith("AIPD obligatoire")

        stored = client.get(f"{company_url}/records").json()[0]

        assert stored["dpia_required"] is True

    # A single criterion only recommends the DPIA
    def test_dpia_precheck_recommended(self, owner, company_url):
        client, _, _ = owner
        record = client.post(f"{company_url}/records", json={**RECORD, "has_scoring": True}).json()

        response = client.post(f"{company_url}/records/{record['id']}/dpia-precheck")

        assert response.json()["dpia_required"] is False

        assert response.json()["justification"].startswith("AIPD recommandée")

    # The CSV export starts with a BOM and uses ';' separators
    def test_export_csv(self, owner, company_url):
        client, _, _ = owner
        client.post(f"{company_url}/records", json=RECORD)

        response = client.get(f"{company_url}/records/export")

        assert response.status_code == 200

        assert response.headers["content-type"].startswith("text/csv")

        assert "attachment" in response.headers["content-disposition"]

        text = response.content.decode("utf-8")

        assert text.startswith("﻿")

        lines = text.lstrip("﻿").splitlines()

        assert lines[0].startswith("ID;Nom du traitement;Finalité")

        assert "Gestion de la paie" in lines[1]

    # The model drafts a record which is stored with the requested type
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_generate_record(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.return_value = {
            "name": "Vidéosurveillance",
            "purpose": "Sécurité des locaux",
            "data_categories": ["Images"],
        }

        response = client.post(f"{company_url}/records/generate", json={
            "processing_type": "processor",
            "description": "Caméras dans le magasin",
        })

        assert response.status_code == 201

        assert response.json()["name"] == "Vidéosurveillance"

        assert response.json()["type"] == "processor"

        assert response.json()["transfers_outside_eu"] is False

    # The AI DPIA analysis updates the record
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_analyze_dpia(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.return_value = {"dpia_required": True, "justification": "Données de santé", "risk_level": "elevé"}
        record = client.post(f"{company_url}/records", json=RECORD).json()

        response = client.post(f"{company_url}/records/{record['id']}/analyze-dpia")

        assert response.status_code == 200

        assert response.json() == {"dpia_required": True, "justification": "Données de santé", "risk_level": "elevé"}

    # A request refused by the model answers 503 and stores nothing
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_generate_record_model_error(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.side_effect = google_exceptions.InvalidArgument("bad model")

        response = client.post(f"{company_url}/records/generate", json={
            "processing_type": "processor",
            "description": "Caméras dans le magasin",
        })

        assert response.status_code == 503

        assert response.json()["error_type"] == "AIServiceUnavailableError"

        assert client.get(f"{company_url}/records").json() == []

    # The AI DPIA analysis answers 503 when the model fails
    @patch("backend.app.services.llm_service.gemini_helper.generate_structured", new_callable=AsyncMock)
    def test_analyze_dpia_model_error(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.side_effect = google_exceptions.InvalidArgument("bad model")
        record = client.post(f"{company_url}/records", json=RECORD).json()

        response = client.post(f"{company_url}/records/{record['id']}/analyze-dpia")

        assert response.status_code == 503


class TestSubprocessorRouter:

    # Subprocessor records support create, update and delete
    def test_subprocessor_crud(self, owner, company_url):
        client, _, _ = owner

        created = client.post(f"{company_url}/subprocessors", json={
            "client_name": "Boulangerie Martin",
            "subprocessor_name": "Paie Express",
            "processing_categories": ["Paie"],
        })

        assert created.status_code == 201

        record_id = created.json()["id"]

        updated = client.put(f"{company_url}/subprocessors/{record_id}", json={"has_international_transfers": True})

        assert updated.json()["has_international_transfers"] is True

        assert updated.json()["subprocessor_name"] == "Paie Express"

        assert client.delete(f"{company_url}/subprocessors/{record_id}").status_code == 200

        assert client.get(f"{company_url}/subprocessors").json() == []
