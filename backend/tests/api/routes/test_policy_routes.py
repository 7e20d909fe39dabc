from unittest.mock import AsyncMock, patch


class TestPolicyRouter:

    # Without the model the policy comes from the base template
    def test_generate_from_template(self, owner, company_url):
        client, _, _ = owner
        client.post(f"{company_url}/records", json={"name": "Gestion de la paie", "purpose": "Verser les salaires"})

        response = client.post(f"{company_url}/privacy-policies/generate")

        assert response.status_code == 201

        policy = response.json()

        assert policy["generated_by"] == "template"

        assert policy["version"] == 1

        assert policy["is_active"] is True

        assert policy["content"].startswith("# POLITIQUE DE CONFIDENTIALITÉ")

        assert "### Gestion de la paie" in policy["content"]

    # The model's answer is stored as a new active version
    @patch("backend.app.services.llm_service.gemini_helper.generate_text", new_callable=AsyncMock)
    def test_generate_with_model(self, mock_generate, owner, company_url):
        client, _, _ = owner
        mock_generate.return_value = "# Politique générée"
        client.post(f"{company_url}/privacy-policies/generate")

        response = client.post(f"{company_url}/privacy-policies/generate")

        assert response.json()["generated_by"] == "ai"

        assert response.json()["version"] == 2

        active = client.get(f"{company_url}/privacy-policies/active").json()

        assert active["version"] == 2

        versions = client.get(f"{company_url}/privacy-policies").json()

        assert [p["is_active"] for p in versions] == [True, False]

    # Activating an older version deactivates the others
    def test_activate_version(self, owner, company_url):
        client, _, _ = owner
        first = client.post(f"{company_url}/privacy-policies/generate").json()
        client.post(f"{company_url}/privacy-policies/generate")

        response = client.post(f"{company_url}/privacy-policies/{first['id']}/activate")

        assert response.status_code == 200

        assert response.json()["is_active"] is True

        assert client.get(f"{company_url}/privacy-policies/active").json()["id"] == first["id"]

    # No active policy answers 404
    def test_no_active_policy(self, owner, company_url):
        client, _, _ = owner

        assert client.get(f"{company_url}/privacy-policies/active").status_code == 404


class TestChatbotRouter:

    # Without the model the chatbot apologises instead of failing
    def test_chatbot_unavailable(self, client, register):
        register(client)

        response = client.post("/api/chatbot", json={"message": "Qu'est-ce qu'un DPO ?"})

        assert response.status_code == 200

        assert response.json()["response"].startswith("Je suis temporairement indisponible")

    # The company profile is sent only to members of the company
    @patch("backend.app.services.llm_service.gemini_helper.generate_text", new_callable=AsyncMock)
    def test_chatbot_company_context(self, mock_generate, owner, make_client, register):
        client, _, company = owner
        mock_generate.return_value = "Un DPO est le délégué à la protection des données."

        response = client.post("/api/chatbot", json={"message": "Qu'est-ce qu'un DPO ?", "company_id": company["id"]})

        assert response.json()["response"] == "Un DPO est le délégué à la protection des données."

        assert "Boulangerie Martin" in mock_generate.call_args.args[0]

        stranger = make_client()
        register(stranger, username="mallory")
        stranger.post("/api/chatbot", json={"message": "Bonjour", "company_id": company["id"]})

        assert "Boulangerie Martin" not in mock_generate.call_args.args[0]

    # The chatbot requires a session
    def test_chatbot_unauthenticated(self, client):
        response = client.post("/api/chatbot", json={"message": "Bonjour"})

        assert response.status_code == 401
