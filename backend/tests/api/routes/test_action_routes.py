import pytest


@pytest.fixture
def member(owner, make_client, register):
    """A collaborator holding actions.write in the owner's company."""
    client, _, company = owner
    invitation = client.post(f"/api/companies/{company['id']}/invitations", json={
        "email": "bruno@example.fr",
        "permissions": ["actions.write"],
    }).json()
    member = make_client()
    user = register(member, username="bruno")
    member.post(f"/api/invitations/{invitation['token']}/accept")
    return member, user


class TestActionRouter:

    # Creating an action logs a "created" activity
    def test_create_action(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/actions", json={
            "title": "Mettre à jour le registre",
            "priority": "important",
            "due_date": "2026-12-31",
        })

        assert response.status_code == 201

        action = response.json()

        assert action["status"] == "todo"

        assert action["due_date"].startswith("2026-12-31")

        activity = client.get(f"{company_url}/actions/{action['id']}/activity").json()

        assert [a["activity_type"] for a in activity] == ["created"]

    # Unknown priorities are refused
    def test_create_action_invalid_priority(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/actions", json={"title": "X", "priority": "asap"})

        assert response.status_code == 400

    # A status change sets completed_at and is traced
    def test_complete_action(self, owner, company_url):
        client, _, _ = owner
        action = client.post(f"{company_url}/actions", json={"title": "Former les équipes"}).json()

        response = client.put(f"{company_url}/actions/{action['id']}", json={"status": "completed"})

        assert response.status_code == 200

        assert response.json()["completed_at"] is not None

        activity = client.get(f"{company_url}/actions/{action['id']}/activity").json()

        assert activity[0]["activity_type"] == "status_changed"

        assert activity[0]["old_value"] == "todo"

        assert activity[0]["new_value"] == "completed"

    # A collaborator cannot complete an action that requires approval
    def test_complete_requires_manager(self, owner, company_url, member):
        client, _, _ = owner
        collaborator, _ = member
        action = client.post(f"{company_url}/actions", json={"title": "Audit", "requires_approval": True}).json()

        refused = collaborator.put(f"{company_url}/actions/{action['id']}", json={"status": "completed"})

        assert refused.status_code == 403

        accepted = client.put(f"{company_url}/actions/{action['id']}", json={"status": "completed"})

        assert accepted.status_code == 200

    # Only managers may approve
    def test_approve_action(self, owner, company_url, member):
        client, user, _ = owner
        collaborator, _ = member
        action = client.post(f"{company_url}/actions", json={"title": "Audit"}).json()

        assert collaborator.post(f"{company_url}/actions/{action['id']}/approve").status_code == 403

        response = client.post(f"{company_url}/actions/{action['id']}/approve")

        assert response.status_code == 200

        assert response.json()["approved_by_id"] == user["id"]

    # Comments may only mention members of the company
    def test_comments_with_mentions(self, owner, company_url, member, make_client, register):
        client, _, _ = owner
        _, bruno = member
        stranger = register(make_client(), username="mallory")
        action = client.post(f"{company_url}/actions", json={"title": "Audit"}).json()
        url = f"{company_url}/actions/{action['id']}/comments"

        ok = client.post(url, json={"content": "À faire cette semaine", "mentioned_users": [bruno["id"]]})

        assert ok.status_code == 201

        assert ok.json()["mentioned_users"] == [bruno["id"]]

        refused = client.post(url, json={"content": "Hors société", "mentioned_users": [stranger["id"]]})

        assert refused.status_code == 400

        assert len(client.get(url).json()) == 1

    # Deleting an action removes it with its comments
    def test_delete_action(self, owner, company_url):
        client, _, _ = owner
        action = client.post(f"{company_url}/actions", json={"title": "Audit"}).json()
        client.post(f"{company_url}/actions/{action['id']}/comments", json={"content": "ok"})

        response = client.delete(f"{company_url}/actions/{action['id']}")

        assert response.status_code == 200

        assert client.get(f"{company_url}/actions").json() == []

        assert client.get(f"{company_url}/actions/{action['id']}/comments").status_code == 404

    # Actions of another company are not reachable
    def test_action_of_other_company(self, owner, company_url, make_client, register, create_company):
        client, _, _ = owner
        action = client.post(f"{company_url}/actions", json={"title": "Audit"}).json()
        other = make_client()
        register(other, username="mallory")
        other_company = create_company(other, name="Autre")

        response = other.put(f"/api/companies/{other_company['id']}/actions/{action['id']}", json={"title": "Pirate"})

        assert response.status_code == 404
