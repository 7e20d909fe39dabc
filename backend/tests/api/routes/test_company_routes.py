from datetime import timedelta

import pytest
from sqlalchemy import select

from backend.app.database.models import Invitation, utcnow


@pytest.fixture
def invite(owner):
    """Invite an email into the owner's company and return the invitation."""
    client, _, company = owner

    def _invite(email, permissions=None, role="collaborator"):
        response = client.post(f"/api/companies/{company['id']}/invitations", json={
            "email": email,
            "role": role,
            "permissions": permissions or [],
        })
        assert response.status_code == 201, response.text
        return response.json()

    return _invite


@pytest.fixture
def collaborator(make_client, register, invite):
    """A second user who joined the owner's company with read access to records."""
    member = make_client()
    register(member, username="bruno")
    invitation = invite("bruno@example.fr", ["records.read"])
    response = member.post(f"/api/invitations/{invitation['token']}/accept")
    assert response.status_code == 200, response.text
    return member, response.json()


class TestCompanyRouter:

    # The owner sees the company with every permission
    def test_get_company_as_owner(self, owner, company_url):
        client, _, company = owner

        response = client.get(f"/api/companies/{company['id']}")

        assert response.status_code == 200

        assert response.json()["role"] == "owner"

        assert "records.write" in response.json()["permissions"]

    # A user without access is refused
    def test_get_company_forbidden(self, owner, make_client, register):
        _, _, company = owner
        stranger = make_client()
        register(stranger, username="mallory")

        response = stranger.get(f"/api/companies/{company['id']}")

        assert response.status_code == 403

        assert response.json()["error"].startswith("Accès refusé")

    # The owner may update the company
    def test_update_company(self, owner, company_url):
        client, _, _ = owner

        response = client.patch(company_url, json={"address": "1 rue de la Paix"})

        assert response.status_code == 200

        assert response.json()["address"] == "1 rue de la Paix"

        assert response.json()["name"] == "Boulangerie Martin"

    # Unknown permissions are refused when inviting
    def test_invite_unknown_permission(self, owner, company_url):
        client, _, _ = owner

        response = client.post(f"{company_url}/invitations", json={
            "email": "bruno@example.fr",
            "permissions": ["records.delete"],
        })

        assert response.status_code == 400

    # A second pending invitation for the same email is a conflict
    def test_invite_twice(self, owner, company_url, invite):
        client, _, _ = owner
        invite("bruno@example.fr")

        response = client.post(f"{company_url}/invitations", json={"email": "bruno@example.fr"})

        assert response.status_code == 409

    # Accepting grants exactly the invited permissions
    def test_accept_invitation(self, collaborator, company_url):
        member, access = collaborator

        assert access["role"] == "collaborator"

        assert access["permissions"] == ["records.read"]

        assert member.get(f"{company_url}/records").status_code == 200

        assert member.post(f"{company_url}/records", json={"name": "Paie", "purpose": "Salaires"}).status_code == 403

        assert member.get(f"{company_url}/breaches").status_code == 403

    # An invitation addressed to another email cannot be accepted
    def test_accept_invitation_wrong_email(self, make_client, register, invite):
        invitation = invite("bruno@example.fr")
        other = make_client()
        register(other, username="mallory")

        response = other.post(f"/api/invitations/{invitation['token']}/accept")

        assert response.status_code == 403

    # An unknown token answers 404
    def test_accept_unknown_invitation(self, client, register):
        register(client)

        response = client.post("/api/invitations/doesnotexist/accept")

        assert response.status_code == 404

    # Collaborators and pending invitations are listed without tokens
    def test_list_collaborators(self, owner, company_url, collaborator, invite):
        client, _, _ = owner
        invite("chloe@example.fr")

        response = client.get(f"{company_url}/collaborators")

        assert response.status_code == 200

        usernames = [c["username"] for c in response.json()["collaborators"]]

        assert usernames == ["alice", "bruno"]

        pending = response.json()["pending_invitations"]

        assert [i["email"] for i in pending] == ["chloe@example.fr"]

        assert "token" not in pending[0]

    # A collaborator is not a manager
    def test_list_collaborators_forbidden_for_collaborator(self, collaborator, company_url):
        member, _ = collaborator

        assert member.get(f"{company_url}/collaborators").status_code == 403

    # Updating an access changes the effective permissions
    def test_update_access(self, owner, company_url, collaborator):
        client, _, _ = owner
        member, access = collaborator

        response = client.patch(f"{company_url}/access/{access['id']}", json={"permissions": ["records.write"]})

        assert response.status_code == 200

        created = member.post(f"{company_url}/records", json={"name": "Paie", "purpose": "Salaires"})

        assert created.status_code == 201

    # Revoking an access removes every permission
    def test_revoke_access(self, owner, company_url, collaborator):
        client, _, _ = owner
        member, access = collaborator

        response = client.delete(f"{company_url}/access/{access['id']}")

        assert response.status_code == 200

        assert response.json()["status"] == "revoked"

        assert member.get(f"{company_url}/records").status_code == 403

    # The owner access itself is protected
    def test_revoke_owner_access(self, owner, company_url):
        client, _, _ = owner
        owner_access = client.get("/api/user/company-access").json()[0]

        response = client.delete(f"{company_url}/access/{owner_access['id']}")

        assert response.status_code == 400

    # Switching requires an active access
    def test_switch_company(self, owner, company_url, make_client, register):
        client, _, company = owner

        response = client.post(f"{company_url}/switch")

        assert response.status_code == 200

        assert response.json()["current_company_id"] == company["id"]

        stranger = make_client()
        register(stranger, username="mallory")

        assert stranger.post(f"{company_url}/switch").status_code == 403

    # An expired invitation is refused and marked as expired
    def test_accept_expired_invitation(self, make_client, register, invite, db):
        invitation = invite("bruno@example.fr")
        stored = db.scalar(select(Invitation).where(Invitation.token == invitation["token"]))
        stored.expires_at = utcnow() - timedelta(days=1)
        db.commit()
        member = make_client()
        register(member, username="bruno")

        response = member.post(f"/api/invitations/{invitation['token']}/accept")

        assert response.status_code == 400

        assert response.json()["error"].startswith("Invitation expirée")

        db.expire_all()

        assert db.get(Invitation, stored.id).status == "expired"

        assert member.get(f"/api/companies/{invitation['company_id']}").status_code == 403


class TestSuperAdminCompanyAccess:

    # A platform super admin reaches any company without membership
    def test_super_admin_bypasses_membership(self, owner, company_url, make_client, register, set_role):
        admin = make_client()
        user = register(admin, username="root")
        set_role(user["id"], "super_admin")

        response = admin.get(company_url)

        assert response.status_code == 200

        assert response.json()["role"] is None

        assert admin.get(f"{company_url}/records").status_code == 200

        assert admin.get(f"{company_url}/collaborators").status_code == 200

        invited = admin.post(f"{company_url}/invitations", json={"email": "chloe@example.fr"})

        assert invited.status_code == 201

    # Invitations into a company that does not exist are refused
    def test_super_admin_invite_unknown_company(self, client, register, set_role, db):
        user = register(client, username="root")
        set_role(user["id"], "super_admin")

        response = client.post("/api/companies/9999/invitations", json={"email": "chloe@example.fr"})

        assert response.status_code == 404

        assert db.scalar(select(Invitation).where(Invitation.company_id == 9999)) is None

    # Regular users get 403 for a company that does not exist
    def test_invite_unknown_company_forbidden(self, client, register):
        register(client, username="mallory")

        response = client.post("/api/companies/9999/invitations", json={"email": "chloe@example.fr"})

        assert response.status_code == 403
