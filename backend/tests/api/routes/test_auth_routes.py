class TestAuthRouter:

    # Registration opens a session and returns the user without its password hash
    def test_register_success(self, client, register):
        body = register(client, username="claire")

        assert body["username"] == "claire"

        assert "password_hash" not in body

        assert "view:dashboard" in body["permissions"]

        assert client.get("/api/auth/me").status_code == 200

    # Registering the same username twice is a conflict
    def test_register_duplicate_username(self, client, make_client, register):
        register(client, username="claire")

        response = make_client().post("/api/auth/register", json={
            "username": "claire",
            "email": "other@example.fr",
            "password": "secret123",
        })

        assert response.status_code == 409

        assert response.json()["error_type"] == "ConflictError"

    # A malformed email is refused by request validation
    def test_register_invalid_email(self, client):
        response = client.post("/api/auth/register", json={
            "username": "claire",
            "email": "not-an-email",
            "password": "secret123",
        })

        assert response.status_code == 422

    # Login accepts the username or the email address
    def test_login_with_username_and_email(self, client, make_client, register):
        register(client, username="claire", email="claire@example.fr")

        by_name = make_client().post("/api/auth/login", json={"username": "claire", "password": "secret123"})

        assert by_name.status_code == 200

        assert by_name.json()["username"] == "claire"

        by_email = make_client().post("/api/auth/login", json={"username": "CLAIRE@example.fr", "password": "secret123"})

        assert by_email.status_code == 200

    # A wrong password answers 401 without telling which part is wrong
    def test_login_wrong_password(self, client, make_client, register):
        register(client, username="claire")

        response = make_client().post("/api/auth/login", json={"username": "claire", "password": "nope"})

        assert response.status_code == 401

        assert response.json()["error"].startswith("Identifiants invalides")

    # Logout clears the session
    def test_logout(self, client, register):
        register(client)

        response = client.post("/api/auth/logout")

        assert response.status_code == 200

        assert client.get("/api/auth/me").status_code == 401

    # /me lists the platform permissions of an administrator
    def test_me_admin_permissions(self, client, register, set_role):
        user = register(client)
        set_role(user["id"], "admin")

        response = client.get("/api/auth/me")

        assert response.status_code == 200

        assert "manage:prompts" in response.json()["permissions"]

        assert "view:logs" not in response.json()["permissions"]


class TestUserRouter:

    # The profile can be read and partially updated
    def test_update_profile(self, client, register):
        register(client)

        response = client.patch("/api/user/profile", json={"first_name": "Alice", "phone_number": "0102030405"})

        assert response.status_code == 200

        assert response.json()["first_name"] == "Alice"

        assert client.get("/api/user/profile").json()["phone_number"] == "0102030405"

    # Taking the email of another account is a conflict
    def test_update_profile_email_taken(self, client, make_client, register):
        register(client, username="alice")
        other = make_client()
        register(other, username="bruno")

        response = other.patch("/api/user/profile", json={"email": "alice@example.fr"})

        assert response.status_code == 409

    # Changing the password requires the current one
    def test_change_password(self, client, make_client, register):
        register(client)

        wrong = client.patch("/api/user/password", json={"current_password": "bad", "new_password": "newsecret"})

        assert wrong.status_code == 400

        ok = client.patch("/api/user/password", json={"current_password": "secret123", "new_password": "newsecret"})

        assert ok.status_code == 200

        login = make_client().post("/api/auth/login", json={"username": "alice", "password": "newsecret"})

        assert login.status_code == 200

    # Every account receives the default subscription
    def test_subscription(self, client, register):
        register(client)

        response = client.get("/api/user/subscription")

        assert response.status_code == 200

        assert response.json()["max_companies"] == 1

        assert client.get("/api/user/invoices").json() == []

    # Creating a company makes it current and lists it with the owner access
    def test_create_company(self, client, register, create_company):
        register(client)

        company = create_company(client)

        assert company["name"] == "Boulangerie Martin"

        companies = client.get("/api/user/companies").json()

        assert [c["id"] for c in companies] == [company["id"]]

        accesses = client.get("/api/user/company-access").json()

        assert accesses[0]["role"] == "owner"

        assert accesses[0]["is_current"] is True

    # The subscription bounds the number of owned companies
    def test_create_company_limit(self, client, register, create_company):
        register(client)
        create_company(client)

        response = client.post("/api/user/companies", json={"name": "Seconde"})

        assert response.status_code == 400

        assert response.json()["error_type"] == "BusinessRuleError"
