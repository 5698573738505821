"""
Shared test helpers
"""
DEFAULT_PASSWORD = "Passw0rd!"


def login(client, email, password=DEFAULT_PASSWORD):
    """Log in and return the response JSON"""
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(client, email, password=DEFAULT_PASSWORD):
    """Helper to get bearer auth headers"""
    token = login(client, email, password)["access_token"]
    return {"Authorization": f"Bearer {token}"}
