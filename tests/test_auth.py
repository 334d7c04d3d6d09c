from datetime import timedelta
from fastapi import status
from upload_server.core.security import create_access_token

def test_login_with_configured_account(test_client):
    response = test_client.post("/auth/token", data={"username": "tester", "password": "s3cret"})

    assert response.status_code == status.HTTP_200_OK
    token = response.json()["access_token"]
    assert response.json()["token_type"] == "bearer"

    explore = test_client.get("/explore", headers={"Authorization": f"Bearer {token}"})
    assert explore.status_code == status.HTTP_200_OK

def test_login_with_wrong_password(test_client):
    response = test_client.post("/auth/token", data={"username": "tester", "password": "nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_protected_routes_reject_bad_tokens(test_client, test_settings):
    expired = create_access_token({"sub": "tester"}, expires_delta=timedelta(minutes=-1), settings=test_settings)

    for token in ("garbage", expired):
        response = test_client.get("/explore", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_download_and_health_are_public(test_client, upload_root):
    (upload_root / "public.txt").write_bytes(b"hi")

    assert test_client.get("/health").json() == {"status": "ok"}
    assert test_client.get("/download/public.txt").content == b"hi"
