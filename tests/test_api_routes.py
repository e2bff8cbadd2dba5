from fastapi.testclient import TestClient

from cipher_service.main import create_app

HELLO_WORLD_ENVELOPE = "NTBmYjliODIyMzQwZWYwNTQxNjQzMzhmZTE5NTllMzk="


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "cipher"}


def test_encrypt_then_decrypt_round_trip(client: TestClient) -> None:
    response = client.post("/encrypt", json={"data": "Hello World"})
    assert response.status_code == 200, response.text
    envelope = response.json()["encryptedData"]
    assert envelope == HELLO_WORLD_ENVELOPE

    response = client.post("/decrypt", json={"encryptedData": envelope})
    assert response.status_code == 200, response.text
    assert response.json() == {"data": "Hello World"}


def test_form_encoded_bodies_are_accepted(client: TestClient) -> None:
    response = client.post("/encrypt", data={"data": "Hello World"})
    assert response.status_code == 200, response.text
    assert response.json() == {"encryptedData": HELLO_WORLD_ENVELOPE}

    response = client.post("/decrypt", data={"encryptedData": HELLO_WORLD_ENVELOPE})
    assert response.status_code == 200, response.text
    assert response.json() == {"data": "Hello World"}


def test_unicode_round_trip(client: TestClient) -> None:
    envelope = client.post("/encrypt", json={"data": "grüße, 世界 🚀"}).json()["encryptedData"]
    assert client.post("/decrypt", json={"encryptedData": envelope}).json() == {"data": "grüße, 世界 🚀"}


def test_encrypt_missing_field_returns_error(client: TestClient) -> None:
    response = client.post("/encrypt", json={})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "missing_data"
    assert error["error_id"]


def test_encrypt_without_body_returns_error(client: TestClient) -> None:
    response = client.post("/encrypt")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "missing_data"


def test_decrypt_missing_field_returns_error(client: TestClient) -> None:
    response = client.post("/decrypt", json={"data": "ignored"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "missing_envelope"


def test_decrypt_malformed_envelope_does_not_crash(client: TestClient) -> None:
    response = client.post("/decrypt", json={"encryptedData": "not base64!!"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_base64"

    response = client.get("/health")
    assert response.status_code == 200


def test_decrypt_tampered_envelope(client: TestClient) -> None:
    response = client.post("/decrypt", json={"encryptedData": HELLO_WORLD_ENVELOPE[:-2] + "g="})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_padding"


def test_invalid_json_body(client: TestClient) -> None:
    response = client.post("/encrypt", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json"


def test_non_string_field_is_rejected(client: TestClient) -> None:
    response = client.post("/encrypt", json={"data": 42})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "invalid_request"


def test_non_object_body_is_rejected(client: TestClient) -> None:
    response = client.post("/decrypt", json=["NTBm"])
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "invalid_request"


def test_key_size_mismatch_is_a_request_error(settings_factory) -> None:
    client = TestClient(create_app(settings_factory(encryption_method="aes-128-cbc")))
    response = client.post("/encrypt", json={"data": "Hello World"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_key_length"


def test_docs_disabled_in_production(settings_factory) -> None:
    client = TestClient(create_app(settings_factory(environment="production")))
    assert client.get("/openapi.json").status_code == 404
    assert client.post("/encrypt", json={"data": "x"}).status_code == 200


def test_docs_enabled_outside_production(client: TestClient) -> None:
    assert client.get("/openapi.json").status_code == 200


def test_openapi_documents_request_bodies(client: TestClient) -> None:
    paths = client.get("/openapi.json").json()["paths"]
    encrypt_body = paths["/encrypt"]["post"]["requestBody"]["content"]
    decrypt_body = paths["/decrypt"]["post"]["requestBody"]["content"]
    assert "data" in encrypt_body["application/json"]["schema"]["properties"]
    assert "encryptedData" in decrypt_body["application/json"]["schema"]["properties"]
    assert "application/x-www-form-urlencoded" in encrypt_body
