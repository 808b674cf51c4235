import pytest
from fastapi.testclient import TestClient

from docverify.main import app
from docverify.routers.verify import get_ocr_engine


@pytest.fixture
def client(fake_engine, id_card_text):
    app.dependency_overrides[get_ocr_engine] = lambda: fake_engine(id_card_text, 0.93)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json()["ok"] is True


def test_verify_returns_full_report(client, camera_jpeg):
    res = client.post(
        "/api/verify",
        files={"file": ("id_front.jpg", camera_jpeg, "image/jpeg")},
        data={"document_type": "ID_CARD"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["document_type"] == "ID_CARD"
    assert body["filename"] == "id_front.jpg"
    assert body["verdict"]["recommendation"] == "APPROVE"
    assert body["ocr"]["fields"]["name"] == "JOHN DOE"
    assert set(body["forensics"]["indicators"]) == {
        "copy_paste", "blur", "sharpness_mismatch", "double_jpeg",
    }


def test_reject_is_still_a_200(client, blank_png):
    res = client.post(
        "/api/verify",
        files={"file": ("Screenshot_1.png", blank_png, "image/png")},
    )
    assert res.status_code == 200
    assert res.json()["verdict"]["recommendation"] == "REJECT"
    assert res.json()["metadata"]["is_screenshot"] is True


def test_garbage_bytes_are_unprocessable(client):
    res = client.post("/api/verify", files={"file": ("id.png", b"not an image", "image/png")})
    assert res.status_code == 422
    assert res.json()["detail"].startswith("Failed to parse file")


def test_wrong_mime_type(client):
    res = client.post("/api/verify", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert res.status_code == 415
