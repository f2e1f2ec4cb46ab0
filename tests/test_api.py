"""Tests for API routes."""

import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from cardbooth.api import frontend as frontend_routes
from cardbooth.api import routes as api_routes
from cardbooth.app import create_app
from cardbooth.generator import BackendError, ContentGenerator
from cardbooth.rendering import CardRenderer
from tests.conftest import VALID_CARD_JSON, VALID_QUESTIONS_JSON, FakeBackend

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def client() -> TestClient:
    """Create a test client with a running lifespan and a small renderer."""
    app = create_app()
    with TestClient(app) as client:
        api_routes._app_state["renderer"] = CardRenderer(width=300, height=450)
        api_routes._app_state["backend"] = FakeBackend([])
        frontend_routes.set_app_state(None)
        yield client


def use_backend(*responses: str | Exception) -> FakeBackend:
    """Swap in a generator over scripted model responses."""
    backend = FakeBackend(responses)
    api_routes._app_state["generator"] = ContentGenerator(backend)
    return backend


def assert_error(response, status_code: int, code: str) -> None:
    assert response.status_code == status_code
    body = response.json()
    assert body["error"]["code"] == code
    assert isinstance(body["error"]["message"], str)


def open_session(client: TestClient) -> str:
    use_backend(VALID_QUESTIONS_JSON)
    response = client.post("/api/input/session")
    assert response.status_code == 200
    return response.json()["token"]


ANSWERS = {"name": "Mina", "answers": {"1": "Ramen", "2": "Stairs", "3": "Price", "4": "Run"}}


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "ollama": {"ok": True}}

    def test_health_backend_down(self, client: TestClient):
        class DownBackend(FakeBackend):
            async def is_healthy(self) -> bool:
                return False

        api_routes._app_state["backend"] = DownBackend([])
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["ollama"] == {"ok": False}


class TestInputSessions:
    def test_create_session(self, client: TestClient):
        use_backend(VALID_QUESTIONS_JSON)

        response = client.post("/api/input/session")

        assert response.status_code == 200
        data = response.json()
        assert isinstance(data["token"], str)
        assert isinstance(data["expiresAt"], int)

    def test_create_session_generation_failure(self, client: TestClient):
        use_backend("nope", "{}", BackendError("down"))

        response = client.post("/api/input/session")

        assert_error(response, 500, "AI_FAILED")

    def test_get_session_questions(self, client: TestClient):
        token = open_session(client)

        response = client.get(f"/api/input/session/{token}")

        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"] == "8b0f7c2e-5f33-4a65-9b9a-4a6a5e9f2d10"
        assert [q["id"] for q in data["questions"]] == [1, 2, 3, 4]
        assert data["questions"][0]["text"] == "Lunch today?"

    def test_unknown_session(self, client: TestClient):
        assert_error(client.get("/api/input/session/nope"), 404, "NOT_FOUND")
        assert_error(client.get("/api/input/session/nope/status"), 404, "NOT_FOUND")
        assert_error(client.post("/api/input/session/nope/answers", json=ANSWERS), 404, "NOT_FOUND")

    def test_unknown_session_checked_before_body(self, client: TestClient):
        response = client.post("/api/input/session/nope/answers", json={"name": ""})
        assert_error(response, 404, "NOT_FOUND")

    def test_answer_flow(self, client: TestClient):
        token = open_session(client)

        status = client.get(f"/api/input/session/{token}/status")
        assert status.json() == {"status": "pending"}

        response = client.post(f"/api/input/session/{token}/answers", json=ANSWERS)
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        status = client.get(f"/api/input/session/{token}/status")
        assert status.json() == {
            "status": "answered",
            "keywords": [
                "session:8b0f7c2e-5f33-4a65-9b9a-4a6a5e9f2d10",
                "name:Mina",
                "q1:Ramen",
                "q2:Stairs",
                "q3:Price",
                "q4:Run",
            ],
        }

    def test_answered_session_rejects_reuse(self, client: TestClient):
        token = open_session(client)
        client.post(f"/api/input/session/{token}/answers", json=ANSWERS)

        assert_error(client.get(f"/api/input/session/{token}"), 409, "ALREADY_USED")
        assert_error(client.post(f"/api/input/session/{token}/answers", json=ANSWERS), 409, "ALREADY_USED")

    def test_incomplete_answers(self, client: TestClient):
        token = open_session(client)

        response = client.post(
            f"/api/input/session/{token}/answers",
            json={"name": "Mina", "answers": {"1": "a", "2": "b", "3": "c"}},
        )

        assert_error(response, 400, "INVALID_INPUT")
        assert client.get(f"/api/input/session/{token}/status").json() == {"status": "pending"}

    def test_answers_without_body(self, client: TestClient):
        token = open_session(client)
        assert_error(client.post(f"/api/input/session/{token}/answers"), 400, "INVALID_INPUT")

    def test_qr_code(self, client: TestClient):
        token = open_session(client)

        response = client.get(f"/api/input/session/{token}/qr")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(PNG_SIGNATURE)

    def test_qr_code_unknown_session(self, client: TestClient):
        assert_error(client.get("/api/input/session/nope/qr"), 404, "NOT_FOUND")


class TestGenerate:
    def test_generate_card(self, client: TestClient):
        backend = use_backend(VALID_CARD_JSON)

        response = client.post("/api/generate", json={"keywords": ["name:Mina", "  q1:Ramen  ", "", None]})

        assert response.status_code == 200
        data = response.json()
        assert data["cardData"]["class"] == "Echo Rider"
        assert data["cardData"]["stats"]["vibe"] == 91
        assert isinstance(data["cardId"], str)
        image = Image.open(io.BytesIO(base64.b64decode(data["cardImageBase64"])))
        assert image.size == (300, 450)
        assert "- name:Mina\n- q1:Ramen" in backend.calls[0][1]

    @pytest.mark.parametrize(
        "body",
        [{}, {"keywords": []}, {"keywords": ["", "  "]}, {"keywords": [None, None]}, {"keywords": "name:Mina"}],
    )
    def test_generate_requires_keywords(self, client: TestClient, body):
        backend = use_backend(VALID_CARD_JSON)

        assert_error(client.post("/api/generate", json=body), 400, "INVALID_INPUT")
        assert backend.calls == []

    def test_generate_exhausts_attempts(self, client: TestClient):
        bad_stats = VALID_CARD_JSON.replace('"luck":40', '"luck":0')
        backend = use_backend(bad_stats, bad_stats, bad_stats)

        response = client.post("/api/generate", json={"keywords": ["k"]})

        assert_error(response, 500, "AI_FAILED")
        assert len(backend.calls) == 3

    def test_malformed_json_body(self, client: TestClient):
        response = client.post(
            "/api/generate",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert_error(response, 400, "INVALID_INPUT")

    def test_questions(self, client: TestClient):
        use_backend(VALID_QUESTIONS_JSON)

        response = client.get("/api/questions")

        assert response.status_code == 200
        assert len(response.json()["questions"]) == 4


class TestPrintQueue:
    def test_print_claim_done(self, client: TestClient):
        response = client.post("/api/print", json={"image": "aW1n", "meta": {"cardId": "c1"}})
        assert response.status_code == 200
        job_id = response.json()["jobId"]

        claimed = client.get("/api/print/next", params={"clientId": "station-a"})
        assert claimed.status_code == 200
        assert claimed.json() == {"jobId": job_id, "imageBase64": "aW1n", "meta": {"cardId": "c1"}}

        assert client.get("/api/print/next", params={"clientId": "station-b"}).status_code == 204

        done = client.post(f"/api/print/{job_id}/done", json={"status": "printed"})
        assert done.json() == {"ok": True}
        assert client.get("/api/print/next").status_code == 204

    def test_empty_queue(self, client: TestClient):
        response = client.get("/api/print/next")
        assert response.status_code == 204
        assert response.content == b""

    def test_failed_job_is_requeued(self, client: TestClient):
        job_id = client.post("/api/print", json={"image": "aW1n"}).json()["jobId"]
        client.get("/api/print/next", params={"clientId": "station-a"})

        client.post(f"/api/print/{job_id}/done", json={"status": "failed", "message": "paper jam"})

        claimed = client.get("/api/print/next", params={"clientId": "station-a"})
        assert claimed.json()["jobId"] == job_id
        assert claimed.json()["meta"] == {}

    @pytest.mark.parametrize("body", [{}, {"image": ""}, {"image": 42}, {"meta": {}}])
    def test_print_requires_image(self, client: TestClient, body):
        assert_error(client.post("/api/print", json=body), 400, "INVALID_INPUT")

    def test_non_object_meta_ignored(self, client: TestClient):
        client.post("/api/print", json={"image": "aW1n", "meta": "x"})
        assert client.get("/api/print/next").json()["meta"] == {}

    def test_done_unknown_job(self, client: TestClient):
        assert_error(client.post("/api/print/missing/done", json={"status": "printed"}), 404, "NOT_FOUND")

    @pytest.mark.parametrize("body", [{"status": "done"}, {"status": 1}, {}])
    def test_done_invalid_status(self, client: TestClient, body):
        job_id = client.post("/api/print", json={"image": "aW1n"}).json()["jobId"]

        assert_error(client.post(f"/api/print/{job_id}/done", json=body), 400, "INVALID_STATUS")


class TestPrintEvents:
    def test_pending_count_on_connect(self, client: TestClient):
        client.post("/api/print", json={"image": "aW1n"})

        with client.websocket_connect("/ws/print?clientId=station-a") as ws:
            assert ws.receive_json() == {"event": "print:queue_update", "data": {"pendingCount": 1}}

    def test_new_job_pushed(self, client: TestClient):
        with client.websocket_connect("/ws/print?clientId=station-a") as ws:
            ws.receive_json()

            job_id = client.post("/api/print", json={"image": "aW1n"}).json()["jobId"]

            assert ws.receive_json() == {"event": "print:new_job", "data": {"jobId": job_id}}
            assert ws.receive_json() == {"event": "print:queue_update", "data": {"pendingCount": 1}}

            client.get("/api/print/next", params={"clientId": "station-a"})
            assert ws.receive_json() == {"event": "print:queue_update", "data": {"pendingCount": 0}}

    def test_echo(self, client: TestClient):
        with client.websocket_connect("/ws/print") as ws:
            ws.receive_json()
            ws.send_json({"event": "echo", "data": {"n": 1}})
            assert ws.receive_json() == {"event": "echo", "data": {"n": 1}}


class TestFallbackRoutes:
    def test_unknown_api_path(self, client: TestClient):
        assert_error(client.get("/api/nope"), 404, "NOT_FOUND")
        assert_error(client.post("/api/nope/deeper"), 404, "NOT_FOUND")

    def test_frontend_not_built(self, client: TestClient):
        assert_error(client.get("/answer/abc"), 404, "NOT_FOUND")

    def test_frontend_served(self, client: TestClient, tmp_path):
        (tmp_path / "index.html").write_text("<html>kiosk</html>")
        (tmp_path / "assets").mkdir()
        (tmp_path / "assets" / "app.js").write_text("console.log(1)")
        frontend_routes.set_app_state(tmp_path)

        assert client.get("/").text == "<html>kiosk</html>"
        assert client.get("/answer/some-token").text == "<html>kiosk</html>"
        assert client.get("/assets/app.js").text == "console.log(1)"

    def test_frontend_does_not_escape_root(self, client: TestClient, tmp_path):
        static_dir = tmp_path / "dist"
        static_dir.mkdir()
        (static_dir / "index.html").write_text("<html>kiosk</html>")
        (tmp_path / "secret.txt").write_text("secret")
        frontend_routes.set_app_state(static_dir)

        response = client.get("/..%2Fsecret.txt")

        assert "secret" not in response.text


class TestBeforeStartup:
    def test_components_missing(self, monkeypatch):
        monkeypatch.setattr(api_routes, "_app_state", {})
        client = TestClient(create_app())

        assert_error(client.get("/api/print/next"), 503, "SERVICE_UNAVAILABLE")
        assert_error(client.post("/api/print", json={"image": "aW1n"}), 503, "SERVICE_UNAVAILABLE")
        assert_error(client.get("/api/input/session/abc"), 503, "SERVICE_UNAVAILABLE")
