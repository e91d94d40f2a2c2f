import unittest
import uuid
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from dakino_backend import create_app
from dakino_backend.models import Product, Store
from dakino_backend.services.llm import VisionLLMResult


class _StubVisionClient:
    def __init__(self, parsed_json, raw_text: str = "{...}"):
        self.parsed_json = parsed_json
        self.raw_text = raw_text
        self.calls: list[dict] = []

    def extract_ticket(self, **kwargs) -> VisionLLMResult:
        self.calls.append(kwargs)
        return VisionLLMResult(raw_text=self.raw_text, parsed_json=self.parsed_json)


_TICKET = {
    "store_name": "Mercadona",
    "date": "2026-10-01",
    "items": [
        {"name": "LECHE ENTERA 1L", "quantity": 2, "unit_price": 1.25, "total": 2.5},
        {"name": "Atún", "quantity": 1, "unit_price": 3.1, "total": 3.1},
    ],
    "total": 5.6,
}


class TicketsApiTests(unittest.TestCase):
    def setUp(self):
        with patch.dict(
            "os.environ",
            {
                "DATABASE_URL": "",
                "DAKINO_LLM_API_KEY": "",
                "GROQ_API_KEY": "",
                "OPENAI_API_KEY": "",
                "DAKINO_MATCH_CANDIDATE_FLOOR": "",
                "DAKINO_MATCH_ACCEPT_THRESHOLD": "",
            },
        ):
            self.app = create_app()
        self.app.testing = True
        self.client = self.app.test_client()
        self.product = Product(id=uuid.uuid4(), name="Leche Entera")
        self.store = Store(id=uuid.uuid4(), name="Mercadona")

    def _enable_catalog(self):
        self.app.extensions["db_sessionmaker"] = object()
        products = patch(
            "dakino_backend.api.tickets.fetch_catalog_products",
            return_value=[self.product],
        )
        stores = patch(
            "dakino_backend.api.tickets.fetch_catalog_stores",
            return_value=[self.store],
        )
        self.fetch_products = products.start()
        self.fetch_stores = stores.start()
        self.addCleanup(products.stop)
        self.addCleanup(stores.stop)

    def test_healthcheck(self):
        response = self.client.get("/api/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "ok"})

    def test_scan_ticket_requires_image(self):
        self.app.extensions["vision_llm_client"] = _StubVisionClient(_TICKET)

        response = self.client.post("/api/scan-ticket", json={})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "image is required"})

    def test_scan_ticket_without_client_is_unavailable(self):
        response = self.client.post("/api/scan-ticket", json={"image": "aGVsbG8="})

        self.assertEqual(response.status_code, 503)

    def test_scan_ticket_relays_clean_ticket(self):
        stub = _StubVisionClient(
            {"store_name": "", "items": [{"name": "Pan", "unit_price": "0.90"}]}
        )
        self.app.extensions["vision_llm_client"] = stub

        response = self.client.post(
            "/api/scan-ticket", json={"image": "aGVsbG8=", "mime_type": "image/png"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.get_json(),
            {
                "store_name": None,
                "date": None,
                "items": [
                    {"name": "Pan", "quantity": 1.0, "unit_price": 0.9, "total": 0.9}
                ],
                "total": 0.0,
            },
        )
        self.assertEqual(stub.calls[0]["mime_type"], "image/png")
        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")

    def test_scan_ticket_reports_unusable_model_output(self):
        self.app.extensions["vision_llm_client"] = _StubVisionClient(
            None, raw_text="lo siento"
        )

        response = self.client.post("/api/scan-ticket", json={"image": "aGVsbG8="})

        self.assertEqual(response.status_code, 502)

    def test_match_ticket_against_catalog(self):
        self._enable_catalog()
        household_id = uuid.uuid4()

        response = self.client.post(
            "/api/tickets/match",
            json={"ticket": _TICKET, "household_id": str(household_id)},
        )

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(
            [item["confidence"] for item in payload["items"]], ["partial", "none"]
        )
        self.assertEqual(
            payload["items"][0]["matched_product"]["id"], str(self.product.id)
        )
        self.assertIsNone(payload["items"][1]["matched_product"])
        self.assertEqual(payload["matched_store"]["name"], "Mercadona")
        self.assertEqual(payload["total"], 5.6)
        self.assertEqual(
            self.fetch_products.call_args.kwargs, {"household_id": household_id}
        )

    def test_match_ticket_rejects_bad_input(self):
        self._enable_catalog()

        missing = self.client.post("/api/tickets/match", json={})
        bad_household = self.client.post(
            "/api/tickets/match",
            json={"ticket": _TICKET, "household_id": "not-a-uuid"},
        )

        self.assertEqual(missing.status_code, 400)
        self.assertEqual(bad_household.status_code, 400)

    def test_match_ticket_with_oversized_total(self):
        self._enable_catalog()

        response = self.client.post(
            "/api/tickets/match",
            data='{"ticket": {"items": [], "total": ' + "9" * 400 + "}}",
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["total"], 0.0)

    def test_match_ticket_without_database_is_unavailable(self):
        response = self.client.post("/api/tickets/match", json={"ticket": _TICKET})

        self.assertEqual(response.status_code, 503)

    def test_match_ticket_database_failure(self):
        self._enable_catalog()
        self.fetch_products.side_effect = OperationalError("select", {}, Exception("down"))

        response = self.client.post("/api/tickets/match", json={"ticket": _TICKET})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json(), {"error": "failed to load product catalog"})

    def test_scan_and_match_in_one_request(self):
        self._enable_catalog()
        self.app.extensions["vision_llm_client"] = _StubVisionClient(_TICKET)

        response = self.client.post("/api/tickets/scan", json={"image": "aGVsbG8="})

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(len(payload["items"]), 2)
        self.assertEqual(payload["items"][0]["confidence"], "partial")
        self.assertEqual(payload["store_name"], "Mercadona")

    def test_thresholds_come_from_app_config(self):
        self._enable_catalog()
        self.app.config["MATCH_ACCEPT_THRESHOLD"] = 0.9

        response = self.client.post("/api/tickets/match", json={"ticket": _TICKET})

        self.assertEqual(response.get_json()["items"][0]["confidence"], "none")


if __name__ == "__main__":
    unittest.main()
