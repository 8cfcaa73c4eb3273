import random
import unittest

from fastapi.testclient import TestClient

from service.ai.heuristic import LuminanceHeuristic
from service.ai.types import AnalysisResult, Classifier
from service.api.server import LoggingAlertSink, create_app

from conftest import solid_png, split_gray_png


class _GatekeeperClassifier(Classifier):
    """Rejects every image unless the caller forces the analysis."""

    def __init__(self) -> None:
        self.calls: list[bool] = []

    def analyze(self, image_bytes: bytes, force: bool = False) -> AnalysisResult:
        self.calls.append(force)
        if not force:
            return AnalysisResult.rejected()
        return AnalysisResult(
            danger=True, direction="right", slope_angle=61, class_name="landslide", class_prob=0.8
        )


class ServiceApiTests(unittest.TestCase):
    def test_root_reports_json_status(self) -> None:
        with TestClient(create_app()) as client:
            response = client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertIn("application/json", response.headers["content-type"])
        self.assertEqual(response.json(), {"service": "rockshield", "status": "ok"})

    def test_analyze_uses_luminance_heuristic_by_default(self) -> None:
        app = create_app(classifier=LuminanceHeuristic(rng=random.Random(5)))
        image = split_gray_png(64, 64, 30, 60)

        with TestClient(app) as client:
            response = client.post("/analyze", files={"file": ("dark.png", image, "image/png")})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["danger"])
        self.assertEqual(payload["direction"], "left")
        self.assertFalse(payload["invalid"])
        self.assertGreaterEqual(payload["slope_angle"], 20)
        self.assertLessEqual(payload["slope_angle"], 79)
        self.assertNotIn("class_name", payload)

    def test_invalid_until_forced(self) -> None:
        classifier = _GatekeeperClassifier()
        image = solid_png(8, 8, (200, 200, 200))

        with TestClient(create_app(classifier=classifier)) as client:
            rejected = client.post("/analyze", files={"file": ("cat.png", image, "image/png")})
            forced = client.post(
                "/analyze",
                files={"file": ("cat.png", image, "image/png")},
                data={"force": "true"},
            )

        self.assertEqual(rejected.json(), {"invalid": True})
        self.assertEqual(forced.json()["class_name"], "landslide")
        self.assertEqual(classifier.calls, [False, True])

    def test_rejects_empty_and_undecodable_uploads(self) -> None:
        with TestClient(create_app()) as client:
            empty = client.post("/analyze", files={"file": ("empty.png", b"", "image/png")})
            garbage = client.post("/analyze", files={"file": ("x.png", b"garbage", "image/png")})

        self.assertEqual(empty.status_code, 400)
        self.assertEqual(empty.json(), {"error": "Uploaded file is empty"})
        self.assertEqual(garbage.status_code, 400)
        self.assertIn("Unable to decode image", garbage.json()["error"])

    def test_notify_forwards_to_alert_sink(self) -> None:
        sink = LoggingAlertSink()

        with TestClient(create_app(alert_sink=sink)) as client:
            response = client.post(
                "/notify",
                data={"subject": "RockShield ALERT", "message": "Danger detected."},
            )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "queued"})
        self.assertEqual(sink.sent, [("RockShield ALERT", "Danger detected.")])


if __name__ == "__main__":
    unittest.main()
