"""
Test cases for the sampled emotion service client.
"""
import sys
import threading
import unittest
from pathlib import Path
from unittest import mock

import requests

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sign_to_health.config import EmotionConfig
from sign_to_health.emotion_service import EmotionService, HttpEmotionAnalyzer
from sign_to_health.scoring import process_emotions


CALM = [{"emotions": [{"name": "Calmness", "score": 0.8}, {"name": "Joy", "score": 0.2}]}]


class FakeAnalyzer:
    """Analyzer that answers from memory, optionally failing or blocking."""

    def __init__(self, error=None, gate=None):
        self.error = error
        self.gate = gate
        self.calls = []

    def analyze(self, image_b64, timestamp):
        self.calls.append((image_b64, timestamp))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return process_emotions(CALM, timestamp)


class TestEmotionService(unittest.TestCase):

    def make_service(self, analyzer, **cfg):
        self.statuses = []
        self.errors = []
        return EmotionService(
            analyzer,
            EmotionConfig(**cfg),
            on_error=self.errors.append,
            on_status=self.statuses.append,
        )

    def test_local_mode_without_analyzer(self):
        service = self.make_service(None)

        self.assertEqual(service.mode, "local")
        self.assertFalse(service.submit_frame("frame", t_now=1.0))
        self.assertIn("Local mode", self.statuses[0])

    def test_frame_stride(self):
        analyzer = FakeAnalyzer()
        service = self.make_service(analyzer, frame_stride=3, min_interval_ms=0)

        sent = [service.submit_frame(f"frame{i}", t_now=1.0 + i * 0.1) for i in range(3)]
        service.shutdown(wait=True)

        self.assertEqual(sent, [False, False, True])
        self.assertEqual(analyzer.calls, [("frame2", 1.2)])
        result = service.latest_result()
        self.assertEqual(result.category_label, "Calm")
        self.assertEqual(result.timestamp, 1.2)
        self.assertIsNone(service.latest_result())

    def test_min_interval(self):
        analyzer = FakeAnalyzer()
        service = self.make_service(analyzer, frame_stride=1, min_interval_ms=500)

        self.assertTrue(service.submit_frame("a", t_now=1.0))
        service.shutdown(wait=True)
        self.assertFalse(service.submit_frame("b", t_now=1.2))
        self.assertTrue(service.submit_frame("c", t_now=1.6))
        service.shutdown(wait=True)

        self.assertEqual([image for image, _ in analyzer.calls], ["a", "c"])

    def test_skips_while_in_flight(self):
        gate = threading.Event()
        analyzer = FakeAnalyzer(gate=gate)
        service = self.make_service(analyzer, frame_stride=1, min_interval_ms=0)

        self.assertTrue(service.submit_frame("a", t_now=1.0))
        self.assertTrue(service.in_flight)
        self.assertFalse(service.submit_frame("b", t_now=2.0))

        gate.set()
        service.shutdown(wait=True)
        self.assertFalse(service.in_flight)
        self.assertEqual(len(analyzer.calls), 1)

    def test_encoder_only_for_sent_frames(self):
        encoded = []
        service = EmotionService(FakeAnalyzer(), EmotionConfig(frame_stride=2, min_interval_ms=0),
                                 encoder=lambda frame: encoded.append(frame) or "jpeg")
        service.submit_frame("a", t_now=1.0)
        service.submit_frame("b", t_now=1.1)
        service.shutdown(wait=True)

        self.assertEqual(encoded, ["b"])

    def test_switches_to_local_after_errors(self):
        analyzer = FakeAnalyzer(error=requests.ConnectionError("refused"))
        service = self.make_service(analyzer, frame_stride=1, max_consecutive_errors=2)

        service._analyze("a", 1.0)
        self.assertEqual(service.mode, "api")
        service._analyze("b", 2.0)

        self.assertEqual(service.mode, "local")
        self.assertEqual(len(self.errors), 2)
        self.assertIn("Switched to local analysis", self.statuses)
        self.assertFalse(service.submit_frame("c", t_now=3.0))
        self.assertIsNone(service.latest_result())

    def test_success_resets_error_count(self):
        analyzer = FakeAnalyzer(error=ValueError("bad reply"))
        service = self.make_service(analyzer, max_consecutive_errors=2)

        service._analyze("a", 1.0)
        analyzer.error = None
        service._analyze("b", 2.0)
        analyzer.error = ValueError("bad reply")
        service._analyze("c", 3.0)

        self.assertEqual(service.mode, "api")
        self.assertEqual(service.consecutive_errors, 1)

    def test_malformed_reply_switches_to_local(self):
        http = mock.Mock(spec=requests.Session)
        http.post.return_value = http_response({"predictions": ["not-a-face"]})
        analyzer = HttpEmotionAnalyzer("http://emotion.local/analyze", session=http)
        service = self.make_service(analyzer, frame_stride=1, max_consecutive_errors=3)

        for i in range(3):
            service._analyze(f"frame{i}", float(i + 1))

        self.assertEqual(service.mode, "local")
        self.assertEqual(service.consecutive_errors, 3)
        self.assertEqual(len(self.errors), 3)
        self.assertIsInstance(self.errors[0], ValueError)

    def test_custom_result_callback(self):
        results = []
        service = EmotionService(FakeAnalyzer(), on_result=results.append)
        service._analyze("a", 4.0)

        self.assertEqual(len(results), 1)
        self.assertIsNone(service.latest_result())


def http_response(body, status=200):
    response = mock.Mock(status_code=status)
    response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


class TestHttpEmotionAnalyzer(unittest.TestCase):

    def setUp(self):
        self.http = mock.Mock(spec=requests.Session)
        self.analyzer = HttpEmotionAnalyzer("http://emotion.local/analyze", api_key="secret",
                                            timeout=3.0, session=self.http)

    def test_posts_frame_with_key(self):
        self.http.post.return_value = http_response({"predictions": CALM})
        result = self.analyzer.analyze("b64data", timestamp=7.0)

        args, kwargs = self.http.post.call_args
        self.assertEqual(args[0], "http://emotion.local/analyze")
        self.assertEqual(kwargs["json"]["image"], "b64data")
        self.assertEqual(kwargs["headers"], {"X-Api-Key": "secret"})
        self.assertEqual(kwargs["timeout"], 3.0)
        self.assertEqual(result.timestamp, 7.0)
        self.assertEqual(result.category, "positive")

    def test_bare_list_reply(self):
        self.http.post.return_value = http_response(CALM)
        self.assertIsNotNone(self.analyzer.analyze("b64data", timestamp=1.0))

    def test_no_face(self):
        self.http.post.return_value = http_response({"predictions": []})
        self.assertIsNone(self.analyzer.analyze("b64data", timestamp=1.0))

    def test_malformed_reply(self):
        self.http.post.return_value = http_response({"error": "quota"})
        with self.assertRaises(ValueError):
            self.analyzer.analyze("b64data", timestamp=1.0)

    def test_non_mapping_prediction(self):
        self.http.post.return_value = http_response({"predictions": ["not-a-face"]})
        with self.assertRaises(ValueError):
            self.analyzer.analyze("b64data", timestamp=1.0)

    def test_http_error(self):
        self.http.post.return_value = http_response({}, status=503)
        with self.assertRaises(requests.HTTPError):
            self.analyzer.analyze("b64data", timestamp=1.0)


if __name__ == '__main__':
    unittest.main()
