"""
Client for the external facial-emotion service.

The frame loop hands over every frame; only a sampled, rate-limited subset
is analyzed, on a worker thread. Results come back through a queue that the
frame loop drains without blocking.
"""
import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

import requests

from .config import EmotionConfig
from .scoring import process_emotions
from .types import EmotionResult


logger = logging.getLogger(__name__)


class HttpEmotionAnalyzer:
    """
    Posts one base64 JPEG frame to an emotion endpoint and scores the reply.

    The endpoint answers with face predictions in the form
    {"predictions": [{"emotions": [{"name": ..., "score": ...}, ...]}]}.
    """

    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 15.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.http = session or requests.Session()

    def analyze(self, image_b64: str, timestamp: float) -> Optional[EmotionResult]:
        """
        Analyze one frame.

        Raises:
            requests.RequestException: transport or HTTP status failure
            ValueError: the reply is not the expected JSON
        """
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        response = self.http.post(
            self.url,
            json={"image": image_b64, "models": {"face": {}}},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        body: Any = response.json()
        predictions = body.get("predictions") if isinstance(body, dict) else body
        if not isinstance(predictions, list):
            raise ValueError("Emotion service reply has no predictions list")
        return process_emotions(predictions, timestamp)


class EmotionService:
    """
    Sampled, non-blocking emotion analysis.

    Features:
    - Analyzes every `frame_stride`-th frame, at most once per `min_interval_ms`
    - Skips frames while a request is still in flight
    - After `max_consecutive_errors` failures, switches to local mode and
      stops calling the service; fusion then relies on the gesture fallback
    - Callback triple: on_result, on_error, on_status

    Callbacks run on the worker thread. The default on_result puts the
    result on `results`, which the frame loop drains with `latest_result`.
    """

    def __init__(
        self,
        analyzer: Optional[HttpEmotionAnalyzer],
        cfg: Optional[EmotionConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        on_result: Optional[Callable[[EmotionResult], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_status: Optional[Callable[[str], None]] = None,
        encoder: Callable[[Any], str] = str,
    ):
        self.cfg = cfg or EmotionConfig()
        self.analyzer = analyzer
        self.clock = clock
        self.encoder = encoder  # frame -> base64 JPEG
        self.results: "queue.Queue[EmotionResult]" = queue.Queue()
        self.on_result = on_result or self.results.put
        self.on_error = on_error or (lambda e: None)
        self.on_status = on_status or (lambda s: None)

        self.mode = "api" if analyzer is not None else "local"
        self.frame_count = 0
        self.last_request_time: Optional[float] = None
        self.consecutive_errors = 0
        self._in_flight = False
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        if self.mode == "local":
            self.on_status("Local mode (no emotion service configured)")

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    def submit_frame(self, frame: Any, t_now: Optional[float] = None) -> bool:
        """
        Offer a frame for analysis.

        Args:
            frame: Frame to analyze, passed through `encoder` only when sent
            t_now: Frame timestamp on the frame-loop clock

        Returns:
            True if the frame was sent for analysis
        """
        if t_now is None:
            t_now = self.clock()
        self.frame_count += 1

        if self.mode != "api":
            return False
        if self.frame_count % self.cfg.frame_stride != 0:
            return False
        if (self.last_request_time is not None
                and (t_now - self.last_request_time) * 1000 < self.cfg.min_interval_ms):
            return False

        payload = self.encoder(frame)
        with self._lock:
            if self._in_flight:
                return False
            self._in_flight = True

        self.last_request_time = t_now
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="emotion")
        self._executor.submit(self._analyze, payload, t_now)
        return True

    def _analyze(self, image_b64: str, t_frame: float) -> None:
        try:
            result = self.analyzer.analyze(image_b64, t_frame)
        except (requests.RequestException, ValueError) as e:
            self._record_failure(e)
            return
        finally:
            with self._lock:
                self._in_flight = False

        self.consecutive_errors = 0
        if result is not None:
            self.on_result(result)

    def _record_failure(self, error: Exception) -> None:
        self.consecutive_errors += 1
        logger.error(f"❌ Emotion analysis failed ({self.consecutive_errors}): {error}")
        self.on_error(error)
        if self.consecutive_errors >= self.cfg.max_consecutive_errors and self.mode == "api":
            self.mode = "local"
            logger.warning("⚠️ Emotion service disabled after repeated failures, using gesture fallback")
            self.on_status("Switched to local analysis")

    def latest_result(self) -> Optional[EmotionResult]:
        """Drain queued results and return the newest, or None."""
        latest = None
        while True:
            try:
                latest = self.results.get_nowait()
            except queue.Empty:
                return latest

    def shutdown(self, wait: bool = False) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        self.on_status("Disconnected")
