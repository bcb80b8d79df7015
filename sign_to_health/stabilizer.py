"""
Temporal stabilization of per-frame gesture tokens.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .types import GestureState, Point3


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Publication:
    """A stabilizer output: a new gesture state, or an explicit clear."""
    state: Optional[GestureState]

    @property
    def cleared(self) -> bool:
        return self.state is None


def _dedupe(tokens: Iterable[str]) -> List[str]:
    out: List[str] = []
    for token in tokens:
        if token not in out:
            out.append(token)
    return out


class TemporalStabilizer:
    """
    Buffers successive token sets and publishes only stable readings.

    Features:
    - Publishes once the same token set (compared as a set) has been seen
      for `stable_frames` consecutive frames
    - Debounce: at least `debounce_ms` between publications
    - Explicit cleared publication after tokens stay empty for 2x debounce,
      so displays never keep a gesture after the hand leaves the frame

    One instance per session; calls must be sequential.
    """

    def __init__(self, debounce_ms: int = 100, stable_frames: int = 2,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize stabilizer state."""
        self.debounce_ms = debounce_ms
        self.stable_frames = stable_frames
        self.clock = clock

        self.last_token_set: frozenset = frozenset()
        self.stable_frame_count = 0
        self.last_publish_time: Optional[float] = None
        self.empty_since: Optional[float] = None
        self.is_live = False  # a non-cleared state is currently published

    def update(self, tokens: Iterable[str], t_now: Optional[float] = None,
               hand_landmarks: Sequence[Point3] = (),
               body_pose: Optional[Tuple[Point3, ...]] = None,
               confidence: float = 0.9) -> Optional[Publication]:
        """
        Feed one frame of candidate tokens.

        Args:
            tokens: Candidate tokens for this frame
            t_now: Current timestamp in seconds (defaults to the injected clock)
            hand_landmarks: Primary hand points carried into the published state
            body_pose: Pose points carried into the published state
            confidence: Detection confidence for the published state

        Returns:
            Publication if a state (or a clear) should be published, None otherwise
        """
        if t_now is None:
            t_now = self.clock()

        token_list = _dedupe(tokens)
        token_set = frozenset(token_list)

        if not token_set:
            return self._update_empty(t_now)
        self.empty_since = None

        if token_set != self.last_token_set:
            self.stable_frame_count = 1
            self.last_token_set = token_set
        else:
            self.stable_frame_count += 1

        if self.stable_frame_count < self.stable_frames:
            return None
        if not self._debounce_elapsed(t_now, self.debounce_ms):
            return None

        self.last_publish_time = t_now
        self.is_live = True
        state = GestureState(
            gesture_tokens=tuple(token_list),
            hand_landmarks=tuple(tuple(p) for p in hand_landmarks),
            confidence=confidence,
            timestamp=t_now,
            body_pose=body_pose,
        )
        logger.debug("Published gesture tokens %s", state.gesture_tokens)
        return Publication(state)

    def reset(self) -> Publication:
        """Drop all counters and flush a cleared state (used when the loop stops)."""
        self.last_token_set = frozenset()
        self.stable_frame_count = 0
        self.last_publish_time = None
        self.empty_since = None
        self.is_live = False
        return Publication(None)

    def _update_empty(self, t_now: float) -> Optional[Publication]:
        # Zero rather than one: the empty set is never published, so the next
        # non-empty frame starts its own run at one
        self.stable_frame_count = 0
        self.last_token_set = frozenset()
        if self.empty_since is None:
            self.empty_since = t_now

        if not self.is_live:
            return None

        empty_ms = (t_now - self.empty_since) * 1000
        if empty_ms < 2 * self.debounce_ms:
            return None

        self.is_live = False
        self.last_publish_time = t_now
        logger.debug("Cleared gesture state after %.0f ms without tokens", empty_ms)
        return Publication(None)

    def _debounce_elapsed(self, t_now: float, window_ms: float) -> bool:
        if self.last_publish_time is None:
            return True
        return (t_now - self.last_publish_time) * 1000 >= window_ms
