"""
Console consumer for pipeline output, used when no renderer is attached.
"""
from .regions import pain_region_label
from .report import format_voice_summary
from .session import SessionRecord
from .types import AvatarUpdate


class ConsoleConsumer:
    """Consumer that prints avatar updates and records instead of rendering them."""

    def __init__(self):
        self.avatar_update_count = 0
        self.record_count = 0
        self.last_update = None

    async def update_avatar(self, update: AvatarUpdate) -> None:
        """Print an avatar update when it differs from the previous one."""
        if update == self.last_update:
            return
        self.last_update = update
        self.avatar_update_count += 1
        posture = update.body_state.primary if update.body_state is not None else "unknown"
        region = pain_region_label(update.pain_region) or "none"
        alert = " 🚨 EMERGENCY" if update.is_emergency else ""
        print(f"[Avatar] posture={posture} pain_region={region} "
              f"urgency={update.urgency}{alert} (update #{self.avatar_update_count})")

    async def publish_record(self, record: SessionRecord) -> None:
        """Print the spoken-style summary of a session record."""
        self.record_count += 1
        print(f"[Report] {record.id}: {format_voice_summary(record) or 'No findings.'}")

    def reset_counters(self) -> None:
        self.avatar_update_count = 0
        self.record_count = 0
        self.last_update = None
