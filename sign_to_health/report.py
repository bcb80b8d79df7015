"""
Text renderings of a session record for clinicians.
"""
from datetime import datetime

from .regions import pain_region_label
from .session import SessionRecord
from .triage import triage_label


def _pct(value: float) -> int:
    return int(value * 100 + 0.5)


def format_voice_summary(record: SessionRecord) -> str:
    """Short spoken-style summary, most important facts first."""
    parts = []
    if record.emergency_triggered:
        parts.append("Emergency alert.")
    if record.triage_urgency:
        parts.append(f"Triage level: {triage_label(record.triage_urgency)}.")
    if record.clinical_interpretation:
        parts.append(record.clinical_interpretation)
    if record.pain_region:
        parts.append(f"Pain location: {pain_region_label(record.pain_region)}.")
    if record.emotion is not None and record.emotion.pain_level > 0:
        parts.append(f"Pain level: {int(record.emotion.pain_level * 10 + 0.5)} out of 10.")
    return " ".join(parts)


def format_report_markdown(record: SessionRecord) -> str:
    """Full clinical report as Markdown."""
    started = datetime.fromtimestamp(record.timestamp).strftime("%Y-%m-%d %H:%M:%S")
    minutes, seconds = divmod(int(record.duration), 60)

    lines = [
        "# Sign-to-Health Clinical Report",
        "",
        f"**Session ID:** {record.id}",
        f"**Date:** {started}",
        f"**Duration:** {minutes}m {seconds}s",
        "",
    ]
    if record.emergency_triggered:
        lines += ["## ⚠️ EMERGENCY ALERT", ""]

    lines += [
        "## Triage Assessment",
        "",
        f"**Urgency Level:** {triage_label(record.triage_urgency)}",
        "",
        "## Clinical Interpretation",
        "",
        record.clinical_interpretation or "No interpretation available.",
        "",
    ]

    if record.pain_region:
        lines += ["## Pain Location", "", pain_region_label(record.pain_region), ""]

    if record.emotion is not None:
        lines += [
            "## Emotional State",
            "",
            f"- **Emotion:** {record.emotion.emotion}",
            f"- **Pain Level:** {_pct(record.emotion.pain_level)}%",
            f"- **Distress Level:** {_pct(record.emotion.distress)}%",
            "",
        ]

    if record.soap_note is not None:
        lines += [
            "## SOAP Note",
            "",
            "### Subjective", record.soap_note.subjective, "",
            "### Objective", record.soap_note.objective, "",
            "### Assessment", record.soap_note.assessment, "",
            "### Plan", record.soap_note.plan, "",
        ]

    if record.icd10_codes:
        lines += ["## Suggested ICD-10 Codes", ""]
        lines += [f"- {code}" for code in record.icd10_codes]
        lines.append("")

    if record.gesture_tokens:
        lines += ["## Detected Gestures", "", ", ".join(record.gesture_tokens), ""]

    lines += ["---", "*Generated by Sign-to-Health - For clinical review only*", ""]
    return "\n".join(lines)
