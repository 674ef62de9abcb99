"""Update-kind and confidence color maps."""

from helm_scout.models import Confidence

UPDATE_COLORS: dict[str, str] = {
    "major": "red bold",
    "minor": "yellow",
    "patch": "green",
    "up-to-date": "dim",
    "unknown": "dim",
}

CONFIDENCE_COLORS: dict[Confidence, str] = {
    Confidence.HIGH: "green",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "red",
}


def styled_update(kind: str) -> str:
    color = UPDATE_COLORS.get(kind, "white")
    return f"[{color}]{kind}[/{color}]"


def styled_confidence(confidence: Confidence | None) -> str:
    if confidence is None:
        return "-"
    color = CONFIDENCE_COLORS.get(confidence, "white")
    return f"[{color}]{confidence.value}[/{color}]"


def styled_bool(value: bool, alert: str = "red") -> str:
    return f"[{alert}]true[/{alert}]" if value else "[dim]false[/dim]"
