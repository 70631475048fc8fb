import re


FILLER_PATTERN = re.compile(r"\b(um|uh|like|you know|basically|actually)\b", re.IGNORECASE)
ARTICULATION_FILLER_PATTERN = re.compile(
    r"\b(um|uh|like|you know|basically|actually|literally|kind of|sort of)\b",
    re.IGNORECASE,
)
NUMBER_PATTERN = re.compile(r"\$?\s*(\d+(?:,\d+)*(?:\.\d+)?)")

DEFAULT_DURATION_SEC = 30.0
NEUTRAL_WPM = 120.0


def word_count(text: str) -> int:
    return len(str(text or "").split())


def sentence_count(text: str) -> int:
    return len([part for part in re.split(r"[.!?]+", str(text or "")) if part.strip()])


def filler_rate(text: str, pattern: re.Pattern = FILLER_PATTERN) -> float:
    words = word_count(text)
    return len(pattern.findall(str(text or ""))) / max(words, 1)


def words_per_minute(words: int, duration_seconds: float | None) -> float:
    duration = DEFAULT_DURATION_SEC if duration_seconds is None else float(duration_seconds)
    if duration <= 0:
        return NEUTRAL_WPM
    return (words / duration) * 60.0


def extract_numbers(text: str) -> list[float]:
    values: list[float] = []
    for match in NUMBER_PATTERN.finditer(str(text or "")):
        try:
            values.append(float(match.group(1).replace(",", "")))
        except ValueError:
            continue
    return values
