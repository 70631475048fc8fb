import random
from dataclasses import dataclass


DIFFICULTIES = ["easy", "medium", "hard"]

# weight moved per step toward the harder or easier end
SHIFT_STEP = 10


@dataclass
class RollingPerformanceTracker:
    window_size: int = 4

    def update(self, history: list[float] | None, score: float) -> list[float]:
        values = list(history or [])
        values.append(float(score))
        if len(values) > self.window_size:
            values = values[-self.window_size:]
        return values


@dataclass
class TrendAnalyzer:
    def analyze(self, history: list[float]) -> dict:
        if not history:
            return {
                "trend": "stable",
                "delta": 0.0,
                "recent_avg": 0.0,
                "prev_avg": 0.0,
            }

        if len(history) == 1:
            value = float(history[0])
            return {
                "trend": "stable",
                "delta": 0.0,
                "recent_avg": value,
                "prev_avg": value,
            }

        split = max(1, len(history) // 2)
        prev = history[:-split] or history
        recent = history[-split:]

        prev_avg = sum(prev) / len(prev)
        recent_avg = sum(recent) / len(recent)
        delta = recent_avg - prev_avg

        if delta >= 5:
            trend = "improving"
        elif delta <= -5:
            trend = "declining"
        else:
            trend = "stable"

        return {
            "trend": trend,
            "delta": round(delta, 2),
            "recent_avg": round(recent_avg, 2),
            "prev_avg": round(prev_avg, 2),
        }


@dataclass
class DifficultyPolicy:
    def shift(self, weights: dict[str, int], score: float, trend: str) -> dict[str, int]:
        shifted = {level: max(0, int(weights.get(level, 0))) for level in DIFFICULTIES}

        if (score >= 62 and trend == "improving") or score >= 80:
            self._move(shifted, source="easy", target="hard")
        elif (score <= 45 and trend == "declining") or score <= 35:
            self._move(shifted, source="hard", target="easy")

        if sum(shifted.values()) <= 0:
            shifted["medium"] = 1
        return shifted

    @staticmethod
    def _move(weights: dict[str, int], source: str, target: str) -> None:
        amount = min(SHIFT_STEP, weights[source])
        weights[source] -= amount
        weights[target] += amount


@dataclass
class DifficultySelector:
    def choose(self, weights: dict[str, int], rng: random.Random) -> str:
        total = sum(max(0, int(weights.get(level, 0))) for level in DIFFICULTIES)
        if total <= 0:
            return "medium"
        roll = rng.random() * total
        cumulative = 0
        for level in DIFFICULTIES:
            cumulative += max(0, int(weights.get(level, 0)))
            if roll < cumulative:
                return level
        return DIFFICULTIES[-1]


class DifficultyController:
    """Adjusts a persona's difficulty weights from the rolling turn scores."""

    def __init__(self, window_size: int = 4):
        self.tracker = RollingPerformanceTracker(window_size=window_size)
        self.trend_analyzer = TrendAnalyzer()
        self.policy = DifficultyPolicy()
        self.selector = DifficultySelector()

    def evaluate(
        self,
        turn_score: float,
        base_weights: dict[str, int],
        history: list[float] | None = None,
    ) -> dict:
        updated_history = self.tracker.update(history, turn_score)
        trend = self.trend_analyzer.analyze(updated_history)
        weights = self.policy.shift(base_weights, score=turn_score, trend=trend["trend"])

        return {
            "history": updated_history,
            "trend": trend,
            "weights": weights,
        }

    def choose(self, weights: dict[str, int], rng: random.Random) -> str:
        return self.selector.choose(weights, rng)
