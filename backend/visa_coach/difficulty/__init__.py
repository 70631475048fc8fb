from visa_coach.difficulty.controller import DifficultyController

__all__ = ["DifficultyController"]
