from visa_coach.judging.questions import StaticQuestion, pick_static_question, static_follow_up
from visa_coach.judging.service import (
    JudgeUnavailableError,
    JudgingService,
    OpenAIJudgingService,
    parse_judge_response,
    parse_question_response,
)

__all__ = [
    "JudgeUnavailableError",
    "JudgingService",
    "OpenAIJudgingService",
    "StaticQuestion",
    "parse_judge_response",
    "parse_question_response",
    "pick_static_question",
    "static_follow_up",
]
