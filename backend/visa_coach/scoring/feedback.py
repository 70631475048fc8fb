from visa_coach.scoring.models import DimensionFeedback, DimensionScoreSet, FeedbackBand, RankedDimension


STRENGTH_THRESHOLD = 75.0
WEAKNESS_THRESHOLD = 70.0
MAX_RANKED = 3

FEEDBACK_TEXT: dict[str, dict[str, str]] = {
    "clarity": {
        "excellent": "Your answer was crystal clear and well-structured.",
        "good": "Your answer was generally clear but could be more concise.",
        "needs_improvement": "Your answer lacked clear structure. Organize thoughts before speaking.",
        "poor": "Your answer was confusing and hard to follow.",
    },
    "specificity": {
        "excellent": "Excellent use of specific details, numbers, and examples.",
        "good": "Good specificity, but a few more concrete details would strengthen your answer.",
        "needs_improvement": "Your answer was too general. Include specific numbers, names, and dates.",
        "poor": "Answer was extremely vague. Always provide concrete details.",
    },
    "relevance": {
        "excellent": "You directly answered the question with perfect relevance.",
        "good": "Your answer was relevant but included some tangential information.",
        "needs_improvement": "Your answer partially addressed the question but went off-topic.",
        "poor": "Your answer did not address the question asked.",
    },
    "depth": {
        "excellent": "You provided comprehensive, multi-layered answers with context and examples.",
        "good": "Good depth, but could elaborate more on key points.",
        "needs_improvement": "Your answers were surface-level. Go deeper with reasoning and examples.",
        "poor": "Answers were too shallow. Provide more substance and explanation.",
    },
    "consistency": {
        "excellent": "All your answers were perfectly consistent with each other.",
        "good": "Generally consistent, with minor variations.",
        "needs_improvement": "Some inconsistencies detected. Ensure all answers align.",
        "poor": "Major contradictions found. Be truthful and remember what you said.",
    },
    "fluency": {
        "excellent": "Perfect speaking pace with natural flow.",
        "good": "Good fluency with occasional minor hesitations.",
        "needs_improvement": "Speaking was somewhat choppy. Practice for smoother delivery.",
        "poor": "Speech was very hesitant and difficult to follow.",
    },
    "confidence": {
        "excellent": "You spoke with strong, clear confidence throughout.",
        "good": "Generally confident, with a few moments of uncertainty.",
        "needs_improvement": "Voice lacked confidence. Speak louder and more assertively.",
        "poor": "Very weak vocal confidence. Practice speaking more assertively.",
    },
    "pace": {
        "excellent": "Perfect speaking pace, neither too fast nor too slow.",
        "good": "Good pace, with occasional speed variations.",
        "needs_improvement": "Speaking too fast or too slow. Aim for 120-160 words per minute.",
        "poor": "Pace was extremely poor. Significantly adjust your speaking speed.",
    },
    "articulation": {
        "excellent": "Excellent articulation with minimal filler words.",
        "good": "Good articulation, but reduce filler words (um, uh, like).",
        "needs_improvement": "Too many filler words. Pause instead of saying \"um.\"",
        "poor": "Excessive filler words made speech hard to understand.",
    },
    "posture": {
        "excellent": "Maintained upright, engaged posture throughout.",
        "good": "Generally good posture with minor slumping.",
        "needs_improvement": "Posture needs improvement. Sit upright and face camera.",
        "poor": "Poor posture throughout. Maintain professional stance.",
    },
    "eye_contact": {
        "excellent": "Maintained strong eye contact with camera throughout.",
        "good": "Good eye contact, with occasional looking away.",
        "needs_improvement": "Limited eye contact. Look directly at camera more.",
        "poor": "Very poor eye contact. Practice looking at camera consistently.",
    },
    "composure": {
        "excellent": "Remained calm and composed under pressure.",
        "good": "Generally composed, with minor nervousness.",
        "needs_improvement": "Showed signs of stress. Practice relaxation techniques.",
        "poor": "Appeared very nervous. Work on managing interview anxiety.",
    },
}


def band_for(score: float) -> FeedbackBand:
    if score >= 85:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 50:
        return "needs_improvement"
    return "poor"


def dimension_feedback(dimension: str, score: float) -> DimensionFeedback:
    band = band_for(score)
    return DimensionFeedback(
        dimension=dimension,
        score=score,
        band=band,
        feedback=FEEDBACK_TEXT[dimension][band],
    )


def all_feedback(dimensions: DimensionScoreSet) -> tuple[DimensionFeedback, ...]:
    return tuple(dimension_feedback(name, score) for name, score in dimensions.as_dict().items())


def strengths(dimensions: DimensionScoreSet) -> tuple[RankedDimension, ...]:
    ranked = dimensions.ranked()
    return tuple(
        RankedDimension(dimension=name, score=score, feedback=dimension_feedback(name, score).feedback)
        for name, score in ranked[:MAX_RANKED]
        if score >= STRENGTH_THRESHOLD
    )


def weaknesses(dimensions: DimensionScoreSet) -> tuple[RankedDimension, ...]:
    bottom = list(reversed(dimensions.ranked()[-MAX_RANKED:]))
    return tuple(
        RankedDimension(dimension=name, score=score, feedback=dimension_feedback(name, score).feedback)
        for name, score in bottom
        if score < WEAKNESS_THRESHOLD
    )


def prioritized_improvements(weak: tuple[RankedDimension, ...]) -> tuple[str, ...]:
    return tuple(f"Focus on {item.dimension}: {item.feedback}" for item in weak[:MAX_RANKED])
