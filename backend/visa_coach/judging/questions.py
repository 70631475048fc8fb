import re
from dataclasses import dataclass


@dataclass(frozen=True)
class StaticQuestion:
    question: str
    category: str
    difficulty: str


# Opening rotation used when no generated question is available.
QUESTION_BANK: tuple[StaticQuestion, ...] = (
    StaticQuestion("Good morning. Please tell me about yourself and why you want to study in the United States.", "background", "easy"),
    StaticQuestion("What is your intended major and why did you choose this field of study?", "academic", "easy"),
    StaticQuestion("How will you finance your education in the United States?", "financial", "medium"),
    StaticQuestion("Why did you choose this particular university over others?", "academic", "medium"),
    StaticQuestion("What are your career plans after completing your studies?", "post_study", "medium"),
    StaticQuestion("What ties do you have to your home country that will ensure your return?", "post_study", "hard"),
    StaticQuestion("How did you learn about this university and program?", "academic", "easy"),
    StaticQuestion("Do you have any relatives or friends in the United States?", "personal", "medium"),
)

# Wider pool drawn from before falling back to the rotation.
EXTENDED_POOL: tuple[StaticQuestion, ...] = (
    StaticQuestion("Why do you want to study in the US?", "background", "easy"),
    StaticQuestion("Why can't you continue your education in your home country?", "background", "medium"),
    StaticQuestion("How many schools did you apply to? How many rejected you?", "academic", "medium"),
    StaticQuestion("Who is sponsoring your education? What is their annual income?", "financial", "medium"),
    StaticQuestion("How will you pay for your tuition and living expenses?", "financial", "medium"),
    StaticQuestion("What are your GRE and TOEFL scores? Did you fail any subjects?", "academic", "medium"),
    StaticQuestion("What are your plans after graduation? Do you plan to return home?", "post_study", "hard"),
    StaticQuestion("What is the guarantee that you will come back after your studies?", "post_study", "hard"),
    StaticQuestion("Show me proof of the funds your sponsor has set aside for your first year.", "financial", "hard"),
    StaticQuestion("Are you married, and does anyone depend on you financially at home?", "personal", "hard"),
    StaticQuestion("What will you do if you cannot find a job in your field after graduating?", "post_study", "hard"),
)

# UK pre-CAS credibility screening.
UK_QUESTION_POOL: tuple[StaticQuestion, ...] = (
    StaticQuestion("Tell me about your recent studies and work. Why return to full-time education now?", "background", "medium"),
    StaticQuestion("Which Visa Application Centre will you use to apply? Name the city and the centre.", "background", "easy"),
    StaticQuestion("How much did the total cost of studying in the UK influence your choice of course and university?", "financial", "medium"),
    StaticQuestion("Have you ever received a visa refusal? If yes, explain when, where and why.", "personal", "medium"),
    StaticQuestion("What are the rules for international students working in the UK during term-time and vacations?", "personal", "medium"),
    StaticQuestion("How will what you learn in your course help you in your future job?", "academic", "medium"),
    StaticQuestion("What did you research and compare about different UK universities before deciding on this one?", "academic", "medium"),
    StaticQuestion("What is your estimated weekly living budget for food, travel, phone and study materials?", "financial", "medium"),
    StaticQuestion("What research have you done on the cost of living in your city of study?", "financial", "medium"),
    StaticQuestion("Is this course linked to your 5-year career plan? Explain the connection.", "academic", "medium"),
    StaticQuestion("How will your course be assessed?", "academic", "easy"),
    StaticQuestion("What accommodation have you arranged so far?", "background", "easy"),
    StaticQuestion("Who is your education agent, and did they choose this university for you?", "personal", "medium"),
    StaticQuestion("What professional and personal challenges do you expect after graduation, and how will you address them?", "post_study", "medium"),
    StaticQuestion("How will you use the contacts you make at university after you finish your studies?", "post_study", "medium"),
    StaticQuestion("Do you intend to work while studying? How will you balance work and study?", "personal", "medium"),
)

# EMA admission interview; the opener is always asked first.
FRANCE_EMA_POOL: tuple[StaticQuestion, ...] = (
    StaticQuestion("State your course name, course duration, tuition fees and awarding body.", "background", "easy"),
    StaticQuestion("Describe your academic and professional background.", "background", "easy"),
    StaticQuestion("How does your academic and professional background align with the course you have chosen?", "academic", "medium"),
    StaticQuestion("Describe your career objectives.", "post_study", "medium"),
    StaticQuestion("How will this course help you achieve your career objectives?", "academic", "medium"),
    StaticQuestion("Why did you choose this course in particular?", "academic", "medium"),
    StaticQuestion("Why did you choose France?", "background", "medium"),
    StaticQuestion("Have you considered any other institutions other than EMA?", "academic", "medium"),
    StaticQuestion("Have you previously applied for or been refused a visa for France or any other country?", "personal", "medium"),
    StaticQuestion("Have you ever been to France? What do you know of France as a place?", "background", "easy"),
    StaticQuestion("Will you be looking to work while in France?", "post_study", "easy"),
    StaticQuestion("Who will be sponsoring you?", "financial", "easy"),
    StaticQuestion("If your application to France is unsuccessful, what is your backup plan?", "post_study", "medium"),
    StaticQuestion("How did you come to know about EMA?", "background", "easy"),
    StaticQuestion("Why did you choose EMA?", "academic", "medium"),
)

# ICN admission interview; the opener is always asked first.
FRANCE_ICN_POOL: tuple[StaticQuestion, ...] = (
    StaticQuestion("First of all, tell us about yourself. What is your academic background?", "background", "easy"),
    StaticQuestion("Why would you like to join ICN Business School and this programme?", "academic", "medium"),
    StaticQuestion("Where do you see yourself in five years' time?", "post_study", "medium"),
    StaticQuestion("What is your main center of interest in life, and why?", "personal", "medium"),
    StaticQuestion("Which three features of your personality best describe you?", "personal", "easy"),
    StaticQuestion("Have you ever travelled abroad? Where, and on which occasions?", "background", "easy"),
    StaticQuestion("Tell us about an experience you really invested yourself in and are proud of.", "personal", "medium"),
    StaticQuestion("What courses or activities at ICN Business School could nourish your ambitions?", "academic", "medium"),
    StaticQuestion("What are your motivations to join this programme?", "academic", "medium"),
    StaticQuestion("What are your career plans, and how can this programme help you reach them?", "post_study", "medium"),
)

# route -> (rotation, extra pool, opener is fixed)
_ROUTE_BANKS: dict[str, tuple[tuple[StaticQuestion, ...], tuple[StaticQuestion, ...], bool]] = {
    "usa_f1": (QUESTION_BANK, EXTENDED_POOL, False),
    "uk_student": (UK_QUESTION_POOL, (), False),
    "france_ema": (FRANCE_EMA_POOL, (), True),
    "france_icn": (FRANCE_ICN_POOL, (), True),
}

FOLLOW_UP_TEMPLATES: dict[str, tuple[str, ...]] = {
    "vague": (
        "Can you give me specific numbers for that?",
        "Be more specific. Names, amounts, dates.",
    ),
    "contradiction": (
        "Earlier you told me something different. Which is correct?",
        "That doesn't match what you said before. Explain.",
    ),
    "clarification": (
        "I'm not sure I understand. Can you explain that again?",
        "That doesn't answer my question. Try again.",
    ),
    "deep_dive": (
        "Tell me more about that.",
        "Why does that matter for your plans?",
    ),
}


def _normalize(text: str) -> str:
    cleaned = re.sub(r"[^a-z0-9\s]", " ", str(text or "").lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def pick_static_question(
    question_number: int,
    asked: list[str] | None = None,
    category: str | None = None,
    difficulty: str | None = None,
    route: str | None = None,
) -> StaticQuestion:
    """
    First unasked question matching the requested category and difficulty,
    relaxing difficulty then category; the fixed rotation when everything was asked.
    Routes with a fixed opener always start with it.
    """
    rotation, extra, fixed_opener = _ROUTE_BANKS.get(str(route or "usa_f1"), _ROUTE_BANKS["usa_f1"])
    if fixed_opener and int(question_number) <= 1:
        return rotation[0]

    asked_normalized = {_normalize(item) for item in (asked or [])}
    pool = rotation + extra
    remaining = [item for item in pool if _normalize(item.question) not in asked_normalized]

    filters = (
        lambda item: item.category == category and item.difficulty == difficulty,
        lambda item: item.category == category,
        lambda item: item.difficulty == difficulty,
        lambda item: True,
    )
    for matches in filters:
        for item in remaining:
            if matches(item):
                return item

    index = (max(1, int(question_number)) - 1) % len(rotation)
    return rotation[index]


def static_follow_up(reason: str, variant: int = 0) -> str:
    templates = FOLLOW_UP_TEMPLATES.get(reason) or FOLLOW_UP_TEMPLATES["clarification"]
    return templates[variant % len(templates)]
