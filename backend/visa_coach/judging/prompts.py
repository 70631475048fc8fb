def _history_block(prior_turns: list[dict]) -> str:
    if not prior_turns:
        return "(none)"
    lines = []
    for index, item in enumerate(prior_turns[-6:], start=1):
        lines.append(f"Q{index}: {item.get('question', '')}")
        lines.append(f"A{index}: {item.get('answer', '')}")
    return "\n".join(lines)


def build_judge_prompt(question: str, answer: str, prior_turns: list[dict]) -> str:
    return f"""
You are a senior consular officer evaluating a student visa interview answer.

Score the answer harshly but fairly.

Rules:
- Reward specific facts: amounts, names, dates, test scores.
- Penalize evasive, rehearsed or generic statements.
- Penalize answers that contradict earlier answers.
- Relevance measures how directly the question was answered.

Return STRICT JSON only, with this shape:
{{
  "overall": <0-100 content score>,
  "categoryScores": {{"relevance": <0-100>, "specificity": <0-100>, "consistency": <0-100>}},
  "summary": "<2-3 sentence evaluation>",
  "recommendations": ["<specific improvement 1>", "<specific improvement 2>", "<specific improvement 3>"]
}}

Earlier exchange:
{_history_block(prior_turns)}

Question:
{question}

Candidate answer:
{answer}
""".strip()


def build_question_prompt(
    category: str,
    difficulty: str,
    prior_turns: list[dict],
    follow_up_context: str | None = None,
    visa_name: str | None = None,
) -> str:
    mode = "FOLLOW_UP" if follow_up_context else "NEW_TOPIC"
    return f"""
You are a consular officer conducting a student visa interview.

Your job is to ask the NEXT interview question.

Rules:
- Ask ONE concise question, the way an officer speaks at the window.
- Do NOT give hints or explanations.
- Do NOT repeat previous questions.
- In FOLLOW_UP mode stay on the last answer's topic.
- In NEW_TOPIC mode ask about the target category.

Return STRICT JSON only:
{{"question": "<question text>", "category": "<background|academic|financial|post_study|personal>"}}

Visa route:
{visa_name or "Student visa"}

Mode:
{mode}

Target category:
{category}

Target difficulty:
{difficulty}

Officer guidance:
{follow_up_context or "Ask a fresh question on the target category."}

Earlier exchange:
{_history_block(prior_turns)}
""".strip()
