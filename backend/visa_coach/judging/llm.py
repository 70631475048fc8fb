import asyncio
import logging

from openai import AsyncOpenAI

from visa_coach.core import config

logger = logging.getLogger("visa_coach.judging.llm")

SYSTEM_PROMPT = "You are a strict JSON generator. Output JSON only."

_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI | None:
    """Shared client, built on first use; None while no API key is configured."""
    global _client
    if _client is None and config.OPENAI_API_KEY:
        _client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
    return _client


async def call_llm(
    prompt: str,
    timeout_sec: float = 12.0,
    temperature: float = 0.3,
    model: str | None = None,
) -> str:
    """
    Sends prompt to LLM and returns raw text response.
    MUST return JSON string (caller parses). Retries belong to the caller.
    """
    if not str(prompt or "").strip():
        return "{}"

    client = get_client()
    if client is None:
        logger.warning("call_llm skipped | OPENAI_API_KEY missing")
        return "{}"

    try:
        response = await asyncio.wait_for(
            client.chat.completions.create(
                model=model or config.MODEL_NAME,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                response_format={"type": "json_object"},
            ),
            timeout=timeout_sec,
        )
    except asyncio.TimeoutError:
        logger.warning("call_llm timeout | timeout_sec=%s", timeout_sec)
        return "{}"
    except Exception as exc:
        logger.warning("call_llm failure | err=%s", exc)
        return "{}"

    message = response.choices[0].message.content
    return str(message or "{}").strip() or "{}"
