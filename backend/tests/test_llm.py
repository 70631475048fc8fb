import pytest


class _Msg:
    content = '{"overall": 80}'


class _Choice:
    message = _Msg()


class _Response:
    choices = [_Choice()]


class _FakeClient:
    def __init__(self, create):
        self.chat = type("Chat", (), {})()
        self.chat.completions = type("Completions", (), {})()
        self.chat.completions.create = create


@pytest.mark.asyncio
async def test_call_llm_blank_prompt_short_circuit():
    from visa_coach.judging.llm import call_llm

    result = await call_llm("")
    assert result == "{}"


@pytest.mark.asyncio
async def test_call_llm_success_with_mock(monkeypatch: pytest.MonkeyPatch):
    from visa_coach.judging import llm

    seen = {}

    async def _fake_create(*args, **kwargs):
        seen.update(kwargs)
        return _Response()

    monkeypatch.setattr(llm, "_client", _FakeClient(_fake_create))

    result = await llm.call_llm("return json", model="judge-model")
    assert result == '{"overall": 80}'
    assert seen["model"] == "judge-model"
    assert seen["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_call_llm_failure_returns_empty_json_once(monkeypatch: pytest.MonkeyPatch):
    from visa_coach.judging import llm

    calls = []

    async def _boom(*args, **kwargs):
        calls.append(1)
        raise RuntimeError("forced")

    monkeypatch.setattr(llm, "_client", _FakeClient(_boom))

    result = await llm.call_llm("will fail", timeout_sec=0.1)
    assert result == "{}"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_call_llm_without_key_skips_client(monkeypatch: pytest.MonkeyPatch):
    from visa_coach.core import config
    from visa_coach.judging import llm

    monkeypatch.setattr(config, "OPENAI_API_KEY", "")
    monkeypatch.setattr(llm, "_client", None)

    assert llm.get_client() is None
    assert await llm.call_llm("return json") == "{}"


def test_client_is_built_once_key_is_present(monkeypatch: pytest.MonkeyPatch):
    from visa_coach.core import config
    from visa_coach.judging import llm

    monkeypatch.setattr(config, "OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(llm, "_client", None)

    client = llm.get_client()
    assert client is not None
    assert llm.get_client() is client


def test_runtime_without_key_uses_heuristic_scoring(monkeypatch: pytest.MonkeyPatch, tmp_path):
    from visa_coach import runtime

    monkeypatch.setattr(runtime, "OPENAI_API_KEY", "")
    monkeypatch.setattr(runtime, "DATA_DIR", tmp_path)

    built = runtime.build_runtime()
    assert built.judge is None
