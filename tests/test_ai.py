import asyncio
import threading

import pytest

from toneshare import ai, deps
from toneshare import chain as ops
from toneshare.ai import CRITIQUE_DEFAULT, WELCOME_NEW, Blueprint, ToneAdvisor
from toneshare.errors import ExternalServiceFailure


class FakeGenerate:
    def __init__(self, reply=""):
        self.reply = reply
        self.prompts = []

    def __call__(self, system, prompt):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def test_critique_prompt_names_chain():
    gen = FakeGenerate("Add a Big Muff before the chorus.")
    text = ToneAdvisor(gen).critique(ops.default_chain())

    assert text == "Add a Big Muff before the chorus."
    assert "Dyna Comp into Marshall JCM800" in gen.prompts[0]


def test_empty_reply_falls_back():
    assert ToneAdvisor(FakeGenerate("  ")).critique(ops.default_chain()) == CRITIQUE_DEFAULT
    assert ToneAdvisor(FakeGenerate("")).welcome("register", "Ana") == WELCOME_NEW


def test_welcome_register_mentions_name():
    gen = FakeGenerate("Hi Ana!")
    assert ToneAdvisor(gen).welcome("register", "Ana", "shoegaze") == "Hi Ana!"
    assert "Ana" in gen.prompts[0] and "shoegaze" in gen.prompts[0]


def test_welcome_rejects_unknown_mode():
    with pytest.raises(ValueError):
        ToneAdvisor(FakeGenerate("x")).welcome("logout")


def test_generation_errors_are_wrapped():
    advisor = ToneAdvisor(FakeGenerate(ConnectionError("boom")))
    with pytest.raises(ExternalServiceFailure, match="boom"):
        advisor.critique(ops.default_chain())


def test_blueprint_parses_fenced_json():
    reply = (
        "Here you go:\n```json\n"
        '{"insight": "Stack drive into delay.", "categories": ["Drive", "Delay"], '
        '"ampBrand": "Vox"}\n```'
    )
    bp = ToneAdvisor(FakeGenerate(reply)).blueprint(ops.default_chain(), "U2 leads")
    assert bp == Blueprint("Stack drive into delay.", ["Drive", "Delay"], "Vox")


def test_blueprint_parses_bare_json():
    bp = ToneAdvisor(FakeGenerate('{"insight": "ok", "categories": []}')).blueprint(
        ops.default_chain())
    assert bp.categories == [] and bp.amp_brand is None


@pytest.mark.parametrize("reply", ["no json here", '{"categories": "Drive"}', "[1, 2]"])
def test_blueprint_rejects_bad_replies(reply):
    with pytest.raises(ExternalServiceFailure):
        ToneAdvisor(FakeGenerate(reply)).blueprint(ops.default_chain())


def test_agent_timeout_cancels_pending_query(monkeypatch):
    monkeypatch.setattr(deps, "HAS_AGENT_SDK", True)
    cancelled = threading.Event()

    async def stalled(system, prompt):
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "late"

    runner = ai._AgentRunner("test-model", timeout=0.05)
    runner._query = stalled

    with pytest.raises(ExternalServiceFailure, match="no reply"):
        runner("system", "prompt")
    assert cancelled.wait(5)
