"""Text generation for the editor: greetings, tone critiques and blueprints.

The service is opaque: a prompt goes in, free text comes out.  By default
prompts are sent through the Claude Agent SDK on a private asyncio loop
running in a daemon thread, so callers stay synchronous.  Tests and other
front ends can pass their own ``generate(system, prompt) -> str`` callable.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from toneshare import deps
from toneshare.config import DEFAULT_MODEL
from toneshare.errors import ExternalServiceFailure
from toneshare.models import CATEGORY_ORDER, Chain

REQUEST_TIMEOUT = 60.0

WELCOME_BACK = "Welcome back!"
WELCOME_NEW = "Welcome to ToneShare!"
CRITIQUE_DEFAULT = "Try adding a heavy modulated delay."

SYSTEM_PROMPT = (
    "You are a veteran guitar tech helping musicians on ToneShare, a community "
    "for sharing pedalboard setups. Answer briefly and concretely."
)

log = logging.getLogger(__name__)

Generate = Callable[[str, str], str]


@dataclass
class Blueprint:
    """An AI-suggested chain: pedal categories in order plus an amp brand."""

    insight: str
    categories: list = field(default_factory=list)
    amp_brand: Optional[str] = None


def _describe(chain: Chain) -> str:
    pedals = " -> ".join(p.name for p in chain.pedals) or "(no pedals)"
    amp = chain.amplifier
    return f"{pedals} into {amp.brand} {amp.name}" if amp else pedals


def _extract_json_block(text: str) -> Optional[dict]:
    """Return the JSON object in a ```json block, or a bare object, if any."""
    m = re.search(r"```(?:json)?\s*\n(.*?)```", text, re.DOTALL)
    candidate = m.group(1) if m else text[text.find("{"):text.rfind("}") + 1]
    if not candidate:
        return None
    try:
        obj = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None


class _AgentRunner:
    """Runs one-shot SDK queries on a background event loop."""

    def __init__(self, model: str, timeout: float = REQUEST_TIMEOUT):
        self.model = model
        self.timeout = timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                threading.Thread(target=self._loop.run_forever, daemon=True).start()
            return self._loop

    async def _query(self, system: str, prompt: str) -> str:
        from claude_agent_sdk import AssistantMessage, ClaudeAgentOptions, query

        options = ClaudeAgentOptions(
            model=self.model,
            system_prompt=system,
            max_turns=1,
            allowed_tools=[],
        )
        parts = []
        async for msg in query(prompt=prompt, options=options):
            log.debug("LLM msg: %s", type(msg).__name__)
            if isinstance(msg, AssistantMessage):
                for block in (msg.content or []):
                    text = getattr(block, "text", None)
                    if text:
                        parts.append(text)
        return "".join(parts).strip()

    def __call__(self, system: str, prompt: str) -> str:
        if not deps.HAS_AGENT_SDK:
            raise ExternalServiceFailure("claude-agent-sdk not installed")
        future = asyncio.run_coroutine_threadsafe(self._query(system, prompt),
                                                  self._ensure_loop())
        try:
            return future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise ExternalServiceFailure(
                f"no reply from the text service within {self.timeout:g}s") from None


class ToneAdvisor:
    def __init__(self, generate: Optional[Generate] = None, model: str = DEFAULT_MODEL):
        self._generate = generate or _AgentRunner(model)

    def _ask(self, prompt: str) -> str:
        log.debug("LLM prompt:\n%s", prompt)
        try:
            text = self._generate(SYSTEM_PROMPT, prompt)
        except ExternalServiceFailure:
            raise
        except Exception as e:
            raise ExternalServiceFailure(f"text generation failed: {e}") from e
        return (text or "").strip()

    def welcome(self, mode: str = "login", name: str = "",
                inspirations: str = "") -> str:
        if mode == "login":
            prompt = ("Write a short, epic welcome line for a guitarist who just "
                      "logged in to the ToneShare community. At most 10 words.")
            fallback = WELCOME_BACK
        elif mode == "register":
            prompt = (f"Write a personal welcome for a new member named {name or 'a musician'} "
                      f"who just joined ToneShare. Mention that their passion for "
                      f"{inspirations or 'music'} will enrich the community. At most 15 words.")
            fallback = WELCOME_NEW
        else:
            raise ValueError("mode must be 'login' or 'register'")
        return self._ask(prompt) or fallback

    def critique(self, chain: Chain, goal: str = "a professional shoegaze wall of sound") -> str:
        prompt = (f"Signal chain: {_describe(chain)}.\n"
                  f"Recommend one pedal to add to this chain for {goal}. Brief suggestion.")
        return self._ask(prompt) or CRITIQUE_DEFAULT

    def blueprint(self, chain: Chain, goal: str = "") -> Blueprint:
        prompt = (
            f"Current signal chain: {_describe(chain)}.\n"
            f"Target tone: {goal or 'a versatile, well-balanced rig'}.\n"
            "Suggest an ordered pedalboard. Reply with one ```json block holding an "
            'object {"insight": string, "categories": [..], "ampBrand": string}. '
            f"Categories must come from: {', '.join(CATEGORY_ORDER)}."
        )
        text = self._ask(prompt)
        obj = _extract_json_block(text)
        if obj is None:
            raise ExternalServiceFailure("blueprint response contained no JSON object")
        categories = obj.get("categories") or []
        if not isinstance(categories, list):
            raise ExternalServiceFailure("blueprint 'categories' must be a list")
        brand = obj.get("ampBrand")
        return Blueprint(
            insight=str(obj.get("insight") or ""),
            categories=[str(c) for c in categories],
            amp_brand=str(brand) if brand else None,
        )
