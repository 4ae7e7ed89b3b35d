from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Protocol, Sequence

import openai
from openai import AsyncOpenAI

from agency_desk.core.config import Settings
from agency_desk.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are EVE, an AI assistant for insurance agents. You help with:
- Analyzing insurance documents and quotes
- Comparing coverage options
- Explaining policy terms in English and Chinese (Mandarin)
- Answering questions about insurance regulations
- Helping with client communications
- Generating renewal reminders and policy summaries

Always be professional, accurate, and helpful. When discussing insurance terms, provide clear explanations. If asked in Chinese, respond in Chinese. If the user switches languages, match their language.

Important guidelines:
- Never provide specific legal or tax advice - recommend consulting professionals
- Be cautious with premium estimates - actual rates depend on many factors
- Protect client privacy - never share client information externally
- For complex claims or disputes, recommend escalating to supervisors"""


class AssistantUnavailable(Exception):
    """The language model provider could not produce a reply."""


@dataclass(slots=True)
class ChatTurn:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class AssistantReply:
    content: str
    tokens_used: int | None = None


class AssistantClient(Protocol):
    async def reply(self, history: Sequence[ChatTurn]) -> AssistantReply:
        ...

    def stream(self, history: Sequence[ChatTurn]) -> AsyncIterator[str]:
        """Yield reply text fragments as the model produces them."""
        ...


class OpenAIAssistantClient:
    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(api_key=settings.openai_api_key)

    def _messages(self, history: Sequence[ChatTurn]) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend(turn.to_dict() for turn in history)
        return messages

    async def reply(self, history: Sequence[ChatTurn]) -> AssistantReply:
        messages = self._messages(history)
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=messages,
                temperature=self._settings.openai_temperature,
                max_tokens=self._settings.openai_max_tokens,
            )
        except openai.OpenAIError as exc:
            logger.error("assistant.completion_failed", model=self._settings.openai_model, error=str(exc))
            raise AssistantUnavailable("AI service is unavailable") from exc

        content = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else None
        return AssistantReply(content=content, tokens_used=tokens)

    async def stream(self, history: Sequence[ChatTurn]) -> AsyncIterator[str]:
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=self._messages(history),
                temperature=self._settings.openai_temperature,
                max_tokens=self._settings.openai_max_tokens,
                stream=True,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as exc:
            logger.error("assistant.stream_failed", model=self._settings.openai_model, error=str(exc))
            raise AssistantUnavailable("AI service is unavailable") from exc


def demo_reply(message: str) -> AssistantReply:
    return AssistantReply(
        content=(
            "I'm EVE, your AI insurance assistant.\n\n"
            "Currently running in demo mode (API key not configured).\n\n"
            "In production, I can help you with:\n"
            "- Analyzing insurance quotes and documents\n"
            "- Comparing coverage options\n"
            "- Explaining policy terms in English or Chinese\n"
            "- Generating client communications\n\n"
            f'Your message: "{message}"\n\n'
            "To enable full AI capabilities, set OPENAI_API_KEY in the environment."
        )
    )


async def demo_stream(message: str) -> AsyncIterator[str]:
    """Replay the demo reply line by line so streaming clients work without an API key."""
    for line in demo_reply(message).content.splitlines(keepends=True):
        yield line


def build_assistant_client(settings: Settings) -> AssistantClient | None:
    if not settings.openai_api_key:
        logger.info("assistant.demo_mode")
        return None
    return OpenAIAssistantClient(settings)
