from fastapi import Request

from agency_desk.services.llm_client import AssistantClient


def get_assistant(request: Request) -> AssistantClient | None:
    return getattr(request.app.state, "assistant", None)
