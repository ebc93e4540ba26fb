"""
Boundary helpers for talking to the multimodal chat model

Everything that touches the network or raw model output goes through here, so
both clients report failures as ServiceError.
"""

import asyncio
import json
import base64
from typing import Any, Callable, List

from langchain_core.messages import BaseMessage, HumanMessage
from langchain_core.utils.json import parse_json_markdown
from langchain_openai import ChatOpenAI

from risk_ai.core.config import Settings
from risk_ai.core.exceptions import ServiceError

# (settings, model_id) -> chat model exposing ``ainvoke``
ChatModelFactory = Callable[[Settings, str], Any]


def build_chat_model(settings: Settings, model_id: str) -> ChatOpenAI:
    """Create the chat model for one request; the credential must already be checked"""
    return ChatOpenAI(
        model=model_id,
        api_key=settings.require_api_key(),
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )


def image_message(prompt: str, image: bytes, mime_type: str) -> HumanMessage:
    image_b64 = base64.b64encode(image).decode()
    return HumanMessage(
        content=[
            {"type": "text", "text": prompt},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
            },
        ]
    )


def response_text(message: Any) -> str:
    """Flatten a model reply into plain text"""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


async def invoke_text(llm: Any, messages: List[BaseMessage], timeout: float) -> str:
    try:
        reply = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout)
    except asyncio.TimeoutError:
        raise ServiceError(f"AI service did not answer within {timeout:g}s")
    except ServiceError:
        raise
    except Exception as e:
        raise ServiceError(f"AI service request failed: {e}") from e

    text = response_text(reply).strip()
    if not text:
        raise ServiceError("AI service returned an empty answer")
    return text


def parse_json(text: str) -> Any:
    """
    Parse a JSON answer, tolerating markdown code fences around it

    Parsing is strict: an answer cut off mid-document is rejected rather than
    having its open brackets closed for it.
    """
    try:
        return parse_json_markdown(text, parser=json.loads)
    except ValueError as e:  # includes json.JSONDecodeError
        raise ServiceError(f"AI service answer is not valid JSON: {e}") from e
