import asyncio
import io
import json

import pytest
from langchain_core.messages import AIMessage
from PIL import Image

from risk_ai.core.config import Settings
from risk_ai.core.deps import build_orchestrator
from risk_ai.core.prompts import detection_prompt

HANG = object()  # scripted reply that never arrives


def make_image(width=200, height=100, color=(255, 255, 255), fmt="PNG") -> bytes:
    img = Image.new("RGB", (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def prompt_text(messages) -> str:
    parts = []
    for message in messages:
        if isinstance(message.content, str):
            parts.append(message.content)
        else:
            parts.extend(b["text"] for b in message.content if b.get("type") == "text")
    return "\n".join(parts)


class FakeVisionModel:
    """
    Scripted stand-in for the multimodal chat model

    ``detections`` answers the detection prompt; ``details`` maps a hazard
    label to the answer of its detail prompt. An answer can be a string, a
    JSON-serializable object, an exception to raise, or HANG.
    """

    def __init__(self, language="Thai"):
        self.language = language
        self.detections = "[]"
        self.details = {}
        self.detection_gate = None
        self.detection_calls = 0
        self.detail_calls = []

    async def ainvoke(self, messages):
        text = prompt_text(messages)
        if text == detection_prompt(self.language):
            self.detection_calls += 1
            if self.detection_gate is not None:
                await self.detection_gate.wait()
            reply = self.detections
        else:
            label = next((l for l in self.details if f'"{l}"' in text), None)
            self.detail_calls.append(label)
            if label is None:
                raise RuntimeError("no scripted detail for prompt")
            reply = self.details[label]

        if reply is HANG:
            await asyncio.sleep(3600)
        if isinstance(reply, BaseException):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply, ensure_ascii=False)
        return AIMessage(content=reply)


def detection_entry(label, box=(0.1, 0.2, 0.3, 0.4), mask=None):
    if mask is None:
        x1, y1, x2, y2 = box
        mask = [[x1, y1], [x2, y1], [x2, y2], [x1, y2]]
    entry = {"mask": mask, "label": label}
    if box is not None:
        entry["box_2d"] = list(box)
    return entry


def detail_payload(severity, likelihood, label="hazard"):
    return {
        "risk_name": label,
        "severity_score": severity,
        "likelihood_score": likelihood,
        "risk_level_verbal_description": f"{label}: severity {severity}, likelihood {likelihood}",
        "corrective_preventive_measures": [
            "Wear PPE",
            "Install engineering guard rails",
        ],
        "international_standards_references": ["ISO 45001"],
        "relevant_thai_laws": ["OSH Act B.E. 2554"],
        "kubota_standards_references": [],
    }


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        api_key="test-key",
        available_models=["model-a", "model-b"],
        llm_timeout_seconds=2.0,
        history_path=str(tmp_path / "history.json"),
    )


@pytest.fixture
def fake_model():
    return FakeVisionModel()


@pytest.fixture
def model_factory(fake_model):
    def factory(settings, model_id):
        factory.models.append(model_id)
        return fake_model

    factory.models = []
    return factory


@pytest.fixture
def orchestrator(settings, model_factory):
    return build_orchestrator(settings, model_factory)
