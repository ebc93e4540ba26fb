import asyncio
import json

import pytest
from conftest import HANG, detail_payload, make_image

from risk_ai.core.exceptions import ServiceError
from risk_ai.services.detail_client import DetailClient


def fetch(client, label):
    return asyncio.run(client.fetch_detail(label, make_image(), None))


@pytest.fixture
def client(settings, model_factory):
    return DetailClient(settings, model_factory)


def test_detail_is_parsed_into_a_risk_detail(client, fake_model):
    fake_model.details = {"forklift lane": detail_payload(4, 3, "forklift lane")}

    detail = fetch(client, "forklift lane")

    assert (detail.severity, detail.likelihood) == (4, 3)
    assert detail.description.startswith("forklift lane")
    assert detail.corrective_measures == ["Wear PPE", "Install engineering guard rails"]
    assert detail.standards_references == ["ISO 45001"]
    assert detail.legal_references == ["OSH Act B.E. 2554"]
    assert detail.organization_references == []
    assert fake_model.detail_calls == ["forklift lane"]


def test_missing_optional_fields_become_empty(client, fake_model):
    fake_model.details = {
        "spill": {
            "severity_score": 2,
            "likelihood_score": 2,
            "relevant_thai_laws": None,
            "international_standards_references": "ISO 45001",
        }
    }

    detail = fetch(client, "spill")
    assert detail.corrective_measures == []
    assert detail.legal_references == []
    assert detail.organization_references == []
    assert detail.standards_references == ["ISO 45001"]
    assert detail.description == ""


@pytest.mark.parametrize(
    "severity,likelihood,expected",
    [(7, 0, (5, 1)), (3.6, 2.2, (4, 2)), ("4", "5", (4, 5)), (-3, 9, (1, 5))],
)
def test_scores_are_clamped_into_range(client, fake_model, severity, likelihood, expected):
    fake_model.details = {"edge": detail_payload(severity, likelihood)}
    detail = fetch(client, "edge")
    assert (detail.severity, detail.likelihood) == expected


@pytest.mark.parametrize(
    "answer",
    [
        {"likelihood_score": 3},
        {"severity_score": "high", "likelihood_score": 3},
        [detail_payload(3, 3)],
        "no json at all",
    ],
)
def test_unusable_detail_is_a_service_error(client, fake_model, answer):
    fake_model.details = {"edge": answer}
    with pytest.raises(ServiceError):
        fetch(client, "edge")


def test_timeout_is_a_service_error(settings, model_factory, fake_model):
    settings.llm_timeout_seconds = 0.05
    fake_model.details = {"edge": HANG}
    with pytest.raises(ServiceError):
        fetch(DetailClient(settings, model_factory), "edge")


def test_truncated_detail_is_a_service_error(client, fake_model):
    complete = json.dumps(detail_payload(4, 3, "scaffold"), ensure_ascii=False)
    fake_model.details = {
        "scaffold": complete[: complete.index('"international_standards_references"')]
    }

    with pytest.raises(ServiceError):
        fetch(client, "scaffold")
