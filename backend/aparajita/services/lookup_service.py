"""Location lookups: address, nearest police station, hotlines, legal rights."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aparajita.core.config import settings
from aparajita.models.lookup import Hotline, PoliceInfo
from aparajita.services import ai_service
from aparajita.services.ai_service import AIServiceError

logger = logging.getLogger(__name__)

# ```json ... ``` wrappers some models put around the answer
_CODE_FENCE = re.compile(r"^```[A-Za-z]*\s*|\s*```$")

MAX_ATTEMPTS = 2


class LocationLookup(Protocol):
    """Lookups the core consumes. Implementations raise LookupUnavailable on failure."""

    def reverse_geocode(self, latitude: float, longitude: float) -> str: ...

    def find_nearest_police_station(self, latitude: float, longitude: float) -> PoliceInfo: ...

    def get_hotlines(self, area_description: str) -> list[Hotline]: ...

    def get_legal_rights(self, area_description: str) -> str: ...


class _Answer(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class AddressAnswer(_Answer):
    address: str = Field(min_length=1)


class PoliceAnswer(_Answer):
    text: str = Field(min_length=1)
    links: list[str] = Field(default_factory=list)


class HotlineAnswer(_Answer):
    name: str = Field(min_length=1)
    number: str = Field(min_length=1)


class HotlinesAnswer(_Answer):
    hotlines: list[HotlineAnswer]


class LegalAnswer(_Answer):
    text: str = Field(min_length=1)


AnswerT = TypeVar("AnswerT", bound=BaseModel)


def parse_answer(raw: str | dict[str, Any], model: type[AnswerT]) -> AnswerT:
    """Validate a provider answer. Raises pydantic.ValidationError."""
    if isinstance(raw, dict):
        return model.model_validate(raw)
    return model.model_validate_json(_CODE_FENCE.sub("", raw.strip()))


def _prompt(task: str, payload: dict[str, Any], model: type[BaseModel]) -> str:
    return (
        "You are a personal-safety information service. "
        "Answer factually for the given location and return only JSON matching the schema.\n\n"
        f"Task:\n{task}\n\n"
        f"Input:\n{json.dumps(payload, ensure_ascii=True)}\n\n"
        f"JSON schema:\n{json.dumps(model.model_json_schema(), ensure_ascii=True)}"
    )


class AILocationLookup:
    """LocationLookup backed by JSON answers from the configured model provider."""

    def __init__(self, provider: str | None = None) -> None:
        self.provider = provider or settings.lookup_provider

    def ask(self, task: str, payload: dict[str, Any], model: type[AnswerT]) -> AnswerT:
        """Ask for an answer shaped like model, re-prompting once with the validation error."""
        prompt = _prompt(task, payload, model)
        error: ValidationError | None = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            raw = ai_service.complete(self.provider, prompt, model)
            try:
                return parse_answer(raw, model)
            except ValidationError as exc:
                error = exc
                logger.debug("%s answer rejected on attempt %s: %s", self.provider, attempt, exc)
                prompt = (
                    "Your previous output was invalid. Fix it and return only valid JSON.\n\n"
                    f"Validation error:\n{exc}\n\n"
                    f"Previous invalid output:\n{raw}\n\n" + _prompt(task, payload, model)
                )
        raise AIServiceError(f"{self.provider} gave no valid {model.__name__} after {MAX_ATTEMPTS} attempts: {error}")

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        answer = self.ask(
            "Give a short human-readable street address (area, city) for these coordinates.",
            {"latitude": latitude, "longitude": longitude},
            AddressAnswer,
        )
        return answer.address

    def find_nearest_police_station(self, latitude: float, longitude: float) -> PoliceInfo:
        answer = self.ask(
            "Name the nearest police station to these coordinates with its address and phone, "
            "plus map or website links for it.",
            {"latitude": latitude, "longitude": longitude},
            PoliceAnswer,
        )
        return PoliceInfo(text=answer.text, links=[link for link in answer.links if link])

    def get_hotlines(self, area_description: str) -> list[Hotline]:
        answer = self.ask(
            "List emergency and women's safety helpline numbers that work in this area.",
            {"area": area_description},
            HotlinesAnswer,
        )
        return [Hotline(name=h.name, number=h.number) for h in answer.hotlines]

    def get_legal_rights(self, area_description: str) -> str:
        answer = self.ask(
            "Summarize, in plain language, the legal rights of a person facing harassment "
            "or violence in this area and how to file a complaint.",
            {"area": area_description},
            LegalAnswer,
        )
        return answer.text
