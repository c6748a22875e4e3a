import os
import random
from types import MappingProxyType
from typing import Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict

from synapse.core.errors import PersonalityNotFoundError

PERSONALITIES_PATH = os.path.join(os.path.dirname(__file__), "personalities.yaml")


class ResponsePatterns(BaseModel):
    model_config = ConfigDict(frozen=True)

    greeting: tuple[str, ...]
    confusion: tuple[str, ...]
    understanding: tuple[str, ...]
    encouragement: tuple[str, ...]
    follow_up: tuple[str, ...]


class Personality(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    age: str | None = None
    traits: tuple[str, ...]
    learning_style: str
    difficulty_preference: str       # "simple" | "moderate" | "complex"
    response_patterns: ResponsePatterns
    system_prompt: str

    def random_response(self, kind: str, rng: Optional[random.Random] = None) -> str:
        responses = getattr(self.response_patterns, kind)
        return (rng or random).choice(responses)

    def system_prompt_for(self, topic: str) -> str:
        return (
            f"{self.system_prompt}\n\n"
            f"Current topic being taught: {topic}\n\n"
            "Remember to:\n"
            f"- Stay in character as {self.name}\n"
            f"- Reflect the traits: {', '.join(self.traits)}\n"
            "- Use response patterns that match your personality\n"
            f"- Adjust complexity based on your difficulty preference ({self.difficulty_preference})\n"
            f"- Learn in your preferred style: {self.learning_style}"
        )


def load_personalities(path: str = PERSONALITIES_PATH) -> Mapping[str, Personality]:
    """Reads the personality table once; the returned mapping is read-only."""
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    table = {key: Personality(id=key, **data) for key, data in raw.items()}
    return MappingProxyType(table)


PERSONALITIES = load_personalities()


def get_personality(personality_id: str) -> Personality:
    try:
        return PERSONALITIES[personality_id]
    except KeyError:
        raise PersonalityNotFoundError(personality_id) from None
