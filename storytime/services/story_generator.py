"""Content generator: turns a child profile and story parameters into a story.

Builds the instruction for the text model, calls it through ``LLMService``
and parses the ``TITLE: ... / --- / content`` reply convention.
"""

import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from storytime.config import get_app_config
from storytime.errors import ContentSafetyError, GenerationError
from storytime.models.child_profile import ChildProfile
from storytime.services.llm import LLMConfigurationError, LLMService, get_llm_service

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Story"
DEFAULT_READING_LEVEL = "intermediate"

TITLE_PATTERN = re.compile(r"TITLE:\s*(.+?)\s*(?:\n|---)")
CONTENT_PATTERN = re.compile(r"---[ \t]*\n([\s\S]+)")


@dataclass
class StoryParams:
    """Caller's choices for one story."""

    theme: str | None = None
    custom_prompt: str | None = None
    story_length: str = "medium"
    custom_word_count: int | None = None
    reading_level: str | None = None
    story_about: str = "child"
    custom_character_name: str | None = None

    @property
    def character_name_override(self) -> str | None:
        if self.story_about == "other_character" and self.custom_character_name:
            return self.custom_character_name
        return None


@dataclass
class GeneratedStory:
    title: str
    content: str
    prompt: str


class ContentGenerator(Protocol):
    async def generate(self, profile: ChildProfile, params: StoryParams) -> GeneratedStory: ...


def target_word_count(params: StoryParams) -> int:
    lengths = get_app_config().story_lengths
    if params.story_length == "custom" and params.custom_word_count:
        return params.custom_word_count
    return lengths.get(params.story_length, lengths["medium"])


def build_system_prompt(profile: ChildProfile, params: StoryParams) -> str:
    reading_level = params.reading_level or profile.reading_level or DEFAULT_READING_LEVEL
    return f"""You are a talented children's story writer who creates age-appropriate, engaging, and safe bedtime stories.
Your stories should be:
- Appropriate for a {profile.age or 6} year old child
- Written at a {reading_level} reading level
- Safe and positive with {profile.content_safety or "strict"} content guidelines
- Approximately {target_word_count(params)} words long
- Engaging and imaginative with a clear beginning, middle, and end
- Include a gentle moral or lesson when appropriate"""


def build_user_prompt(profile: ChildProfile, params: StoryParams) -> str:
    other_character = params.character_name_override
    parts = []
    if other_character:
        parts.append(
            f"Write a bedtime story for {profile.name} about a character named {other_character}."
        )
    else:
        parts.append(f"Write a bedtime story for {profile.name}, starring {profile.name}.")

    if profile.interests:
        parts.append(f"{profile.name} loves: {', '.join(profile.interests)}.")

    if params.theme:
        parts.append(f"The story theme should be: {params.theme}.")
    elif profile.favorite_themes:
        parts.append(f"Choose from these favorite themes: {', '.join(profile.favorite_themes)}.")

    if params.custom_prompt:
        parts.append(f"Additional requirements: {params.custom_prompt}")

    parts.append("\nPlease format your response as:\nTITLE: [Story Title]\n---\n[Story Content]")
    return " ".join(parts)


def parse_story_response(text: str) -> tuple[str, str]:
    """Split a model reply into ``(title, content)``.

    A reply without the expected markers is still usable: the title falls
    back to a default and the whole reply (minus any TITLE line) becomes the
    content.
    """
    text = text.strip()
    title_match = TITLE_PATTERN.search(text)
    content_match = CONTENT_PATTERN.search(text)

    title = title_match.group(1).strip() if title_match else DEFAULT_TITLE
    if content_match:
        content = content_match.group(1).strip()
    elif title_match:
        content = text[title_match.end():].strip() or text
    else:
        content = text

    if not title_match:
        logger.warning("Story response had no TITLE line, using default title")
    return title, content


def check_content_safety(content: str, level: str) -> None:
    """Raise ``ContentSafetyError`` if the content uses a term blocked at ``level``."""
    blocked = get_app_config().safety.get(level, [])
    lowered = content.lower()
    for term in blocked:
        if re.search(rf"\b{re.escape(term.lower())}\b", lowered):
            raise ContentSafetyError(
                f"Generated story did not pass the {level} content safety check"
            )


class StoryGenerator:
    """Content generator backed by the chat completion API."""

    def __init__(self, llm: LLMService | None = None) -> None:
        self.llm = llm or get_llm_service()
        self.config = get_app_config().generation

    async def generate(self, profile: ChildProfile, params: StoryParams) -> GeneratedStory:
        system_prompt = build_system_prompt(profile, params)
        user_prompt = build_user_prompt(profile, params)

        try:
            text = await self.llm.generate(
                prompt=user_prompt,
                system_prompt=system_prompt,
                temperature=self.config.get("temperature", 0.8),
                max_tokens=self.config.get("max_tokens", 2000),
            )
        except LLMConfigurationError as e:
            raise GenerationError(str(e)) from e
        except httpx.TimeoutException as e:
            logger.error(f"Story generation timed out: {e}")
            raise GenerationError("Story generation timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Story generation upstream error: HTTP {status}")
            if status in (401, 403):
                raise GenerationError("Story generation service rejected the credentials") from e
            raise GenerationError(f"Story generation service error (HTTP {status})") from e
        except httpx.HTTPError as e:
            logger.error(f"Story generation service unreachable: {e}")
            raise GenerationError("Story generation service is unreachable") from e

        if not text or not text.strip():
            raise GenerationError("No story generated")

        title, content = parse_story_response(text)
        check_content_safety(content, profile.content_safety or "strict")
        return GeneratedStory(title=title, content=content, prompt=user_prompt)
