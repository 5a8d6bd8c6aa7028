"""Illustration service for Replicate image predictions."""

import asyncio
import logging
from typing import Any

import httpx

from storytime.config import get_app_config, get_settings

logger = logging.getLogger(__name__)

NEGATIVE_PROMPT = "scary, dark, violent, inappropriate, adult content"
IN_PROGRESS = ("starting", "processing")


def build_scene_prompts(character_name: str, theme: str | None, count: int) -> list[str]:
    setting = theme or "magical"
    scenes = [
        f"{character_name} beginning their adventure, {setting} setting",
        f"{character_name} meeting new friends, magical {setting} scene",
        f"{character_name} facing a gentle challenge, {setting} environment",
        f"{character_name} celebrating with friends, happy {setting} scene",
    ]
    return scenes[:count]


class IllustrationService:
    """Generates story illustrations.

    Image generation is best effort: any upstream failure is logged and the
    illustrations produced so far are returned, so a story is never lost
    because its pictures could not be drawn.
    """

    def __init__(self) -> None:
        self.settings = get_settings()
        self.config = get_app_config().illustrations
        self.base_url = self.settings.replicate_base_url.rstrip("/")
        self.api_token = self.settings.replicate_api_token

    @property
    def enabled(self) -> bool:
        return bool(self.api_token)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.api_token}",
            "Content-Type": "application/json",
        }

    async def generate(
        self, character_name: str, theme: str | None, art_style: str = "watercolor"
    ) -> list[str]:
        """Return image URLs for a handful of scenes from the story."""
        if not self.enabled:
            logger.warning("Replicate API token not configured, skipping illustrations")
            return []

        prompts = build_scene_prompts(character_name, theme, self.config.get("count", 4))
        images: list[str] = []
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                for prompt in prompts:
                    url = await self._generate_one(client, prompt, art_style)
                    if url:
                        images.append(url)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Illustration generation failed after {len(images)} images: {e}")
        return images

    async def _generate_one(
        self, client: httpx.AsyncClient, prompt: str, art_style: str
    ) -> str | None:
        response = await client.post(
            f"{self.base_url}/predictions",
            headers=self._headers(),
            json={
                "version": self.settings.replicate_model_version,
                "input": {
                    "prompt": (
                        f"{prompt}, children's book illustration, {art_style} style, "
                        "bright colors, friendly and magical, safe for children"
                    ),
                    "negative_prompt": NEGATIVE_PROMPT,
                    "width": self.config.get("width", 768),
                    "height": self.config.get("height", 512),
                    "num_inference_steps": 20,
                    "guidance_scale": 7.5,
                },
            },
        )
        response.raise_for_status()
        prediction: dict[str, Any] = response.json()

        polls = 0
        while prediction.get("status") in IN_PROGRESS:
            if polls >= self.config.get("max_polls", 120):
                logger.warning(f"Prediction {prediction.get('id')} did not finish in time")
                return None
            await asyncio.sleep(self.config.get("poll_interval_seconds", 1.0))
            poll = await client.get(
                f"{self.base_url}/predictions/{prediction['id']}", headers=self._headers()
            )
            poll.raise_for_status()
            prediction = poll.json()
            polls += 1

        output = prediction.get("output")
        if prediction.get("status") == "succeeded" and output:
            return output[0] if isinstance(output, list) else str(output)

        logger.warning(
            f"Prediction {prediction.get('id')} ended with status {prediction.get('status')}"
        )
        return None
