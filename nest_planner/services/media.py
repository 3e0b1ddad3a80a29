"""
Cover image and video teaser generation.

Both outputs are cosmetic: a failed cover image falls back to stock
photography and a failed teaser simply yields ``None``, so media problems
never block trip creation.

The teaser is a long-running operation polled on a fixed interval up to a
fixed ceiling. It is also the single place where a failed call is retried:
when the provider reports that the key has no access to the video model
and the host can prompt for another key, the whole generation is retried
exactly once with the newly selected credential.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from google.genai import types
from tenacity import AsyncRetrying, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from nest_planner.client import CredentialSelector, GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import MediaAsset
from nest_planner.services.base import BaseGenerationService, ServiceConfig, first_inline_data
from nest_planner.utils.error_handling import (
    GeminiErrorClassifier,
    ProviderError,
    ProviderErrorClassifier,
    wrap_provider_errors,
)
from nest_planner.utils.http import fetch_bytes

STOCK_IMAGE_NO_CREDENTIAL = (
    "https://images.unsplash.com/photo-1476514525535-07fb3b4ae5f1"
    "?q=80&w=2070&auto=format&fit=crop"
)
STOCK_IMAGE_FALLBACK = (
    "https://images.unsplash.com/photo-1469854523086-cc02fe5d8800"
    "?q=80&w=2021&auto=format&fit=crop"
)
DEFAULT_VIDEO_MIME = "video/mp4"

Sleep = Callable[[float], Awaitable[None]]
VideoFetcher = Callable[[str], Awaitable[tuple[bytes, str | None]]]


def build_cover_prompt(destination: str) -> str:
    return (
        f"A breathtaking, cinematic, 4k highly detailed travel photography shot of "
        f"{destination} at golden hour. Wide angle, vibrant colors, photorealistic, "
        "professional travel magazine style. No text."
    )


def build_teaser_prompt(destination: str, vibe: str | None) -> str:
    vibe_text = f" {vibe.strip()}." if vibe and vibe.strip() else ""
    return (
        f"Cinematic drone shot of {destination}.{vibe_text} 4k, hyper-realistic, "
        "travel documentary style, wide angle, slow smooth motion."
    )


def authenticated_download_url(uri: str, credential: str) -> str:
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}key={credential}"


class MediaGenerationService(BaseGenerationService):
    """
    Generates cover images and video teasers for a destination.

    Args:
        client: Credential-aware client factory (optional)
        config: Service configuration for the image model (optional)
        video_model: Video model name (optional)
        selector: Host hook for interactive key selection (optional)
        classifier: Decides when a failure means "no video model access"
        poll_interval: Seconds between operation polls
        max_polls: Poll ceiling before the teaser is abandoned
        sleep: Awaitable sleep used between polls
        fetcher: Downloads the finished video, returning (bytes, content type)
    """

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
        video_model: str | None = None,
        selector: CredentialSelector | None = None,
        classifier: ProviderErrorClassifier | None = None,
        poll_interval: float | None = None,
        max_polls: int | None = None,
        sleep: Sleep | None = None,
        fetcher: VideoFetcher | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model("media_service", app_config.get_model("image")),
            client,
        )
        self.video_model = video_model or app_config.get_model("video").name
        self.selector = selector
        self.classifier = classifier or GeminiErrorClassifier()
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else app_config.pipeline.video_poll_interval_seconds
        )
        self.max_polls = (
            max_polls if max_polls is not None else app_config.pipeline.video_max_polls
        )
        self.sleep = sleep or asyncio.sleep
        self.fetcher = fetcher or (lambda url: fetch_bytes(url, service_name="veo"))

    async def generate_cover_image(self, destination: str) -> MediaAsset:
        """
        Generate a cover image, falling back to stock photography.

        Never raises for provider or configuration problems.
        """
        credential = self.client.resolve_credential()
        if not credential:
            self.log.warning("No API key configured, using stock cover image")
            return MediaAsset.from_url(STOCK_IMAGE_NO_CREDENTIAL)

        try:
            response = await self._generate_content(
                build_cover_prompt(destination),
                api_client=self.client.create_client(credential),
            )
        except Exception as e:
            self.log.warning(f"Cover image generation failed: {e!s}")
            return MediaAsset.from_url(STOCK_IMAGE_FALLBACK)

        inline = first_inline_data(response)
        if inline is None:
            self.log.warning("Image model returned no image data, using stock image")
            return MediaAsset.from_url(STOCK_IMAGE_FALLBACK)

        data, mime_type = inline
        self.log.info(f"Generated cover image for {destination} ({len(data)} bytes)")
        return MediaAsset.from_bytes(data, mime_type)

    async def generate_video_teaser(
        self, destination: str, vibe: str | None = None
    ) -> MediaAsset | None:
        """
        Generate a short cinematic teaser video.

        Returns:
            The video as an inline asset, or None when no key is configured,
            the poll ceiling is reached, or generation fails
        """
        await self._ensure_credential_selected()

        credential = self.client.resolve_credential()
        if not credential:
            self.log.warning("No API key configured, skipping video teaser")
            return None

        try:
            return await self._run_generation(credential, destination, vibe)
        except Exception as e:
            self.log.error(f"Video teaser generation failed: {e!s}")
            if self.selector is None or not self.classifier.is_model_access_denied(e):
                return None
            return await self._retry_with_new_credential(destination, vibe)

    async def _ensure_credential_selected(self) -> None:
        if self.selector is None:
            return
        try:
            if not await self.selector.has_selected_credential():
                await self.selector.prompt_select_credential()
        except Exception as e:
            self.log.warning(f"Interactive key selection failed: {e!s}")

    async def _retry_with_new_credential(
        self, destination: str, vibe: str | None
    ) -> MediaAsset | None:
        self.log.warning("Video model access denied, prompting for another API key")
        try:
            await self.selector.prompt_select_credential()
            new_credential = self.client.resolve_credential()
            if not new_credential:
                return None
            self.log.info("Retrying video generation with the newly selected key")
            return await self._run_generation(new_credential, destination, vibe)
        except Exception as e:
            self.log.error(f"Video teaser retry failed: {e!s}")
            return None

    async def _run_generation(
        self, credential: str, destination: str, vibe: str | None
    ) -> MediaAsset | None:
        api_client = self.client.create_client(credential)
        prompt = build_teaser_prompt(destination, vibe)
        self.log.log_llm_input(self.video_model, prompt, None)

        with wrap_provider_errors("veo"):
            operation = await api_client.aio.models.generate_videos(
                model=self.video_model,
                prompt=prompt,
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    resolution="720p",
                    aspect_ratio="16:9",
                ),
            )
            operation = await self._wait_for_operation(api_client, operation)

        if not operation.done:
            self.log.warning(
                f"Video generation timed out after {self.max_polls} polls"
            )
            return None

        if getattr(operation, "error", None):
            raise ProviderError(f"Video operation failed: {operation.error}", "veo")

        video_uri = _video_uri(operation)
        if not video_uri:
            self.log.warning("Video operation completed without a video")
            return None

        data, content_type = await self.fetcher(
            authenticated_download_url(video_uri, credential)
        )
        self.log.info(f"Downloaded teaser video ({len(data)} bytes)")
        return MediaAsset.from_bytes(data, content_type or DEFAULT_VIDEO_MIME)

    async def _wait_for_operation(self, api_client: Any, operation: Any) -> Any:
        """
        Poll ``operation`` every ``poll_interval`` seconds, at most
        ``max_polls`` times, returning the last observed state.
        """
        current = operation
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_result(lambda op: not op.done),
                stop=stop_after_attempt(self.max_polls + 1),
                wait=wait_fixed(self.poll_interval),
                sleep=self.sleep,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        self.log.debug(
                            f"Polling video operation "
                            f"({attempt.retry_state.attempt_number - 1}/{self.max_polls})"
                        )
                        current = await api_client.aio.operations.get(current)
                if not attempt.retry_state.outcome.failed:
                    attempt.retry_state.set_result(current)
        except RetryError:
            pass
        return current


def _video_uri(operation: Any) -> str | None:
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) or []
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None)
