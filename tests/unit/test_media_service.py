"""Tests for cover image and video teaser generation."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from nest_planner.client import CredentialProvider, GenerationClient
from nest_planner.services.base import ServiceConfig
from nest_planner.services.media import (
    STOCK_IMAGE_FALLBACK,
    STOCK_IMAGE_NO_CREDENTIAL,
    MediaGenerationService,
    authenticated_download_url,
    build_teaser_prompt,
)
from nest_planner.utils.error_handling import ProviderError
from tests.unit.fakes import FakeClock, make_part, make_response

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"


def pending_operation():
    return SimpleNamespace(done=False, error=None, response=None)


def finished_operation(uri=VIDEO_URI):
    video = SimpleNamespace(video=SimpleNamespace(uri=uri))
    return SimpleNamespace(
        done=True, error=None, response=SimpleNamespace(generated_videos=[video])
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return AsyncMock(return_value=(b"\x00\x00\x00\x18ftypmp42", None))


def make_service(client, clock, fetcher, **kwargs):
    return MediaGenerationService(
        client=client,
        config=ServiceConfig(name="media_service", model="gemini-2.5-flash-image"),
        video_model="veo-3.1-fast-generate-preview",
        poll_interval=10,
        max_polls=60,
        sleep=clock.sleep,
        fetcher=fetcher,
        **kwargs,
    )


def test_download_url_appends_key():
    assert authenticated_download_url(VIDEO_URI, "k").endswith("?alt=media&key=k")
    assert authenticated_download_url("https://x/v.mp4", "k") == "https://x/v.mp4?key=k"


def test_teaser_prompt_includes_vibe():
    assert "Relaxing beach days." in build_teaser_prompt("Bali", "Relaxing beach days")
    assert build_teaser_prompt("Bali", None).startswith("Cinematic drone shot of Bali.")


async def test_cover_image_without_key_uses_stock(
    unconfigured_client, mock_gemini_client, clock, fetcher
):
    service = make_service(unconfigured_client, clock, fetcher)

    asset = await service.generate_cover_image("Kyoto")

    assert asset.url == STOCK_IMAGE_NO_CREDENTIAL
    mock_gemini_client.aio.models.generate_content.assert_not_called()


async def test_cover_image_returns_inline_bytes(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_content.return_value = make_response(
        parts=[make_part(text="here"), make_part(data=b"png-bytes", mime_type="image/png")]
    )
    service = make_service(generation_client, clock, fetcher)

    asset = await service.generate_cover_image("Kyoto")

    assert asset.data == b"png-bytes"
    assert asset.mime_type == "image/png"


async def test_cover_image_failure_uses_fallback(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_content.side_effect = ProviderError("quota")
    service = make_service(generation_client, clock, fetcher)

    asset = await service.generate_cover_image("Kyoto")

    assert asset.url == STOCK_IMAGE_FALLBACK


async def test_cover_image_without_image_part_uses_fallback(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_content.return_value = make_response(
        "I cannot draw that", parts=[make_part(text="I cannot draw that")]
    )
    service = make_service(generation_client, clock, fetcher)

    asset = await service.generate_cover_image("Kyoto")

    assert asset.url == STOCK_IMAGE_FALLBACK


async def test_teaser_without_key_is_none(unconfigured_client, clock, fetcher):
    service = make_service(unconfigured_client, clock, fetcher)
    assert await service.generate_video_teaser("Bali") is None


async def test_teaser_gives_up_after_poll_ceiling(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_videos = AsyncMock(
        return_value=pending_operation()
    )
    mock_gemini_client.aio.operations.get = AsyncMock(return_value=pending_operation())
    service = make_service(generation_client, clock, fetcher)

    result = await service.generate_video_teaser("Bali", "Relaxing beach days")

    assert result is None
    assert mock_gemini_client.aio.operations.get.await_count == 60
    assert clock.sleeps == [10] * 60
    assert clock.now == 600
    fetcher.assert_not_called()


async def test_teaser_downloads_finished_video(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_videos = AsyncMock(
        return_value=pending_operation()
    )
    mock_gemini_client.aio.operations.get = AsyncMock(
        side_effect=[pending_operation(), finished_operation()]
    )
    service = make_service(generation_client, clock, fetcher)

    asset = await service.generate_video_teaser("Bali")

    assert asset.mime_type == "video/mp4"
    assert asset.data.startswith(b"\x00\x00\x00\x18")
    assert clock.now == 20
    fetcher.assert_awaited_once_with(VIDEO_URI + "&key=test-key")
    kwargs = mock_gemini_client.aio.models.generate_videos.call_args.kwargs
    assert kwargs["model"] == "veo-3.1-fast-generate-preview"
    assert kwargs["config"].resolution == "720p"
    assert kwargs["config"].aspect_ratio == "16:9"


async def test_teaser_operation_error_is_none(
    generation_client, mock_gemini_client, clock, fetcher
):
    failed = SimpleNamespace(done=True, error={"message": "safety"}, response=None)
    mock_gemini_client.aio.models.generate_videos = AsyncMock(return_value=failed)
    service = make_service(generation_client, clock, fetcher)

    assert await service.generate_video_teaser("Bali") is None
    assert clock.sleeps == []


async def test_model_access_denied_retries_once_with_new_key(clock, fetcher):
    keys = {"API_KEY": "old-key"}
    api = MagicMock()
    api.aio.models.generate_videos = AsyncMock(
        side_effect=[
            ProviderError("Requested entity was not found.", status_code=404),
            finished_operation(),
        ]
    )
    created_with = []

    def factory(api_key):
        created_with.append(api_key)
        return api

    async def select_new_key():
        keys["API_KEY"] = "new-key"

    selector = MagicMock()
    selector.has_selected_credential = AsyncMock(return_value=True)
    selector.prompt_select_credential = AsyncMock(side_effect=select_new_key)
    client = GenerationClient(CredentialProvider.from_mapping(keys), factory)
    service = make_service(client, clock, fetcher, selector=selector)

    asset = await service.generate_video_teaser("Bali")

    assert asset is not None
    assert created_with == ["old-key", "new-key"]
    assert selector.prompt_select_credential.await_count == 1
    fetcher.assert_awaited_once_with(VIDEO_URI + "&key=new-key")


async def test_retry_happens_only_once(generation_client, mock_gemini_client, clock, fetcher):
    not_found = ProviderError("Requested entity was not found.", status_code=404)
    mock_gemini_client.aio.models.generate_videos = AsyncMock(side_effect=not_found)
    selector = MagicMock()
    selector.has_selected_credential = AsyncMock(return_value=True)
    selector.prompt_select_credential = AsyncMock()
    service = make_service(generation_client, clock, fetcher, selector=selector)

    assert await service.generate_video_teaser("Bali") is None
    assert mock_gemini_client.aio.models.generate_videos.await_count == 2
    assert selector.prompt_select_credential.await_count == 1


async def test_model_access_denied_without_selector_is_none(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_videos = AsyncMock(
        side_effect=ProviderError("not found", status_code=404)
    )
    service = make_service(generation_client, clock, fetcher)

    assert await service.generate_video_teaser("Bali") is None
    assert mock_gemini_client.aio.models.generate_videos.await_count == 1


async def test_other_failures_are_not_retried(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_videos = AsyncMock(
        side_effect=ProviderError("quota exceeded", status_code=429)
    )
    selector = MagicMock()
    selector.has_selected_credential = AsyncMock(return_value=True)
    selector.prompt_select_credential = AsyncMock()
    service = make_service(generation_client, clock, fetcher, selector=selector)

    assert await service.generate_video_teaser("Bali") is None
    selector.prompt_select_credential.assert_not_called()


async def test_unselected_key_prompts_before_generation(
    generation_client, mock_gemini_client, clock, fetcher
):
    mock_gemini_client.aio.models.generate_videos = AsyncMock(
        return_value=finished_operation()
    )
    selector = MagicMock()
    selector.has_selected_credential = AsyncMock(return_value=False)
    selector.prompt_select_credential = AsyncMock()
    service = make_service(generation_client, clock, fetcher, selector=selector)

    assert await service.generate_video_teaser("Bali") is not None
    selector.prompt_select_credential.assert_awaited_once()
