"""
Natural-language editing of an existing image.

An explicit user edit that fails must be visible, so provider failures
propagate. A successful answer that simply carries no image is a valid
"no edit produced" outcome and yields ``None``.
"""

from collections.abc import Awaitable, Callable

from google.genai import types

from nest_planner.client import GenerationClient
from nest_planner.config import config as app_config
from nest_planner.models import MediaAsset
from nest_planner.services.base import BaseGenerationService, ServiceConfig, first_inline_data
from nest_planner.utils.error_handling import ValidationError
from nest_planner.utils.helpers import DEFAULT_IMAGE_MIME, is_data_uri
from nest_planner.utils.http import fetch_bytes

ImageFetcher = Callable[[str], Awaitable[tuple[bytes, str | None]]]


class ImageEditService(BaseGenerationService):
    """Applies an edit instruction to an image with the image model."""

    def __init__(
        self,
        client: GenerationClient | None = None,
        config: ServiceConfig | None = None,
        fetcher: ImageFetcher | None = None,
    ):
        super().__init__(
            config
            or ServiceConfig.from_model(
                "image_edit_service", app_config.get_model("image")
            ),
            client,
        )
        self.fetcher = fetcher or (lambda url: fetch_bytes(url, service_name="image"))

    async def to_inline(self, asset: MediaAsset) -> tuple[bytes, str]:
        """
        Normalize an asset to (bytes, MIME type), downloading URL assets.

        Data URIs stored in the ``url`` field are decoded in place.
        """
        if asset.data is not None:
            return asset.data, asset.mime_type or DEFAULT_IMAGE_MIME

        url = asset.url or ""
        if is_data_uri(url):
            try:
                inline = MediaAsset.from_data_uri(url)
            except ValueError as e:
                raise ValidationError(f"Invalid image data URI: {e!s}") from e
            return inline.data, inline.mime_type or DEFAULT_IMAGE_MIME

        data, content_type = await self.fetcher(url)
        if content_type and content_type.startswith("image/"):
            return data, content_type
        return data, DEFAULT_IMAGE_MIME

    async def edit_image(self, asset: MediaAsset, instruction: str) -> MediaAsset | None:
        """
        Edit ``asset`` according to ``instruction``.

        Returns:
            The edited image, or None if the model produced no image

        Raises:
            ValidationError: If the instruction is empty
            ConfigurationError: If no credential resolves
            ProviderError: If the remote call (or the source download) fails
        """
        if not instruction.strip():
            raise ValidationError("Edit instruction must not be empty")

        api_client, _ = self.client.require_client()
        data, mime_type = await self.to_inline(asset)

        self.log.info(f"Editing image ({len(data)} bytes, {mime_type})")
        response = await self._generate_content(
            [
                types.Part.from_bytes(data=data, mime_type=mime_type),
                types.Part.from_text(text=instruction),
            ],
            api_client=api_client,
        )

        inline = first_inline_data(response)
        if inline is None:
            self.log.warning("Image model answered without an edited image")
            return None

        edited, edited_mime = inline
        return MediaAsset.from_bytes(edited, edited_mime)
