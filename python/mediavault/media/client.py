"""Cloudinary media provider client.

Provides a clean interface for the provider operations the service needs:
- Chunked, signed video upload with a compression policy
- Signed image upload with a fixed public id and context
- Admin resource lookup for image metadata

Requests are signed with the API secret (SHA-1 over the sorted parameters);
the secret itself is never sent. A FakeMediaClient keeps uploads in memory
for tests.
"""

import hashlib
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import httpx

from mediavault.logging import get_logger
from mediavault.media.chunked import DEFAULT_CHUNK_SIZE, ChunkedUpload, ChunkedUploadError
from mediavault.media.compression import CompressionPolicy
from mediavault.media.transformations import chain_to_string, eager_to_string
from mediavault.media.urls import DEFAULT_DELIVERY_BASE_URL, DeliveryUrls

logger = get_logger(__name__)

DEFAULT_API_BASE_URL = "https://api.cloudinary.com/v1_1"
DEFAULT_TIMEOUT_S = 300.0

IMAGE_UPLOAD_TRANSFORMATION = "q_auto:good,f_auto,fl_progressive"

# Upload parameters that are sent but never signed
UNSIGNED_PARAMS = frozenset({"file", "api_key", "resource_type", "cloud_name", "signature"})


@dataclass(frozen=True)
class UploadResult:
    """Provider response for a finished upload.

    Only ``public_id`` is guaranteed; everything else depends on resource type.
    """

    public_id: str
    secure_url: str
    bytes: int
    resource_type: str = "video"
    format: str | None = None
    width: int | None = None
    height: int | None = None
    duration: float | None = None
    transformations: list[dict[str, Any]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "UploadResult":
        transformation = data.get("transformation") or []
        if isinstance(transformation, dict):
            transformation = [transformation]
        duration = data.get("duration")
        return cls(
            public_id=data["public_id"],
            secure_url=data.get("secure_url") or data.get("url") or "",
            bytes=int(data.get("bytes") or 0),
            resource_type=data.get("resource_type") or "video",
            format=data.get("format"),
            width=data.get("width"),
            height=data.get("height"),
            duration=float(duration) if duration is not None else None,
            transformations=list(transformation) if isinstance(transformation, list) else [],
            tags=list(data.get("tags") or []),
            raw=dict(data),
        )


class MediaProviderError(Exception):
    """Media provider operation error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def format_param(value: Any) -> str:
    """Render an upload parameter value the way the provider expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def encode_context(context: Mapping[str, Any]) -> str:
    """Encode a context map as ``key=value|key=value`` with ``=`` and ``|`` escaped."""

    def escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace("=", "\\=").replace("|", "\\|")

    return "|".join(f"{escape(str(k))}={escape(str(v))}" for k, v in context.items())


def sign_params(params: Mapping[str, Any], api_secret: str) -> str:
    """Compute the request signature.

    Parameters are sorted by name and joined as ``k=v`` with ``&``; empty
    values and UNSIGNED_PARAMS are skipped; the secret is appended and the
    whole string SHA-1 hashed.
    """
    to_sign = "&".join(
        f"{key}={format_param(value)}"
        for key, value in sorted(params.items())
        if key not in UNSIGNED_PARAMS and value is not None and value != ""
    )
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class MediaClientBase(ABC):
    """Abstract base class for media provider clients."""

    urls: DeliveryUrls

    @abstractmethod
    def upload_video(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        policy: CompressionPolicy,
    ) -> UploadResult:
        """Upload a video in sequential chunks, applying the compression policy.

        Raises:
            MediaProviderError: If any chunk is rejected or no result is returned.
        """
        ...

    @abstractmethod
    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        public_id: str,
        context: Mapping[str, Any],
    ) -> UploadResult:
        """Upload an image under a caller-chosen public id.

        Raises:
            MediaProviderError: If the provider rejects the upload.
        """
        ...

    @abstractmethod
    def get_image_resource(self, public_id: str) -> dict[str, Any]:
        """Fetch provider metadata (size, colors, context) for an image.

        Raises:
            MediaProviderError: If the lookup fails or the image does not exist.
        """
        ...

    def close(self) -> None:
        """Release network resources."""
        return None


class CloudinaryClient(MediaClientBase):
    """Production Cloudinary client over the REST upload and admin APIs."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        delivery_base_url: str = DEFAULT_DELIVERY_BASE_URL,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        http_client: httpx.Client | None = None,
    ):
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._api_url = f"{api_base_url.rstrip('/')}/{cloud_name}"
        self._chunk_size = chunk_size
        self._http = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout_s, connect=10.0),
        )
        self.urls = DeliveryUrls(cloud_name=cloud_name, base_url=delivery_base_url)

    @classmethod
    def from_settings(cls, settings) -> "CloudinaryClient":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            api_base_url=settings.cloudinary_api_base_url,
            delivery_base_url=settings.cloudinary_delivery_base_url,
            chunk_size=settings.upload_chunk_bytes,
            timeout_s=float(settings.media_upload_timeout_s),
        )

    def _signed(self, params: Mapping[str, Any]) -> dict[str, str]:
        """Add timestamp, api_key and signature; render every value as a string."""
        payload = {k: v for k, v in params.items() if v is not None and v != ""}
        payload["timestamp"] = int(time.time())
        signature = sign_params(payload, self._api_secret)
        rendered = {k: format_param(v) for k, v in payload.items()}
        rendered["api_key"] = self._api_key
        rendered["signature"] = signature
        return rendered

    def _parse_response(self, response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message = body["error"].get("message")
            raise MediaProviderError(
                message or f"Provider returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise MediaProviderError("Provider returned a malformed response")
        return body

    def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._http.post(url, **kwargs)
        except httpx.HTTPError as e:
            raise MediaProviderError(f"Provider request failed: {e}") from e
        return self._parse_response(response)

    def upload_video(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        policy: CompressionPolicy,
    ) -> UploadResult:
        params: dict[str, Any] = {
            "folder": folder,
            "transformation": chain_to_string(policy.transformation),
        }
        if policy.eager:
            params["eager"] = eager_to_string(policy.eager)
            params["eager_async"] = policy.eager_async

        # One signature and upload id for every chunk of this upload
        form = self._signed(params)
        upload_id = uuid4().hex
        url = f"{self._api_url}/auto/upload"

        def send_chunk(chunk: bytes, start: int, total: int) -> dict[str, Any]:
            last = max(start + len(chunk) - 1, start)
            headers = {
                "X-Unique-Upload-Id": upload_id,
                "Content-Range": f"bytes {start}-{last}/{total}",
            }
            return self._post(
                url,
                data=form,
                files={"file": (filename, chunk, content_type)},
                headers=headers,
            )

        upload = ChunkedUpload(data, send_chunk, chunk_size=self._chunk_size)
        try:
            result = upload.run()
        except ChunkedUploadError as e:
            raise MediaProviderError(e.message) from e

        logger.info(
            "provider_video_uploaded",
            public_id=result.get("public_id"),
            chunks=upload.chunks_sent,
            bytes_sent=upload.total,
        )
        return UploadResult.from_response(result)

    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        public_id: str,
        context: Mapping[str, Any],
    ) -> UploadResult:
        form = self._signed(
            {
                "public_id": public_id,
                "folder": folder,
                "transformation": IMAGE_UPLOAD_TRANSFORMATION,
                "context": encode_context(context),
                "overwrite": False,
                "unique_filename": True,
                "use_filename": False,
            }
        )
        result = self._post(
            f"{self._api_url}/image/upload",
            data=form,
            files={"file": (filename, data, content_type)},
        )
        if not result.get("public_id"):
            raise MediaProviderError("No result returned")
        return UploadResult.from_response(result)

    def get_image_resource(self, public_id: str) -> dict[str, Any]:
        url = f"{self._api_url}/resources/image/upload/{public_id}"
        try:
            response = self._http.get(
                url,
                params={
                    "context": "true",
                    "image_metadata": "true",
                    "colors": "true",
                    "derived": "true",
                },
                auth=(self._api_key, self._api_secret),
            )
        except httpx.HTTPError as e:
            raise MediaProviderError(f"Provider request failed: {e}") from e
        return self._parse_response(response)

    def close(self) -> None:
        self._http.close()


class FakeMediaClient(MediaClientBase):
    """Fake media client for testing without a real provider account.

    Records every upload in memory. compressed_ratio scales the reported
    ``bytes`` so size-reduction math is deterministic.
    """

    def __init__(
        self,
        cloud_name: str = "demo",
        *,
        compressed_ratio: float = 0.6,
        video_duration: float = 12.5,
    ):
        self.urls = DeliveryUrls(cloud_name=cloud_name)
        self.compressed_ratio = compressed_ratio
        self.video_duration = video_duration
        self.uploads: list[dict[str, Any]] = []
        self.resources: dict[str, dict[str, Any]] = {}
        self.fail_with: str | None = None

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise MediaProviderError(self.fail_with, status_code=400)

    def upload_video(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        policy: CompressionPolicy,
    ) -> UploadResult:
        self._check_failure()
        public_id = f"{folder}/{uuid4().hex[:20]}"
        self.uploads.append(
            {
                "kind": "video",
                "public_id": public_id,
                "filename": filename,
                "content_type": content_type,
                "size": len(data),
                "policy": policy,
            }
        )
        return UploadResult(
            public_id=public_id,
            secure_url=self.urls.video_urls(public_id)["playback"],
            bytes=int(len(data) * self.compressed_ratio),
            resource_type="video",
            format="mp4",
            duration=self.video_duration,
            transformations=list(policy.transformation),
        )

    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        folder: str,
        public_id: str,
        context: Mapping[str, Any],
    ) -> UploadResult:
        self._check_failure()
        full_id = f"{folder}/{public_id}"
        self.uploads.append(
            {
                "kind": "image",
                "public_id": full_id,
                "filename": filename,
                "content_type": content_type,
                "size": len(data),
                "context": dict(context),
                "data": data,
            }
        )
        self.resources[full_id] = {
            "public_id": full_id,
            "bytes": len(data),
            "format": "jpg",
            "width": 0,
            "height": 0,
            "colors": [],
            "created_at": "2024-01-01T00:00:00Z",
            "context": {"custom": {k: str(v) for k, v in context.items()}},
        }
        return UploadResult(
            public_id=full_id,
            secure_url=self.urls.image_url(full_id),
            bytes=len(data),
            resource_type="image",
            format="jpg",
        )

    def get_image_resource(self, public_id: str) -> dict[str, Any]:
        self._check_failure()
        try:
            return self.resources[public_id]
        except KeyError:
            raise MediaProviderError(f"Resource not found - {public_id}", status_code=404) from None
