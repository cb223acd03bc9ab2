"""Delivery URL construction for uploaded assets.

URLs are derived from the cloud name and the asset's public id; nothing is
fetched. Transformations are applied by the provider's CDN on first request.
"""

from dataclasses import dataclass

DEFAULT_DELIVERY_BASE_URL = "https://res.cloudinary.com"

RESPONSIVE_WIDTHS = (400, 800, 1200, 1920)

# Card-sized renditions
CARD_WIDTH = 400
CARD_HEIGHT = 225
PREVIEW_EFFECT = "e_preview:duration_15:max_seg_9:min_seg_dur_1"


@dataclass(frozen=True)
class DeliveryUrls:
    """Builds CDN URLs for one cloud."""

    cloud_name: str
    base_url: str = DEFAULT_DELIVERY_BASE_URL

    def _resource_base(self, resource_type: str) -> str:
        return f"{self.base_url.rstrip('/')}/{self.cloud_name}/{resource_type}/upload"

    def image_url(self, public_id: str, transformation: str | None = None) -> str:
        base = self._resource_base("image")
        if transformation:
            return f"{base}/{transformation}/{public_id}"
        return f"{base}/{public_id}"

    def image_urls(self, public_id: str) -> dict:
        """Original, optimized, thumbnail and responsive URLs for an image."""
        return {
            "original": self.image_url(public_id),
            "optimized": self.image_url(public_id, "q_auto,f_auto,fl_progressive"),
            "thumbnail": self.image_url(public_id, "w_300,h_300,c_fill,q_auto,f_auto"),
            "responsive": [
                self.image_url(public_id, f"w_{width},q_auto,f_auto")
                for width in RESPONSIVE_WIDTHS
            ],
        }

    def video_urls(self, public_id: str) -> dict:
        """Thumbnail, hover preview, playback and download URLs for a video."""
        base = self._resource_base("video")
        card = f"c_fill,h_{CARD_HEIGHT},w_{CARD_WIDTH}"
        return {
            "thumbnail": f"{base}/{card},g_auto,q_auto/{public_id}.jpg",
            "preview": f"{base}/{card}/{PREVIEW_EFFECT}/{public_id}.mp4",
            "playback": f"{base}/{card}/{public_id}.mp4",
            "download": f"{base}/c_fill,h_1080,w_1920/{public_id}.mp4",
        }
