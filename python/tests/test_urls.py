"""Tests for delivery URL construction."""

from mediavault.media.urls import DeliveryUrls

BASE = "https://res.cloudinary.com/demo"


class TestVideoUrls:
    def test_card_renditions(self):
        urls = DeliveryUrls(cloud_name="demo").video_urls("video-uploads/abc")

        assert urls["thumbnail"] == (
            f"{BASE}/video/upload/c_fill,h_225,w_400,g_auto,q_auto/video-uploads/abc.jpg"
        )
        assert urls["preview"] == (
            f"{BASE}/video/upload/c_fill,h_225,w_400/"
            "e_preview:duration_15:max_seg_9:min_seg_dur_1/video-uploads/abc.mp4"
        )
        assert urls["playback"] == f"{BASE}/video/upload/c_fill,h_225,w_400/video-uploads/abc.mp4"
        assert urls["download"] == f"{BASE}/video/upload/c_fill,h_1080,w_1920/video-uploads/abc.mp4"


class TestImageUrls:
    def test_url_set(self):
        urls = DeliveryUrls(cloud_name="demo").image_urls("p/img")

        assert urls["original"] == f"{BASE}/image/upload/p/img"
        assert urls["optimized"] == f"{BASE}/image/upload/q_auto,f_auto,fl_progressive/p/img"
        assert urls["thumbnail"] == f"{BASE}/image/upload/w_300,h_300,c_fill,q_auto,f_auto/p/img"
        assert [u.split("/")[-3] for u in urls["responsive"]] == [
            "w_400,q_auto,f_auto",
            "w_800,q_auto,f_auto",
            "w_1200,q_auto,f_auto",
            "w_1920,q_auto,f_auto",
        ]

    def test_custom_base_url(self):
        urls = DeliveryUrls(cloud_name="acme", base_url="https://cdn.example.com/")

        assert urls.image_url("x") == "https://cdn.example.com/acme/image/upload/x"
