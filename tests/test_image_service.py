"""Tests for receipt image checks and hosting."""

import io

import pytest
from PIL import Image

from finance_tracker.config import CloudinarySettings
from finance_tracker.models import ImageQuality, ReceiptImage, ReceiptImageCheck
from finance_tracker.services.image import (
    CloudinaryReceiptService,
    assess_receipt_image,
    should_proceed_with_extraction,
)


def png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TestAssessReceiptImage:

    def test_good_receipt(self, receipt_image_bytes):
        check = assess_receipt_image(receipt_image_bytes)
        assert check.quality == ImageQuality.GOOD
        assert check.issues == []

    def test_dark_small_image_is_unusable(self):
        check = assess_receipt_image(png_bytes(Image.new("L", (100, 100), 5)))
        assert check.quality == ImageQuality.UNUSABLE
        assert any("dark" in issue for issue in check.issues)

    def test_blank_white_page(self):
        check = assess_receipt_image(png_bytes(Image.new("RGB", (800, 1000), "white")))
        assert any("overexposed" in issue for issue in check.issues)
        assert any("contrast" in issue for issue in check.issues)

    def test_not_an_image(self):
        check = assess_receipt_image(b"definitely not a png")
        assert check.score == 0.0
        assert check.quality == ImageQuality.UNUSABLE


class TestShouldProceed:

    def test_unusable_rejected(self):
        check = ReceiptImageCheck(quality=ImageQuality.UNUSABLE, score=0.1, issues=["too dark"])
        proceed, message = should_proceed_with_extraction(check, min_score=0.3)
        assert proceed is False
        assert "too dark" in message

    def test_below_threshold_rejected(self):
        check = ReceiptImageCheck(quality=ImageQuality.POOR, score=0.35, issues=["blurry"])
        proceed, _ = should_proceed_with_extraction(check, min_score=0.4)
        assert proceed is False

    def test_poor_proceeds_with_warning(self):
        check = ReceiptImageCheck(quality=ImageQuality.POOR, score=0.4, issues=["low contrast"])
        proceed, message = should_proceed_with_extraction(check, min_score=0.3)
        assert proceed is True
        assert "low" in message

    def test_good(self):
        check = ReceiptImageCheck(quality=ImageQuality.GOOD, score=1.0)
        assert should_proceed_with_extraction(check, min_score=0.3) == (True, "Image quality is good.")


class TestCloudinaryReceiptService:

    @pytest.mark.asyncio
    async def test_upload_returns_secure_url(self, monkeypatch):
        calls = {}

        def fake_upload(data, **options):
            calls.update(options)
            return {"secure_url": "https://res.cloudinary.com/demo/receipts/abc.png"}

        monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
        service = CloudinaryReceiptService(
            settings=CloudinarySettings(
                cloud_name="demo", api_key="key", api_secret="secret", folder="receipts"
            )
        )
        upload = ReceiptImage(original_filename="r.png", file_size_bytes=3, mime_type="image/png")

        url = await service.upload_receipt(b"png", upload)

        assert url == "https://res.cloudinary.com/demo/receipts/abc.png"
        assert calls["folder"] == "receipts"
        assert calls["public_id"].startswith(str(upload.upload_id))
