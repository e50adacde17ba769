"""
Receipt Image Service using Cloudinary

DESIGN DECISION: Receipt images are hosted on Cloudinary and the
secure URL is stored on the transaction. Hosting is optional: when
Cloudinary is not configured the transaction is saved without a
receipt reference.

This service handles:
1. Local quality heuristics (Pillow) before anything leaves the machine
2. Upload to Cloudinary
3. Returning the secure URL

CRITICAL: An unusable image is rejected before extraction.
Sending a black square to the AI model only produces a fallback.
"""

import hashlib
from io import BytesIO
from typing import Optional
from uuid import UUID

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog
from PIL import Image
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import AppSettings, CloudinarySettings, get_settings
from finance_tracker.models.receipt import ImageQuality, ReceiptImage, ReceiptImageCheck


logger = structlog.get_logger(__name__)


class ReceiptImageError(Exception):
    """Base exception for receipt image errors."""
    pass


class ReceiptUploadError(ReceiptImageError):
    """Failed to upload the receipt to Cloudinary."""
    pass


def assess_receipt_image(image_bytes: bytes) -> ReceiptImageCheck:
    """
    Assess image quality using Pillow.

    DESIGN DECISION: Simple heuristics rather than ML-based assessment:
    lower latency, predictable behavior, no additional API costs.
    """
    issues = []
    score = 1.0

    try:
        img = Image.open(BytesIO(image_bytes))
        width, height = img.size

        # Resolution
        min_dimension = min(width, height)
        if min_dimension < 300:
            issues.append("Image resolution too low (minimum 300px on smallest side)")
            score -= 0.4
        elif min_dimension < 500:
            issues.append("Image resolution is low, text may be hard to read")
            score -= 0.2

        # Very extreme ratios are usually a bad crop
        aspect = max(width, height) / max(min_dimension, 1)
        if aspect > 5:
            issues.append("Unusual aspect ratio, the image may be cropped incorrectly")
            score -= 0.2

        gray = img if img.mode == "L" else img.convert("L")
        histogram = gray.histogram()
        total_pixels = sum(histogram)

        dark_pixels = sum(histogram[:50]) / total_pixels
        if dark_pixels > 0.7:
            issues.append("Image is very dark, please take the photo in better lighting")
            score -= 0.3

        bright_pixels = sum(histogram[200:]) / total_pixels
        if bright_pixels > 0.7:
            issues.append("Image is overexposed, please reduce lighting or change the angle")
            score -= 0.3

        # Range of pixel values holding the middle 90% of pixels
        cumsum = 0
        low_percentile = 0
        high_percentile = 255
        for i, count in enumerate(histogram):
            cumsum += count
            if cumsum >= total_pixels * 0.05 and low_percentile == 0:
                low_percentile = i
            if cumsum >= total_pixels * 0.95:
                high_percentile = i
                break

        if high_percentile - low_percentile < 50:
            issues.append("Image has very low contrast, text may be hard to read")
            score -= 0.25

    except Exception as e:
        issues.append(f"Could not analyze image: {e}")
        score = 0.0

    score = max(0.0, min(1.0, score))

    if score >= 0.7:
        quality = ImageQuality.GOOD
    elif score >= 0.5:
        quality = ImageQuality.ACCEPTABLE
    elif score >= 0.3:
        quality = ImageQuality.POOR
    else:
        quality = ImageQuality.UNUSABLE

    return ReceiptImageCheck(quality=quality, score=score, issues=issues)


def should_proceed_with_extraction(
    check: ReceiptImageCheck,
    min_score: Optional[float] = None,
) -> tuple[bool, str]:
    """
    Decide whether an image is worth sending to the AI model.

    Returns: (should_proceed, message_for_user)
    """
    if min_score is None:
        min_score = get_settings().app.min_image_quality_score

    if check.quality == ImageQuality.UNUSABLE or check.score < min_score:
        reasons = ", ".join(check.issues) or "image could not be read"
        return False, (
            "This image cannot be processed "
            f"({reasons}). Please take a clearer photo."
        )

    if check.quality == ImageQuality.POOR:
        return True, (
            "Image quality is low. Some details may be missed: "
            f"{', '.join(check.issues)}"
        )

    if check.issues:
        return True, f"Image quality is acceptable. Tips: {', '.join(check.issues)}"

    return True, "Image quality is good."


class CloudinaryReceiptService:
    """
    Service for hosting receipt images on Cloudinary.

    Flow:
    1. Check image quality locally
    2. Upload the original image
    3. Return the secure URL for the transaction's receipt_url
    """

    def __init__(
        self,
        settings: Optional[CloudinarySettings] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._settings = settings or get_settings().cloudinary
        self._app_settings = app_settings or get_settings().app
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def _generate_public_id(self, upload_id: UUID, filename: str) -> str:
        """
        Generate a unique public ID for Cloudinary.

        Format: {upload_id}_{filename_hash}
        """
        filename_hash = hashlib.md5(filename.encode()).hexdigest()[:8]
        return f"{upload_id}_{filename_hash}"

    def check_receipt_image(self, image_bytes: bytes) -> ReceiptImageCheck:
        return assess_receipt_image(image_bytes)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def upload_receipt(
        self,
        image_bytes: bytes,
        upload: ReceiptImage,
    ) -> str:
        """
        Upload a receipt image and return its secure URL.

        Raises:
            ReceiptUploadError: If upload fails
        """
        self._configure()

        try:
            result = cloudinary.uploader.upload(
                image_bytes,
                public_id=self._generate_public_id(
                    upload.upload_id,
                    upload.original_filename,
                ),
                folder=self._settings.folder,
                resource_type="image",
                transformation=[
                    {"quality": "auto:good"},
                    {"fetch_format": "auto"},
                ],
            )
        except cloudinary.exceptions.Error as e:
            raise ReceiptUploadError(f"Cloudinary error: {e}")
        except Exception as e:
            raise ReceiptUploadError(f"Failed to upload receipt: {e}")

        url = result.get("secure_url") or result.get("url")
        if not url:
            raise ReceiptUploadError("No URL returned from Cloudinary")

        logger.info(
            "receipt_uploaded",
            upload_id=str(upload.upload_id),
            bytes=upload.file_size_bytes,
        )
        return url
