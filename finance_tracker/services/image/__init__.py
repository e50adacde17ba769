"""Receipt image services package."""

from finance_tracker.services.image.cloudinary_service import (
    CloudinaryReceiptService,
    ReceiptImageError,
    ReceiptUploadError,
    assess_receipt_image,
    should_proceed_with_extraction,
)

__all__ = [
    "CloudinaryReceiptService",
    "ReceiptImageError",
    "ReceiptUploadError",
    "assess_receipt_image",
    "should_proceed_with_extraction",
]
