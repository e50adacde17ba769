"""Services package."""

from finance_tracker.services.auth import (
    AuthError,
    IdentityToolkitAuthService,
    UserSession,
)
from finance_tracker.services.data_service import (
    FinanceDataService,
    FinanceSnapshot,
    NotSignedInError,
)
from finance_tracker.services.image import (
    CloudinaryReceiptService,
    ReceiptImageError,
    ReceiptUploadError,
)
from finance_tracker.services.storage import (
    AccountStorageInterface,
    ConnectionError,
    GoogleSheetsClient,
    InvestmentStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    # Auth
    "AuthError",
    "IdentityToolkitAuthService",
    "UserSession",
    # Data access
    "FinanceDataService",
    "FinanceSnapshot",
    "NotSignedInError",
    # Image services
    "CloudinaryReceiptService",
    "ReceiptImageError",
    "ReceiptUploadError",
    # Storage services
    "AccountStorageInterface",
    "ConnectionError",
    "GoogleSheetsClient",
    "InvestmentStorageInterface",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
]
