"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Receipt upload (file check -> image check -> host -> extract -> review -> save)
2. Insights (snapshot -> model or rules)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing extracted from a receipt is saved until the user submits the form
- Every external service is optional; a missing one degrades, never crashes
- Every step is logged to the activity log

This is the "glue" that keeps the Streamlit pages free of service wiring.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from finance_tracker.activity import ActivityLogger
from finance_tracker.agents import (
    InsightAgent,
    ReceiptExtractionAgent,
    build_receipt_draft,
    fallback_insights,
)
from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.activity import ActivityEventBuilder
from finance_tracker.models.finance import Transaction, TransactionType
from finance_tracker.models.insight import Insight, InsightSource
from finance_tracker.models.receipt import (
    ExtractedReceiptData,
    ReceiptDraft,
    ReceiptImage,
    ReceiptImageCheck,
)
from finance_tracker.models.validation import ValidationResult
from finance_tracker.services.auth import IdentityToolkitAuthService
from finance_tracker.services.data_service import FinanceDataService, FinanceSnapshot
from finance_tracker.services.image import (
    CloudinaryReceiptService,
    ReceiptUploadError,
    assess_receipt_image,
    should_proceed_with_extraction,
)
from finance_tracker.services.storage import (
    AccountStorageInterface,
    GoogleSheetsAccountStorage,
    GoogleSheetsClient,
    GoogleSheetsInvestmentStorage,
    GoogleSheetsTransactionStorage,
    InMemoryAccountStorage,
    InMemoryInvestmentStorage,
    InMemoryTransactionStorage,
    InvestmentStorageInterface,
    TransactionStorageInterface,
)
from finance_tracker.validation import ReceiptValidator


logger = structlog.get_logger(__name__)


class ReceiptRejectedError(Exception):
    """The uploaded file cannot be used as a receipt."""
    pass


class ReceiptProcessingResult(BaseModel):
    """Everything the upload page needs to show the review form."""

    upload: ReceiptImage
    image_check: ReceiptImageCheck
    image_message: str
    extracted: ExtractedReceiptData
    validation: ValidationResult
    summary: str
    draft: ReceiptDraft
    receipt_url: Optional[str] = None
    hosting_error: Optional[str] = None


class ReceiptUploadFlow:
    """
    Orchestrates the receipt upload flow.

    Flow:
    1. check_file -> type and size limits
    2. process -> image heuristics, optional hosting, extraction, review
    3. User edits the pre-filled form (PAUSE)
    4. confirm -> save an expense transaction

    The system NEVER auto-saves an extraction.
    """

    def __init__(
        self,
        extraction_agent: Optional[ReceiptExtractionAgent] = None,
        validator: Optional[ReceiptValidator] = None,
        image_service: Optional[CloudinaryReceiptService] = None,
        activity_logger: Optional[ActivityLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._agent = extraction_agent
        self._app_settings = app_settings or get_settings().app
        self._validator = validator or ReceiptValidator(self._app_settings)
        self._image_service = image_service
        self._activity = activity_logger or ActivityLogger()

    @property
    def hosting_enabled(self) -> bool:
        return self._image_service is not None

    def check_file(self, filename: str, file_size: int, mime_type: str) -> ReceiptImage:
        """
        Check the upload against the type and size limits.

        Raises:
            ReceiptRejectedError: With a message to show the user
        """
        try:
            upload = ReceiptImage(
                original_filename=filename,
                file_size_bytes=file_size,
                mime_type=mime_type or "",
            )
        except ValidationError:
            raise ReceiptRejectedError("Please upload a valid image file (JPG, PNG, WEBP)")

        if file_size > self._app_settings.max_upload_size_bytes:
            raise ReceiptRejectedError(
                f"File size must be less than {self._app_settings.max_upload_size_mb}MB"
            )
        return upload

    async def process(
        self,
        image_bytes: bytes,
        upload: ReceiptImage,
        user_id: Optional[str] = None,
    ) -> ReceiptProcessingResult:
        """
        Run the image through checks, hosting and extraction.

        Hosting failures are reported but do not stop extraction.

        Raises:
            ReceiptRejectedError: If the image is unusable
        """
        if self._image_service is not None:
            check = self._image_service.check_receipt_image(image_bytes)
        else:
            check = assess_receipt_image(image_bytes)

        can_proceed, image_message = should_proceed_with_extraction(
            check, self._app_settings.min_image_quality_score
        )
        if not can_proceed:
            await self._activity.log(ActivityEventBuilder.receipt_rejected(
                user_id=user_id,
                upload_id=upload.upload_id,
                reason=image_message,
            ))
            raise ReceiptRejectedError(image_message)

        receipt_url = None
        hosting_error = None
        if self._image_service is not None:
            try:
                receipt_url = await self._image_service.upload_receipt(image_bytes, upload)
            except ReceiptUploadError as e:
                hosting_error = str(e)
                await self._activity.log_external_service_error(
                    service="cloudinary",
                    error_message=hosting_error,
                    user_id=user_id,
                )

        if self._agent is not None:
            extracted = await self._agent.extract(image_bytes, upload.mime_type)
        else:
            extracted = ReceiptExtractionAgent.fallback()

        fields_found = [
            name for name in ("vendor", "amount", "date", "category")
            if getattr(extracted, name) is not None
        ]
        await self._activity.log(ActivityEventBuilder.receipt_extracted(
            user_id=user_id,
            extraction_id=extracted.extraction_id,
            is_fallback=extracted.is_fallback,
            fields_found=fields_found,
        ))

        validation = self._validator.validate(extracted)
        return ReceiptProcessingResult(
            upload=upload,
            image_check=check,
            image_message=image_message,
            extracted=extracted,
            validation=validation,
            summary=self._validator.get_user_friendly_summary(validation),
            draft=build_receipt_draft(extracted, receipt_url=receipt_url),
            receipt_url=receipt_url,
            hosting_error=hosting_error,
        )

    async def confirm(
        self,
        data_service: FinanceDataService,
        account_id: UUID,
        amount: Decimal,
        category: str,
        description: str,
        date: dt.date,
        notes: Optional[str] = None,
        receipt_url: Optional[str] = None,
    ) -> Transaction:
        """
        Save the reviewed receipt as an expense transaction.

        CRITICAL: Called ONLY from the form's submit action.

        Raises:
            ValidationError: If the edited values are invalid
            StorageError: If the write fails
        """
        return await data_service.add_transaction(
            account_id=account_id,
            type=TransactionType.EXPENSE,
            amount=amount,
            category=category,
            description=description,
            date=date,
            notes=notes,
            receipt_url=receipt_url,
        )


class InsightFlow:
    """Produces insights for the analysis page."""

    def __init__(
        self,
        insight_agent: Optional[InsightAgent] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._agent = insight_agent
        self._activity = activity_logger or ActivityLogger()

    async def generate(
        self,
        snapshot: FinanceSnapshot,
        user_id: Optional[str] = None,
    ) -> list[Insight]:
        """
        Insights for the snapshot. Empty when there are no transactions.

        Falls back to the rule-based insights when no model is configured.
        """
        if not snapshot.transactions:
            return []

        if self._agent is not None:
            insights = await self._agent.generate(snapshot.transactions, snapshot.accounts)
        else:
            insights = fallback_insights(snapshot.transactions)

        await self._activity.log(ActivityEventBuilder.insights_generated(
            user_id=user_id,
            count=len(insights),
            is_fallback=any(i.source == InsightSource.RULES for i in insights),
        ))
        return insights


class AppComponents:
    """
    Wired services for the UI.

    Storages are shared across users; data services are created per
    signed-in user with `data_service(uid)`.
    """

    def __init__(
        self,
        account_storage: AccountStorageInterface,
        transaction_storage: TransactionStorageInterface,
        investment_storage: InvestmentStorageInterface,
        upload_flow: ReceiptUploadFlow,
        insight_flow: InsightFlow,
        activity_logger: ActivityLogger,
        auth_service: Optional[IdentityToolkitAuthService] = None,
        storage_backend: str = "memory",
    ):
        self.account_storage = account_storage
        self.transaction_storage = transaction_storage
        self.investment_storage = investment_storage
        self.upload_flow = upload_flow
        self.insight_flow = insight_flow
        self.activity_logger = activity_logger
        self.auth_service = auth_service
        self.storage_backend = storage_backend

    def data_service(self, user_id: Optional[str]) -> FinanceDataService:
        return FinanceDataService(
            user_id,
            self.account_storage,
            self.transaction_storage,
            self.investment_storage,
            activity_logger=self.activity_logger,
        )


def _optional(name: str, factory):
    """Build a service, or None (with a warning) when it is not configured."""
    try:
        return factory()
    except Exception as e:
        logger.warning("service_not_configured", service=name, error=str(e))
        return None


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the Google Sheets storage.
                    Falls back to in-memory storage when False or
                    when the spreadsheet is not configured.
    """
    activity_logger = ActivityLogger()
    app_settings = get_settings().app

    storages = None
    backend = "memory"
    if use_storage:
        def build_sheets():
            client = GoogleSheetsClient()
            client.get_spreadsheet()
            return (
                GoogleSheetsAccountStorage(client),
                GoogleSheetsTransactionStorage(client),
                GoogleSheetsInvestmentStorage(client),
            )
        storages = _optional("google_sheets", build_sheets)
        if storages is not None:
            backend = "google_sheets"

    if storages is None:
        logger.warning("using_in_memory_storage")
        storages = (
            InMemoryAccountStorage(),
            InMemoryTransactionStorage(),
            InMemoryInvestmentStorage(),
        )

    upload_flow = ReceiptUploadFlow(
        extraction_agent=_optional("gemini", ReceiptExtractionAgent),
        validator=ReceiptValidator(app_settings),
        image_service=_optional("cloudinary", CloudinaryReceiptService),
        activity_logger=activity_logger,
        app_settings=app_settings,
    )
    insight_flow = InsightFlow(
        insight_agent=_optional("gemini", InsightAgent),
        activity_logger=activity_logger,
    )

    return AppComponents(
        account_storage=storages[0],
        transaction_storage=storages[1],
        investment_storage=storages[2],
        upload_flow=upload_flow,
        insight_flow=insight_flow,
        activity_logger=activity_logger,
        auth_service=_optional("identity", IdentityToolkitAuthService),
        storage_backend=backend,
    )
