"""
Main Orchestrator for SubTrack

This module ties together all the components and defines the
end-to-end flows behind each screen:
1. Auth (sign in / register / start as guest / sign out)
2. Subscriptions (list, submit form, delete with confirmation, dashboard)
3. Feedback (validate and record)

DESIGN DECISION: Flows never raise into the UI.
Every failure comes back as a result object with a message, and the
UI is left in a state where the user can simply submit again:
- ValidationError -> issues shown inline, form data kept
- ServiceError    -> one generic message, nothing retried
"""

from datetime import date
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from subtrack.audit import AuditLogger, create_correlation_id
from subtrack.billing import summarize_entries, upcoming_reminders
from subtrack.config import get_settings
from subtrack.models.audit import AuditEventBuilder, AuditEventType
from subtrack.models.entry import (
    DashboardSummary,
    Entry,
    EntryChanges,
    FeedbackSubmission,
    Reminder,
    ValidationIssue,
)
from subtrack.models.session import Session
from subtrack.services.auth import AuthServiceInterface, GoogleSheetsAuthService
from subtrack.services.storage import (
    AuthenticationError,
    DuplicateError,
    EntryStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
    JsonFileMedium,
    KeyValueMedium,
    LocalEntryStore,
    NotFoundError,
    ServiceError,
    profile_medium,
)
from subtrack.session import ModeSelector
from subtrack.validation import (
    AuthFormValidator,
    EntryFormValidator,
    ValidationError,
    get_user_friendly_summary,
    validate_feedback,
)


logger = structlog.get_logger(__name__)

SERVICE_ERROR_MESSAGE = "通信に失敗しました。しばらくしてからもう一度お試しください。"
NOT_FOUND_MESSAGE = "このサブスクは見つかりませんでした。一覧を更新してください。"


# =============================================================================
# RESULT MODELS
# =============================================================================

class AuthResult(BaseModel):
    """Outcome of a login-screen action."""

    success: bool
    session: Session = Field(default_factory=Session.unknown)
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)


class SubmissionResult(BaseModel):
    """Outcome of an entry form submission or delete."""

    success: bool
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)
    entry: Optional[Entry] = None
    # The submitted form values, handed back untouched on failure
    form_data: dict[str, Any] = Field(default_factory=dict)


class DashboardView(BaseModel):
    """Everything the dashboard screen renders."""

    entries: list[Entry] = Field(default_factory=list)
    summary: DashboardSummary
    reminders: list[Reminder] = Field(default_factory=list)
    error_message: Optional[str] = None


# =============================================================================
# FLOWS
# =============================================================================

class AuthFlow:
    """
    Orchestrates the login screen.

    Flow:
    1. Validate the form (password rules checked locally first)
    2. Call the auth service through the mode selector
    3. Return the resolved Session for the UI to keep
    """

    def __init__(
        self,
        selector: ModeSelector,
        validator: Optional[AuthFormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._selector = selector
        self._validator = validator or AuthFormValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def bootstrap(self) -> Session:
        return await self._selector.bootstrap()

    async def sign_in(
        self,
        email: str,
        password: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuthResult:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_sign_in(email, password)
        if not result.is_valid:
            return AuthResult(
                success=False,
                message=get_user_friendly_summary(result),
                issues=result.issues,
            )

        try:
            session = await self._selector.sign_in(email, password)
        except AuthenticationError as e:
            await self._audit_logger.log(
                AuditEventBuilder.authentication_failed(email, str(e), correlation_id)
            )
            return AuthResult(success=False, message="メールアドレスまたはパスワードが正しくありません")
        except ServiceError as e:
            await self._log_service_error("sign_in", e, None, correlation_id)
            return AuthResult(success=False, message="ログインに失敗しました")

        await self._audit_logger.log(AuditEventBuilder.session_changed(
            AuditEventType.USER_SIGNED_IN, session.identity.id, correlation_id
        ))
        return AuthResult(success=True, session=session)

    async def register(
        self,
        email: str,
        password: str,
        confirm_password: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuthResult:
        """
        Register an account.

        Registration does not sign in; the user is sent back to login.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_registration(email, password, confirm_password)
        if not result.is_valid:
            await self._audit_logger.log(AuditEventBuilder.validation_failed(
                "registration",
                [{"field": i.field, "type": i.issue_type} for i in result.issues],
                correlation_id,
            ))
            return AuthResult(
                success=False,
                message=result.issues[0].message,
                issues=result.issues,
            )

        try:
            await self._selector.sign_up(email, password)
        except DuplicateError as e:
            await self._audit_logger.log(
                AuditEventBuilder.authentication_failed(email, str(e), correlation_id)
            )
            return AuthResult(success=False, message="このメールアドレスは既に登録されています")
        except ServiceError as e:
            await self._log_service_error("sign_up", e, None, correlation_id)
            return AuthResult(success=False, message="登録に失敗しました")

        await self._audit_logger.log(AuditEventBuilder.session_changed(
            AuditEventType.USER_SIGNED_UP, None, correlation_id
        ))
        return AuthResult(success=True, message="登録が完了しました。ログインしてください。")

    async def start_guest(self, correlation_id: Optional[UUID] = None) -> AuthResult:
        try:
            session = await self._selector.enter_guest_mode()
        except ServiceError as e:
            await self._log_service_error("enter_guest_mode", e, None, correlation_id)
            return AuthResult(success=False, message="ゲストモードを開始できませんでした")

        await self._audit_logger.log(AuditEventBuilder.session_changed(
            AuditEventType.GUEST_MODE_ENTERED, session.identity.id, correlation_id
        ))
        return AuthResult(success=True, session=session)

    async def sign_out(
        self,
        session: Session,
        correlation_id: Optional[UUID] = None,
    ) -> AuthResult:
        """Sign out or leave guest mode. Guest data is deleted."""
        event_type = (
            AuditEventType.GUEST_MODE_EXITED if session.is_guest
            else AuditEventType.USER_SIGNED_OUT
        )
        identity_id = session.identity.id if session.identity else None

        new_session = await self._selector.exit_session(session)
        await self._audit_logger.log(AuditEventBuilder.session_changed(
            event_type, identity_id, correlation_id
        ))
        return AuthResult(success=True, session=new_session)

    async def _log_service_error(
        self,
        operation: str,
        error: Exception,
        session: Optional[Session],
        correlation_id: Optional[UUID],
    ) -> None:
        await self._audit_logger.log(AuditEventBuilder.service_error(
            operation=operation,
            error_message=str(error),
            session_mode=session.mode.value if session else None,
            correlation_id=correlation_id,
        ))


class SubscriptionFlow:
    """
    Orchestrates the subscription screens.

    Every call takes the Session resolved at bootstrap and goes to
    the store the mode selector assigns to it.
    """

    def __init__(
        self,
        selector: ModeSelector,
        validator: Optional[EntryFormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._selector = selector
        self._validator = validator or EntryFormValidator()
        self._audit_logger = audit_logger or AuditLogger()

    def _store(self, session: Session) -> EntryStoreInterface:
        return self._selector.store_for(session)

    async def load(self, session: Session) -> list[Entry]:
        """
        Raises:
            ServiceError: If the store cannot be read
        """
        return await self._store(session).list_entries(session)

    async def dashboard(
        self,
        session: Session,
        reference_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardView:
        """Entries, aggregates and reminders for one render."""
        reference_date = reference_date or date.today()
        try:
            entries = await self.load(session)
        except ServiceError as e:
            await self._log_service_error("list_entries", e, session, correlation_id)
            return DashboardView(
                summary=summarize_entries([]),
                error_message=SERVICE_ERROR_MESSAGE,
            )

        return DashboardView(
            entries=entries,
            summary=summarize_entries(entries),
            reminders=upcoming_reminders(entries, reference_date),
        )

    async def submit(
        self,
        session: Session,
        form_data: dict[str, Any],
        editing_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Validate the entry form and create or update an entry.

        On any failure the original form_data is returned unchanged.
        """
        correlation_id = correlation_id or create_correlation_id()

        form, result = self._validator.validate(form_data)
        if form is None:
            await self._audit_logger.log(AuditEventBuilder.validation_failed(
                "entry",
                [{"field": i.field, "type": i.issue_type} for i in result.issues],
                correlation_id,
            ))
            return SubmissionResult(
                success=False,
                message=get_user_friendly_summary(result),
                issues=result.issues,
                form_data=form_data,
            )

        draft = form.to_draft()
        try:
            store = self._store(session)
            if editing_id is None:
                entry = await store.insert_entry(session, draft)
                await self._audit_logger.log(AuditEventBuilder.entry_created(
                    entry.id, entry.name, session.mode.value, correlation_id
                ))
            else:
                changes = EntryChanges(**draft.model_dump())
                await store.update_entry(session, editing_id, changes)
                entry = None
                await self._audit_logger.log(AuditEventBuilder.entry_updated(
                    editing_id, sorted(changes.applied_fields()), session.mode.value, correlation_id
                ))
        except NotFoundError as e:
            await self._log_service_error("update_entry", e, session, correlation_id)
            return SubmissionResult(success=False, message=NOT_FOUND_MESSAGE, form_data=form_data)
        except ServiceError as e:
            await self._log_service_error("save_entry", e, session, correlation_id)
            return SubmissionResult(success=False, message=SERVICE_ERROR_MESSAGE, form_data=form_data)

        return SubmissionResult(success=True, message="保存しました", entry=entry)

    async def delete(
        self,
        session: Session,
        entry_id: str,
        confirmed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Delete an entry once the user has confirmed.

        A declined confirmation makes no store call at all.
        """
        correlation_id = correlation_id or create_correlation_id()

        if not confirmed:
            await self._audit_logger.log(
                AuditEventBuilder.delete_cancelled(entry_id, correlation_id)
            )
            return SubmissionResult(success=False, message="削除をキャンセルしました")

        try:
            await self._store(session).delete_entry(session, entry_id)
        except NotFoundError as e:
            await self._log_service_error("delete_entry", e, session, correlation_id)
            return SubmissionResult(success=False, message=NOT_FOUND_MESSAGE)
        except ServiceError as e:
            await self._log_service_error("delete_entry", e, session, correlation_id)
            return SubmissionResult(success=False, message=SERVICE_ERROR_MESSAGE)

        await self._audit_logger.log(AuditEventBuilder.entry_deleted(
            entry_id, session.mode.value, correlation_id
        ))
        return SubmissionResult(success=True, message="削除しました")

    async def _log_service_error(
        self,
        operation: str,
        error: Exception,
        session: Session,
        correlation_id: Optional[UUID],
    ) -> None:
        await self._audit_logger.log(AuditEventBuilder.service_error(
            operation=operation,
            error_message=str(error),
            session_mode=session.mode.value,
            correlation_id=correlation_id,
        ))


class FeedbackFlow:
    """
    Records feedback from the dashboard form.

    There is no delivery channel: the audit log is the record.
    """

    THANK_YOU_MESSAGE = "フィードバックをありがとうございます！改善の参考にさせていただきます。"

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger or AuditLogger()

    async def submit(
        self,
        data: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        try:
            feedback: FeedbackSubmission = validate_feedback(data)
        except ValidationError as e:
            return SubmissionResult(
                success=False,
                message="入力内容を確認してください",
                issues=e.issues,
                form_data=data,
            )

        logged = await self._audit_logger.log(AuditEventBuilder.feedback_submitted(
            feedback_type=feedback.feedback_type.value,
            title=feedback.title,
            description=feedback.description,
            email=feedback.email,
            correlation_id=correlation_id,
        ))
        if not logged:
            return SubmissionResult(
                success=False,
                message="送信に失敗しました。もう一度お試しください。",
                form_data=data,
            )
        return SubmissionResult(success=True, message=self.THANK_YOU_MESSAGE)


# =============================================================================
# FACTORY
# =============================================================================

def create_app_components(
    medium: Optional[KeyValueMedium] = None,
    local_storage_path: Optional[Path] = None,
    profile_id: Optional[str] = None,
    use_remote: bool = True,
    sheets_client: Optional[GoogleSheetsClient] = None,
    auth_service: Optional[AuthServiceInterface] = None,
) -> tuple[AuthFlow, SubscriptionFlow, FeedbackFlow, ModeSelector]:
    """
    Factory function to create all application components.

    Args:
        medium: Local key-value medium. Defaults to the profile's file
                when profile_id is given, else a JSON file at
                local_storage_path (or the configured path).
        profile_id: Browser profile whose guest data this session uses.
        use_remote: Whether to wire Google Sheets for accounts.
                    Without it only guest mode is available.
        sheets_client: Shared client (one connection for all sessions).
        auth_service: Per-session auth service; created if omitted.

    Returns:
        (auth_flow, subscription_flow, feedback_flow, selector)
    """
    if medium is None and profile_id is not None:
        medium = profile_medium(get_settings().local_storage.profiles_dir, profile_id)
    elif medium is None:
        path = local_storage_path or get_settings().local_storage.path
        medium = JsonFileMedium(path)
    local_store = LocalEntryStore(medium)

    remote_store = None
    if use_remote:
        try:
            sheets_client = sheets_client or GoogleSheetsClient()
            remote_store = GoogleSheetsEntryStore(sheets_client)
            auth_service = auth_service or GoogleSheetsAuthService(sheets_client)
        except Exception as e:
            # Remote not configured - continue in guest-only mode
            logger.warning("remote_store_unavailable", error=str(e))
            remote_store = None
            auth_service = None
    else:
        auth_service = None

    selector = ModeSelector(
        local_store=local_store,
        remote_store=remote_store,
        auth_service=auth_service,
    )
    audit_logger = AuditLogger()

    auth_flow = AuthFlow(selector, audit_logger=audit_logger)
    subscription_flow = SubscriptionFlow(selector, audit_logger=audit_logger)
    feedback_flow = FeedbackFlow(audit_logger=audit_logger)

    return auth_flow, subscription_flow, feedback_flow, selector
