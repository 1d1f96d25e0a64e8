"""
Main Orchestrator for SmartCash

This module ties together all the components and defines the dashboard
flows:
1. Session (restore / sign in / sign up / sign out / guest / password reset)
2. Sync (load the list for the current owner, or for everyone in admin mode)
3. Entry (form -> validate -> insert -> prepend)
4. Delete (remove locally -> delete in storage -> report, optionally roll back)
5. Insights (list -> AI agent -> insights, never failing)

DESIGN DECISION: The flow owns the only mutable state of the dashboard (the
session, the admin flag and the TransactionStore). Everything the UI shows
is derived from it through pure functions on each render.

Error presentation is decided by the UI, but the flow keeps the three kinds
apart:
- recoverable-and-shown: sync failures end up in `connection_error`
- recoverable-and-silent: insight failures become the agent's fallback
- blocking-interactive: validation and create errors are raised, delete
  errors are returned in a DeleteOutcome
"""

from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ValidationError

from smartcash.activity import ActivityLogger
from smartcash.agents import InsightAgent
from smartcash.analytics import (
    calculate_stats,
    daily_flow,
    filter_transactions,
    group_by_date,
    rank_user_summaries,
    summarize_users,
)
from smartcash.config import AppSettings, Settings, get_settings, remote_storage_configured
from smartcash.models.activity import ActivityEventType
from smartcash.models.session import Authenticated, Guest, Unauthenticated
from smartcash.models.transaction import (
    AIInsight,
    DailyFlow,
    DayGroup,
    FinancialStats,
    Transaction,
    TransactionForm,
    UserSummary,
)
from smartcash.services.auth import (
    AnySession,
    AuthError,
    AuthServiceInterface,
    SupabaseAuthService,
    create_auth_service,
)
from smartcash.services.storage import (
    StorageError,
    SupabaseClient,
    SupabaseTransactionStorage,
    TransactionStorageInterface,
    create_transaction_storage,
)
from smartcash.store import TransactionStore
from smartcash.validation import TransactionValidationError, TransactionValidator


logger = structlog.get_logger(__name__)


class DeleteOutcome(BaseModel):
    """What happened to a delete request."""

    transaction_id: str
    removed_locally: bool = False
    error_message: Optional[str] = None
    rolled_back: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


class DashboardFlow:
    """
    Orchestrates the dashboard.

    Flow:
    1. Session → restore or sign in (or start a guest session)
    2. Load → fetch the owner's transactions into the store
    3. Render → stats, groups, charts, ranking derived from the store
    4. Mutate → add / delete, keeping store and storage in step
    5. Insights → on demand, never failing

    Admin mode is a capability flag on the flow, not a session variant.
    It only lifts the owner filter on reads.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        auth: AuthServiceInterface,
        insight_agent: Optional[InsightAgent] = None,
        validator: Optional[TransactionValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._auth = auth
        self._insight_agent = insight_agent
        self._settings = settings or get_settings().app
        self._validator = validator or TransactionValidator(self._settings)
        self._activity_logger = activity_logger

        self.session: AnySession = Unauthenticated()
        self.admin_mode = False
        self.connection_error: Optional[str] = None
        self.store = TransactionStore()

    # =========================================================================
    # SESSION
    # =========================================================================

    @property
    def user_email(self) -> Optional[str]:
        return self.session.owner_email

    @property
    def admin_available(self) -> bool:
        return self._settings.admin_enabled

    def _log_session(self, event_type: ActivityEventType, description: str) -> None:
        if self._activity_logger:
            self._activity_logger.log_session(event_type, self.user_email, description)

    def _log_auth_failed(self, action: str, email: Optional[str], error: AuthError) -> None:
        if self._activity_logger:
            self._activity_logger.log_auth_failed(action, email, str(error))

    def _clear(self) -> None:
        self.admin_mode = False
        self.connection_error = None
        self.store.replace([])

    async def restore_session(self) -> AnySession:
        """
        Pick up an existing session at startup.

        Auth failures are shown like sync failures; the user lands on the
        login page.
        """
        try:
            self.session = await self._auth.get_session()
        except AuthError as e:
            self._log_auth_failed("restore_session", None, e)
            self.session = Unauthenticated()
            self.connection_error = str(e)
            return self.session

        if self.session.is_active:
            self._log_session(ActivityEventType.SESSION_RESTORED, "Session restored")
            await self.load_transactions()
        return self.session

    async def sign_in(self, email: str, password: str) -> Authenticated:
        """
        Sign in and load the user's transactions.

        Raises:
            AuthError: With the provider's message
        """
        try:
            session = await self._auth.sign_in(email, password)
        except AuthError as e:
            self._log_auth_failed("sign_in", email, e)
            raise

        self._clear()
        self.session = session
        self._log_session(ActivityEventType.USER_SIGNED_IN, "User signed in")
        await self.load_transactions()
        return session

    async def sign_up(self, email: str, password: str) -> AnySession:
        """
        Create an account.

        Returns Unauthenticated when the email still has to be confirmed.

        Raises:
            AuthError: With the provider's message
        """
        try:
            session = await self._auth.sign_up(email, password)
        except AuthError as e:
            self._log_auth_failed("sign_up", email, e)
            raise

        if self._activity_logger:
            self._activity_logger.log_session(
                ActivityEventType.USER_SIGNED_UP, email, "Account created"
            )

        if session.is_active:
            self._clear()
            self.session = session
            await self.load_transactions()
        return session

    async def sign_out(self) -> None:
        """Leave the current session (guest sessions never reached the provider)."""
        if isinstance(self.session, Authenticated):
            try:
                await self._auth.sign_out()
            except AuthError as e:
                self._log_auth_failed("sign_out", self.user_email, e)
                raise

        self._log_session(ActivityEventType.USER_SIGNED_OUT, "User signed out")
        self.session = Unauthenticated()
        self._clear()

    async def reset_password(self, email: str) -> None:
        """
        Ask the provider to send a password-reset email.

        Raises:
            AuthError: With the provider's message
        """
        try:
            await self._auth.reset_password(email)
        except AuthError as e:
            self._log_auth_failed("reset_password", email, e)
            raise

        if self._activity_logger:
            self._activity_logger.log_session(
                ActivityEventType.PASSWORD_RESET_REQUESTED, email, "Password reset requested"
            )

    async def start_guest_session(self) -> Guest:
        """Demo/offline mode: no identity, local data only."""
        self._clear()
        self.session = Guest()
        self._log_session(ActivityEventType.GUEST_SESSION_STARTED, "Guest session started")
        await self.load_transactions()
        return self.session

    def subscribe_to_session_changes(self) -> Callable[[], None]:
        """
        Follow session changes pushed by the auth provider.

        Returns the unsubscribe callable.
        """
        def on_change(session: AnySession) -> None:
            if isinstance(self.session, Guest) and not session.is_active:
                # Provider events do not end a demo session
                return
            if not session.is_active and self.session.is_active:
                self._clear()
            self.session = session

        return self._auth.on_session_change(on_change)

    # =========================================================================
    # SYNC
    # =========================================================================

    async def load_transactions(self) -> list[Transaction]:
        """
        Fetch the list from storage into the store.

        Attempt-once. A failure keeps the previous list and is stored in
        `connection_error` for the UI banner.
        """
        try:
            if self.admin_mode:
                transactions = await self._storage.list_transactions()
            else:
                transactions = await self._storage.list_transactions(
                    user_id=self.session.owner_id,
                    user_email=self.session.owner_email,
                )
        except StorageError as e:
            self.connection_error = str(e)
            if self._activity_logger:
                self._activity_logger.log_sync_failed(str(e), self.user_email)
            return self.store.snapshot()

        self.store.replace(transactions)
        self.connection_error = None

        if self._activity_logger:
            self._activity_logger.log_transactions_loaded(
                count=len(transactions),
                admin_mode=self.admin_mode,
                user_email=self.user_email,
            )

        return self.store.snapshot()

    def dismiss_connection_error(self) -> None:
        self.connection_error = None

    # =========================================================================
    # ENTRY AND DELETE
    # =========================================================================

    async def add_transaction(self, form: TransactionForm) -> Transaction:
        """
        Validate the form, insert the record and put it on top of the list.

        The returned row (with its storage-assigned id) is what the list
        shows.

        Raises:
            TransactionValidationError: If the form has blocking errors
            StorageError: If the insert failed
        """
        try:
            new_transaction = self._validator.build(form, self.session)
        except TransactionValidationError as e:
            if self._activity_logger:
                issues = [
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in e.result.issues
                ]
                self._activity_logger.log_validation_failed(issues, self.user_email)
            raise

        try:
            created = await self._storage.insert_transaction(new_transaction)
        except StorageError as e:
            if self._activity_logger:
                self._activity_logger.log_create_failed(str(e), self.user_email)
            raise

        self.store.prepend(created)

        if self._activity_logger:
            self._activity_logger.log_transaction_created(
                transaction_id=created.id,
                amount=str(created.amount),
                transaction_type=created.type.value,
                user_email=self.user_email,
            )

        return created

    async def delete_transaction(self, transaction_id: str) -> DeleteOutcome:
        """
        Remove a transaction from the list, then from storage.

        On a storage failure the error is returned in the outcome. The local
        removal is kept unless ROLLBACK_FAILED_DELETES is set, in which case
        the item goes back to its original position.
        """
        removed = self.store.remove(transaction_id)

        try:
            await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            rolled_back = False
            if removed is not None and self._settings.rollback_failed_deletes:
                self.store.restore(*removed)
                rolled_back = True

            if self._activity_logger:
                self._activity_logger.log_delete_failed(
                    transaction_id=transaction_id,
                    error_message=str(e),
                    rolled_back=rolled_back,
                    user_email=self.user_email,
                )

            return DeleteOutcome(
                transaction_id=transaction_id,
                removed_locally=removed is not None and not rolled_back,
                error_message=str(e),
                rolled_back=rolled_back,
            )

        if self._activity_logger:
            self._activity_logger.log_transaction_deleted(transaction_id, self.user_email)

        return DeleteOutcome(
            transaction_id=transaction_id,
            removed_locally=removed is not None,
        )

    # =========================================================================
    # ADMIN MODE
    # =========================================================================

    async def enable_admin(self, passphrase: str) -> bool:
        """
        Try to unlock the all-users view.

        The passphrase is compared case-insensitively with ADMIN_PASSPHRASE.
        This is a client-side gate, not an authorization check.
        """
        expected = self._settings.admin_passphrase
        granted = (
            self.session.is_active
            and self._settings.admin_enabled
            and (passphrase or "").strip().lower() == expected.strip().lower()
        )

        if self._activity_logger:
            self._activity_logger.log_admin_mode(
                ActivityEventType.ADMIN_MODE_ENABLED if granted
                else ActivityEventType.ADMIN_MODE_DENIED,
                self.user_email,
            )

        if not granted:
            return False

        self.admin_mode = True
        await self.load_transactions()
        return True

    async def disable_admin(self) -> None:
        """Back to the owner's own transactions."""
        if not self.admin_mode:
            return

        self.admin_mode = False
        if self._activity_logger:
            self._activity_logger.log_admin_mode(
                ActivityEventType.ADMIN_MODE_DISABLED, self.user_email
            )
        await self.load_transactions()

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    @property
    def transactions(self) -> list[Transaction]:
        return self.store.snapshot()

    @property
    def stats(self) -> FinancialStats:
        """Summary cards, always over the unfiltered list."""
        return calculate_stats(self.store.snapshot(), admin_mode=self.admin_mode)

    @property
    def user_summaries(self) -> list[UserSummary]:
        """Admin ranking by total spent. Empty outside admin mode."""
        if not self.admin_mode:
            return []
        return rank_user_summaries(summarize_users(self.store.snapshot()))

    def visible_groups(self, search: str = "", type_filter: str = "all") -> list[DayGroup]:
        """Filtered list, grouped by date, newest first."""
        filtered = filter_transactions(
            self.store.snapshot(),
            search=search,
            type_filter=type_filter,
            admin_mode=self.admin_mode,
        )
        return group_by_date(filtered)

    def chart_flow(self, days: Optional[int] = 7) -> list[DailyFlow]:
        return daily_flow(self.store.snapshot(), days=days)

    async def get_insights(self) -> list[AIInsight]:
        """AI insights for the current list. Never raises."""
        if self._insight_agent is None:
            return []

        transactions = self.store.snapshot()
        insights = await self._insight_agent.get_insights(
            transactions,
            admin_mode=self.admin_mode,
        )

        if self._activity_logger:
            self._activity_logger.log_insights_generated(
                insight_count=len(insights),
                transaction_count=len(transactions),
                admin_mode=self.admin_mode,
                user_email=self.user_email,
            )

        return insights


def create_app_components(settings: Optional[Settings] = None) -> DashboardFlow:
    """
    Factory function to create all application components.

    Supabase storage and auth when SUPABASE_URL and SUPABASE_ANON_KEY are
    set, local storage and local login otherwise. The insight agent is left
    out when Gemini is not configured.
    """
    settings = settings or get_settings()
    activity_logger = ActivityLogger()

    if remote_storage_configured(settings):
        client = SupabaseClient(settings.supabase)
        storage = SupabaseTransactionStorage(client)
        auth = SupabaseAuthService(client)
    else:
        logger.warning("remote_storage_not_configured", fallback="local")
        storage = create_transaction_storage(settings)
        auth = create_auth_service(settings)

    try:
        insight_agent = InsightAgent(settings.gemini, activity_logger)
    except ValidationError as e:
        # AI not configured - the insights panel stays empty
        logger.warning("insights_not_configured", error=str(e))
        insight_agent = None

    return DashboardFlow(
        storage=storage,
        auth=auth,
        insight_agent=insight_agent,
        activity_logger=activity_logger,
        settings=settings.app,
    )
