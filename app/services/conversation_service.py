"""Refinance conversation state machine.

One inbound text is one turn: validate against the current phase, store the
value, mirror the profile, advance and prompt. The last numeric question of
each path runs the refinance calculator and closes the conversation.
"""

import asyncio
import re
from typing import Callable, NamedTuple, Optional

from app.config import Settings
from app.models.refinance import (
    ConversationState,
    Language,
    Lead,
    PathADetails,
    PathBDetails,
    Phase,
    SavingsResult,
    ValidationResult,
)
from app.services.interfaces import (
    LeadSink,
    MessagingError,
    Messenger,
    ProfileStore,
    SummaryGenerator,
)
from app.services.refinance_service import (
    NOT_APPLICABLE,
    CalculationError,
    RefinanceCalculationService,
)
from app.services.session_store import SessionStore
from app.services.validation import (
    parse_number,
    validate_interest_rate,
    validate_loan_amount,
    validate_repayment,
    validate_tenure,
    validate_years_paid,
)
from app.utils.logger import LoggerMixin, log_refinance_calculation, mask_chat_id
from app.utils.translations import (
    fallback_persuasion,
    not_beneficial_message,
    render_admin_alert,
    render_summary,
    translate,
)

RESTART_COMMAND = "restart"
DECLINE_REFERRAL = "0"
MAX_NAME_LENGTH = 100

LANGUAGE_OPTIONS = {
    "1": Language.ENGLISH,
    "2": Language.MALAY,
    "3": Language.CHINESE,
}

PATH_OPTIONS = {
    "1": (PathADetails, Phase.PATH_A_AMOUNT),
    "2": (PathBDetails, Phase.PATH_B_AMOUNT),
}


class NumericStep(NamedTuple):
    """One numeric question: where the answer goes and what comes next"""

    details_type: type
    field: str
    validate: Callable[[ConversationState, Optional[float]], ValidationResult]
    next_phase: Optional[Phase]
    integer: bool = False


class ConversationService(LoggerMixin):
    """Drives a chat identity through onboarding, data collection and the summary"""

    def __init__(
        self,
        session_store: SessionStore,
        messenger: Messenger,
        calculator: RefinanceCalculationService,
        summary_generator: SummaryGenerator,
        lead_sink: LeadSink,
        profile_store: ProfileStore,
        settings: Settings,
    ):
        self.session_store = session_store
        self.messenger = messenger
        self.calculator = calculator
        self.summary_generator = summary_generator
        self.lead_sink = lead_sink
        self.profile_store = profile_store
        self.settings = settings

        self._referral_pattern = re.compile(
            rf"(?<![A-Za-z0-9]){re.escape(settings.referral_prefix)}[A-Za-z0-9]{{8,}}"
        )
        self._background_tasks: set[asyncio.Task] = set()
        self._steps = self._build_numeric_steps()
        self._handlers = {
            Phase.START: self._handle_start,
            Phase.AWAITING_REFERRAL: self._handle_referral,
            Phase.LANGUAGE_SELECT: self._handle_language,
            Phase.COLLECT_NAME: self._handle_name,
            Phase.CHOOSE_PATH: self._handle_path_choice,
            Phase.SUMMARY_DELIVERED: self._handle_done,
            Phase.DONE: self._handle_done,
        }
        for phase in self._steps:
            self._handlers[phase] = self._handle_numeric

    def _build_numeric_steps(self) -> dict[Phase, NumericStep]:
        config = self.settings
        return {
            Phase.PATH_A_AMOUNT: NumericStep(
                PathADetails,
                "loan_amount",
                lambda state, value: validate_loan_amount(value, state.language, config),
                Phase.PATH_A_TENURE,
            ),
            Phase.PATH_A_TENURE: NumericStep(
                PathADetails,
                "tenure",
                lambda state, value: validate_tenure(
                    value,
                    config.path_a_min_tenure,
                    config.path_a_max_tenure,
                    state.language,
                ),
                Phase.PATH_A_RATE,
                integer=True,
            ),
            Phase.PATH_A_RATE: NumericStep(
                PathADetails,
                "interest_rate",
                lambda state, value: validate_interest_rate(
                    value, state.language, config
                ),
                None,
            ),
            Phase.PATH_B_AMOUNT: NumericStep(
                PathBDetails,
                "original_loan_amount",
                lambda state, value: validate_loan_amount(value, state.language, config),
                Phase.PATH_B_TENURE,
            ),
            Phase.PATH_B_TENURE: NumericStep(
                PathBDetails,
                "original_tenure",
                lambda state, value: validate_tenure(
                    value,
                    config.path_b_min_tenure,
                    config.path_b_max_tenure,
                    state.language,
                ),
                Phase.PATH_B_PAYMENT,
                integer=True,
            ),
            Phase.PATH_B_PAYMENT: NumericStep(
                PathBDetails,
                "monthly_payment",
                lambda state, value: validate_repayment(value, state.language, config),
                Phase.PATH_B_YEARS_PAID,
            ),
            Phase.PATH_B_YEARS_PAID: NumericStep(
                PathBDetails,
                "years_paid",
                lambda state, value: validate_years_paid(
                    value, state.profile.loan.original_tenure, state.language
                ),
                None,
                integer=True,
            ),
        }

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def process_inbound_text(self, chat_identity: str, raw_text: str) -> None:
        """Process one inbound message for ``chat_identity``.

        Callers must not run two turns for the same identity concurrently.
        Nothing raised while handling the turn escapes this method.
        """
        state, _ = self.session_store.get_or_create(chat_identity)
        text = (raw_text or "").strip()

        self.logger.info(
            "Processing turn",
            chat_id=mask_chat_id(chat_identity),
            phase=state.phase.value,
            message_length=len(text),
        )

        try:
            if text.lower() == RESTART_COMMAND:
                await self._restart(state)
                return

            handler = self._handlers.get(state.phase, self._handle_unexpected)
            await handler(state, text)
        except Exception:
            self.logger.exception(
                "Unexpected error while processing turn",
                chat_id=mask_chat_id(chat_identity),
                phase=state.phase.value,
            )
            await self._send(
                chat_identity, translate("SOMETHING_WENT_WRONG", state.language)
            )

    async def wait_for_background_tasks(self) -> None:
        """Wait for pending lead submissions and admin notifications."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def extract_referral_code(self, text: str) -> Optional[str]:
        match = self._referral_pattern.search(text or "")
        return match.group(0) if match else None

    # ------------------------------------------------------------------
    # Phase handlers
    # ------------------------------------------------------------------

    async def _handle_start(self, state: ConversationState, text: str) -> None:
        referral_code = self.extract_referral_code(text)
        if referral_code:
            self.logger.info(
                "Referral code detected",
                chat_id=mask_chat_id(state.chat_identity),
                referral_code=referral_code,
            )
            state.profile.referral_code = referral_code
        elif not state.profile.referral_code:
            state.profile.referral_code = self._stored_referral_code(state.chat_identity)

        if self.settings.referral_required and not state.profile.referral_code:
            state.phase = Phase.AWAITING_REFERRAL
            self._persist(state)
            await self._send(
                state.chat_identity, translate("ASK_REFERRAL", state.language)
            )
            return

        await self._send_welcome(state)

    async def _handle_referral(self, state: ConversationState, text: str) -> None:
        referral_code = self.extract_referral_code(text)
        if referral_code is None and text == DECLINE_REFERRAL:
            referral_code = self.settings.default_referral_code

        if referral_code is None:
            await self._send(
                state.chat_identity, translate("INVALID_INPUT", state.language)
            )
            return

        state.profile.referral_code = referral_code
        await self._send_welcome(state)

    async def _handle_language(self, state: ConversationState, text: str) -> None:
        language = LANGUAGE_OPTIONS.get(text)
        if language is None:
            # No language chosen yet
            await self._send(
                state.chat_identity, translate("INVALID_INPUT", Language.ENGLISH)
            )
            return

        state.language = language
        state.phase = Phase.COLLECT_NAME
        self._persist(state)
        await self._send(state.chat_identity, translate("ASK_NAME", language))

    async def _handle_name(self, state: ConversationState, text: str) -> None:
        if not text:
            await self._send(
                state.chat_identity, translate("INVALID_INPUT", state.language)
            )
            return

        state.profile.name = text[:MAX_NAME_LENGTH]
        state.phase = Phase.CHOOSE_PATH
        self._persist(state)
        await self._send(
            state.chat_identity, translate("ASK_LOAN_DETAILS", state.language)
        )

    async def _handle_path_choice(self, state: ConversationState, text: str) -> None:
        option = PATH_OPTIONS.get(text)
        if option is None:
            await self._send(
                state.chat_identity, translate("INVALID_INPUT", state.language)
            )
            return

        details_type, first_phase = option
        state.profile.loan = details_type()
        state.phase = first_phase
        self._persist(state)
        await self._send(
            state.chat_identity, translate(first_phase.value, state.language)
        )

    async def _handle_numeric(self, state: ConversationState, text: str) -> None:
        step = self._steps[state.phase]
        if not isinstance(state.profile.loan, step.details_type):
            raise RuntimeError(
                f"Phase {state.phase.value} reached without {step.details_type.__name__}"
            )

        value = parse_number(text)
        validation = step.validate(state, value)
        if not validation.valid:
            await self._send(state.chat_identity, validation.message)
            return

        setattr(state.profile.loan, step.field, int(value) if step.integer else value)

        if step.next_phase is None:
            self._persist(state)
            await self._complete(state)
            return

        state.phase = step.next_phase
        self._persist(state)
        await self._send(
            state.chat_identity, translate(step.next_phase.value, state.language)
        )

    async def _handle_done(self, state: ConversationState, text: str) -> None:
        await self._send(
            state.chat_identity,
            translate(
                "THANK_YOU", state.language, contact=self.settings.admin_contact_url
            ),
        )

    async def _handle_unexpected(self, state: ConversationState, text: str) -> None:
        await self._send(state.chat_identity, translate("INVALID_INPUT", state.language))

    # ------------------------------------------------------------------
    # Calculation outcome
    # ------------------------------------------------------------------

    async def _complete(self, state: ConversationState) -> None:
        chat_identity = state.chat_identity
        language = state.language
        calc_logger = log_refinance_calculation(
            chat_id=chat_identity,
            calculation_type=f"path_{state.profile.loan.path.lower()}",
        )

        try:
            result = self.calculator.calculate(state.profile.loan, language)
        except CalculationError as e:
            calc_logger.warning("Refinance calculation failed", error=str(e))
            state.phase = Phase.DONE
            self._persist(state)
            await self._send(
                chat_identity,
                translate(
                    "CONTACT_SUPPORT", language, contact=self.settings.admin_contact_url
                ),
            )
            return

        state.profile.savings = result
        threshold = self.settings.min_lifetime_savings

        if not result.is_beneficial(threshold):
            calc_logger.info(
                "Refinancing not beneficial",
                monthly_savings=result.monthly_savings,
                lifetime_savings=result.lifetime_savings,
            )
            state.phase = Phase.DONE
            self._persist(state)
            await self._send(
                chat_identity, not_beneficial_message(result, language, threshold)
            )

            if self.settings.submit_disqualified_leads:
                await self._dispatch_lead(self._disqualified_lead(state), notify_admin=False)
            return

        calc_logger.info(
            "Refinancing beneficial",
            monthly_savings=result.monthly_savings,
            lifetime_savings=result.lifetime_savings,
            lender_name=result.lender_name,
        )
        state.phase = Phase.SUMMARY_DELIVERED
        self._persist(state)
        await self._send(chat_identity, render_summary(result, language))

        persuasion = await self._persuasive_message(result, language)
        await self._send(chat_identity, persuasion)
        await self._send(
            chat_identity,
            translate("THANK_YOU", language, contact=self.settings.admin_contact_url),
        )

        await self._dispatch_lead(Lead.from_state(state), notify_admin=True)
        state.phase = Phase.DONE
        self._persist(state)

    def _disqualified_lead(self, state: ConversationState) -> Lead:
        return Lead.from_state(state).model_copy(
            update={
                "estimated_savings": 0,
                "monthly_savings": 0,
                "yearly_savings": 0,
                "new_monthly_repayment": 0,
                "lender_name": NOT_APPLICABLE,
            }
        )

    async def _persuasive_message(
        self, result: SavingsResult, language: Language
    ) -> str:
        try:
            return await self.summary_generator.generate_persuasive_summary(
                result, language
            )
        except Exception as e:
            self.logger.warning(
                "Persuasive message generation failed, using fallback", error=str(e)
            )
            return fallback_persuasion(language)

    # ------------------------------------------------------------------
    # Lead delivery
    # ------------------------------------------------------------------

    async def _dispatch_lead(self, lead: Lead, notify_admin: bool) -> None:
        if not self.settings.background_lead_dispatch:
            await self._deliver_lead(lead, notify_admin)
            return

        task = asyncio.create_task(self._deliver_lead(lead, notify_admin))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _deliver_lead(self, lead: Lead, notify_admin: bool) -> None:
        if notify_admin and self.settings.admin_chat_id:
            await self._send(self.settings.admin_chat_id, render_admin_alert(lead))

        try:
            submitted = await self.lead_sink.submit_lead(lead)
        except Exception as e:
            self.logger.error(
                "Lead submission raised",
                chat_id=mask_chat_id(lead.chat_identity),
                error=str(e),
            )
            return

        self.logger.info(
            "Lead delivery finished",
            chat_id=mask_chat_id(lead.chat_identity),
            submitted=submitted,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _restart(self, state: ConversationState) -> None:
        self.logger.info(
            "Restarting conversation",
            chat_id=mask_chat_id(state.chat_identity),
            phase=state.phase.value,
        )
        state.reset()
        self._persist(state)
        await self._handle_start(state, "")

    async def _send_welcome(self, state: ConversationState) -> None:
        state.phase = Phase.LANGUAGE_SELECT
        self._persist(state)
        await self._send(state.chat_identity, translate("GREETING", state.language))
        await self._send(state.chat_identity, translate("WELCOME", state.language))

    def _stored_referral_code(self, chat_identity: str) -> Optional[str]:
        try:
            stored = self.profile_store.load_profile(chat_identity)
        except Exception as e:
            self.logger.error(
                "Failed to load stored profile",
                chat_id=mask_chat_id(chat_identity),
                error=str(e),
            )
            return None
        return (stored or {}).get("referral_code")

    def _persist(self, state: ConversationState) -> None:
        fields = state.profile.to_record()
        fields["language"] = state.language.value
        fields["phase"] = state.phase.value
        try:
            saved = self.profile_store.save_profile(state.chat_identity, fields)
        except Exception as e:
            self.logger.error(
                "Failed to persist profile",
                chat_id=mask_chat_id(state.chat_identity),
                error=str(e),
            )
            return
        if not saved:
            self.logger.warning(
                "Profile was not persisted", chat_id=mask_chat_id(state.chat_identity)
            )

    async def _send(self, recipient_id: str, text: str) -> bool:
        try:
            await self.messenger.send_message(recipient_id, text)
            return True
        except MessagingError as e:
            self.logger.error(
                "Failed to deliver message",
                recipient=mask_chat_id(recipient_id),
                error=str(e),
            )
        except Exception as e:
            self.logger.exception(
                "Messenger raised unexpectedly",
                recipient=mask_chat_id(recipient_id),
                error=str(e),
            )
        return False
