"""Persuasive follow-up messages generated by the LLM"""

import time
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from app.config import Settings
from app.models.refinance import Language, SavingsResult
from app.utils.logger import LoggerMixin, log_llm_interaction
from app.utils.prompts import PERSUASION_PROMPTS, SAVINGS_DETAILS_TEMPLATE, SYSTEM_ROLES
from app.utils.translations import format_currency


class PersuasionService(LoggerMixin):
    """Builds the post-summary sales message; failures propagate to the caller"""

    def __init__(self, settings: Settings, llm: Optional[Any] = None):
        self.settings = settings
        self._llm = llm

    @property
    def llm(self):
        # Built on first use; an empty API key fails the call, not startup
        if self._llm is None:
            self._llm = ChatOpenAI(
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_model,
                temperature=self.settings.openai_temperature,
                max_tokens=self.settings.max_tokens,
                timeout=self.settings.http_timeout_seconds,
                max_retries=1,
            )
        return self._llm

    def build_messages(self, result: SavingsResult, language: Language) -> list:
        code = language.value
        details = SAVINGS_DETAILS_TEMPLATE.format(
            monthly_savings=format_currency(result.monthly_savings),
            yearly_savings=format_currency(result.yearly_savings),
            lifetime_savings=format_currency(result.lifetime_savings),
            new_monthly_repayment=format_currency(result.new_monthly_repayment),
            new_interest_rate=result.new_interest_rate,
            lender_name=result.lender_name,
        )
        prompt = f"{PERSUASION_PROMPTS.get(code, PERSUASION_PROMPTS['en'])}\n\n{details}"
        return [
            SystemMessage(content=SYSTEM_ROLES.get(code, SYSTEM_ROLES["en"])),
            HumanMessage(content=prompt),
        ]

    async def generate_persuasive_summary(
        self, result: SavingsResult, language: Language
    ) -> str:
        start_time = time.time()
        llm_logger = log_llm_interaction(
            model=self.settings.openai_model, language=language.value
        )

        response = await self.llm.ainvoke(self.build_messages(result, language))
        content = (response.content or "").strip()
        if not content:
            raise ValueError("LLM returned an empty message")

        llm_logger.info(
            "Generated persuasive message",
            response_time_ms=(time.time() - start_time) * 1000,
            length=len(content),
        )
        return content
