"""Advisory service HTTP client with exponential backoff retry logic"""

import asyncio
import json
import httpx
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple
from astral_gateway.config import settings
from astral_gateway.domain.exceptions import AdvisoryAPIError
from astral_gateway.domain.models import (
    FINANCING,
    ActiveLoan,
    AdvisorInsights,
    ChatMessage,
    FinancingPlan,
    PaymentEvent,
    SavedPlan,
    UserInput,
    Vehicle,
)
from astral_gateway.domain.schedule import loan_end_date
from astral_gateway.infrastructure.observability.metrics import advisory_latency_histogram, advisory_failure_counter

SYSTEM_INSTRUCTION = (
    "You are a friendly and knowledgeable financial advisor for Astral Motors. "
    "Help users understand vehicle financing and their repayment commitments. Be encouraging and concise."
)

FINANCE_COACH_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "affordabilityAssessment": {
            "type": "string",
            "description": "1-2 sentence assessment of how affordable this car is for the user.",
        },
        "actionableTip": {
            "type": "string",
            "description": "A single, actionable financial tip related to this specific purchase.",
        },
    },
    "required": ["affordabilityAssessment", "actionableTip"],
}

TIMELINE_SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "string",
            "description": (
                "3-5 sentence summary of the upcoming payment schedule: total commitment next month, "
                "when the first vehicle is paid off or lease ends, and one tip for managing payments."
            ),
        }
    },
    "required": ["summary"],
}

INSIGHTS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "recommendedModels": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Up to 3 model names from the provided list that best fit the user's description.",
        },
        "financialTips": {
            "type": "string",
            "description": "2-3 sentences of encouraging financial advice for this purchase.",
        },
    },
    "required": ["recommendedModels", "financialTips"],
}

SAVED_PLANS_SUMMARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "string",
            "description": (
                "Concise comparison of the saved options: trade-offs between monthly affordability and "
                "long-term cost, and the best option for each priority."
            ),
        }
    },
    "required": ["summary"],
}

NO_CANDIDATES_TIP = (
    "No vehicles match your current criteria. Try adjusting your budget or preferences to see more options."
)
NO_SAVED_PLANS_SUMMARY = "You have no saved plans to summarize."

CHAT_CONTEXT_MODELS = 5


def build_insights_prompt(description: str, vehicles: Sequence[Vehicle]) -> str:
    listing = "\n".join(f"- {v.model}: {v.description}" for v in vehicles)
    return (
        "Recommend the best-fitting models from the list below for what the user is looking for.\n\n"
        f'User\'s description: "{description}"\n\n'
        f"Available and affordable vehicles:\n{listing}\n"
    )


def build_saved_plans_summary_prompt(plans: Sequence[SavedPlan]) -> str:
    options = []
    for index, saved in enumerate(plans, start=1):
        inputs = (
            f"income ${saved.user_input.income:,.0f}, credit {saved.user_input.credit_score}, "
            f"down payment ${saved.user_input.down_payment:,.0f}"
        )
        plan = saved.plan
        if plan.plan_type == FINANCING:
            details = (
                f"financing for {plan.loan_term_years} years, ${plan.monthly_payment:,.0f}/month, "
                f"total cost ${plan.total_cost:,.0f}"
            )
        else:
            details = (
                f"leasing for {plan.term_months} months, ${plan.monthly_payment:,.0f}/month, "
                f"due at signing ${plan.due_at_signing:,.0f}"
            )
        options.append(
            f"Option {index}: {saved.vehicle.model} (price ${saved.vehicle.price:,.0f}) with {inputs}. Plan: {details}."
        )

    return (
        "Compare the user's saved financing and leasing options. Each option may use different "
        "financial inputs. Highlight the trade-offs between monthly affordability and long-term cost, "
        "and name the best option for the lowest monthly payment and for the best long-term value.\n\n"
        "Saved options:\n" + "\n".join(options) + "\n"
    )


def build_chat_context(
    view: str,
    user_input: UserInput,
    saved_plans: Sequence[SavedPlan],
    recommended_models: Sequence[str] = (),
) -> str:
    """What the user is looking at, so replies can reference their own numbers"""
    lines = [
        "Current context of the user's session:",
        f"- The user is on the '{view}' page.",
        f"- Financial inputs: annual income ${user_input.income:,.0f}, credit score {user_input.credit_score}, "
        f"down payment ${user_input.down_payment:,.0f}, loan term {user_input.loan_term_years} years.",
    ]
    if saved_plans:
        models = ", ".join(p.vehicle.model for p in saved_plans)
        lines.append(f"- The user has {len(saved_plans)} saved vehicle plans: {models}.")
    else:
        lines.append("- The user has no saved vehicle plans yet.")
    if view == "navigator" and recommended_models:
        models = ", ".join(recommended_models[:CHAT_CONTEXT_MODELS])
        lines.append(f"- The user is viewing these recommended vehicles: {models}.")
    return "\n".join(lines) + "\n"


def build_chat_prompt(history: Sequence[ChatMessage], message: str, context: str) -> str:
    transcript = "\n".join(f"{'User' if m.sender == 'user' else 'Advisor'}: {m.text}" for m in history)
    return (
        f"{context}---\n"
        "The following is a conversation between the user and you. Use the context above to give "
        "accurate, relevant answers.\n\n"
        + (transcript + "\n" if transcript else "")
        + f"User: {message}\nAdvisor:"
    )


def build_financing_advice_prompt(user_input: UserInput, vehicle: Vehicle, plan: FinancingPlan) -> str:
    return (
        "Assess this vehicle purchase for the user.\n\n"
        f"User profile:\n"
        f"- Annual income: ${user_input.income:,.0f}\n"
        f"- Credit score: {user_input.credit_score}\n"
        f"- Down payment: ${user_input.down_payment:,.0f}\n"
        f"- Loan term: {user_input.loan_term_years} years\n\n"
        f"Vehicle: {vehicle.model} at ${vehicle.price:,.0f}\n"
        f"Plan:\n"
        f"- Monthly payment: ${plan.monthly_payment:,.2f}\n"
        f"- Interest rate: {plan.interest_rate * 100:.2f}%\n"
    )


def build_timeline_summary_prompt(loans: Sequence[ActiveLoan], events: Sequence[PaymentEvent], today: date) -> str:
    lines = []
    for loan in loans:
        kind = "loan" if loan.plan_type == FINANCING else "lease"
        balance = f", ${loan.amount_left:,.2f} left" if loan.plan_type == FINANCING else ""
        lines.append(
            f"- {loan.vehicle_model} ({kind}): ${loan.monthly_payment:,.2f}/month on day "
            f"{loan.payment_day_of_month}, ends {loan_end_date(loan).isoformat()}{balance}"
        )

    next_month = [e for e in events if (e.due_date.year, e.due_date.month) == _next_month(today)]
    next_month_total = sum(e.amount for e in next_month)

    return (
        f"Today is {today.isoformat()}. Summarize the user's vehicle payment timeline.\n\n"
        "Active obligations:\n" + "\n".join(lines) + "\n\n"
        f"Total due next month: ${next_month_total:,.2f} across {len(next_month)} payments\n"
        f"Remaining scheduled payments: {len(events)}\n"
    )


def _next_month(today: date) -> Tuple[int, int]:
    return (today.year + today.month // 12, today.month % 12 + 1)


class AdvisoryClient:
    """Client for the external AI advisory service; returns opaque text"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.advisory_api_base
        self.api_key = api_key or settings.advisory_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.advisory_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.advisory_backoff_base
        self.transport = transport

    async def generate(
        self, prompt: str, response_schema: Optional[Dict[str, Any]] = None, temperature: float = 0.7
    ) -> str:
        """
        Send a structured prompt and return the service's text.

        Without a response_schema the service answers in free text.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1)
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter

        Raises:
            AdvisoryAPIError: On timeout, HTTP errors, or invalid response
        """
        payload = {
            "model": settings.advisory_model,
            "system_instruction": SYSTEM_INSTRUCTION,
            "prompt": prompt,
            "temperature": temperature,
        }
        if response_schema is not None:
            payload["response_schema"] = response_schema
        headers = {"X-API-Key": self.api_key} if self.api_key else {}

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with advisory_latency_histogram.time():
                        response = await client.post(f"{self.base_url}/v1/generate", json=payload, headers=headers)
                        response.raise_for_status()
                    return response.json()["text"]

                except httpx.HTTPStatusError as e:
                    advisory_failure_counter.inc()
                    attempt += 1
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise AdvisoryAPIError(f"Advisory API error: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    advisory_failure_counter.inc()
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise AdvisoryAPIError(f"Advisory API unreachable after {attempt} attempts") from e

                except (KeyError, ValueError, TypeError) as e:
                    advisory_failure_counter.inc()
                    raise AdvisoryAPIError(f"Invalid response from advisory API: {e}") from e

                await asyncio.sleep(self.backoff_base * (2 ** (attempt - 1)))

    async def get_financing_advice(self, user_input: UserInput, vehicle: Vehicle, plan: FinancingPlan) -> str:
        return await self.generate(build_financing_advice_prompt(user_input, vehicle, plan), FINANCE_COACH_SCHEMA)

    async def get_timeline_summary(
        self, loans: List[ActiveLoan], events: List[PaymentEvent], today: date
    ) -> str:
        return await self.generate(build_timeline_summary_prompt(loans, events, today), TIMELINE_SUMMARY_SCHEMA)

    async def get_financial_insights(self, description: str, candidates: List[Vehicle]) -> AdvisorInsights:
        """
        Ask the advisor to rank candidate vehicles against the user's description.

        No candidates means nothing to rank: returns a canned tip without a call.

        Raises:
            AdvisoryAPIError: service failure, or text that isn't the expected JSON
        """
        if not candidates:
            return AdvisorInsights(recommended_models=[], financial_tips=NO_CANDIDATES_TIP)

        text = await self.generate(build_insights_prompt(description, candidates), INSIGHTS_SCHEMA)
        try:
            data = json.loads(text)
            return AdvisorInsights(
                recommended_models=[str(model) for model in data["recommendedModels"]],
                financial_tips=data["financialTips"],
            )
        except (KeyError, TypeError, ValueError) as e:
            advisory_failure_counter.inc()
            raise AdvisoryAPIError(f"Invalid insights from advisory API: {e}") from e

    async def get_saved_plans_summary(self, plans: List[SavedPlan]) -> str:
        if not plans:
            return NO_SAVED_PLANS_SUMMARY
        return await self.generate(build_saved_plans_summary_prompt(plans), SAVED_PLANS_SUMMARY_SCHEMA, 0.6)

    async def get_chat_response(self, history: List[ChatMessage], message: str, context: str) -> str:
        """Free-text chatbot reply to the latest message"""
        return await self.generate(build_chat_prompt(history, message, context), temperature=0.8)
