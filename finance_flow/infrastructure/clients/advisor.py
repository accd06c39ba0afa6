"""Advice model HTTP client: fills the advisor prompt and calls a chat completions API"""

import httpx
from pydantic import BaseModel, Field, ValidationError
from finance_flow.domain.exceptions import AdviceServiceError
from finance_flow.config import settings
from finance_flow.infrastructure.observability.metrics import advice_latency_histogram, advice_failure_counter


class FinancialAdviceInput(BaseModel):
    """Prompt variables"""

    start_date: str = Field(..., description="The start date for analyzing financial data (YYYY-MM-DD).")
    end_date: str = Field(..., description="The end date for analyzing financial data (YYYY-MM-DD).")
    income_data: str = Field(..., description="JSON string of user income data.")
    expense_data: str = Field(..., description="JSON string of user expense data.")


class FinancialAdviceOutput(BaseModel):
    advice: str = Field(..., description="Personalized financial advice in markdown format.")


ADVICE_PROMPT = (
    "You are a financial advisor. Analyze the following income and expense data for the period "
    "between {start_date} and {end_date}, and provide personalized financial advice. "
    "Format your response in markdown.\n\n"
    "Income Data: {income_data}\n"
    "Expense Data: {expense_data}\n\n"
    "Give advice for how I can better manage my finances."
)

OUTPUT_INSTRUCTIONS = (
    'Reply with a JSON object of the form {"advice": "<markdown>"} and nothing else.'
)


def build_prompt(advice_input: FinancialAdviceInput) -> str:
    return ADVICE_PROMPT.format(**advice_input.model_dump())


class AdvisorClient:
    """Client for an OpenAI-compatible chat completions endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.advice_api_base).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.advice_api_key
        self.model = model or settings.advice_model
        self.timeout = timeout or settings.http_timeout_seconds

    async def get_advice(self, advice_input: FinancialAdviceInput) -> FinancialAdviceOutput:
        """
        Ask the model for advice on the given period.

        Raises:
            AdviceServiceError: On timeout, HTTP errors, or output not matching the schema
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": OUTPUT_INSTRUCTIONS},
                {"role": "user", "content": build_prompt(advice_input)},
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                with advice_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers=headers,
                    )
                    response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
                return FinancialAdviceOutput.model_validate_json(content)

            except httpx.TimeoutException as e:
                advice_failure_counter.inc()
                raise AdviceServiceError(f"Advice API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                advice_failure_counter.inc()
                raise AdviceServiceError(f"Advice API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                advice_failure_counter.inc()
                raise AdviceServiceError(f"Advice API unreachable: {e}") from e
            except (KeyError, IndexError, TypeError, ValueError, ValidationError) as e:
                advice_failure_counter.inc()
                raise AdviceServiceError(f"Invalid advice output: {e}") from e
