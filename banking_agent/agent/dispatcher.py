"""
Banking Agent - intent dispatcher.

Processes one customer query end to end:

    Start -> ClassifyingIntent -> Dispatched(intent) -> GeneratingResponse -> Done
                                                                          \\-> Failed

- Start: a blank query gets a guidance response without calling the model.
- ClassifyingIntent: one instrumented completion call ("classify_intent");
  the answer is resolved to an Intent, unknown labels meaning GENERAL_INQUIRY.
- Dispatched: a handler table keyed by Intent; intents without a handler of
  their own (DEPOSIT, WITHDRAWAL, TRANSFER) use the general inquiry handler.
  Account-bound handlers stop with an ERROR response when the account number
  is missing or unknown, before any second model call.
- GeneratingResponse: one more instrumented call ("generate_response").
- Failed: any other exception is recorded on the request span and turned
  into an ERROR response. Nothing escapes process_request.

Each request produces one ``banking.process_request`` span, with the two LLM
call spans as children and a ``banking_request_processed`` span event.
"""

from typing import Awaitable, Callable, Optional

from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from banking_agent.agent import prompts
from banking_agent.agent.intents import Intent, normalize_label
from banking_agent.core.exceptions import AccountNotFoundError, RequestValidationError
from banking_agent.models.domain import Account
from banking_agent.models.requests import BankingRequest
from banking_agent.models.responses import BankingResponse
from banking_agent.observability.emitter import TelemetryEmitter
from banking_agent.observability.instrumentation import LlmInstrumentation
from banking_agent.observability.logging import correlation_id_context, get_logger
from banking_agent.observability.metrics import BankingMetrics
from banking_agent.observability.semconv import BUSINESS_SPAN, BankingAttributes
from banking_agent.observability.tracing import get_current_trace_id
from banking_agent.providers.base import ChatProvider
from banking_agent.providers.registry import ProviderRegistry
from banking_agent.repositories.base import AccountRepository, TransactionRepository

logger = get_logger(__name__)

CLASSIFY_OPERATION = "classify_intent"
GENERATE_OPERATION = "generate_response"
CLASSIFICATION_TAG = "DETERMINE_INTENT"
UNCLASSIFIED = "UNCLASSIFIED"
UNRESOLVED_PROVIDER = "unknown"

MAX_QUERY_ATTRIBUTE_LENGTH = 200

EMPTY_QUERY_MESSAGE = (
    "Please tell me what you would like help with, for example checking your "
    "balance or reviewing recent transactions."
)
FAILURE_PREFIX = "I apologize, but I encountered an error processing your request: "

Handler = Callable[[BankingRequest, ChatProvider, Intent], Awaitable[BankingResponse]]


class BankingAgent:
    """
    Routes customer queries through classification and response generation.

    Args:
        registry: Provider registry used to resolve the provider selector
        accounts: Account repository
        transactions: Transaction repository
        instrumentation: Wraps every completion call in a span and metrics
        emitter: Emits the per-request business event
        metrics: Metrics container (banking request counter)
        tracer: Tracer for the request span
        temperature: Sampling temperature for every completion call
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        accounts: AccountRepository,
        transactions: TransactionRepository,
        instrumentation: LlmInstrumentation,
        emitter: TelemetryEmitter,
        metrics: BankingMetrics,
        tracer: Tracer,
        temperature: float = 0.7,
    ) -> None:
        self._registry = registry
        self._accounts = accounts
        self._transactions = transactions
        self._instrumentation = instrumentation
        self._emitter = emitter
        self._metrics = metrics
        self._tracer = tracer
        self._temperature = temperature

        self._handlers: dict[Intent, Handler] = {
            Intent.CHECK_BALANCE: self._handle_check_balance,
            Intent.VIEW_TRANSACTIONS: self._handle_view_transactions,
            Intent.ACCOUNT_INFO: self._handle_account_info,
            Intent.GENERAL_INQUIRY: self._handle_general_inquiry,
        }

    # =========================================================================
    # Entry point
    # =========================================================================

    async def process_request(self, request: BankingRequest, llm_provider: str) -> BankingResponse:
        """
        Answer one customer query.

        Args:
            request: The customer query
            llm_provider: Provider selector (unknown names use the default provider)

        Returns:
            BankingResponse; status ERROR for every failure
        """
        with self._tracer.start_as_current_span(
            BUSINESS_SPAN,
            kind=SpanKind.INTERNAL,
            attributes={
                BankingAttributes.PROVIDER: llm_provider,
                BankingAttributes.ACCOUNT_NUMBER: request.account_number or "none",
                BankingAttributes.USER_QUERY: request.query[:MAX_QUERY_ATTRIBUTE_LENGTH],
            },
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            if request.operation_type:
                span.set_attribute(BankingAttributes.OPERATION_TYPE, request.operation_type)

            with correlation_id_context(get_current_trace_id()):
                logger.info(
                    "banking_request_received",
                    provider=llm_provider,
                    account=request.account_number or "none",
                )
                # metric labels only ever carry a registered provider name
                provider_used = UNRESOLVED_PROVIDER
                intent: Optional[Intent] = None
                try:
                    provider = self._registry.get_provider(llm_provider)
                    provider_used = provider.name

                    if not request.query.strip():
                        raise RequestValidationError(EMPTY_QUERY_MESSAGE, field="query")

                    intent = await self._classify(request, provider)
                    span.set_attribute(BankingAttributes.INTENT, intent.value)

                    handler = self._handlers.get(intent, self._handle_general_inquiry)
                    response = await handler(request, provider, intent)
                    span.set_status(Status(StatusCode.OK))

                except (RequestValidationError, AccountNotFoundError) as e:
                    logger.info(
                        "banking_request_rejected",
                        reason=e.error_code,
                        intent=intent.value if intent else None,
                    )
                    response = BankingResponse.error(e.message, provider_used)

                except Exception as e:
                    logger.error(
                        "banking_request_failed",
                        provider=provider_used,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    response = BankingResponse.error(FAILURE_PREFIX + str(e), provider_used)

                intent_label = intent.value if intent else UNCLASSIFIED
                span.set_attribute(BankingAttributes.RESPONSE_STATUS, response.status.value)
                self._record_outcome(request, response, provider_used, intent_label, span)

                logger.info(
                    "banking_request_processed",
                    provider=provider_used,
                    intent=intent_label,
                    status=response.status.value,
                )
                return response

    # =========================================================================
    # Classification
    # =========================================================================

    async def _classify(self, request: BankingRequest, provider: ChatProvider) -> Intent:
        completion = await self._instrumentation.call_model(
            provider,
            prompts.intent_prompt(request),
            CLASSIFY_OPERATION,
            temperature=self._temperature,
            intent=CLASSIFICATION_TAG,
            account_ref=request.account_number,
        )
        intent = Intent.from_label(completion.content)
        if intent.value != normalize_label(completion.content):
            logger.info(
                "intent_label_unrecognized",
                label=normalize_label(completion.content)[:50],
                fallback=intent.value,
            )
        return intent

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _handle_check_balance(
        self, request: BankingRequest, provider: ChatProvider, intent: Intent
    ) -> BankingResponse:
        account = await self._require_account(request, "check your balance")
        message = await self._generate(
            provider, prompts.balance_prompt(account), intent, account.account_number
        )
        return BankingResponse.success(message, provider.name, data=account)

    async def _handle_view_transactions(
        self, request: BankingRequest, provider: ChatProvider, intent: Intent
    ) -> BankingResponse:
        account = await self._require_account(request, "view transactions")
        history = await self._transactions.get_history(account.account_number)
        if not history:
            return BankingResponse.success(
                "No transactions found for this account.", provider.name, data=[]
            )

        message = await self._generate(
            provider,
            prompts.transactions_prompt(account.account_number, history),
            intent,
            account.account_number,
        )
        return BankingResponse.success(message, provider.name, data=history)

    async def _handle_account_info(
        self, request: BankingRequest, provider: ChatProvider, intent: Intent
    ) -> BankingResponse:
        account = await self._require_account(request, "view account information")
        message = await self._generate(
            provider, prompts.account_info_prompt(account), intent, account.account_number
        )
        return BankingResponse.success(message, provider.name, data=account)

    async def _handle_general_inquiry(
        self, request: BankingRequest, provider: ChatProvider, intent: Intent
    ) -> BankingResponse:
        message = await self._generate(
            provider, prompts.general_inquiry_prompt(request), intent, request.account_number
        )
        return BankingResponse.success(message, provider.name)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_account(self, request: BankingRequest, action: str) -> Account:
        """
        Raises:
            RequestValidationError: No account number on the request
            AccountNotFoundError: The account does not exist
        """
        if not request.account_number:
            raise RequestValidationError(
                f"To {action}, please provide your account number.",
                field="account_number",
            )
        account = await self._accounts.find_by_account_number(request.account_number)
        if account is None:
            raise AccountNotFoundError(request.account_number)
        return account

    async def _generate(
        self,
        provider: ChatProvider,
        prompt: str,
        intent: Intent,
        account_ref: Optional[str],
    ) -> str:
        completion = await self._instrumentation.call_model(
            provider,
            prompt,
            GENERATE_OPERATION,
            temperature=self._temperature,
            intent=intent.value,
            account_ref=account_ref,
        )
        return completion.content

    def _record_outcome(
        self,
        request: BankingRequest,
        response: BankingResponse,
        provider: str,
        intent: str,
        span: Span,
    ) -> None:
        self._emitter.record_business_event(
            "banking_request_processed",
            {
                "provider": provider,
                "intent": intent,
                "status": response.status.value,
                "account": request.account_number or "none",
            },
            span=span,
        )
        try:
            self._metrics.record_banking_request(provider, intent, response.status.value)
        except Exception as e:
            logger.warning("banking_request_metric_failed", error=str(e))


__all__ = ["BankingAgent"]
