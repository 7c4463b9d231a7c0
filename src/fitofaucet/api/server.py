"""Public HTTP API for the faucet.

Endpoints:
- GET  /api/health: Configuration status, faucet wallet and its explorer link
- GET  /api/captcha-question: New CAPTCHA question
- POST /api/request-tokens: CAPTCHA-gated token request
- POST /api/explain-tx: AI explanation of a transaction hash
- POST /api/analyze-contract: AI audit of Solidity source
- POST /api/chat: AI developer Q&A
"""

import json
import logging
import uuid
from dataclasses import dataclass

from aiohttp import web

from fitofaucet.ai.client import UpstreamUnavailableError
from fitofaucet.assistant import AssistantService, InvalidAssistantRequest, parse_history
from fitofaucet.blockchain.networks import NetworkInfo
from fitofaucet.faucet.service import FaucetOutcome, FaucetService
from fitofaucet.observability.logging import clear_request_id, set_request_id
from fitofaucet.observability.metrics import REQUESTS

logger = logging.getLogger(__name__)

OUTCOME_STATUS = {
    FaucetOutcome.SUCCESS: 200,
    FaucetOutcome.INVALID_ADDRESS: 400,
    FaucetOutcome.CHALLENGE_FAILED: 400,
    FaucetOutcome.ON_COOLDOWN: 429,
    FaucetOutcome.INSUFFICIENT_FUNDS: 503,
    FaucetOutcome.STORE_UNAVAILABLE: 503,
    FaucetOutcome.UPSTREAM_UNAVAILABLE: 503,
    FaucetOutcome.SERVICE_UNAVAILABLE: 503,
    FaucetOutcome.TRANSFER_FAILED: 500,
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

UNAVAILABLE_MESSAGE = (
    "The faucet is temporarily unavailable due to a server configuration error."
)

TOKEN_REQUEST_PATH = "/api/request-tokens"

# Routes that stay reachable when the service failed to initialize
_UNGUARDED = frozenset({"/api/health"})


@dataclass
class Services:
    """Fully initialized collaborators behind the API."""

    faucet: FaucetService
    assistant: AssistantService
    network: NetworkInfo
    wallet_address: str


SERVICES_KEY = web.AppKey("services", Services)
INIT_ERROR_KEY = web.AppKey("init_error", str)


def _error(status: int, message: str, **fields) -> web.Response:
    return web.json_response({"message": message, **fields}, status=status)


@web.middleware
async def request_context_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Bind a request ID to logs, answer CORS preflight, catch stray errors."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    set_request_id(request_id)
    try:
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
        else:
            try:
                response = await handler(request)
            except web.HTTPException as e:
                response = _error(e.status, e.reason)
            except Exception:
                logger.exception(
                    "Unhandled API error",
                    extra={"path": request.path, "method": request.method},
                )
                response = _error(500, "An unexpected error occurred. Please try again later.")
        response.headers.update(CORS_HEADERS)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_request_id()


@web.middleware
async def service_check_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Refuse functional routes while the service is misconfigured."""
    if request.path not in _UNGUARDED and SERVICES_KEY not in request.app:
        outcome = FaucetOutcome.SERVICE_UNAVAILABLE
        logger.error(
            "Service check failed",
            extra={"path": request.path, "error": request.app.get(INIT_ERROR_KEY)},
        )
        if request.path == TOKEN_REQUEST_PATH:
            REQUESTS.labels(outcome=outcome.value).inc()
        return _error(OUTCOME_STATUS[outcome], UNAVAILABLE_MESSAGE)
    return await handler(request)


async def _read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise web.HTTPBadRequest(reason="Request body must be valid JSON.") from None
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(reason="Request body must be a JSON object.")
    return body


def _text_field(body: dict, *names: str) -> str:
    for name in names:
        value = body.get(name)
        if isinstance(value, str):
            return value
    return ""


async def handle_health(request: web.Request) -> web.Response:
    """Handle /api/health, reachable even when misconfigured."""
    services = request.app.get(SERVICES_KEY)
    if services is None:
        return web.json_response(
            {"status": "error", "message": request.app.get(INIT_ERROR_KEY) or "not initialized"},
            status=503,
        )
    payload = {"status": "ok", "wallet": services.wallet_address}
    wallet_url = services.network.get_address_url(services.wallet_address)
    if wallet_url:
        payload["walletUrl"] = wallet_url
    return web.json_response(payload)


async def handle_captcha_question(request: web.Request) -> web.Response:
    """Handle GET /api/captcha-question."""
    services = request.app[SERVICES_KEY]
    try:
        challenge = await services.faucet.issue_challenge()
    except UpstreamUnavailableError as e:
        logger.error("Error generating CAPTCHA question", extra={"error": str(e)})
        return _error(500, "Could not generate a CAPTCHA question. Please try again.")
    return web.json_response({"question": challenge.question})


async def handle_request_tokens(request: web.Request) -> web.Response:
    """Handle POST /api/request-tokens."""
    services = request.app[SERVICES_KEY]
    body = await _read_json(request)

    result = await services.faucet.request_tokens(
        address=_text_field(body, "address"),
        question=_text_field(body, "question"),
        answer=_text_field(body, "answer", "userAnswer"),
    )
    status = OUTCOME_STATUS[result.outcome]

    if result.success:
        payload = {"txHash": result.tx_hash, "amount": str(result.amount)}
        explorer_url = services.network.get_tx_url(result.tx_hash)
        if explorer_url:
            payload["explorerUrl"] = explorer_url
        return web.json_response(payload, status=status)

    if result.outcome == FaucetOutcome.ON_COOLDOWN:
        return _error(status, result.message, cooldownRemaining=result.cooldown_remaining_ms)
    return _error(status, result.message)


async def handle_explain_tx(request: web.Request) -> web.Response:
    """Handle POST /api/explain-tx."""
    services = request.app[SERVICES_KEY]
    body = await _read_json(request)
    try:
        explanation = await services.assistant.explain_transaction(body.get("txHash"))
    except InvalidAssistantRequest as e:
        return _error(400, str(e))
    except UpstreamUnavailableError:
        return _error(503, "Failed to generate explanation from AI service.")
    return web.json_response({"explanation": explanation})


async def handle_analyze_contract(request: web.Request) -> web.Response:
    """Handle POST /api/analyze-contract."""
    services = request.app[SERVICES_KEY]
    body = await _read_json(request)
    try:
        analysis = await services.assistant.analyze_contract(body.get("code"))
    except InvalidAssistantRequest as e:
        return _error(400, str(e))
    except UpstreamUnavailableError:
        return _error(503, "Failed to generate analysis from AI service.")
    return web.json_response({"analysis": analysis})


async def handle_chat(request: web.Request) -> web.Response:
    """Handle POST /api/chat."""
    services = request.app[SERVICES_KEY]
    body = await _read_json(request)
    try:
        history = parse_history(body.get("history"))
        reply = await services.assistant.chat(body.get("message"), history)
    except InvalidAssistantRequest as e:
        return _error(400, str(e))
    except UpstreamUnavailableError:
        return _error(503, "Failed to get response from AI chat service.")
    return web.json_response({"response": reply})


def create_app(services: Services | None, init_error: str | None = None) -> web.Application:
    """Build the API application.

    Parameters
    ----------
    services : Services | None
        Initialized collaborators, or None if startup failed.
    init_error : str | None
        Startup failure description reported by /api/health.
    """
    app = web.Application(middlewares=[request_context_middleware, service_check_middleware])
    if services is not None:
        app[SERVICES_KEY] = services
    if init_error:
        app[INIT_ERROR_KEY] = init_error

    app.router.add_get("/api/health", handle_health)
    app.router.add_get("/api/captcha-question", handle_captcha_question)
    app.router.add_post(TOKEN_REQUEST_PATH, handle_request_tokens)
    app.router.add_post("/api/explain-tx", handle_explain_tx)
    app.router.add_post("/api/analyze-contract", handle_analyze_contract)
    app.router.add_post("/api/chat", handle_chat)
    return app


class ApiServer:
    """Runs the API application on a TCP port.

    Parameters
    ----------
    app : web.Application
        Application from :func:`create_app`.
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    """

    def __init__(self, app: web.Application, host: str = "0.0.0.0", port: int = 8080):  # noqa: S104
        self._app = app
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        logger.info("API server started", extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")
