import time
from datetime import datetime, timezone

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from app.config import settings
from app.middleware.rate_limiter import apply_rate_limiting
from app.models.database import create_database_engine, create_tables, get_session_maker
from app.models.refinance import HealthResponse, Lead, SavingsRequest, SavingsResponse
from app.models.whatsapp import WebhookPayload
from app.services.bank_rate_service import BankRateService
from app.services.conversation_service import ConversationService
from app.services.database_service import DatabaseService
from app.services.dispatcher import TurnDispatcher
from app.services.llm_service import PersuasionService
from app.services.portal_service import PortalService
from app.services.refinance_service import (
    CalculationError,
    InvalidCalculationInput,
    RefinanceCalculationService,
)
from app.services.session_store import SessionStore, phone_from_chat_id
from app.services.whatsapp_service import WhatsAppClient
from app.utils.logger import configure_logging, get_logger, log_api_request, mask_chat_id
from app.utils.translations import fallback_persuasion, not_beneficial_message, translate

# Configure structured logging
configure_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = get_logger(__name__)
START_TIME = time.time()

app = FastAPI(
    title=settings.app_name,
    description="WhatsApp assistant that estimates home loan refinancing savings",
    version=settings.app_version,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = apply_rate_limiting(app)

# Database setup
engine = create_database_engine(settings.database_url)
SessionLocal = get_session_maker(engine)

# Service wiring
database_service = DatabaseService(SessionLocal)
calculator = RefinanceCalculationService(
    BankRateService(database_service, settings), settings
)
persuasion_service = PersuasionService(settings)
portal_service = PortalService(settings)
session_store = SessionStore()
conversation_service = ConversationService(
    session_store=session_store,
    messenger=WhatsAppClient(settings),
    calculator=calculator,
    summary_generator=persuasion_service,
    lead_sink=portal_service,
    profile_store=database_service,
    settings=settings,
)
dispatcher = TurnDispatcher(session_store, conversation_service)


@app.on_event("startup")
async def startup_event():
    """Startup event handler"""
    logger.info(
        "Application starting", app_name=settings.app_name, debug=settings.debug
    )

    try:
        create_tables(engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error("Failed to create database tables", error=str(e))
        raise

    if not settings.whatsapp_api_url or not settings.whatsapp_access_token:
        logger.warning(
            "WhatsApp API not configured",
            help="Set WHATSAPP_API_URL and WHATSAPP_ACCESS_TOKEN",
        )
    if not settings.openai_api_key:
        logger.warning(
            "OpenAI API key not configured",
            help="Persuasive messages will use the fallback text",
        )


@app.on_event("shutdown")
async def shutdown_event():
    await conversation_service.wait_for_background_tasks()
    logger.info("Application stopped")


@app.get("/health", response_model=HealthResponse)
async def health_check(response: Response):
    """Health check endpoint, including a database round trip"""
    database_ok = database_service.check_connection()
    if not database_ok:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if database_ok else "unhealthy",
        database="ok" if database_ok else "unavailable",
        uptime_seconds=round(time.time() - START_TIME, 3),
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/webhook")
async def verify_webhook(request: Request):
    """Answer the Meta webhook verification handshake."""
    params = request.query_params
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token")
    challenge = params.get("hub.challenge")

    api_logger = log_api_request(method="GET", path="/webhook", mode=mode)

    if not mode or not token or challenge is None:
        api_logger.warning("Webhook verification missing parameters")
        raise HTTPException(status_code=400, detail="Missing verification parameters")

    if mode == "subscribe" and settings.whatsapp_verify_token and (
        token == settings.whatsapp_verify_token
    ):
        api_logger.info("Webhook verified")
        return PlainTextResponse(challenge)

    api_logger.warning("Webhook verification failed")
    raise HTTPException(status_code=403, detail="Verification failed")


async def receive_webhook(request: Request, background_tasks: BackgroundTasks):
    """
    Accept inbound WhatsApp events.

    Each text message becomes one dispatcher call scheduled after the response,
    so Meta gets its acknowledgement without waiting on the conversation.
    """
    start_time = time.time()
    api_logger = log_api_request(
        method="POST",
        path="/webhook",
        user_agent=request.headers.get("user-agent", ""),
    )

    try:
        payload = WebhookPayload.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        api_logger.warning("Malformed webhook payload", error=str(e))
        raise HTTPException(status_code=400, detail="Malformed payload") from e

    if not payload.is_whatsapp():
        api_logger.warning("Unsupported webhook object", object=payload.object)
        raise HTTPException(status_code=404, detail="Unsupported event object")

    scheduled = 0
    for message in payload.messages():
        if message.type != "text" or message.text is None:
            api_logger.info(
                "Ignoring non-text message",
                chat_id=mask_chat_id(message.from_),
                message_type=message.type,
            )
            continue
        background_tasks.add_task(dispatcher.dispatch, message.from_, message.text.body)
        scheduled += 1

    api_logger.info(
        "Webhook accepted",
        scheduled_turns=scheduled,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return {"status": "EVENT_RECEIVED"}


if limiter:
    receive_webhook = limiter.limit(f"{settings.max_requests_per_minute}/minute")(
        receive_webhook
    )

app.post("/webhook")(receive_webhook)


async def calculate_savings(
    request: Request, savings_request: SavingsRequest, background_tasks: BackgroundTasks
):
    """
    Estimate refinance savings outside the chat flow.

    The caller's profile is upserted the way a finished conversation would
    leave it. A beneficial result is also submitted to the leads portal after
    the response is sent.
    """
    start_time = time.time()
    loan = savings_request.loan
    language = savings_request.language
    chat_identity = savings_request.chat_identity
    api_logger = log_api_request(
        method="POST",
        path="/chatbot/calculate-savings",
        chat_id=chat_identity,
        loan_path=loan.path,
    )

    if not loan.is_complete():
        api_logger.warning("Savings request is missing loan fields")
        raise HTTPException(
            status_code=400, detail=f"Missing required fields for Path {loan.path}"
        )

    try:
        result = calculator.calculate(loan, language)
    except InvalidCalculationInput as e:
        api_logger.warning("Savings request failed validation", error=e.message)
        raise HTTPException(status_code=400, detail=e.message) from e
    except CalculationError as e:
        api_logger.warning("Savings calculation failed", error=str(e))
        raise HTTPException(
            status_code=422,
            detail=translate(
                "CONTACT_SUPPORT", language, contact=settings.admin_contact_url
            ),
        ) from e

    referral_code = savings_request.referral_code
    if referral_code is None:
        stored = database_service.load_profile(chat_identity) or {}
        referral_code = stored.get("referral_code")
    savings_request = savings_request.model_copy(
        update={
            "phone_number": savings_request.phone_number
            or phone_from_chat_id(chat_identity),
            "referral_code": referral_code,
        }
    )
    state = savings_request.to_state(result)

    record = state.profile.to_record()
    record["language"] = language.value
    database_service.save_profile(chat_identity, record)

    threshold = settings.min_lifetime_savings
    if result.is_beneficial(threshold):
        try:
            message = await persuasion_service.generate_persuasive_summary(
                result, language
            )
        except Exception as e:
            api_logger.warning(
                "Persuasive message generation failed, using fallback", error=str(e)
            )
            message = fallback_persuasion(language)
        background_tasks.add_task(portal_service.submit_lead, Lead.from_state(state))
    else:
        message = not_beneficial_message(result, language, threshold)

    api_logger.info(
        "Savings calculated",
        beneficial=result.is_beneficial(threshold),
        lifetime_savings=result.lifetime_savings,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return SavingsResponse(savings_summary=result, convincing_message=message)


if limiter:
    calculate_savings = limiter.limit(f"{settings.max_requests_per_minute}/minute")(
        calculate_savings
    )

app.post("/chatbot/calculate-savings", response_model=SavingsResponse)(
    calculate_savings
)


@app.get("/")
async def root():
    """Root endpoint with basic information"""
    return {
        "message": f"Welcome to the {settings.app_name} API",
        "endpoints": {
            "webhook": "/webhook",
            "calculate_savings": "/chatbot/calculate-savings",
            "health": "/health",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
