from functools import lru_cache
from typing import Optional

from farmbot.config import settings, split_ids
from farmbot.database import SessionLocal
from farmbot.logging_config import get_logger
from farmbot.services.command_service import CommandDispatcher
from farmbot.services.dialogue_service import DialogueOrchestrator
from farmbot.services.dispatch_service import RecordDispatcher
from farmbot.services.extraction_service import LLMExtractor, build_llm_provider
from farmbot.services.messaging_service import MessagingService
from farmbot.services.record_service import RecordRepository
from farmbot.services.role_router import RoleRouter
from farmbot.services.session_store import SessionStore
from farmbot.services.whatsapp_service import WhatsAppService

logger = get_logger("dependencies")


def build_orchestrator(repository: RecordRepository) -> Optional[DialogueOrchestrator]:
    """Conversational path, or None when no model key is configured."""
    api_key = settings.llm_api_key
    if not api_key:
        logger.warning(
            "LLM not configured, only slash commands are available",
            extra={"context": {"provider": settings.llm_provider}},
        )
        return None

    extractor = LLMExtractor(
        build_llm_provider(settings.llm_provider, api_key),
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
        max_history_messages=settings.llm_max_history_messages,
    )
    router = RoleRouter(split_ids(settings.seller_ids), split_ids(settings.expense_manager_ids))
    return DialogueOrchestrator(
        sessions=SessionStore(),
        router=router,
        extractor=extractor,
        dispatcher=RecordDispatcher(repository, tz_name=settings.timezone),
    )


@lru_cache(maxsize=1)
def get_messaging_service() -> MessagingService:
    repository = RecordRepository(SessionLocal)
    whatsapp = WhatsAppService(
        access_token=settings.whatsapp_token,
        phone_number_id=settings.whatsapp_phone_number_id,
        base_url=settings.whatsapp_base_url,
        api_version=settings.whatsapp_api_version,
        timeout_seconds=settings.whatsapp_send_timeout_seconds,
    )
    return MessagingService(
        whatsapp=whatsapp,
        commands=CommandDispatcher(repository, tz_name=settings.timezone),
        orchestrator=build_orchestrator(repository),
        verify_token=settings.meta_verify_token,
    )
