"""One conversational turn, end to end.

load draft -> route role -> extract -> merge -> COLLECTING or COMPLETED ->
save records -> clear or keep the draft -> reply.

The draft is written back only at the end of the turn, under the user's
lock, so a turn that dies half way leaves the previous draft untouched.
"""

from dataclasses import dataclass, field
from typing import Optional

from farmbot.logging_config import LoggerAdapter, get_logger
from farmbot.schemas.conversation import ConversationState, HistoryTurn, RecordKind
from farmbot.services.dispatch_service import DispatchError, RecordDispatcher
from farmbot.services.extraction_parser import ExtractionError, MalformedExtractionError
from farmbot.services.role_router import Role, RoleRouter
from farmbot.services.session_store import SessionStore
from farmbot.services.state_machine import DialogueStep, transition
from farmbot.services.state_merge import changed_fields, merge_states

logger = get_logger("dialogue_service")

MSG_AI_ERROR = "Désolé, le service est momentanément indisponible. Pouvez-vous réessayer dans un instant ?"
MSG_NOT_UNDERSTOOD = "Désolé, je n'ai pas bien compris. Pouvez-vous répéter ?"
MSG_SAVED_SUFFIX = "\n\n✅ Données enregistrées avec succès !"
MSG_DISPATCH_FAILED = (
    "⚠️ Données reçues mais une erreur est survenue lors de l'enregistrement. "
    "Elles sont conservées : renvoyez un message pour réessayer ou contactez l'administrateur."
)

OUTCOME_COLLECTING = "collecting"
OUTCOME_COMPLETED = "completed"
OUTCOME_EXTRACTION_FAILED = "extraction_failed"
OUTCOME_MALFORMED = "malformed_extraction"
OUTCOME_DISPATCH_FAILED = "dispatch_failed"


@dataclass
class TurnResult:
    reply: str
    outcome: str
    step: DialogueStep
    role: Role
    saved: list[RecordKind] = field(default_factory=list)
    error: Optional[str] = None
    failed_kind: Optional[RecordKind] = None


class DialogueOrchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        router: RoleRouter,
        extractor,
        dispatcher: RecordDispatcher,
    ):
        self.sessions = sessions
        self.router = router
        self.extractor = extractor
        self.dispatcher = dispatcher

    def handle_turn(self, user_id: str, text: str) -> TurnResult:
        with self.sessions.user_lock(user_id):
            return self._run_turn(user_id, text)

    def _run_turn(self, user_id: str, text: str) -> TurnResult:
        previous = self.sessions.get(user_id)
        role = self.router.route(user_id)
        log = LoggerAdapter(logger, {"user_id": user_id, "role": role.value})

        try:
            extraction = self.extractor.extract(
                role,
                previous.without_history(),
                text,
                history=previous.history,
            )
        except MalformedExtractionError as e:
            log.error(f"Malformed extraction: {e}", context={"raw_text": e.raw_text})
            return TurnResult(
                reply=MSG_NOT_UNDERSTOOD,
                outcome=OUTCOME_MALFORMED,
                step=previous.step,
                role=role,
                error=str(e),
            )
        except ExtractionError as e:
            log.error(f"Extraction failed: {e}")
            return TurnResult(
                reply=MSG_AI_ERROR,
                outcome=OUTCOME_EXTRACTION_FAILED,
                step=previous.step,
                role=role,
                error=str(e),
            )

        history = [
            *previous.history,
            HistoryTurn(role="user", content=text),
            HistoryTurn(role="assistant", content=extraction.reply),
        ]
        incoming = extraction.state.model_copy(update={"history": history})
        merged = merge_states(previous, incoming)
        transition(previous.step, merged.step)
        log.info(
            "Turn merged",
            context={"step": merged.step.value, "changed": changed_fields(previous, merged)},
        )

        if merged.step == DialogueStep.COLLECTING:
            self.sessions.put(user_id, merged)
            return TurnResult(reply=extraction.reply, outcome=OUTCOME_COLLECTING, step=merged.step, role=role)

        return self._complete(user_id, role, merged, extraction.reply, log)

    def _complete(
        self,
        user_id: str,
        role: Role,
        merged: ConversationState,
        reply: str,
        log: LoggerAdapter,
    ) -> TurnResult:
        try:
            saved = self.dispatcher.dispatch(
                merged,
                role,
                reporter=user_id,
                skip=merged.saved_records or [],
            )
        except DispatchError as e:
            # keep the data for a retry; COMPLETED itself never outlives the turn
            retained = merged.model_copy(update={"step": DialogueStep.COLLECTING, "saved_records": list(e.saved)})
            self.sessions.put(user_id, retained)
            log.error(
                f"Record dispatch failed: {e.cause}",
                context={
                    "record_kind": e.kind.value,
                    "already_saved": [kind.value for kind in e.saved],
                    "fields": retained.model_dump(mode="json", exclude={"history"}),
                },
            )
            return TurnResult(
                reply=MSG_DISPATCH_FAILED,
                outcome=OUTCOME_DISPATCH_FAILED,
                step=DialogueStep.COMPLETED,
                role=role,
                saved=list(e.saved),
                error=str(e.cause),
                failed_kind=e.kind,
            )

        self.sessions.clear(user_id)
        log.info("Report completed", context={"saved": [kind.value for kind in saved]})
        return TurnResult(
            reply=reply + MSG_SAVED_SUFFIX,
            outcome=OUTCOME_COMPLETED,
            step=DialogueStep.COMPLETED,
            role=role,
            saved=saved,
        )
