import json
from typing import List, Optional

from farmbot.logging_config import get_logger
from farmbot.schemas.conversation import ConversationState, HistoryTurn
from farmbot.services.extraction_parser import (
    ExtractionError,
    ExtractionResult,
    parse_extraction,
)
from farmbot.services.llm import AnthropicProvider, LLMProvider, OpenAIProvider
from farmbot.services.role_router import Role

logger = get_logger("extraction_service")

MAX_HISTORY_MESSAGES = 20
JSON_PREFILL = "{"

ROLE_INTROS = {
    Role.PRIMARY_REPORTER: (
        "Tu es l'assistant d'une ferme avicole. Tu collectes les données journalières "
        "du responsable de production pour remplir le registre."
    ),
    Role.SELLER: (
        "Tu es l'assistant d'une ferme avicole. Tu collectes les ventes d'oeufs de la "
        "vendeuse et les oeufs qu'elle a reçus de la ferme."
    ),
    Role.EXPENSE_MANAGER: (
        "Tu es l'assistant d'une ferme avicole. Tu collectes les dépenses de la ferme "
        "auprès du gestionnaire des dépenses."
    ),
}

ROLE_CHECKLISTS = {
    Role.PRIMARY_REPORTER: (
        "INFORMATIONS REQUISES (demande dans cet ordre si elles manquent) :\n"
        "1. Production : nombre d'oeufs pour la bande 1, la bande 2 et la bande 3 "
        "(eggs_band_1, eggs_band_2, eggs_band_3). Si l'utilisateur donne trois nombres, "
        "ils sont dans l'ordre 1, 2, 3.\n"
        "2. Mortalité : nombre de morts (mortality_qty) et la bande concernée "
        "(mortality_band), ou le détail par bande (mortality_band_1..3). 0 est valide.\n"
        "3. Stock / observations : aliment reçu ? (feed_received). Si oui, demande le "
        "nombre de sacs (feed_qty). Remarques éventuelles (notes). Si l'utilisateur dit "
        "\"Rien à signaler\" ou \"RAS\", mets notes à \"RAS\".\n"
        "Quand les oeufs des 3 bandes, la mortalité et l'aliment/remarques sont connus, "
        "mets step à \"COMPLETED\"."
    ),
    Role.SELLER: (
        "INFORMATIONS REQUISES :\n"
        "1. Ventes : nombre d'alvéoles vendues (sales_qty), prix unitaire (sales_price), "
        "client (sales_client), montant payé (sales_paid).\n"
        "2. Réception : alvéoles reçues de la ferme (reception_qty) et prix unitaire "
        "(reception_price).\n"
        "Une vente sans réception (ou l'inverse) est valide si l'utilisateur le confirme. "
        "Quand les informations données sont complètes, mets step à \"COMPLETED\"."
    ),
    Role.EXPENSE_MANAGER: (
        "INFORMATIONS REQUISES :\n"
        "1. Catégorie de la dépense (expense_category), par ex. aliment, vaccin, transport.\n"
        "2. Quantité (expense_qty) et prix unitaire (expense_unit_price), ou le montant "
        "total (expense_amount).\n"
        "3. Remarques éventuelles (expense_notes).\n"
        "Quand la catégorie et le montant sont connus, mets step à \"COMPLETED\"."
    ),
}

OUTPUT_RULES = """RÈGLES :
- CRITIQUE : CONSERVE L'ÉTAT. Recopie toutes les valeurs non nulles de l'état actuel dans "updated_state". Ne supprime jamais une donnée existante.
- CRITIQUE : Mets à jour les champs de "updated_state" quand l'utilisateur donne une nouvelle information.
- CRITIQUE : Réponds en JSON valide. Échappe les retours à la ligne dans "reply" (utilise \\n), jamais de vrai saut de ligne dans la chaîne.
- S'il manque des données, "reply" demande la PROCHAINE donnée manquante.
- Si l'utilisateur donne tout d'un coup, remplis tout et mets step à "COMPLETED".
- Ta sortie est UNIQUEMENT un objet JSON de la forme :
  {"updated_state": {"step": "COLLECTING" ou "COMPLETED", ...champs...}, "reply": "texte pour l'utilisateur"}
- "reply" est en français, poli et concis."""


def build_system_prompt(role: Role, state: ConversationState) -> str:
    state_json = json.dumps(state.prompt_payload(), ensure_ascii=False)
    return "\n\n".join(
        [
            ROLE_INTROS[role],
            f"État actuel des données (JSON) :\n{state_json}",
            ROLE_CHECKLISTS[role],
            OUTPUT_RULES,
        ]
    )


def build_messages(history: List[HistoryTurn], utterance: str, limit: int = MAX_HISTORY_MESSAGES) -> List[dict]:
    """Recent dialogue plus the new user turn, starting on a user turn."""
    recent = list(history[-limit:]) if limit > 0 else []
    while recent and recent[0].role != "user":
        recent = recent[1:]
    messages = [{"role": turn.role, "content": turn.content} for turn in recent]
    messages.append({"role": "user", "content": utterance})
    return messages


class LLMExtractor:
    """Extraction capability backed by a chat model."""

    def __init__(
        self,
        provider: LLMProvider,
        model: Optional[str] = None,
        timeout_seconds: float = 15.0,
        max_history_messages: int = MAX_HISTORY_MESSAGES,
    ):
        self.provider = provider
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.max_history_messages = max_history_messages

    def extract(
        self,
        role: Role,
        state: ConversationState,
        utterance: str,
        history: Optional[List[HistoryTurn]] = None,
    ) -> ExtractionResult:
        """Ask the model to update ``state`` from ``utterance``.

        Raises ExtractionError on provider failure, MalformedExtractionError
        when the reply cannot be parsed.
        """
        system = build_system_prompt(role, state)
        messages = build_messages(history or [], utterance, self.max_history_messages)

        try:
            response = self.provider.generate(
                messages=messages,
                system=system,
                model=self.model,
                prefill=JSON_PREFILL,
                timeout_seconds=self.timeout_seconds,
            )
        except Exception as e:
            logger.error(
                "Extractor call failed",
                extra={"context": {"role": role.value, "error": str(e)}},
            )
            raise ExtractionError(str(e)) from e

        logger.debug(f"Extractor raw output: {response.content[:200]}")
        return parse_extraction(response.content)


def build_llm_provider(provider_name: str, api_key: str) -> LLMProvider:
    name = (provider_name or "anthropic").strip().lower()
    if name == "openai":
        return OpenAIProvider(api_key)
    if name == "anthropic":
        return AnthropicProvider(api_key)
    raise ValueError(f"Unsupported LLM provider: {provider_name}")

