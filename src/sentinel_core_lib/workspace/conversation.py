"""Case assistant conversation.

The user message is appended immediately; the oracle then answers with the
whole case as context. A failed call still produces an AI message (a fixed
apology) so that every user message gets a reply.
"""

import logging
from collections import Counter
from typing import Counter as CounterType

from sentinel_core_lib.core.preprocessing import serialize_case
from sentinel_core_lib.exceptions import OracleError
from sentinel_core_lib.infrastructure.llm import EnrichmentOracle
from sentinel_core_lib.models import Case, ChatMessage, ChatSender

from .state import CaseWorkspace

logger = logging.getLogger(__name__)

CHAT_FALLBACK_REPLY = "Sorry, I encountered an error. Please try again."


def append_message(case: Case, message: ChatMessage) -> Case:
    return case.model_copy(update={"chat_history": [*case.chat_history, message]})


class ConversationService:
    """Case assistant chat over the enrichment oracle"""

    def __init__(self, workspace: CaseWorkspace, oracle: EnrichmentOracle):
        self.workspace = workspace
        self.oracle = oracle
        # Pending replies per case id
        self._in_flight: CounterType[str] = Counter()

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    def is_loading_for(self, case_id: str) -> bool:
        return self._in_flight[case_id] > 0

    async def send_message(self, case_id: str, text: str) -> ChatMessage:
        """Append the user message, ask the assistant and append its reply.

        Returns:
            The AI message that was appended (reply or fallback)

        Raises:
            CaseNotFoundError: Unknown case id
        """
        snapshot = self.workspace.require_case(case_id)
        user_message = ChatMessage(sender=ChatSender.USER, text=text)
        self.workspace.replace_case(append_message(snapshot, user_message))

        self._in_flight[case_id] += 1
        try:
            reply_text = await self.oracle.chat(text, serialize_case(snapshot))
        except OracleError as e:
            logger.error(f"Case assistant failed for case {case_id}: {e}")
            reply_text = CHAT_FALLBACK_REPLY
        finally:
            self._in_flight[case_id] -= 1
            if self._in_flight[case_id] <= 0:
                del self._in_flight[case_id]

        reply = ChatMessage(sender=ChatSender.AI, text=reply_text)
        current = self.workspace.get_case(case_id)
        if current is None:
            logger.warning(f"Case {case_id} disappeared before the assistant replied")
            return reply
        self.workspace.replace_case(append_message(current, reply))
        return reply
