from itertools import count
from typing import List, Optional

from pydantic import BaseModel

from ai_dashboard.core.filtering import apply_directive
from ai_dashboard.core.query_context import extract_directive
from ai_dashboard.models import (
    AnalystReply,
    ChatMessage,
    ChatRole,
    Dataset,
    FilterDirective,
    FilteredView,
)
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)

GREETING = (
    "Hello! I'm your AI analytics assistant. Ask me anything about your sales and marketing data, "
    "and I'll provide insights and recommendations. The dashboard will update based on your queries!"
)
FALLBACK_REPLY = (
    "I'm having trouble connecting right now. Please try asking your question again in a moment."
)


class ChatTurn(BaseModel):
    """One submitted user message and the view it produced."""
    seq: int
    message: str
    directive: Optional[FilterDirective] = None
    view: FilteredView


class ChatSession:
    """
    Session state behind the dashboard: the dataset, the current filtered
    view and the append-only transcript.

    Every turn gets a monotonically increasing sequence number; a reply for a
    turn older than the latest one is discarded instead of being appended
    out of order.
    """

    def __init__(self, dataset: Optional[Dataset] = None):
        self.dataset: Optional[Dataset] = None
        self.view: FilteredView = FilteredView(rows=[])
        self.transcript: List[ChatMessage] = [ChatMessage(role=ChatRole.ASSISTANT, content=GREETING)]
        self._seq = count(1)
        self.latest_seq = 0
        if dataset is not None:
            self.load_dataset(dataset)

    def load_dataset(self, dataset: Dataset) -> None:
        """Replace the dataset wholesale; the view goes back to the full rows."""
        self.dataset = dataset
        self.view = apply_directive(dataset, None)
        logger.info(f"Session dataset replaced: {dataset.filename} ({len(dataset.rows)} rows)")

    def begin_turn(self, message: str) -> ChatTurn:
        self.transcript.append(ChatMessage(role=ChatRole.USER, content=message))
        directive = extract_directive(message)
        self.view = apply_directive(self.dataset, directive)
        if directive is not None:
            logger.info(f"Directive extracted: {directive.label} (active={self.view.active})")

        self.latest_seq = next(self._seq)
        return ChatTurn(seq=self.latest_seq, message=message, directive=directive, view=self.view)

    def _append_reply(self, turn: ChatTurn, content: str) -> bool:
        if turn.seq < self.latest_seq:
            logger.warning(f"Discarding stale reply for turn {turn.seq} (latest is {self.latest_seq})")
            return False
        self.transcript.append(ChatMessage(role=ChatRole.ASSISTANT, content=content))
        return True

    def complete_turn(self, turn: ChatTurn, reply: AnalystReply) -> bool:
        """Append the model's answer, or the fixed fallback for any error reply."""
        if reply.ok:
            return self._append_reply(turn, reply.text or "")
        logger.info(f"Turn {turn.seq} failed with {reply.error_kind.value}")
        return self._append_reply(turn, FALLBACK_REPLY)

    def fail_turn(self, turn: ChatTurn) -> bool:
        """Append the fixed fallback message after a thrown failure."""
        return self._append_reply(turn, FALLBACK_REPLY)

    @property
    def context_label(self) -> str:
        return self.view.context_label
