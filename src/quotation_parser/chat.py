#!/usr/bin/env python3
"""
Quotation chat session.

One conversation allows a request plus one refinement. Each assistant
answer gets its quotation ID once, and answers that contain both the
internal and the customer document are saved to the quotation history.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .api_client import QuotationAPIClient
from .dual_parser import parse_dual_quotation_response
from .exceptions import APIError, QuotationError
from .models import DualQuotationResult, QuotationRecord
from .quotation_id import generate_quotation_id

logger = logging.getLogger(__name__)

MAX_USER_MESSAGES = 2
CONTEXT_MESSAGES = 6


class ConversationState(Enum):
    INITIAL = "initial"
    FOLLOW_UP = "follow-up"
    BLOCKED = "blocked"


class ConversationBlockedError(QuotationError):
    """The conversation reached its message limit; start a new one."""


@dataclass
class ChatMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    customer_name: Optional[str] = None
    customer_location: Optional[str] = None
    quotation_id: Optional[str] = None


@dataclass
class ChatAnswer:
    """Assistant answer with its parsed documents."""
    message: ChatMessage
    quotation: DualQuotationResult
    saved_record: Optional[QuotationRecord] = None


class QuotationChat:
    """Drives a quotation conversation against the backend."""

    def __init__(self, client: QuotationAPIClient, customer_name: Optional[str] = None,
                 customer_location: Optional[str] = None, save_history: bool = True,
                 rng: Optional[random.Random] = None):
        self.client = client
        self.customer_name = customer_name
        self.customer_location = customer_location
        self.save_history = save_history
        self.rng = rng
        self.messages: List[ChatMessage] = []
        self.state = ConversationState.INITIAL
        self.user_message_count = 0

    def reset(self) -> None:
        """Start a new conversation."""
        self.messages = []
        self.state = ConversationState.INITIAL
        self.user_message_count = 0

    def _context(self) -> List[dict]:
        return [
            {'role': message.role, 'content': message.content}
            for message in self.messages[-CONTEXT_MESSAGES:]
        ]

    def send(self, text: str) -> ChatAnswer:
        """
        Send a user message and return the parsed answer.

        Raises:
            ConversationBlockedError: when the conversation is over
            APIError: when the chat request itself fails
        """
        text = (text or '').strip()
        if not text:
            raise QuotationError("Empty message")
        if self.state is ConversationState.BLOCKED:
            raise ConversationBlockedError(
                "Esta conversación ha alcanzado el límite de mensajes. "
                "Inicia una nueva conversación para otra cotización."
            )

        context = self._context()
        self.messages.append(ChatMessage(role='user', content=text))
        self.user_message_count += 1
        self.state = (ConversationState.BLOCKED if self.user_message_count >= MAX_USER_MESSAGES
                      else ConversationState.FOLLOW_UP)

        response = self.client.query(
            text, messages=context,
            customer_name=self.customer_name,
            customer_location=self.customer_location,
        )

        quotation_id = generate_quotation_id(rng=self.rng)
        message = ChatMessage(
            role='assistant', content=response,
            customer_name=self.customer_name,
            customer_location=self.customer_location,
            quotation_id=quotation_id,
        )
        self.messages.append(message)

        quotation = parse_dual_quotation_response(response)
        answer = ChatAnswer(message=message, quotation=quotation)
        if self.save_history and quotation.is_complete:
            answer.saved_record = self._save(text, quotation_id, quotation)
        return answer

    def _save(self, user_query: str, quotation_id: str,
              quotation: DualQuotationResult) -> Optional[QuotationRecord]:
        record = QuotationRecord(
            user_query=user_query,
            title=f"{quotation_id} - {self.customer_name or 'Cotización'}",
            customer_name=self.customer_name,
            customer_location=self.customer_location,
            quotation_id=quotation_id,
            internal_quotation=quotation.internal_markdown or quotation.raw_response,
            customer_quotation=quotation.customer_markdown or quotation.raw_response,
            raw_response=quotation.raw_response,
        )
        try:
            return self.client.save_history(record)
        except APIError as e:
            # The answer is still shown when the history service is down
            logger.error(f"Failed to save quotation {quotation_id}: {e}")
            return None
