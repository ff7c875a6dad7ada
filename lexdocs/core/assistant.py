"""
Legal document assistant.

Replies are canned templates chosen by keyword; there is no retrieval behind
them. Feedback on replies is kept in memory, newest last, up to a fixed cap,
and admins move each record through new -> reviewed -> resolved.
"""

from __future__ import annotations

import collections
import time
import uuid
from enum import Enum
from typing import Deque, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from lexdocs.core.errors import NotFoundError, ValidationError


GREETING = (
    "Hello! I'm your legal document assistant. I can help you understand what legal documents are "
    "required for starting different types of businesses. What type of business are you looking to start?"
)

RESTAURANT_REPLY = """For starting a restaurant or food business, you'll typically need:

**Essential Documents:**
• Business License and Registration
• Food Service License
• Liquor License (if applicable)
• Health Department Permits
• Fire Department Permit
• Signage Permits

**Additional Requirements:**
• Workers' Compensation Insurance
• General Liability Insurance
• Food Handler's Permits for staff
• Sales Tax Registration

**Location Specific:**
The exact requirements vary by location. Would you like me to provide more specific information for a particular country or state?"""

TECH_REPLY = """For a technology or software startup, you'll need:

**Core Business Documents:**
• Articles of Incorporation/Company Registration
• Operating Agreement or Bylaws
• Business License
• Tax Registration (EIN/Tax ID)

**Tech-Specific Considerations:**
• Intellectual Property Documentation
• Software Licensing Agreements
• Data Privacy Compliance (GDPR, CCPA)
• Terms of Service & Privacy Policy

**For SaaS/Online Services:**
• Website Terms & Conditions
• User Data Processing Agreements
• API Terms of Use (if applicable)

Would you like more details about any of these categories or information for a specific jurisdiction?"""

RETAIL_REPLY = """For a retail business, here are the essential documents:

**Basic Requirements:**
• Business Registration/License
• Sales Tax Permit
• Reseller's License
• Zoning Permits

**Product-Specific:**
• Product Liability Insurance
• Import/Export Documentation (if applicable)
• Product Safety Certifications

**Location Requirements:**
• Occupancy Permits
• Signage Permits
• Fire Safety Certificates

The specific requirements depend on your location and type of products. What type of retail business are you planning?"""

GENERIC_REPLY = """I understand you're asking about "{query}".

For most businesses, the fundamental legal documents typically include:

**Universal Requirements:**
• Business Registration/License
• Tax Registration
• Operating Agreements
• Insurance Documentation

**Industry-Specific Needs:**
The additional documents depend on your specific industry, location, and business structure.

Could you provide more details about:
• What type of business you're starting?
• Which country/state you're located in?
• Your planned business structure (LLC, Corporation, etc.)?

This will help me give you more targeted and accurate information."""

# first match wins
KEYWORD_TEMPLATES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("restaurant", "food"), RESTAURANT_REPLY),
    (("tech", "software", "startup"), TECH_REPLY),
    (("retail", "store"), RETAIL_REPLY),
)

MAX_QUERY_CHARS = 4000
MAX_FEEDBACK_RECORDS = 1000


class ChatReply(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    content: str
    role: Literal["user", "assistant"] = "assistant"
    timestamp: float = Field(default_factory=lambda: time.time())


class FeedbackStatus(str, Enum):
    new = "new"
    reviewed = "reviewed"
    resolved = "resolved"


class FeedbackRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    message_id: str
    feedback: str
    status: FeedbackStatus = FeedbackStatus.new
    timestamp: str = Field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))


def select_template(query: str) -> Optional[str]:
    q = query.lower()
    for keywords, template in KEYWORD_TEMPLATES:
        if any(k in q for k in keywords):
            return template
    return None


class LegalAssistant:
    def __init__(self, *, logger=None, max_feedback: int = MAX_FEEDBACK_RECORDS):
        self.logger = logger
        # submission order; the oldest records drop off once the cap is reached
        self._feedback: Deque[FeedbackRecord] = collections.deque(maxlen=max(1, int(max_feedback)))

    def greeting(self) -> ChatReply:
        return ChatReply(content=GREETING)

    def respond(self, query: str) -> ChatReply:
        q = str(query or "").strip()
        if not q:
            raise ValidationError("Query must not be empty.")
        if len(q) > MAX_QUERY_CHARS:
            raise ValidationError("Query is too long.", max_chars=MAX_QUERY_CHARS)
        template = select_template(q)
        return ChatReply(content=template if template is not None else GENERIC_REPLY.format(query=q))

    def submit_feedback(
        self,
        user_id: str,
        message_id: str,
        feedback: str,
        *,
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> FeedbackRecord:
        if not str(message_id or "").strip():
            raise ValidationError("message_id required.")
        text = str(feedback or "").strip()
        if not text:
            raise ValidationError("Feedback must not be empty.")
        rec = FeedbackRecord(
            user_id=str(user_id),
            user_email=user_email,
            user_name=user_name,
            message_id=str(message_id),
            feedback=text,
        )
        self._feedback.append(rec)
        if self.logger is not None:
            self.logger.info(f"Feedback recorded for message {rec.message_id}")
        return rec

    def feedback_for(self, user_id: str) -> List[FeedbackRecord]:
        return [r for r in self._feedback if r.user_id == str(user_id)]

    def all_feedback(self) -> List[FeedbackRecord]:
        """Every retained record, newest first."""
        return list(reversed(self._feedback))

    def update_feedback_status(self, feedback_id: str, status: FeedbackStatus | str) -> FeedbackRecord:
        try:
            new_status = FeedbackStatus(status)
        except ValueError as e:
            raise ValidationError("Unknown feedback status.", status=str(status)) from e
        for i, rec in enumerate(self._feedback):
            if rec.id == feedback_id:
                updated = rec.model_copy(update={"status": new_status})
                self._feedback[i] = updated
                if self.logger is not None:
                    self.logger.info(f"Feedback {feedback_id} marked {new_status.value}")
                return updated
        raise NotFoundError("Feedback not found.", feedback_id=str(feedback_id))
