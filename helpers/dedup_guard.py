# helpers/dedup_guard.py
"""
At-most-once gate for missed-call notices, keyed on the provider call sid.

`notice_exists` is only a cheap early exit that saves an SMS on the common
retry. The unique `dedup_key` column is what actually decides: whoever
inserts the row first wins, everyone else gets None back.
"""
from typing import Optional

from tortoise.exceptions import IntegrityError

from models.conversation import Conversation, ConversationKind, Direction, MessageType


async def notice_exists(call_sid: str) -> bool:
    return await Conversation.filter(dedup_key=call_sid).exists()


async def record_notice(
    *,
    call_sid: str,
    client_id: int,
    lead_id: int,
    content: str,
    message_sid: Optional[str] = None,
) -> Optional[Conversation]:
    try:
        return await Conversation.create(
            client_id=client_id,
            lead_id=lead_id,
            direction=Direction.OUTBOUND,
            message_type=MessageType.SMS,
            kind=ConversationKind.MISSED_CALL_NOTICE,
            content=content,
            twilio_sid=message_sid,
            dedup_key=call_sid,
        )
    except IntegrityError:
        return None
