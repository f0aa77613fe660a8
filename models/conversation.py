from enum import Enum

from tortoise import fields
from tortoise.models import Model


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class MessageType(str, Enum):
    SMS = "sms"
    VOICE = "voice"


class ConversationKind(str, Enum):
    MISSED_CALL_NOTICE = "missed_call_notice"
    REPLY = "reply"
    OTHER = "other"


class Conversation(Model):
    id = fields.IntField(primary_key=True)
    lead = fields.ForeignKeyField("models.Lead", related_name="conversations", on_delete=fields.CASCADE)
    client = fields.ForeignKeyField("models.Client", related_name="conversations", on_delete=fields.CASCADE)

    direction = fields.CharEnumField(Direction, max_length=16)
    message_type = fields.CharEnumField(MessageType, max_length=16, default=MessageType.SMS)
    kind = fields.CharEnumField(ConversationKind, max_length=32, default=ConversationKind.OTHER)
    content = fields.TextField()

    # provider message id as returned by the SMS transport
    twilio_sid = fields.CharField(max_length=64, null=True)
    # call sid for missed-call notices; the unique index is the dedup gate
    dedup_key = fields.CharField(max_length=64, null=True, unique=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "conversations"
        indexes = (("client_id", "created_at"), ("lead_id", "created_at"))
