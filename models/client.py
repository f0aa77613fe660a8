from enum import Enum

from tortoise import fields
from tortoise.models import Model


class ClientStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class Client(Model):
    id = fields.IntField(primary_key=True)
    business_name = fields.CharField(max_length=255)
    owner_name = fields.CharField(max_length=255)

    # where inbound calls are forwarded to
    owner_phone = fields.CharField(max_length=32, null=True)
    # provider number the public dials; missed-call texts go out from it
    twilio_number = fields.CharField(max_length=32, unique=True, null=True)

    status = fields.CharEnumField(ClientStatus, max_length=16, default=ClientStatus.ACTIVE, index=True)
    missed_call_template = fields.TextField(null=True)

    # rolling counter used for plan limits; only ever touched with F() increments
    monthly_message_count = fields.IntField(default=0)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "clients"

    def __str__(self) -> str:
        return f"<Client #{self.id} {self.business_name} ({self.twilio_number})>"
