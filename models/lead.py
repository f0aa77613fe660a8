from enum import Enum

from tortoise.models import Model
from tortoise import fields


class LeadSource(str, Enum):
    MISSED_CALL = "missed_call"
    FORM = "form"
    SMS = "sms"
    MANUAL = "manual"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    WON = "won"
    LOST = "lost"
    OPTED_OUT = "opted_out"


class Lead(Model):
    id = fields.IntField(primary_key=True)
    client = fields.ForeignKeyField("models.Client", related_name="leads", on_delete=fields.CASCADE)

    phone = fields.CharField(max_length=32)
    name = fields.CharField(max_length=255, null=True)

    source = fields.CharEnumField(LeadSource, max_length=32, default=LeadSource.MANUAL, index=True)
    status = fields.CharEnumField(LeadStatus, max_length=32, default=LeadStatus.NEW)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "leads"
        unique_together = (("client_id", "phone"),)

    def __str__(self) -> str:
        return f"<Lead #{self.id} {self.phone} client={self.client_id} ({self.source})>"
