# models/active_call.py
from tortoise import fields
from tortoise.models import Model


class ActiveCall(Model):
    """
    One forwarded call leg that is still waiting for an outcome.
    Written when the call is routed, flipped to processed exactly once by
    whichever resolver gets there first, then deleted.
    """

    id = fields.IntField(primary_key=True)
    call_sid = fields.CharField(max_length=64, unique=True)
    client = fields.ForeignKeyField("models.Client", related_name="active_calls", on_delete=fields.CASCADE)

    caller_phone = fields.CharField(max_length=32)
    twilio_number = fields.CharField(max_length=32)
    received_at = fields.DatetimeField(index=True)

    processed = fields.BooleanField(default=False, index=True)
    processed_at = fields.DatetimeField(null=True)

    class Meta:
        table = "active_calls"
        indexes = (("processed", "received_at"),)

    def __str__(self) -> str:
        return f"<ActiveCall {self.call_sid} processed={self.processed}>"
