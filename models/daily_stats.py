from tortoise import fields
from tortoise.models import Model


class DailyStats(Model):
    id = fields.IntField(primary_key=True)
    client = fields.ForeignKeyField("models.Client", related_name="daily_stats", on_delete=fields.CASCADE)
    date = fields.DateField()

    # counters only grow, always via F() expressions
    missed_calls_captured = fields.IntField(default=0)
    messages_sent = fields.IntField(default=0)
    conversations_started = fields.IntField(default=0)

    class Meta:
        table = "daily_stats"
        unique_together = (("client_id", "date"),)
