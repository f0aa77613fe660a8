from tortoise import fields, models


class BlockedNumber(models.Model):
    id = fields.IntField(primary_key=True)
    client = fields.ForeignKeyField("models.Client", related_name="blocked_numbers", on_delete=fields.CASCADE)
    phone = fields.CharField(32, index=True)
    reason = fields.CharField(255, null=True)
    # null means the block never expires
    blocked_until = fields.DatetimeField(null=True)
    hit_count = fields.IntField(default=0)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "blocked_numbers"
        unique_together = (("client_id", "phone"),)
