from tortoise import BaseDBAsyncClient


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "clients" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "business_name" VARCHAR(255) NOT NULL,
    "owner_name" VARCHAR(255) NOT NULL,
    "owner_phone" VARCHAR(32),
    "twilio_number" VARCHAR(32)  UNIQUE,
    "status" VARCHAR(16) NOT NULL  DEFAULT 'active',
    "missed_call_template" TEXT,
    "monthly_message_count" INT NOT NULL  DEFAULT 0,
    "created_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS "idx_clients_status_3d1f0a" ON "clients" ("status");
COMMENT ON COLUMN "clients"."status" IS 'ACTIVE: active\nPAUSED: paused\nCANCELLED: cancelled';
CREATE TABLE IF NOT EXISTS "active_calls" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "call_sid" VARCHAR(64) NOT NULL UNIQUE,
    "caller_phone" VARCHAR(32) NOT NULL,
    "twilio_number" VARCHAR(32) NOT NULL,
    "received_at" TIMESTAMPTZ NOT NULL,
    "processed" BOOL NOT NULL  DEFAULT False,
    "processed_at" TIMESTAMPTZ,
    "client_id" INT NOT NULL REFERENCES "clients" ("id") ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS "idx_active_call_receive_7c2b9e" ON "active_calls" ("received_at");
CREATE INDEX IF NOT EXISTS "idx_active_call_process_5e8d41" ON "active_calls" ("processed");
CREATE INDEX IF NOT EXISTS "idx_active_call_process_a91c33" ON "active_calls" ("processed", "received_at");
CREATE TABLE IF NOT EXISTS "leads" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "phone" VARCHAR(32) NOT NULL,
    "name" VARCHAR(255),
    "source" VARCHAR(32) NOT NULL  DEFAULT 'manual',
    "status" VARCHAR(32) NOT NULL  DEFAULT 'new',
    "created_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "client_id" INT NOT NULL REFERENCES "clients" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_leads_client__b7e4f2" UNIQUE ("client_id", "phone")
);
CREATE INDEX IF NOT EXISTS "idx_leads_source_0f6a2d" ON "leads" ("source");
CREATE TABLE IF NOT EXISTS "conversations" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "direction" VARCHAR(16) NOT NULL,
    "message_type" VARCHAR(16) NOT NULL  DEFAULT 'sms',
    "kind" VARCHAR(32) NOT NULL  DEFAULT 'other',
    "content" TEXT NOT NULL,
    "twilio_sid" VARCHAR(64),
    "dedup_key" VARCHAR(64)  UNIQUE,
    "created_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "client_id" INT NOT NULL REFERENCES "clients" ("id") ON DELETE CASCADE,
    "lead_id" INT NOT NULL REFERENCES "leads" ("id") ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS "idx_conversati_client__4c0e8b" ON "conversations" ("client_id", "created_at");
CREATE INDEX IF NOT EXISTS "idx_conversati_lead_id_92d7f5" ON "conversations" ("lead_id", "created_at");
CREATE TABLE IF NOT EXISTS "daily_stats" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "date" DATE NOT NULL,
    "missed_calls_captured" INT NOT NULL  DEFAULT 0,
    "messages_sent" INT NOT NULL  DEFAULT 0,
    "conversations_started" INT NOT NULL  DEFAULT 0,
    "client_id" INT NOT NULL REFERENCES "clients" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_daily_stats_client__e1a6c0" UNIQUE ("client_id", "date")
);
CREATE TABLE IF NOT EXISTS "blocked_numbers" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "phone" VARCHAR(32) NOT NULL,
    "reason" VARCHAR(255),
    "blocked_until" TIMESTAMPTZ,
    "hit_count" INT NOT NULL  DEFAULT 0,
    "created_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL  DEFAULT CURRENT_TIMESTAMP,
    "client_id" INT NOT NULL REFERENCES "clients" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_blocked_num_client__3f9b27" UNIQUE ("client_id", "phone")
);
CREATE INDEX IF NOT EXISTS "idx_blocked_num_phone_6d2e10" ON "blocked_numbers" ("phone");
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSONB NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        DROP TABLE IF EXISTS "blocked_numbers";
DROP TABLE IF EXISTS "daily_stats";
DROP TABLE IF EXISTS "conversations";
DROP TABLE IF EXISTS "leads";
DROP TABLE IF EXISTS "active_calls";
DROP TABLE IF EXISTS "clients";"""
