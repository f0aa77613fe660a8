# helpers/metrics.py
from prometheus_client import CollectorRegistry, Counter

REGISTRY = CollectorRegistry(auto_describe=True)

ledger_write_failures_total = Counter(
    "ledger_write_failures_total",
    "Call ledger inserts that failed; those calls are invisible to the reconciler",
    registry=REGISTRY,
)

missed_calls_processed_total = Counter(
    "missed_calls_processed_total",
    "Missed calls that produced a text-back",
    ["path"],
    registry=REGISTRY,
)

missed_call_skipped_total = Counter(
    "missed_call_skipped_total",
    "Missed calls that ended without a text-back",
    ["reason"],
    registry=REGISTRY,
)

sms_send_failures_total = Counter(
    "sms_send_failures_total",
    "Missed-call texts rejected by the SMS transport",
    registry=REGISTRY,
)

effect_partial_failures_total = Counter(
    "effect_partial_failures_total",
    "Texts that went out but whose log or stats write failed",
    registry=REGISTRY,
)

reconcile_provider_errors_total = Counter(
    "reconcile_provider_errors_total",
    "Call-status lookups that failed during reconciliation",
    registry=REGISTRY,
)
