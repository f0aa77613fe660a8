from helpers.settings import get_settings

MODEL_MODULES = [
    "models.client",
    "models.active_call",
    "models.lead",
    "models.conversation",
    "models.daily_stats",
    "models.call_blocklist",
]


def build_tortoise_config(db_url: str, with_aerich: bool = True) -> dict:
    models = list(MODEL_MODULES)
    if with_aerich:
        models.append("aerich.models")
    return {
        "connections": {
            "default": db_url,
        },
        "apps": {
            "models": {
                "models": models,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


def __getattr__(name: str):
    # TORTOISE_CONFIG is read by aerich (see [tool.aerich] in pyproject.toml);
    # built on access so importing this module does not read the environment
    if name == "TORTOISE_CONFIG":
        return build_tortoise_config(get_settings().database_url)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
