import re
from typing import Dict, Mapping, Optional, Union

DEFAULT_TEMPLATES: Dict[str, str] = {
    "missed_call": (
        "Hey, this is {{ownerName}} from {{businessName}}. Sorry I missed your call, "
        "I'm on a job site right now. What can I help you with? Reply STOP to opt out."
    ),
    "opt_out_confirmation": "You've been unsubscribed. You won't receive further messages from {{businessName}}.",
}

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_template(
    template_key: str,
    variables: Mapping[str, Union[str, int, None]],
    custom_template: Optional[str] = None,
) -> str:
    """
    Fill `{{name}}` placeholders. A client's custom template wins over the
    default; placeholders without a value render as an empty string.
    """
    template = custom_template or DEFAULT_TEMPLATES.get(template_key, "")

    def _sub(m: "re.Match[str]") -> str:
        value = variables.get(m.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, template)
