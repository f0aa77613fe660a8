import re
import phonenumbers


def normalize_phone(raw: str, default_region: str = "US") -> str:
    s = (raw or "").strip().lower()
    # convert 'plus' to '+' and remove spaces/hyphens/parentheses
    s = re.sub(r"\bplus\b", "+", s)
    s = re.sub(r"[^\d+]", "", s)
    if not s:
        return ""
    # if missing leading '+', try to parse with region and reformat
    try:
        if not s.startswith("+"):
            num = phonenumbers.parse(s, default_region)
        else:
            num = phonenumbers.parse(s, None)
        if phonenumbers.is_valid_number(num):
            return phonenumbers.format_number(num, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException:
        pass
    # last resort: ensure '+' + digits
    if not s.startswith("+"):
        s = "+" + s
    return s


def mask_phone(phone: str) -> str:
    """Keep the last four digits for log lines."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) <= 4:
        return "***"
    return "***" + digits[-4:]
