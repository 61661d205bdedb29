"""Phone number formatting for display: E.164 for tel: links, raw text otherwise."""

import phonenumbers


def normalize_phone(raw: str | None, default_region: str | None = None) -> str | None:
    """Parse and return E.164 form of the number, or None if invalid.

    default_region applies when the input has no leading + ("202 555 1234"
    with "US"); numbers carrying a country code ignore it.
    """
    if not raw or not str(raw).strip():
        return None
    try:
        parsed = phonenumbers.parse(str(raw).strip(), default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def phone_href(raw: str | None, default_region: str | None = None) -> str | None:
    """tel: URI for a stored phone number, or None when it cannot be dialed as entered.

    Stored numbers are free text (no validation on save), so legacy
    entries like "555-1234 ext 2" simply render without a link.
    """
    e164 = normalize_phone(raw, default_region)
    return f"tel:{e164}" if e164 else None
