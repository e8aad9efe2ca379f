"""Email-domain allowlist applied at login."""

from src.utils.config import Settings, settings


def is_email_domain_allowed(email: str, cfg: Settings = settings) -> bool:
    if not email or "@" not in email:
        return False
    domain = email.rsplit("@", 1)[1].lower()
    if not domain:
        return False

    if not cfg.domain_restrictions_enabled:
        return True

    if domain == "gmail.com" and cfg.allow_all_gmail:
        return True

    # No explicit list: everything except Gmail when Gmail is disallowed.
    if not cfg.allowed_domains:
        return cfg.allow_all_gmail or domain != "gmail.com"

    return domain in cfg.allowed_domains
