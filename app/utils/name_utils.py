# app/utils/name_utils.py
import ipaddress
import re
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)

HOSTNAME_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9]([A-Za-z0-9\-]{0,61}[A-Za-z0-9])?(?:\.(?!-)[A-Za-z0-9]([A-Za-z0-9\-]{0,61}[A-Za-z0-9])?)*$"
)


def normalize_name(name: str) -> str:
    return (name or "").strip().lower()


@lru_cache(maxsize=None)
def _label_pattern(min_length: int, max_length: int) -> re.Pattern:
    # First and last characters are fixed, the middle takes the rest
    return re.compile(
        rf"^[a-z0-9][a-z0-9-]{{{min_length - 2},{max_length - 2}}}[a-z0-9]$"
    )


def is_valid_name(name: str, min_length: int = 3, max_length: int = 20) -> bool:
    """
    Checks a leaf label: lowercase letters, digits and hyphens only,
    between min_length and max_length long, no leading or trailing hyphen.
    """
    if not isinstance(name, str):
        return False
    return _label_pattern(min_length, max_length).match(name) is not None


def is_regex_hostname(hostname: str) -> bool:
    """
    Validates full hostnames including subdomains (e.g., abc.z.com, mail.example.co.uk)
    """
    if len(hostname) > 253:
        return False
    return HOSTNAME_PATTERN.match(hostname) is not None


def validate_hostname_or_raise(v: str, field_name: str = "value") -> str:
    ip_pattern = r"^\d{1,3}(\.\d{1,3}){3}$"
    if re.match(ip_pattern, v):
        raise ValueError(f"{field_name} must be a hostname, not an IP address")
    if not is_regex_hostname(v.rstrip(".")):
        raise ValueError(f"{field_name} must be a valid hostname")
    return v.rstrip(".").lower()


def is_valid_record_value(record_type: str, value: str) -> bool:
    """A records point at an IPv4 address, CNAME records at a hostname."""
    if not isinstance(value, str) or not value:
        return False
    if record_type == "A":
        try:
            ipaddress.IPv4Address(value)
        except ValueError:
            return False
        return True
    if record_type == "CNAME":
        try:
            validate_hostname_or_raise(value)
        except ValueError:
            logger.debug("Rejected CNAME target %s", value)
            return False
        return True
    return False
