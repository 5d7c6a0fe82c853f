import pytest
from pydantic import ValidationError

from app.core.config import ProvisioningConfig
from app.core.errors import InvalidFormat
from app.models.claim_schema import ARecordClaim
from app.services.validator import validate_name, validate_record_value
from app.utils.name_utils import is_valid_name, is_valid_record_value


@pytest.mark.parametrize("name", ["abc", "a" * 20, "my-site", "a1-b2-c3", "007"])
def test_valid_names(name):
    assert is_valid_name(name)


@pytest.mark.parametrize(
    "name",
    ["ab", "a" * 21, "-abc", "abc-", "ab_c", "ab.c", "a b c", "", "abç"],
)
def test_invalid_names(name):
    assert not is_valid_name(name)


def test_uppercase_is_not_part_of_the_grammar():
    assert not is_valid_name("Alpha")


def test_validate_name_normalizes_case_and_whitespace():
    config = ProvisioningConfig()
    assert validate_name("  Alpha ", config) == "alpha"


def test_validate_name_rejects_with_invalid_format():
    with pytest.raises(InvalidFormat):
        validate_name("x", ProvisioningConfig())


def test_length_bounds_follow_config():
    config = ProvisioningConfig(name_min_length=4, name_max_length=6)
    with pytest.raises(InvalidFormat):
        validate_name("abc", config)
    with pytest.raises(InvalidFormat):
        validate_name("abcdefg", config)
    assert validate_name("abcd", config) == "abcd"


@pytest.mark.parametrize(
    "record_type,value,expected",
    [
        ("A", "192.0.2.1", True),
        ("A", "999.1.1.1", False),
        ("A", "target.example.com", False),
        ("CNAME", "target.example.com", True),
        ("CNAME", "192.0.2.1", False),
        ("CNAME", "-bad-.example.com", False),
        ("MX", "mail.example.com", False),
    ],
)
def test_record_values(record_type, value, expected):
    assert is_valid_record_value(record_type, value) is expected


def test_validate_record_value_raises_invalid_format():
    with pytest.raises(InvalidFormat):
        validate_record_value("A", "not-an-ip")


def test_a_record_schema_takes_ipv4_only():
    claim = ARecordClaim(name="alpha", record_type="A", record_value="203.0.113.5")
    assert str(claim.record_value) == "203.0.113.5"

    with pytest.raises(ValidationError):
        ARecordClaim(name="alpha", record_type="A", record_value="2001:db8::1")
