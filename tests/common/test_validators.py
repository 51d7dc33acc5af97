from __future__ import annotations

from datetime import date

import pytest

from school_records.common.pagination import PageRequest
from school_records.common.validators import (
    FieldErrors,
    optional_iso_date,
    require_bool,
    require_email,
    require_mobile,
)
from school_records.core.exceptions import DomainError, ErrorKind
from school_records.users.validation import check_account_fields


def test_email_is_lowercased():
    assert require_email(" Lee@School.Test ") == "lee@school.test"


@pytest.mark.parametrize("value", ["+15550001234", "5550001"])
def test_valid_mobiles(value):
    assert require_mobile(value) == value


@pytest.mark.parametrize("value", ["555-0001", "12", "+1234567890123456"])
def test_invalid_mobiles(value):
    with pytest.raises(DomainError):
        require_mobile(value)


def test_optional_date_and_bool():
    assert optional_iso_date("", "date_of_birth") is None
    assert optional_iso_date("2010-01-31", "date_of_birth") == date(2010, 1, 31)
    assert require_bool("TRUE", "is_active") is True
    with pytest.raises(DomainError):
        require_bool("yes", "is_active")


def test_account_fields_collects_every_failure():
    errors = FieldErrors()
    check_account_fields(errors, {"username": "ab", "email": "x", "password": "123", "mobile": "+15550001234"})

    with pytest.raises(DomainError) as exc:
        errors.raise_if_any()

    assert exc.value.kind is ErrorKind.VALIDATION
    assert [d["param"] for d in exc.value.details] == ["username", "email", "password"]
    assert exc.value.message == exc.value.details[0]["msg"]


def test_page_request_caps_limit():
    page = PageRequest.from_args({"page": "3", "limit": "1000"})

    assert (page.page, page.limit, page.offset) == (3, 100, 200)
    assert page.total_pages(201) == 3
    with pytest.raises(DomainError):
        PageRequest.from_args({"page": "0"})
