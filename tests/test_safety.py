"""Tests for unrestricted filter detection."""

import pytest

from property_search.exceptions import UnrestrictedFilterError
from property_search.safety import ensure_restricted, is_unrestricted


@pytest.mark.parametrize(
    "where",
    [
        "1=1",
        "2 = 2",
        "'a'='a'",
        "",
        "   ",
        "(1=1)",
        "((  3.5 = 3.5 ))",
        "1",
        "TRUE",
        "not  false",
        "( 'Smith' = 'Smith' )",
        "'a  b'  =  'a  b'",
        "()",
        None,
    ],
)
def test_unrestricted(where):
    """Test tautologies and blank filters are rejected."""
    assert is_unrestricted(where) is True


@pytest.mark.parametrize(
    "where",
    [
        "OWNER_NAME LIKE '%SMITH%'",
        "SALEAMOUNT > 500000",
        "1=2",
        "'a'='b'",
        "'a'='A'",
        "'a  b'='a b'",
        "(ACRES > 5) AND (ZONING = 'R1')",
        "(1=1) AND (ACRES > 5)",
        "SALEDATE BETWEEN DATE '2023-01-01' AND DATE '2023-12-31'",
        "0",
        "false",
    ],
)
def test_restricted(where):
    """Test real predicates pass."""
    assert is_unrestricted(where) is False


def test_out_of_scope_tautology_passes():
    """Test the check is a fixed pattern list, not an evaluator."""
    assert is_unrestricted("FIELD > -999999999") is False


def test_ensure_restricted_returns_filter():
    """Test a restricted filter is returned unchanged."""
    where = "SALEAMOUNT > 500000"
    assert ensure_restricted(where) == where


def test_ensure_restricted_raises():
    """Test an unrestricted filter raises with the offending filter."""
    with pytest.raises(UnrestrictedFilterError) as exc_info:
        ensure_restricted("2=2")
    assert exc_info.value.where == "2=2"


def test_quoted_whitespace_is_significant():
    """Test whitespace inside literals is compared exactly."""
    assert is_unrestricted("'Oak  Ridge' = 'Oak Ridge'") is False
    assert is_unrestricted("(  'Oak  Ridge'   =   'Oak  Ridge'  )") is True
