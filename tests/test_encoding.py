"""
Tests for newebpay.core.encoding.
"""
from __future__ import annotations

from dataclasses import dataclass

import pytest

from newebpay.core.encoding import build_query, stringify
from newebpay.core.errors import MalformedRecord
from newebpay.core.payloads import CreditCardCancelPostData


class TestBuildQuery:
    """Tests for the canonical query encoder."""

    def test_keys_are_sorted(self):
        """Should order keys regardless of insertion order."""
        first = build_query({"TradeNo": "T1", "Amt": 100, "MerchantID": "MS1"})
        second = build_query({"MerchantID": "MS1", "Amt": 100, "TradeNo": "T1"})
        assert first == second == "Amt=100&MerchantID=MS1&TradeNo=T1"

    def test_repeated_calls_are_identical(self):
        """Should produce byte-identical output for the same record."""
        record = {"ProdDesc": "Deposit (30%)", "Amt": 1500, "Email": "a@b.tw"}
        assert build_query(record) == build_query(dict(record))

    def test_none_fields_are_omitted(self):
        """Should drop absent fields instead of sending them empty."""
        assert build_query({"Amt": 1, "TradeNo": None}) == "Amt=1"

    def test_empty_strings_are_kept(self):
        """Should keep present-but-empty values."""
        assert build_query({"NotifyURL": "", "Amt": 1}) == "Amt=1&NotifyURL="

    def test_form_encoding(self):
        """Should form-encode spaces, reserved characters and UTF-8."""
        query = build_query({"Desc": "a b&c=d/e", "Name": "訂金"})
        assert query == "Desc=a+b%26c%3Dd%2Fe&Name=%E8%A8%82%E9%87%91"

    def test_integers_and_booleans(self):
        """Should render integers in decimal and booleans as true/false."""
        assert build_query({"Amt": 7, "Flag": True, "Zero": 0}) == "Amt=7&Flag=true&Zero=0"

    def test_request_schema_uses_wire_names(self):
        """Should flatten a request dataclass through its wire field names."""
        record = CreditCardCancelPostData(
            merchant_order_no="ORD1",
            amount=100,
            time_stamp="1700000000",
        )
        assert build_query(record) == (
            "Amt=100&IndexType=1&MerchantOrderNo=ORD1"
            "&RespondType=JSON&TimeStamp=1700000000&Version=1.0"
        )

    @pytest.mark.parametrize("value", [1.5, [1, 2], {"a": 1}, object()])
    def test_non_scalar_values_are_rejected(self, value):
        """Should refuse values that are not scalars."""
        with pytest.raises(MalformedRecord):
            build_query({"Amt": value})

    @pytest.mark.parametrize("record", [42, "Amt=1", None, [("Amt", 1)]])
    def test_non_record_inputs_are_rejected(self, record):
        """Should refuse inputs that are neither mappings nor schemas."""
        with pytest.raises(MalformedRecord):
            build_query(record)

    def test_plain_dataclass_without_wire_names(self):
        """Should fall back to attribute names for dataclasses without metadata."""

        @dataclass
        class Plain:
            b: int
            a: str

        assert build_query(Plain(b=2, a="x")) == "a=x&b=2"


class TestStringify:
    def test_strings_pass_through(self):
        assert stringify("abc") == "abc"

    def test_bool_before_int(self):
        assert stringify(False) == "false"
