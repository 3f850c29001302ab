"""
Tests for newebpay.core.payloads.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from newebpay.core.errors import MalformedRecord
from newebpay.core.payloads import (
    BINDING_ORDER_PREFIX,
    CloseRequest,
    CreditCardCancelPostData,
    CreditCardClosePostData,
    MPGTransaction,
    TransactionPostData,
    new_binding_order_no,
    new_token_term,
    timestamp,
)
from newebpay.core.schema import to_wire


class TestTimestamp:
    def test_integer(self):
        assert timestamp(1700000000) == "1700000000"

    def test_naive_datetime_is_utc(self):
        assert timestamp(datetime(2023, 11, 14, 22, 13, 20)) == "1700000000"

    def test_aware_datetime(self):
        taipei = timezone(timedelta(hours=8))
        assert timestamp(datetime(2023, 11, 15, 6, 13, 20, tzinfo=taipei)) == "1700000000"

    def test_now(self):
        assert timestamp().isdigit()


class TestGeneratedIdentifiers:
    def test_binding_order_no(self):
        order_no = new_binding_order_no()
        assert order_no.startswith(BINDING_ORDER_PREFIX)
        assert len(order_no) == 20
        assert order_no[len(BINDING_ORDER_PREFIX):].isdigit()

    def test_token_term(self):
        term = new_token_term()
        assert len(term) == 20
        assert term.isalnum()
        assert new_token_term() != term


class TestCloseRequest:
    @pytest.mark.parametrize(
        "request_kind, close_type, cancel",
        [
            (CloseRequest.CAPTURE, 1, 0),
            (CloseRequest.REFUND, 2, 0),
            (CloseRequest.CANCEL_CAPTURE, 1, 1),
            (CloseRequest.CANCEL_REFUND, 2, 1),
        ],
    )
    def test_close_parameters(self, request_kind, close_type, cancel):
        """Should map each close operation onto its CloseType/Cancel pair."""
        record = CreditCardClosePostData.build(request_kind, "ORD1", 100, requested_at=1700000000)
        assert (record.close_type, record.cancel) == (close_type, cancel)
        assert record.time_stamp == "1700000000"

    def test_wire_fields(self):
        record = CreditCardClosePostData.build(CloseRequest.REFUND, "ORD1", 40, requested_at=1)
        assert to_wire(record) == {
            "MerchantOrderNo": "ORD1",
            "Amt": 40,
            "CloseType": 2,
            "Cancel": 0,
            "TimeStamp": "1",
            "RespondType": "JSON",
            "Version": "1.0",
            "IndexType": 1,
            "TradeNo": None,
        }

    def test_unsupported_pair(self):
        with pytest.raises(MalformedRecord):
            CreditCardClosePostData(
                merchant_order_no="ORD1", amount=1, close_type=3, cancel=0, time_stamp="1"
            )


class TestValidation:
    @pytest.mark.parametrize("amount", [0, -5, 1.5, "100", True])
    def test_amount_must_be_positive_integer(self, amount):
        with pytest.raises(MalformedRecord):
            CreditCardCancelPostData(merchant_order_no="ORD1", amount=amount, time_stamp="1")

    @pytest.mark.parametrize("order_no", ["", "ORD-1", "a" * 31, "訂單1", None])
    def test_order_number_shape(self, order_no):
        with pytest.raises(MalformedRecord):
            CreditCardCancelPostData(merchant_order_no=order_no, amount=1, time_stamp="1")

    def test_order_number_at_limit(self):
        record = CreditCardCancelPostData(merchant_order_no="a_" * 15, amount=1, time_stamp="1")
        assert record.merchant_order_no == "a_" * 15

    def _charge(self, **overrides):
        fields = dict(
            merchant_order_no="ORD1",
            amount=100,
            prod_desc="Deposit",
            payer_email="payer@example.com",
            token_value="tok",
            token_term="term",
            time_stamp="1",
        )
        fields.update(overrides)
        return TransactionPostData(**fields)

    def test_charge_defaults(self):
        record = self._charge()
        assert record.p3d == "0"
        assert record.token_switch == "on"

    def test_charge_requires_token(self):
        with pytest.raises(MalformedRecord):
            self._charge(token_value="")

    def test_charge_description_length(self):
        with pytest.raises(MalformedRecord):
            self._charge(prod_desc="x" * 51)

    def test_charge_p3d_flag(self):
        with pytest.raises(MalformedRecord):
            self._charge(p3d="yes")


class TestMPGTransaction:
    def test_as_form(self):
        transaction = MPGTransaction(
            action_url="https://ccore.newebpay.com/MPG/mpg_gateway",
            merchant_id="MS1",
            trade_info="abcd",
            trade_sha="SIG",
        )
        assert transaction.as_form() == {
            "MerchantID": "MS1",
            "TradeInfo": "abcd",
            "TradeSha": "SIG",
            "Version": "2.1",
            "EncryptType": "0",
        }
