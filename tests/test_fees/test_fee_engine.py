"""Tests for fee-mode routing, fee amounts and fee splits."""

import pytest

from src.constants import MAX_FEE_NUMERATOR
from src.exceptions import MathOverflowError
from src.fees.fee_engine import (
    get_excluded_fee_amount,
    get_fee_mode,
    get_fee_on_amount,
    get_included_fee_amount,
    get_total_fee_numerator,
    quote_fee,
    split_fees,
    split_partner_and_creator_fee,
)
from src.models import (
    CollectFeeMode,
    DynamicFeeConfig,
    FeeSchedulerConfig,
    PoolFees,
    PoolState,
    TokenSide,
    TradeDirection,
    VolatilityTracker,
)

BUY = TradeDirection.QUOTE_TO_BASE
SELL = TradeDirection.BASE_TO_QUOTE


def _fees(cliff: int = 10_000_000, **kwargs) -> PoolFees:
    return PoolFees(
        base_fee=FeeSchedulerConfig(cliff_fee_numerator=cliff),
        protocol_fee_percent=20,
        referral_fee_percent=20,
        **kwargs,
    )


# ═══════════════════════════════════════════════════════════════════════
# Fee mode
# ═══════════════════════════════════════════════════════════════════════


class TestFeeMode:
    @pytest.mark.parametrize(
        "mode, direction, on_input, on_base",
        [
            (CollectFeeMode.QUOTE_TOKEN, BUY, True, False),
            (CollectFeeMode.QUOTE_TOKEN, SELL, False, False),
            (CollectFeeMode.OUTPUT_TOKEN, BUY, False, True),
            (CollectFeeMode.OUTPUT_TOKEN, SELL, False, False),
        ],
    )
    def test_table(self, mode, direction, on_input, on_base):
        fee_mode = get_fee_mode(mode, direction)
        assert fee_mode.fees_on_input is on_input
        assert fee_mode.fees_on_base_token is on_base

    def test_fee_token(self):
        assert get_fee_mode(CollectFeeMode.OUTPUT_TOKEN, BUY).fee_token is TokenSide.BASE
        assert get_fee_mode(CollectFeeMode.QUOTE_TOKEN, BUY).fee_token is TokenSide.QUOTE


# ═══════════════════════════════════════════════════════════════════════
# Amounts
# ═══════════════════════════════════════════════════════════════════════


class TestFeeAmounts:
    def test_excluded_rounds_fee_up(self):
        assert get_excluded_fee_amount(10_000_000, 1_000) == (990, 10)
        assert get_excluded_fee_amount(10_000_000, 999) == (989, 10)

    def test_included_inverts_excluded(self):
        assert get_included_fee_amount(10_000_000, 990) == (1_000, 10)

    @pytest.mark.parametrize("net", [1, 7, 990, 123_456_789, 10**15])
    def test_included_amount_covers_net(self, net):
        gross, _ = get_included_fee_amount(25_000_000, net)
        after_fee, _ = get_excluded_fee_amount(25_000_000, gross)
        assert after_fee == net

    def test_fee_on_amount_splits(self):
        result = get_fee_on_amount(_fees(), 10_000_000, 1_000_000_000, has_referral=False)
        assert result.amount == 990_000_000
        assert result.trading_fee == 8_000_000
        assert result.protocol_fee == 2_000_000
        assert result.referral_fee == 0
        assert result.total_fee == 10_000_000


class TestSplits:
    def test_referral_comes_out_of_protocol(self):
        assert split_fees(_fees(), 1_000, has_referral=True) == (800, 160, 40)

    def test_split_conserves_fee(self):
        trading, protocol, referral = split_fees(_fees(), 999, has_referral=True)
        assert trading + protocol + referral == 999

    @pytest.mark.parametrize(
        "trading_fee, pct, expected",
        [
            (1_000, 0, (1_000, 0)),
            (1_000, 30, (700, 300)),
            (999, 50, (500, 499)),
            (1_000, 100, (0, 1_000)),
        ],
    )
    def test_partner_creator_split(self, trading_fee, pct, expected):
        assert split_partner_and_creator_fee(trading_fee, pct) == expected


# ═══════════════════════════════════════════════════════════════════════
# Numerator and quotes
# ═══════════════════════════════════════════════════════════════════════


class TestTotalNumerator:
    def test_base_only(self):
        numerator = get_total_fee_numerator(_fees(), VolatilityTracker(), 5, 0, BUY, 1)
        assert numerator == 10_000_000

    def test_capped_at_max(self):
        fees = _fees(
            cliff=490_000_000,
            dynamic_fee=DynamicFeeConfig(
                filter_period=10,
                decay_period=120,
                reduction_factor=5_000,
                max_volatility_accumulator=14_460_000,
                variable_fee_control=100_000,
            ),
        )
        tracker = VolatilityTracker(volatility_accumulator=14_460_000)
        assert get_total_fee_numerator(fees, tracker, 5, 0, BUY, 1) == MAX_FEE_NUMERATOR

    def test_full_fee_exceeds_denominator_raises(self):
        with pytest.raises(MathOverflowError):
            get_included_fee_amount(1_000_000_001, 1)


class TestQuoteFee:
    def test_quote_mode_buy(self, pool):
        quote = quote_fee(
            1_000_000_000, 1, pool, _fees(), CollectFeeMode.QUOTE_TOKEN, BUY
        )
        assert quote.amount == 10_000_000
        assert quote.token is TokenSide.QUOTE
        assert quote.fee_numerator == 10_000_000

    def test_output_mode_buy_charges_base(self):
        pool = PoolState(creator="c", base_reserve=1, sqrt_price=1)
        quote = quote_fee(500, 1, pool, _fees(), CollectFeeMode.OUTPUT_TOKEN, BUY)
        assert quote.token is TokenSide.BASE
        assert quote.amount == 5
