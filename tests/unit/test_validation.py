"""
Tests for Input Validation
==========================
Pure pre-checks: balances are passed in, nothing touches the network.
"""

import pytest

from bundle_pipeline.operations.models import CreateConfig, FundedWallet, TokenMetadata, Wallet
from bundle_pipeline.operations.validation import (
    format_amount,
    parse_amount,
    parse_percentage,
    validate_consolidation_inputs,
    validate_create_inputs,
    validate_distribution_inputs,
    validate_mixing_inputs,
    validate_single_mixing_inputs,
)
from tests.mocks import make_keypair


def wallet(seed):
    kp = make_keypair(seed)
    return Wallet(address=str(kp.pubkey()), privateKey=list(bytes(kp)))


def funded(seed, amount):
    kp = make_keypair(seed)
    return FundedWallet(address=str(kp.pubkey()), privateKey=list(bytes(kp)), amount=amount)


TOKEN = TokenMetadata(name="Demo", symbol="DMO", imageUrl="https://img.test/demo.png")


class TestAmounts:

    @pytest.mark.parametrize("value,expected", [("0.5", 0.5), (2, 2.0), ("1e-3", 0.001)])
    def test_parse_valid(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value,expected", [(50, 50.0), ("100", 100.0), (0.5, 0.5), (100.5, None), ("x", None)])
    def test_parse_percentage(self, value, expected):
        assert parse_percentage(value) == expected

    @pytest.mark.parametrize("value", ["", None, "abc", "0", "-1", "nan", "inf"])
    def test_parse_invalid(self, value):
        assert parse_amount(value) is None

    def test_format(self):
        assert format_amount(1.5) == "1.5"
        assert format_amount(0.03) == "0.03"
        assert format_amount(2.0) == "2"


class TestDistribution:

    def test_valid(self):
        result = validate_distribution_inputs(wallet(1), [funded(2, "0.5"), funded(3, "0.5")], 1.0)
        assert result.valid
        assert result

    def test_insufficient_balance_names_both_values(self):
        result = validate_distribution_inputs(wallet(1), [funded(2, "1.5"), funded(3, "1")], 2.0)
        assert not result.valid
        assert result.error == "Insufficient balance. Need at least 2.5 SOL, but have 2 SOL"

    def test_symbol_in_message(self):
        result = validate_distribution_inputs(wallet(1), [funded(2, "10")], 1.0, "USDC")
        assert "10 USDC" in result.error and "1 USDC" in result.error

    def test_no_recipients(self):
        assert validate_distribution_inputs(wallet(1), [], 1.0).error == "No recipient wallets"

    def test_bad_sender(self):
        assert validate_distribution_inputs(Wallet(), [funded(2, "1")], 5).error == "Invalid sender wallet"
        bad = Wallet(address="xyz", privateKey="k")
        assert validate_distribution_inputs(bad, [funded(2, "1")], 5).error == "Invalid sender address: xyz"

    def test_bad_recipient(self):
        missing_amount = FundedWallet(address=wallet(2).address, privateKey="k")
        assert validate_distribution_inputs(wallet(1), [missing_amount], 5).error == "Invalid recipient wallet data"
        assert validate_distribution_inputs(wallet(1), [funded(2, "abc")], 5).error == "Invalid amount: abc"


class TestMixing:

    def test_fee_headroom_per_recipient(self):
        recipients = [funded(2, "0.5"), funded(3, "0.5")]
        assert validate_distribution_inputs(wallet(1), recipients, 1.0).valid
        result = validate_mixing_inputs(wallet(1), recipients, 1.0)
        assert not result.valid
        assert "1.02 SOL" in result.error

    def test_single_recipient(self):
        assert validate_single_mixing_inputs(wallet(1), funded(2, "1"), 1.02).valid
        assert not validate_single_mixing_inputs(wallet(1), funded(2, "1"), 1.005).valid


class TestCreate:

    def config(self, **overrides):
        values = {"platform": "pumpfun", "token": TOKEN}
        values.update(overrides)
        return CreateConfig(**values)

    def balances(self, *wallets, amount=10.0):
        return {w.address: amount for w in wallets}

    def test_valid(self):
        wallets = [funded(1, "1"), funded(2, "1")]
        assert validate_create_inputs(wallets, self.config(), self.balances(*wallets)).valid

    def test_invalid_platform(self):
        assert validate_create_inputs([funded(1, "1")], self.config(platform="raydium"), {}).error == "Invalid platform"

    def test_token_fields_required(self):
        config = self.config(token=TokenMetadata(name="Demo", symbol="DMO"))
        assert validate_create_inputs([funded(1, "1")], config, {}).error == (
            "Token name, symbol, and image are required"
        )

    def test_wallet_required(self):
        assert validate_create_inputs([], self.config(), {}).error == "At least one wallet is required"

    def test_wallet_limits(self):
        six = [funded(n, "1") for n in range(1, 7)]
        assert validate_create_inputs(six, self.config(), self.balances(*six)).error == (
            "Maximum 5 wallets allowed for pumpfun"
        )
        assert validate_create_inputs(six, self.config(pumpAdvanced=True), self.balances(*six)).valid

        twenty_one = [funded(n, "1") for n in range(1, 22)]
        assert validate_create_inputs(
            twenty_one, self.config(pumpAdvanced=True), self.balances(*twenty_one)
        ).error == "Maximum 20 wallets allowed for pumpfun (advanced mode)"

    def test_bonk_and_meteora_limits(self):
        six = [funded(n, "1") for n in range(1, 7)]
        assert not validate_create_inputs(six, self.config(platform="bonk"), self.balances(*six)).valid
        assert validate_create_inputs(six, self.config(platform="bonk", bonkAdvanced=True), self.balances(*six)).valid
        assert validate_create_inputs(six, self.config(platform="meteoraDBC"), self.balances(*six)).valid

    def test_wallet_data(self):
        assert validate_create_inputs([FundedWallet(amount="1")], self.config(), {}).error == "Invalid wallet data"
        assert validate_create_inputs([funded(1, "-1")], self.config(), {}).error == "Invalid wallet amount"

    def test_insufficient_wallet_balance(self):
        w = funded(1, "2")
        result = validate_create_inputs([w], self.config(), {w.address: 1.0})
        assert result.error == f"Wallet {w.address[:6]}... has insufficient balance"


class TestConsolidation:

    def test_valid(self):
        assert validate_consolidation_inputs([wallet(2), wallet(3)], wallet(1), 50).valid

    def test_receiver_cannot_be_source(self):
        result = validate_consolidation_inputs([wallet(1)], wallet(1), 50)
        assert result.error == "Receiver wallet cannot also be a source wallet"

    @pytest.mark.parametrize("percentage", [0, -5, 101, float("nan"), "half", None, [50]])
    def test_percentage_range(self, percentage):
        result = validate_consolidation_inputs([wallet(2)], wallet(1), percentage)
        assert result.error == "Percentage must be between 1 and 100"

    def test_empty_source_balance(self):
        source = wallet(2)
        result = validate_consolidation_inputs([source], wallet(1), 50, {source.address: 0})
        assert result.error == f"Source wallet {source.address[:6]}... has no balance"

    def test_missing_wallets(self):
        assert validate_consolidation_inputs([], wallet(1), 50).error == "No source wallets"
        assert validate_consolidation_inputs([wallet(2)], Wallet(), 50).error == "Invalid receiver wallet"
