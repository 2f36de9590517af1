"""
Unit tests for calldata handling, the dry-run transport and explorer links.
"""

import pytest
import trio

from starkmoat.protocol.config import (
    CHAIN_ID_SN_MAIN,
    CHAIN_ID_SN_SEPOLIA,
    MAINNET_EXPLORER_URL,
    SEPOLIA_EXPLORER_URL,
)
from starkmoat.protocol.exceptions import FeltError, SubmissionError
from starkmoat.submission.explorer import get_explorer_base, tx_link
from starkmoat.submission.transport import (
    Call,
    DryRunTransport,
    build_call,
    parse_calldata_input,
)


class TestParseCalldata:
    def test_commas_and_newlines(self):
        assert parse_calldata_input("0x1, 0x2\n0x3") == ["0x1", "0x2", "0x3"]

    def test_blanks_dropped(self):
        assert parse_calldata_input(" ,\n\n0x1,, ") == ["0x1"]

    def test_empty(self):
        assert parse_calldata_input("") == []
        assert parse_calldata_input(None) == []


class TestBuildCall:
    def test_appends_nullifier(self):
        call = build_call("0xc0ffee", "signal", ["0x1"], 0xABC)
        assert call.calldata == ("0x1", "0xabc")

    def test_append_disabled(self):
        call = build_call("0xc0ffee", "signal", ["0x1"], 0xABC, append_nullifier=False)
        assert call.calldata == ("0x1",)

    def test_nullifier_hex_normalized(self):
        call = build_call("0xc0ffee", "signal", [], "0X0ABC")
        assert call.calldata == ("0xabc",)

    def test_missing_contract(self):
        with pytest.raises(SubmissionError, match="contract_address"):
            build_call("", "signal", [], 1)

    def test_missing_entrypoint(self):
        with pytest.raises(SubmissionError, match="entrypoint"):
            build_call("0xc0ffee", "", [], 1)

    def test_bad_nullifier(self):
        with pytest.raises(FeltError):
            build_call("0xc0ffee", "signal", [], "zz")


class TestDryRunTransport:
    @pytest.mark.trio
    async def test_submit_returns_felt_hash(self):
        transport = DryRunTransport(account_address="0xabc")
        tx_hash = await transport.submit(Call("0xc0ffee", "signal", ("0x1",)))
        assert tx_hash.startswith("0x")
        assert transport.attempts == 1
        assert transport.last_call == Call("0xc0ffee", "signal", ("0x1",))

    @pytest.mark.trio
    async def test_hashes_are_reproducible_and_unique(self):
        first = DryRunTransport(account_address="0xabc")
        second = DryRunTransport(account_address="0xabc")
        call = Call("0xc0ffee", "signal", ())
        a1 = await first.submit(call)
        a2 = await first.submit(call)
        b1 = await second.submit(call)
        assert a1 == b1
        assert a1 != a2

    @pytest.mark.trio
    async def test_fail_next(self):
        transport = DryRunTransport(account_address="0xabc", fail_next=2)
        call = Call("0xc0ffee", "signal", ())
        for _ in range(2):
            with pytest.raises(SubmissionError):
                await transport.submit(call)
        await transport.submit(call)
        assert transport.attempts == 3
        assert len(transport.submitted) == 1

    @pytest.mark.trio
    async def test_invalid_call_not_counted(self):
        transport = DryRunTransport(account_address="0xabc")
        with pytest.raises(SubmissionError):
            await transport.submit(Call("", "signal"))
        assert transport.attempts == 0
        assert transport.last_call is None

    @pytest.mark.trio
    async def test_delay_is_cancellable(self):
        transport = DryRunTransport(account_address="0xabc", delay=10)
        with trio.move_on_after(0.01) as scope:
            await transport.submit(Call("0xc0ffee", "signal"))
        assert scope.cancelled_caught
        assert transport.submitted == []


class TestExplorer:
    def test_sepolia(self):
        assert get_explorer_base(CHAIN_ID_SN_SEPOLIA) == SEPOLIA_EXPLORER_URL
        assert get_explorer_base(CHAIN_ID_SN_SEPOLIA.upper().replace("0X", "0x")) == (
            SEPOLIA_EXPLORER_URL
        )

    def test_mainnet_and_unknown(self):
        assert get_explorer_base(CHAIN_ID_SN_MAIN) == MAINNET_EXPLORER_URL
        assert get_explorer_base(None) == MAINNET_EXPLORER_URL

    def test_tx_link(self):
        assert tx_link(CHAIN_ID_SN_SEPOLIA, "0x123") == f"{SEPOLIA_EXPLORER_URL}/tx/0x123"
