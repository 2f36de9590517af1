"""Block explorer links for submitted transactions."""

from __future__ import annotations

from ..protocol.config import CHAIN_ID_SN_SEPOLIA, MAINNET_EXPLORER_URL, SEPOLIA_EXPLORER_URL


def get_explorer_base(chain_id: str | None) -> str:
    if chain_id and chain_id.lower() == CHAIN_ID_SN_SEPOLIA:
        return SEPOLIA_EXPLORER_URL
    return MAINNET_EXPLORER_URL


def tx_link(chain_id: str | None, tx_hash: str) -> str:
    return f"{get_explorer_base(chain_id)}/tx/{tx_hash}"
