"""
⚠️ DRAFT — requires crypto review before production use

Protocol configuration for Starkmoat membership signalling.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

All secrets, leaves, roots, action hashes and nullifiers are elements of
the STARK field, so every hash output is reduced modulo the STARK prime.
"""

# ============================================================================
# FIELD PARAMETERS
# ============================================================================

# STARK prime: 2^251 + 17 * 2^192 + 1
STARK_FIELD_PRIME = 0x800000000000011000000000000000000000000000000000000000000000001
STARK_FIELD_BITS = 252

# ============================================================================
# HASH-TO-FIELD
# ============================================================================

HASH_FUNCTION = "SHA256"
HASH_OUTPUT_BITS = 256

# Separator used by the "joined" encoding. Parts that contain it are ambiguous.
FELT_SEPARATOR = "|"

# Width of the per-part length prefix used by the "length_prefixed" encoding
LENGTH_PREFIX_BYTES = 4

HASH_ENCODINGS = ("joined", "length_prefixed")
DEFAULT_HASH_ENCODING = "joined"

# Merkle interior node tag (membership-set builder only)
MERKLE_NODE_TAG = "MERKLE_NODE_V1"

# ============================================================================
# SECRET GENERATION
# ============================================================================

# 32 bytes drawn, then reduced mod P (modulo bias accepted)
SECRET_BYTES = 32

# ============================================================================
# PERSISTENCE
# ============================================================================

REGISTRY_STATE_VERSION = 1  # Increment for breaking changes
REGISTRY_EVENT_VERSION = 1

# ============================================================================
# DEMO DEFAULTS (Starknet Sepolia)
# ============================================================================

DEFAULT_RPC_URL = "https://starknet-sepolia.public.blastapi.io/rpc/v0_8"
DEFAULT_ROOT = "0x0486f6d4a194f2ac7b6d6056bdb8be5e0e77d9f3723bb0afe0c53cb8da6ef2a"
DEFAULT_DOMAIN = "SN_SEPOLIA|0x0123_starkmoat_account|0x0456_starkmoat_registry"
DEFAULT_ACTION = "signal:privacy-preserving-vote"
DEFAULT_ENTRYPOINT = "signal"

# Chain ids are the felt encoding of the ASCII network name
CHAIN_ID_SN_MAIN = "0x534e5f4d41494e"
CHAIN_ID_SN_SEPOLIA = "0x534e5f5345504f4c4941"

SEPOLIA_EXPLORER_URL = "https://sepolia.starkscan.co"
MAINNET_EXPLORER_URL = "https://starkscan.co"

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert STARK_FIELD_PRIME.bit_length() == STARK_FIELD_BITS, "Unexpected prime width"
    assert SECRET_BYTES * 8 >= STARK_FIELD_BITS, "Secret draw narrower than field"
    assert HASH_OUTPUT_BITS >= STARK_FIELD_BITS, "Digest narrower than field"
    assert HASH_FUNCTION in ["SHA256"], "Invalid hash function"
    assert len(FELT_SEPARATOR) == 1, "Separator must be a single character"
    assert DEFAULT_HASH_ENCODING in HASH_ENCODINGS, "Invalid default encoding"
    assert LENGTH_PREFIX_BYTES in (2, 4, 8), "Invalid length prefix width"

    return True


# Auto-validate on import
validate_config()
