"""Action submission for anonymous signals."""

from .explorer import get_explorer_base, tx_link
from .signaler import AnonymousSignaler, SignalConfig, SignalEvent
from .transport import ActionTransport, Call, DryRunTransport, build_call, parse_calldata_input

__all__ = [
    "ActionTransport",
    "AnonymousSignaler",
    "Call",
    "DryRunTransport",
    "SignalConfig",
    "SignalEvent",
    "build_call",
    "get_explorer_base",
    "parse_calldata_input",
    "tx_link",
]
