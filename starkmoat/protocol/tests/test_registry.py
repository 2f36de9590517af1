"""
⚠️ DRAFT — requires crypto review before production use

Unit tests for the group-root registry.
"""

import threading

import pytest

from starkmoat.protocol.exceptions import (
    FeltError,
    InvalidRoot,
    NoOpRoot,
    RegistryAlreadyInitialized,
    RegistryError,
    RegistryNotInitialized,
    Unauthorized,
)
from starkmoat.protocol.registry import InMemoryEventLog, RootRegistry

ADMIN = "0xadmin"
OTHER = "0xmallory"


@pytest.fixture
def events():
    return InMemoryEventLog()


@pytest.fixture
def registry(events):
    reg = RootRegistry(events=events)
    reg.initialize(0x11, caller=ADMIN)
    return reg


class TestInitialize:
    def test_initialize_sets_admin_and_root(self):
        reg = RootRegistry()
        assert reg.initialize(0x11, caller=ADMIN) == ADMIN
        assert reg.is_initialized
        assert reg.get_admin() == ADMIN
        assert reg.get_current_root() == 0x11
        assert reg.is_root_accepted(0x11)
        assert reg.accepted_roots() == frozenset({0x11})

    def test_initialize_accepts_hex_string(self):
        reg = RootRegistry()
        reg.initialize("0x11", caller=ADMIN)
        assert reg.get_current_root() == 0x11

    def test_initialize_zero_root_rejected(self):
        reg = RootRegistry()
        with pytest.raises(InvalidRoot):
            reg.initialize(0, caller=ADMIN)
        assert not reg.is_initialized
        assert reg.get_current_root() == 0

    def test_initialize_twice_rejected(self, registry):
        with pytest.raises(RegistryAlreadyInitialized):
            registry.initialize(0x22, caller=OTHER)
        assert registry.get_admin() == ADMIN
        assert registry.get_current_root() == 0x11

    def test_initialize_empty_caller_rejected(self):
        reg = RootRegistry()
        with pytest.raises(ValueError):
            reg.initialize(0x11, caller="")
        assert not reg.is_initialized

    def test_initialize_out_of_range_root(self):
        reg = RootRegistry()
        with pytest.raises(FeltError):
            reg.initialize(2**252, caller=ADMIN)

    def test_initialize_emits_transition(self, registry, events):
        [transition] = events.transitions()
        assert transition.previous_root == 0
        assert transition.new_root == 0x11
        assert transition.updated_by == ADMIN


class TestReadsBeforeInitialize:
    def test_defaults(self):
        reg = RootRegistry()
        assert reg.get_current_root() == 0
        assert reg.get_admin() is None
        assert reg.accepted_roots() == frozenset()
        assert reg.history() == []

    def test_zero_never_accepted(self):
        assert RootRegistry().is_root_accepted(0) is False

    def test_set_root_before_initialize(self):
        with pytest.raises(RegistryNotInitialized):
            RootRegistry().set_root(ADMIN, 0x22)


class TestSetRoot:
    def test_rotation_keeps_history(self, registry):
        registry.set_root(ADMIN, 0x22)
        assert registry.get_current_root() == 0x22
        assert registry.is_root_accepted(0x11)
        assert registry.is_root_accepted(0x22)

    def test_history_is_append_only(self, registry):
        roots = [0x22, 0x33, 0x44, 0x55]
        for root in roots:
            before = registry.accepted_roots()
            registry.set_root(ADMIN, root)
            assert before < registry.accepted_roots()
        assert registry.accepted_roots() == frozenset({0x11, *roots})

    def test_unauthorized(self, registry):
        with pytest.raises(Unauthorized):
            registry.set_root(OTHER, 0x22)
        assert registry.get_current_root() == 0x11
        assert not registry.is_root_accepted(0x22)

    def test_zero_root(self, registry):
        with pytest.raises(InvalidRoot):
            registry.set_root(ADMIN, 0)
        assert registry.get_current_root() == 0x11

    def test_noop_root(self, registry):
        with pytest.raises(NoOpRoot):
            registry.set_root(ADMIN, 0x11)

    def test_unauthorized_checked_before_root(self, registry):
        with pytest.raises(Unauthorized):
            registry.set_root(OTHER, 0)
        with pytest.raises(Unauthorized):
            registry.set_root(OTHER, 0x11)

    def test_invalid_checked_before_noop(self):
        reg = RootRegistry()
        reg.initialize(0x11, caller=ADMIN)
        with pytest.raises(InvalidRoot):
            reg.set_root(ADMIN, 0)

    def test_reaccept_historical_root(self, registry):
        registry.set_root(ADMIN, 0x22)
        registry.set_root(ADMIN, 0x11)
        assert registry.get_current_root() == 0x11
        assert registry.accepted_roots() == frozenset({0x11, 0x22})

    def test_failed_calls_emit_nothing(self, registry, events):
        for caller, root in ((OTHER, 0x22), (ADMIN, 0), (ADMIN, 0x11)):
            with pytest.raises(RegistryError):
                registry.set_root(caller, root)
        assert len(events.transitions()) == 1

    def test_transition_records(self, registry, events):
        registry.set_root(ADMIN, 0x22)
        registry.set_root(ADMIN, 0x33)
        pairs = [(t.previous_root, t.new_root) for t in events.transitions()]
        assert pairs == [(0, 0x11), (0x11, 0x22), (0x22, 0x33)]
        assert registry.history() == events.transitions()

    def test_transition_to_dict_uses_hex(self, registry):
        registry.set_root(ADMIN, 0x22)
        record = registry.history()[-1].to_dict()
        assert record["previous_root"] == "0x11"
        assert record["new_root"] == "0x22"
        assert record["updated_by"] == ADMIN

    def test_concurrent_rotations_serialize(self, registry):
        roots = list(range(0x100, 0x140))
        errors = []

        def rotate(root):
            try:
                registry.set_root(ADMIN, root)
            except RegistryError as e:
                errors.append(e)

        threads = [threading.Thread(target=rotate, args=(r,)) for r in roots]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert registry.accepted_roots() == frozenset({0x11, *roots})
        assert registry.get_current_root() in roots
        assert len(registry.history()) == len(roots) + 1


class TestIsRootAccepted:
    def test_never_accepted(self, registry):
        assert registry.is_root_accepted(0x99) is False

    def test_malformed_input(self, registry):
        assert registry.is_root_accepted("not-hex") is False
        assert registry.is_root_accepted(-1) is False

    def test_hex_string_lookup(self, registry):
        assert registry.is_root_accepted("0x11")
        assert registry.is_root_accepted("0X11")
