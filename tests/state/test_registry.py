from __future__ import annotations

import pytest

from batchsettle.state import AdminAuthorizationError, HandlerRegistry
from batchsettle.state.canonical import canonical_address, canonical_json_bytes, domain_sep_bytes

ADMIN = "0x" + "ad" * 20
OTHER = "0x" + "0e" * 20
HANDLER = "0x" + "a1" * 20


class TestHandlerRegistry:
    def test_admin_toggles_whitelist(self):
        registry = HandlerRegistry(admin=ADMIN)
        registry.set_whitelisted(ADMIN, HANDLER, True)
        assert registry.is_whitelisted(HANDLER)
        assert registry.whitelisted() == [HANDLER]

        registry.set_whitelisted(ADMIN, HANDLER, False)
        assert not registry.is_whitelisted(HANDLER)
        assert registry.whitelisted() == []

    def test_handler_address_is_canonicalized(self):
        registry = HandlerRegistry(admin=ADMIN)
        registry.set_whitelisted(ADMIN, "A1" * 20, True)
        assert registry.is_whitelisted(HANDLER)

    def test_non_admin_rejected(self):
        registry = HandlerRegistry(admin=ADMIN)
        with pytest.raises(AdminAuthorizationError):
            registry.set_whitelisted(OTHER, HANDLER, True)
        assert not registry.is_whitelisted(HANDLER)

    def test_allowed_must_be_bool(self):
        registry = HandlerRegistry(admin=ADMIN)
        with pytest.raises(TypeError):
            registry.set_whitelisted(ADMIN, HANDLER, 1)

    def test_transfer_admin(self):
        registry = HandlerRegistry(admin=ADMIN)
        registry.transfer_admin(ADMIN, OTHER)
        registry.set_whitelisted(OTHER, HANDLER, True)
        with pytest.raises(AdminAuthorizationError):
            registry.set_whitelisted(ADMIN, HANDLER, False)


class TestCanonical:
    def test_address_forms(self):
        assert canonical_address("0X" + "AB" * 20) == "0x" + "ab" * 20
        assert canonical_address(" " + "ab" * 20 + " ") == "0x" + "ab" * 20

    @pytest.mark.parametrize("bad", ["0x" + "ab" * 19, "0x" + "zz" * 20, ""])
    def test_bad_addresses(self, bad):
        with pytest.raises(ValueError):
            canonical_address(bad)

    def test_non_string_address(self):
        with pytest.raises(TypeError):
            canonical_address(123)

    def test_json_is_key_sorted_and_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'

    def test_floats_rejected(self):
        with pytest.raises(TypeError, match="floats"):
            canonical_json_bytes({"amount": 1.5})

    def test_domain_separator(self):
        assert domain_sep_bytes("batch") == b"batchsettle:batch:v1\x00"
        with pytest.raises(ValueError):
            domain_sep_bytes("bad\x00label")
