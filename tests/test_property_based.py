"""
Property-Based Tests for signvault
==================================

Uses Hypothesis to generate random documents and verify invariants:
1. Vault round-trip: save(doc) -> load() returns an equal document
2. Canonical bytes are deterministic and stable under re-parsing
3. Field editing: adding then removing a field restores the document
4. Tamper detection: any single-byte change of a stored artifact is rejected
5. Secret sensitivity: a different secret never verifies
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from signvault.documents import (
    SIGNATURE_FIELD,
    canonical_bytes,
    parse_document,
    with_field,
    without_field,
)
from signvault.error_handling import InvalidSignatureError, MalformedDocumentError
from signvault.storage.backends import InMemoryStorageBackend
from signvault.vault import BinaryVault, SignedJsonVault

# =============================================================================
# Hypothesis Strategies
# =============================================================================

text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)), min_size=0, max_size=40
)

json_scalars = st.one_of(
    text,
    st.integers(min_value=-(2**53), max_value=2**53),
    st.floats(allow_nan=False, allow_infinity=False),
    st.booleans(),
    st.none(),
)

field_names = text.filter(lambda k: k != SIGNATURE_FIELD)

json_values = st.recursive(
    json_scalars,
    lambda children: st.one_of(
        st.lists(children, max_size=5),
        st.dictionaries(field_names, children, max_size=5),
    ),
    max_leaves=20,
)

documents = st.dictionaries(field_names, json_values, max_size=8)

secrets = st.one_of(
    st.binary(min_size=1, max_size=64),
    text.filter(bool),
)

property_settings = settings(
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


def _vault(secret="mySecret"):
    return SignedJsonVault(InMemoryStorageBackend(), secret)


# =============================================================================
# Properties
# =============================================================================


class TestVaultProperties:
    """Save/load invariants over arbitrary documents."""

    @given(doc=documents, secret=secrets)
    @property_settings
    def test_round_trip(self, doc, secret):
        vault = _vault(secret)
        vault.save(doc, "doc")
        assert vault.load("doc") == doc

    @given(doc=documents)
    @property_settings
    def test_stored_bytes_end_with_signature(self, doc):
        vault = _vault()
        vault.save(doc, "doc")
        stored = parse_document(vault.storage.read("doc.json"))
        assert list(stored)[-1] == SIGNATURE_FIELD
        assert without_field(stored, SIGNATURE_FIELD) == doc

    @given(doc=documents, data=st.data())
    @property_settings
    def test_single_byte_change_rejected(self, doc, data):
        vault = _vault()
        vault.save(doc, "doc")
        stored = bytearray(vault.storage.read("doc.json"))

        index = data.draw(st.integers(min_value=0, max_value=len(stored) - 1))
        replacement = data.draw(
            st.integers(min_value=0, max_value=255).filter(lambda b: b != stored[index])
        )
        stored[index] = replacement
        vault.storage.write("doc.json", bytes(stored))

        with pytest.raises((InvalidSignatureError, MalformedDocumentError)):
            vault.load("doc")

    @given(doc=documents, secret=secrets, other=secrets)
    @property_settings
    def test_other_secret_rejected(self, doc, secret, other):
        secret_bytes = secret.encode() if isinstance(secret, str) else secret
        other_bytes = other.encode() if isinstance(other, str) else other
        if secret_bytes == other_bytes:
            return

        storage = InMemoryStorageBackend()
        SignedJsonVault(storage, secret).save(doc, "doc")
        with pytest.raises(InvalidSignatureError):
            SignedJsonVault(storage, other).load("doc")

    @given(doc=documents)
    @property_settings
    def test_binary_round_trip(self, doc):
        vault = BinaryVault(InMemoryStorageBackend())
        vault.save(doc, "doc")
        assert vault.load("doc") == doc


class TestDocumentProperties:
    """Canonical encoding and field editing invariants."""

    @given(doc=documents)
    @property_settings
    def test_canonical_bytes_stable(self, doc):
        data = canonical_bytes(doc)
        assert canonical_bytes(doc) == data
        assert canonical_bytes(parse_document(data)) == data

    @given(doc=documents, value=json_values)
    @property_settings
    def test_add_then_remove_restores(self, doc, value):
        edited = with_field(doc, SIGNATURE_FIELD, value)
        assert list(edited)[-1] == SIGNATURE_FIELD
        assert canonical_bytes(without_field(edited, SIGNATURE_FIELD)) == canonical_bytes(doc)

    @given(doc=documents, name=field_names.filter(bool), value=json_values)
    @property_settings
    def test_with_field_idempotent(self, doc, name, value):
        once = with_field(doc, name, value)
        assert with_field(once, name, value) == once
        assert list(with_field(once, name, value)) == list(once)
