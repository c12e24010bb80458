"""
Tests for the vault facade: save/load, tamper detection and error contract.
"""

import base64
import hashlib
import hmac
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date

import pytest

from signvault import local_binary_vault, local_json_vault
from signvault.error_handling import (
    DeserializationError,
    ErrorKind,
    InvalidSignatureError,
    MalformedDocumentError,
    NotFoundError,
    SerializationError,
)
from signvault.storage.backends import InMemoryStorageBackend
from signvault.vault import BinaryVault, SignedJsonVault

from conftest import SECRET, RandomData


@dataclass
class Record:
    id: uuid.UUID


PAYLOAD = b'{"randomString":"abc123XYZ9","randomNumber":42,"randomDate":"2020-01-01"}'


def _expected_signature(payload: bytes, secret: str = SECRET) -> str:
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestReferenceScenario:
    """The documented save/load scenario with a fixed secret and object."""

    @pytest.fixture
    def data(self):
        return {"randomString": "abc123XYZ9", "randomNumber": 42, "randomDate": "2020-01-01"}

    def test_save_writes_signed_document(self, temp_dir, data):
        vault = local_json_vault(temp_dir, SECRET)
        vault.save(data, "testfile")

        stored = (temp_dir / "testfile.json").read_bytes()
        signature = _expected_signature(PAYLOAD)
        assert stored == PAYLOAD[:-1] + b',"signature":"' + signature.encode() + b'"}'

    def test_load_with_same_secret(self, temp_dir, data):
        vault = local_json_vault(temp_dir, SECRET)
        vault.save(data, "testfile")
        assert vault.load("testfile") == data

    def test_load_with_wrong_secret(self, temp_dir, data):
        local_json_vault(temp_dir, SECRET).save(data, "testfile")
        with pytest.raises(InvalidSignatureError):
            local_json_vault(temp_dir, "wrongSecret").load("testfile")

    def test_load_hand_written_artifact(self, temp_dir, data):
        artifact = PAYLOAD[:-1] + b',"signature":"' + _expected_signature(PAYLOAD).encode() + b'"}'
        (temp_dir / "external.json").write_bytes(artifact)
        assert local_json_vault(temp_dir, SECRET).load("external") == data


class TestSignedJsonVault:
    """Save/load behavior on the local filesystem."""

    def test_round_trip_typed(self, local_vault, random_data):
        local_vault.save(random_data, "testfile")
        loaded = local_vault.load("testfile")
        assert loaded == random_data
        assert isinstance(loaded.random_date, date)

    def test_save_creates_file(self, local_vault, random_data, temp_dir):
        location = local_vault.save(random_data, "testfile")
        assert location == str(temp_dir / "testfile.json")
        assert (temp_dir / "testfile.json").exists()
        assert local_vault.exists("testfile")

    def test_signature_field_is_last(self, local_vault, random_data, temp_dir):
        local_vault.save(random_data, "testfile")
        stored = (temp_dir / "testfile.json").read_bytes()
        assert stored.startswith(b'{"random_string":"abc123XYZ9"')
        assert b',"signature":"' in stored
        assert stored.endswith(b'"}')

    def test_save_overwrites(self, local_vault, random_data):
        local_vault.save(random_data, "testfile")
        updated = RandomData("other", 7, date(1999, 12, 31))
        local_vault.save(updated, "testfile")
        assert local_vault.load("testfile") == updated

    def test_atomic_write_leaves_no_temp_files(self, local_vault, random_data, temp_dir):
        local_vault.save(random_data, "testfile")
        assert [p.name for p in temp_dir.iterdir()] == ["testfile.json"]

    def test_delete(self, local_vault, random_data):
        local_vault.save(random_data, "testfile")
        assert local_vault.delete("testfile")
        assert not local_vault.exists("testfile")
        assert not local_vault.delete("testfile")

    def test_custom_extension(self, temp_dir):
        vault = local_json_vault(temp_dir, SECRET, extension=".vault")
        vault.save({"a": 1}, "settings")
        assert (temp_dir / "settings.vault").exists()


class TestLoadErrors:
    """Every failure surfaces as its own error kind."""

    def test_missing_artifact(self, local_vault):
        with pytest.raises(NotFoundError):
            local_vault.load("nonexistent")

    def test_missing_artifact_is_file_not_found(self, local_vault):
        with pytest.raises(FileNotFoundError):
            local_vault.load("nonexistent")

    def test_malformed_artifact(self, local_vault, temp_dir):
        (temp_dir / "broken.json").write_bytes(b"{this is not json")
        with pytest.raises(MalformedDocumentError):
            local_vault.load("broken")

    def test_missing_signature(self, local_vault, temp_dir):
        (temp_dir / "unsigned.json").write_bytes(PAYLOAD)
        with pytest.raises(InvalidSignatureError):
            local_vault.load("unsigned")

    @pytest.mark.parametrize("signature", [b'""', b'"!!not-base64!!"', b"123", b"null"])
    def test_bad_signature_values(self, local_vault, temp_dir, signature):
        (temp_dir / "bad.json").write_bytes(PAYLOAD[:-1] + b',"signature":' + signature + b"}")
        with pytest.raises(InvalidSignatureError):
            local_vault.load("bad")

    def test_modified_signature(self, temp_dir):
        tag = bytearray(hmac.new(SECRET.encode(), PAYLOAD, hashlib.sha256).digest())
        tag[0] = (tag[0] + 1) % 256
        signature = base64.b64encode(bytes(tag))
        (temp_dir / "forged.json").write_bytes(PAYLOAD[:-1] + b',"signature":"' + signature + b'"}')
        with pytest.raises(InvalidSignatureError):
            local_json_vault(temp_dir, SECRET).load("forged")

    def test_tampered_value(self, local_vault, random_data, temp_dir):
        local_vault.save(random_data, "testfile")
        path = temp_dir / "testfile.json"
        path.write_bytes(path.read_bytes().replace(b"abc123XYZ9", b"abc123XYZ8"))
        with pytest.raises(InvalidSignatureError):
            local_vault.load("testfile")

    def test_tampered_number(self, local_vault, random_data, temp_dir):
        local_vault.save(random_data, "testfile")
        path = temp_dir / "testfile.json"
        path.write_bytes(path.read_bytes().replace(b":42,", b":43,"))
        with pytest.raises(InvalidSignatureError):
            local_vault.load("testfile")

    def test_reordered_fields(self, temp_dir):
        vault = local_json_vault(temp_dir, SECRET)
        vault.save({"a": 1, "b": 2}, "doc")
        path = temp_dir / "doc.json"
        path.write_bytes(path.read_bytes().replace(b'"a":1,"b":2', b'"b":2,"a":1'))
        with pytest.raises(InvalidSignatureError):
            vault.load("doc")

    def test_whitespace_change_rejected_when_strict(self, local_vault, random_data, temp_dir):
        local_vault.save(random_data, "testfile")
        path = temp_dir / "testfile.json"
        path.write_bytes(path.read_bytes().replace(b'"random_number":42', b'"random_number": 42'))
        with pytest.raises(InvalidSignatureError, match="canonical"):
            local_vault.load("testfile")

    def test_whitespace_change_accepted_when_not_strict(self, filesystem_storage, random_data, temp_dir):
        vault = SignedJsonVault(
            filesystem_storage, SECRET, target_type=RandomData, strict_canonical=False
        )
        vault.save(random_data, "testfile")
        path = temp_dir / "testfile.json"
        path.write_bytes(path.read_bytes().replace(b'"random_number":42', b'"random_number": 42'))
        assert vault.load("testfile") == random_data

    def test_shape_mismatch(self, temp_dir):
        local_json_vault(temp_dir, SECRET).save({"unexpected": True}, "doc")
        with pytest.raises(DeserializationError):
            local_json_vault(temp_dir, SECRET, target_type=RandomData).load("doc")

    def test_uuid_field_mismatch(self, memory_storage):
        SignedJsonVault(memory_storage, SECRET).save({"id": 5}, "doc")
        with pytest.raises(DeserializationError):
            SignedJsonVault(memory_storage, SECRET, target_type=Record).load("doc")


class TestSaveErrors:
    """Failures on the save path."""

    def test_unsupported_type(self, local_vault):
        with pytest.raises(SerializationError):
            local_vault.save({"items": {1, 2}}, "doc")

    def test_cyclic_reference(self, local_vault):
        cyclic = {}
        cyclic["self"] = cyclic
        with pytest.raises(SerializationError):
            local_vault.save(cyclic, "doc")

    def test_non_object_data(self, local_vault):
        with pytest.raises(SerializationError):
            local_vault.save("just a string", "doc")

    @pytest.mark.parametrize(
        "data",
        [
            {"x": float("nan")},
            {"x": float("inf")},
            {"nested": {"values": [1.0, float("-inf")]}},
            {"matrix": [[0.0, 1.0], [float("nan"), 2.0]]},
        ],
    )
    def test_non_finite_float_not_stored(self, local_vault, temp_dir, data):
        with pytest.raises(SerializationError):
            local_vault.save(data, "doc")
        assert not (temp_dir / "doc.json").exists()

    def test_reserved_field_in_data(self, local_vault, temp_dir):
        with pytest.raises(SerializationError, match="reserved"):
            local_vault.save({"signature": "mine"}, "doc")
        assert not (temp_dir / "doc.json").exists()

    @pytest.mark.parametrize("filename", ["", "testfile.json", None])
    def test_invalid_filename(self, local_vault, random_data, filename):
        with pytest.raises(ValueError):
            local_vault.save(random_data, filename)

    def test_empty_secret(self, memory_storage):
        with pytest.raises(ValueError):
            SignedJsonVault(memory_storage, "")


class TestResultVariants:
    """try_save / try_load return VaultResult values."""

    def test_try_load_success(self, local_vault, random_data):
        assert local_vault.try_save(random_data, "testfile").ok
        result = local_vault.try_load("testfile")
        assert result.ok
        assert result.kind is None
        assert result.unwrap() == random_data

    def test_try_load_not_found(self, local_vault):
        result = local_vault.try_load("missing")
        assert not result.ok
        assert result.kind is ErrorKind.NOT_FOUND
        with pytest.raises(NotFoundError):
            result.unwrap()

    def test_try_load_invalid_signature(self, temp_dir):
        local_json_vault(temp_dir, SECRET).save({"a": 1}, "doc")
        result = local_json_vault(temp_dir, "wrongSecret").try_load("doc")
        assert result.kind is ErrorKind.INVALID_SIGNATURE

    def test_try_save_serialization_error(self, local_vault):
        result = local_vault.try_save({"items": {1}}, "doc")
        assert result.kind is ErrorKind.SERIALIZATION


class TestConcurrency:
    """Independent calls share nothing but the secret."""

    def test_parallel_saves_and_loads(self, local_vault):
        items = {f"item{i}": RandomData(f"s{i}", i, date(2020, 1, 1 + i % 28)) for i in range(32)}

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda kv: local_vault.save(kv[1], kv[0]), items.items()))
            loaded = dict(zip(items, pool.map(local_vault.load, items)))

        assert loaded == items

    def test_same_name_last_writer_wins(self, local_vault):
        values = [RandomData("v", i, date(2020, 1, 1)) for i in range(16)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda v: local_vault.save(v, "shared"), values))
        assert local_vault.load("shared") in values


class TestBinaryVault:
    """Unsigned compact binary vault."""

    def test_round_trip_local(self, temp_dir, random_data):
        vault = local_binary_vault(temp_dir, RandomData)
        vault.save(random_data, "testfile")
        assert (temp_dir / "testfile.bin").exists()
        assert vault.load("testfile") == random_data

    def test_custom_extension(self, memory_storage, random_data):
        vault = BinaryVault(memory_storage, extension="proto")
        vault.save(random_data, "testfile")
        assert memory_storage.exists("testfile.proto")

    def test_missing_artifact(self, memory_storage):
        with pytest.raises(NotFoundError):
            BinaryVault(memory_storage).load("missing")

    def test_corrupt_artifact(self, memory_storage):
        memory_storage.write("broken.bin", b"definitely not blosc2 data")
        with pytest.raises(DeserializationError):
            BinaryVault(memory_storage).load("broken")

    def test_wrong_type(self, memory_storage):
        BinaryVault(memory_storage).save({"a": 1}, "doc")
        with pytest.raises(DeserializationError):
            BinaryVault(memory_storage, target_type=RandomData).load("doc")

    def test_context_manager_closes_storage(self, random_data):
        storage = InMemoryStorageBackend()
        with BinaryVault(storage) as vault:
            vault.save(random_data, "doc")
        assert storage.exists("doc.bin")
