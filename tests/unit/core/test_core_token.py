"""
TransactionTokenEncoder tests

This module checks token payloads per mode, IPv6 handling, the shared
counter and the once-only cipher initialization.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from dspolicy.core.enums import TransInfoType
from dspolicy.core.models import HttpRequest
from dspolicy.core.token import TokenContext, TransactionTokenEncoder, decode_payload


def request(client_ip: str) -> HttpRequest:
    return HttpRequest(hostname="cdn.video.example.com", path="/", client_ip=client_ip)


def decode(context: TokenContext, token: str):
    assert token.startswith("t0=")
    return decode_payload(context.decrypt_from_url(token[3:]))


class TestModes:
    """Per-mode tests"""

    def test_none_mode_issues_no_token(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.NONE, token_context)
        assert encoder.encode(request("192.0.2.10")) is None

    def test_ip_mode_carries_ipv4_bytes(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP, token_context)

        token = encoder.encode(request("192.0.2.10"))

        ip_bytes, millis, tid = decode(token_context, token)
        assert ip_bytes == bytes([192, 0, 2, 10])
        assert millis is None and tid is None

    def test_ip_mode_rejects_ipv6(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP, token_context)
        assert encoder.encode(request("2001:db8::1")) is None

    def test_ipv4_mapped_ipv6_counts_as_ipv4(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP, token_context)

        token = encoder.encode(request("::ffff:198.51.100.7"))

        assert decode(token_context, token)[0] == bytes([198, 51, 100, 7])

    def test_ip_tid_mode_stamps_time_and_id(self):
        context = TokenContext(clock=lambda: 1700000000.5, initial_tid=41)
        encoder = TransactionTokenEncoder(TransInfoType.IP_TID, context)

        token = encoder.encode(request("192.0.2.10"))

        ip_bytes, millis, tid = decode(context, token)
        assert ip_bytes == bytes([192, 0, 2, 10])
        assert millis == 1700000000500
        assert tid == 42

    def test_ip_tid_mode_uses_placeholder_for_ipv6(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP_TID, token_context)

        token = encoder.encode(request("2001:db8::1"))

        assert decode(token_context, token)[0] == b"\x00\x00\x00\x00"

    def test_token_is_url_safe(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP_TID, token_context)

        token = encoder.encode(request("192.0.2.10"))

        assert all(c.isalnum() or c in "-_" for c in token[3:])


class TestFailures:
    """Failures never propagate"""

    def test_unparseable_client_ip(self, token_context):
        encoder = TransactionTokenEncoder(TransInfoType.IP, token_context)
        assert encoder.encode(request("not-an-ip")) is None

    def test_cipher_failure(self, token_context, monkeypatch):
        encoder = TransactionTokenEncoder(TransInfoType.IP, token_context)

        def broken(payload):
            raise RuntimeError("cipher unavailable")

        monkeypatch.setattr(token_context, "encrypt_for_url", broken)
        assert encoder.encode(request("192.0.2.10")) is None


class TestTokenContext:
    """Shared token resources"""

    def test_counter_increments(self):
        context = TokenContext()
        assert [context.next_tid() for _ in range(3)] == [1, 2, 3]

    def test_counter_wraps_at_32_bits(self):
        context = TokenContext(initial_tid=2**31 - 1)
        assert context.next_tid() == -(2**31)
        assert context.next_tid() == -(2**31) + 1

    def test_concurrent_counter_is_atomic(self):
        context = TokenContext()

        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(lambda _: context.next_tid(), range(2000)))

        assert sorted(ids) == list(range(1, 2001))

    def test_concurrent_cipher_created_once(self):
        context = TokenContext()
        barrier = threading.Barrier(8)

        def first_use():
            barrier.wait()
            return context.cipher()

        with ThreadPoolExecutor(max_workers=8) as pool:
            ciphers = list(pool.map(lambda _: first_use(), range(8)))

        assert all(c is ciphers[0] for c in ciphers)

    def test_foreign_token_is_rejected(self):
        from cryptography.fernet import InvalidToken

        with pytest.raises(InvalidToken):
            TokenContext().decrypt_from_url("Zm9yZWlnbg")
