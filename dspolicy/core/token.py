"""
Transaction-info tokens for dspolicy.

Redirect URIs may carry a `t0=` parameter holding the client IPv4 address,
optionally stamped with the current time and a per-process request id,
encrypted so that only the CDN can read it back.
"""

import base64
import ipaddress
import struct
import threading
import time
from typing import Callable, Optional

from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .enums import TransInfoType
from .models import HttpRequest
from dspolicy.observability import metrics
from dspolicy.observability.logging_setup import get_logger

log = get_logger("dspolicy.token")

# Fixed key material shared by every router and the log processors that decode t0
_PASSPHRASE = b"HajUsyac7"
_SALT = b"traffic-router/t0"
_KDF_ITERATIONS = 100_000

IPV6_PLACEHOLDER = b"\x00\x00\x00\x00"

_INT32_SPAN = 1 << 32
_INT32_MIN = -(1 << 31)


def _wrap_int32(n: int) -> int:
    return ((n - _INT32_MIN) % _INT32_SPAN) + _INT32_MIN


class TokenContext:
    """
    Process-wide token resources: the cipher and the request-id counter.

    One instance is created at startup and handed to every policy. The
    cipher is derived on first use, exactly once.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time, initial_tid: int = 0):
        self._clock = clock
        self._cipher: Optional[Fernet] = None
        self._cipher_lock = threading.Lock()
        self._tid = _wrap_int32(initial_tid)
        self._tid_lock = threading.Lock()

    def cipher(self) -> Fernet:
        cipher = self._cipher
        if cipher is not None:
            return cipher
        with self._cipher_lock:
            if self._cipher is None:
                kdf = PBKDF2HMAC(
                    algorithm=hashes.SHA256(),
                    length=32,
                    salt=_SALT,
                    iterations=_KDF_ITERATIONS,
                )
                self._cipher = Fernet(base64.urlsafe_b64encode(kdf.derive(_PASSPHRASE)))
            return self._cipher

    def next_tid(self) -> int:
        """Increment and return the shared request id (signed 32-bit, wrapping)"""
        with self._tid_lock:
            self._tid = _wrap_int32(self._tid + 1)
            return self._tid

    def now_millis(self) -> int:
        return int(self._clock() * 1000)

    def encrypt_for_url(self, payload: bytes) -> str:
        return self.cipher().encrypt(payload).decode("ascii").rstrip("=")

    def decrypt_from_url(self, text: str) -> bytes:
        """
        Reverse `encrypt_for_url`.

        Raises:
            cryptography.fernet.InvalidToken: text was not produced by this key
        """
        padded = text + "=" * (-len(text) % 4)
        return self.cipher().decrypt(padded.encode("ascii"))


class TransactionTokenEncoder:
    """Builds the `t0=` query parameter for one delivery service"""

    def __init__(self, mode: TransInfoType, context: TokenContext):
        self.mode = mode
        self.context = context

    def encode(self, request: HttpRequest) -> Optional[str]:
        """
        Derive the transaction token for a request.

        Args:
            request: the client request

        Returns:
            "t0=<token>", or None when the mode is NONE, the address is not
            supported by the mode, or encoding failed
        """
        if self.mode is TransInfoType.NONE:
            return None

        try:
            ip_bytes = self._client_ip_bytes(request.client_ip)
            if ip_bytes is None:
                metrics.transaction_tokens.labels(mode=self.mode.value, outcome="unsupported").inc()
                return None
            token = "t0=" + self.context.encrypt_for_url(self._payload(ip_bytes))
        except Exception as e:
            metrics.transaction_tokens.labels(mode=self.mode.value, outcome="failed").inc()
            log.warning(f"transaction token failed client_ip:{request.client_ip} error:{e!r}")
            return None

        metrics.transaction_tokens.labels(mode=self.mode.value, outcome="issued").inc()
        return token

    def _client_ip_bytes(self, client_ip: str) -> Optional[bytes]:
        ip = ipaddress.ip_address(client_ip)
        if ip.version == 6 and ip.ipv4_mapped is not None:
            ip = ip.ipv4_mapped
        if ip.version == 4:
            return ip.packed
        if self.mode is TransInfoType.IP:
            return None
        return IPV6_PLACEHOLDER

    def _payload(self, ip_bytes: bytes) -> bytes:
        if self.mode is TransInfoType.IP_TID:
            return ip_bytes + struct.pack(">qi", self.context.now_millis(), self.context.next_tid())
        return ip_bytes


def decode_payload(payload: bytes):
    """
    Split a decrypted token payload.

    Returns:
        (ip_bytes, millis, tid); millis and tid are None for IP-only tokens
    """
    if len(payload) == 4:
        return payload, None, None
    millis, tid = struct.unpack(">qi", payload[4:16])
    return payload[:4], millis, tid
