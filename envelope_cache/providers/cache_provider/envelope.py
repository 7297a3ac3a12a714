"""
Envelope Codec

Packs a value plus write-time metadata into the bytes stored in Redis and
unpacks them on the way back.

Wire format:
    compress(json({"item": ..., "stored": <ms since epoch>, "ttl": <ms>}))

Every write is compressed; there is no size threshold and no format
discriminator. The default codec is the LZ4 frame format.
"""

import json
import time
import zlib
from typing import Any, Callable, Dict, Optional

import lz4.frame

from envelope_cache.logs import TimingCollector
from .base import Envelope
from .exceptions import CacheConfigError, CorruptEnvelopeError, EncodeError


class Lz4Compressor:
    """LZ4 frame compression."""

    name = "lz4"

    def compress(self, data: bytes) -> bytes:
        return lz4.frame.compress(data)

    def decompress(self, data: bytes) -> bytes:
        return lz4.frame.decompress(data)


class ZlibCompressor:
    """zlib (deflate) compression."""

    name = "zlib"

    def __init__(self, level: int = 6):
        self.level = level

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self.level)

    def decompress(self, data: bytes) -> bytes:
        return zlib.decompress(data)


COMPRESSORS: Dict[str, Callable[[], Any]] = {
    "lz4": Lz4Compressor,
    "zlib": ZlibCompressor,
}


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class EnvelopeCodec:
    """
    Encode values into envelopes and decode them back

    Args:
        compression: Compressor name registered in COMPRESSORS
        timing_collector: Optional collector receiving compress/decompress timings
        clock: Millisecond clock used to stamp ``stored``
    """

    def __init__(
        self,
        compression: str = "lz4",
        timing_collector: Optional[TimingCollector] = None,
        clock: Callable[[], int] = now_ms,
    ):
        if compression not in COMPRESSORS:
            raise CacheConfigError(
                f"Unsupported compression codec: '{compression}'",
                {"supported": ", ".join(COMPRESSORS)},
            )

        self.compressor = COMPRESSORS[compression]()
        self.timing_collector = timing_collector
        self.clock = clock

    def encode(self, value: Any, ttl: int) -> bytes:
        """
        Pack a value into compressed envelope bytes

        Args:
            value: JSON-representable value
            ttl: Expiration in milliseconds, recorded in the envelope

        Returns:
            Compressed envelope bytes

        Raises:
            EncodeError: If serialization or compression fails
        """
        envelope = {"item": value, "stored": self.clock(), "ttl": ttl}

        try:
            serialized = json.dumps(envelope, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as e:
            raise EncodeError(f"Failed to serialize envelope: {e}") from e

        start = time.perf_counter()
        try:
            compressed = self.compressor.compress(serialized)
        except Exception as e:
            raise EncodeError(
                f"Failed to compress envelope: {e}",
                {"codec": self.compressor.name},
            ) from e

        if self.timing_collector is not None:
            self.timing_collector.record(
                "compress",
                time.perf_counter() - start,
                codec=self.compressor.name,
                uncompressed_bytes=len(serialized),
                compressed_bytes=len(compressed),
                ratio=round(len(compressed) / len(serialized), 4),
            )

        return compressed

    def decode(self, data: Optional[bytes]) -> Optional[Envelope]:
        """
        Unpack and validate envelope bytes

        Args:
            data: Bytes read from the store, or None

        Returns:
            The Envelope, or None when ``data`` is absent or empty (cache miss)

        Raises:
            CorruptEnvelopeError: If decompression, parsing or validation fails
        """
        if not data:
            return None

        start = time.perf_counter()
        try:
            decompressed = self.compressor.decompress(bytes(data))
        except Exception as e:
            raise CorruptEnvelopeError(
                "Bad envelope content",
                {"codec": self.compressor.name, "error": str(e)},
            ) from e

        if self.timing_collector is not None:
            self.timing_collector.record(
                "decompress",
                time.perf_counter() - start,
                codec=self.compressor.name,
                compressed_bytes=len(data),
                uncompressed_bytes=len(decompressed),
            )

        try:
            parsed = json.loads(decompressed)
        except (ValueError, RecursionError) as e:
            raise CorruptEnvelopeError("Bad envelope content", {"error": str(e)}) from e

        if (
            not isinstance(parsed, dict)
            or "item" not in parsed
            or not isinstance(parsed.get("stored"), int)
            or isinstance(parsed["stored"], bool)
        ):
            raise CorruptEnvelopeError("Incorrect envelope structure")

        return Envelope(item=parsed["item"], stored=parsed["stored"], ttl=parsed.get("ttl"))
