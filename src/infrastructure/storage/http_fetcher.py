from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass
class HttpImageFetcher:
    """Downloads source images for `input` operations of type `url`."""

    timeout: float = 10.0
    max_bytes: int = 25 * 1024 * 1024

    def fetch(self, url: str) -> bytes:
        with httpx.stream("GET", url, timeout=self.timeout, follow_redirects=True) as response:
            response.raise_for_status()
            chunks = []
            received = 0
            for chunk in response.iter_bytes():
                received += len(chunk)
                if received > self.max_bytes:
                    raise ValueError(f"Input image at {url} exceeds {self.max_bytes} bytes")
                chunks.append(chunk)
        return b"".join(chunks)
