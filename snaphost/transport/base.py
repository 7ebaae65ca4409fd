from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


# (filename, content, content_type) as accepted by multipart uploads
FilePart = Tuple[str, bytes, str]


@dataclass(frozen=True)
class HttpResponse:
    """
    Transport-neutral view of a successful HTTP response.
    """
    status: int
    reason: str
    content: bytes

    def json(self) -> Any:
        """Parse the body as JSON (raises ValueError on malformed bodies)."""
        return json.loads(self.content.decode("utf-8"))


class HttpTransport(ABC):
    """
    Abstract HTTP transport bound to one machine base URL.

    Contract:
      - get()/post() issue exactly one independent request (no retries).
      - A 200 response is returned as HttpResponse.
      - Any other status raises TransportStatusError.
      - Connection / timeout failures raise TransportIOError.
      - Requests are not cancellable once issued; they are bounded only by
        the transport timeout.
    """

    base_url: str

    @abstractmethod
    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> HttpResponse: ...

    @abstractmethod
    def post(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, FilePart]] = None,
    ) -> HttpResponse: ...

    def close(self) -> None:
        return None

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
