"""ResponseDescriptor model - what the retry engine sees of one HTTP round trip"""

from dataclasses import dataclass, field
from email.message import Message
from typing import Mapping, Optional

from requests.structures import CaseInsensitiveDict

TOO_MANY_REQUESTS = 429


@dataclass
class ResponseDescriptor:
    """Status, headers and body of a single HTTP response"""

    status_code: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    url: Optional[str] = None
    reason: Optional[str] = None

    def __post_init__(self):
        # Header names are matched case-insensitively regardless of how the caller built them
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @classmethod
    def build(
        cls,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        url: Optional[str] = None,
    ) -> "ResponseDescriptor":
        return cls(status_code=status_code, headers=CaseInsensitiveDict(headers or {}), body=body, url=url)

    @property
    def is_rate_limited(self) -> bool:
        """Check if the server asked us to slow down"""
        return self.status_code == TOO_MANY_REQUESTS

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def retry_after(self) -> Optional[str]:
        """Raw Retry-After header value, if present"""
        return self.headers.get("Retry-After")

    @property
    def content_type(self) -> Optional[str]:
        """Media type without parameters, lowercased"""
        raw = self.headers.get("Content-Type")
        if not raw:
            return None
        media_type = raw.split(";", 1)[0].strip().lower()
        # get_content_type() reports text/plain for anything malformed
        if media_type.count("/") != 1:
            return None
        return _parse_content_type(raw).get_content_type()

    @property
    def charset(self) -> Optional[str]:
        """Charset parameter of the Content-Type header, if any"""
        raw = self.headers.get("Content-Type")
        if not raw:
            return None
        charset = _parse_content_type(raw).get_param("charset")
        if isinstance(charset, str) and charset:
            return charset.strip('"').lower()
        return None


def _parse_content_type(value: str) -> Message:
    message = Message()
    message["Content-Type"] = value
    return message
