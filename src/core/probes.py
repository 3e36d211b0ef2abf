"""Authentication probes for the upstream document-AI endpoint.

The upstream API does not document which header carries the key, so each
probe describes one guess. The gateway walks :data:`DEFAULT_PROBES` in order
and moves to the next entry only after an HTTP 401.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple


@dataclass(frozen=True)
class EncodedFile:
    payload: str  # base64
    file_name: str
    file_type: str


@dataclass(frozen=True)
class ProbeCall:
    headers: Dict[str, str]
    body: Dict[str, Any]
    params: Dict[str, str]


HeadersBuilder = Callable[[str], Dict[str, str]]
BodyBuilder = Callable[[EncodedFile], Dict[str, Any]]
ParamsBuilder = Callable[[str], Dict[str, str]]


def _no_params(credential: str) -> Dict[str, str]:
    return {}


@dataclass(frozen=True)
class Probe:
    name: str
    headers: HeadersBuilder
    body: BodyBuilder
    params: ParamsBuilder = _no_params

    def build(self, credential: str, encoded: EncodedFile) -> ProbeCall:
        return ProbeCall(
            headers=self.headers(credential),
            body=self.body(encoded),
            params=self.params(credential),
        )


def image_upload_body(encoded: EncodedFile) -> Dict[str, Any]:
    return {
        "type": "file_upload",
        "images": [{"type": "base64", "value": encoded.payload}],
    }


def file_field_body(encoded: EncodedFile) -> Dict[str, Any]:
    return {
        "file": encoded.payload,
        "filename": encoded.file_name,
        "filetype": encoded.file_type,
    }


DEFAULT_PROBES: Tuple[Probe, ...] = (
    Probe("apikey-header", lambda key: {"apikey": key}, image_upload_body),
    Probe("bearer-token", lambda key: {"Authorization": f"Bearer {key}"}, image_upload_body),
    Probe("api-key-header", lambda key: {"API-Key": key}, image_upload_body),
    Probe("apikey-header-file-body", lambda key: {"apikey": key}, file_field_body),
    Probe("apikey-query", lambda key: {}, image_upload_body, lambda key: {"apikey": key}),
)
