"""
Upload sources for multipart media requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

import requests

from .errors import UploadFetchError

__all__ = [
    "UploadForm",
    "UploadOption",
    "new_upload_form",
    "with_extra_field",
    "with_resource_url",
]


@dataclass(frozen=True)
class UploadForm:
    """
    One binary attachment plus auxiliary text fields.

    The content comes from ``resource_url`` when set, otherwise from the local
    file ``file_name``.
    """

    field_name: str
    file_name: str
    resource_url: Optional[str] = None
    extra_fields: Mapping[str, str] = field(default_factory=dict)

    def buffer(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        if self.resource_url:
            logging.debug("Fetching upload resource from %s", self.resource_url)
            getter = session.get if session is not None else requests.get
            try:
                response = getter(self.resource_url, timeout=timeout)
            except requests.RequestException as exc:
                raise UploadFetchError(
                    f"Fetching upload resource {self.resource_url} failed: {exc}"
                ) from exc
            if response.status_code != requests.codes.ok:
                raise UploadFetchError(
                    f"Upload resource {self.resource_url} responded with {response.status_code}",
                    status_code=response.status_code,
                )
            return response.content

        return Path(self.file_name).resolve().read_bytes()


@dataclass
class _UploadSpec:
    resource_url: Optional[str] = None
    extra_fields: Dict[str, str] = field(default_factory=dict)


UploadOption = Callable[[_UploadSpec], None]


def with_resource_url(url: str) -> UploadOption:
    def apply(spec: _UploadSpec) -> None:
        spec.resource_url = url

    return apply


def with_extra_field(key: str, value: str) -> UploadOption:
    def apply(spec: _UploadSpec) -> None:
        spec.extra_fields[key] = value

    return apply


def new_upload_form(field_name: str, file_name: str, *options: UploadOption) -> UploadForm:
    spec = _UploadSpec()
    for option in options:
        option(spec)
    return UploadForm(
        field_name=field_name,
        file_name=file_name,
        resource_url=spec.resource_url,
        extra_fields=dict(spec.extra_fields),
    )
