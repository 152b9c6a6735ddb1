"""Notion API key check."""

from __future__ import annotations

from enum import Enum

import httpx

from docimport.config import ImportConfig
from docimport.errors import NotionAuthError, NotionError
from docimport.notion_api import NotionTransport, UserAPI
from docimport.observability import get_logger

log = get_logger("docimport.notion.validator")


class ValidateTokenResult(str, Enum):
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class TokenValidator:
    """Check an API key with one ``GET /users?page_size=1`` call.

    Parameters
    ----------
    config:
        Base configuration; the key under test replaces its token.
    http_transport:
        Optional :class:`httpx.BaseTransport` used instead of the network.
    """

    def __init__(
        self,
        config: ImportConfig | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or ImportConfig()
        self._http_transport = http_transport

    def validate(self, api_key: str) -> ValidateTokenResult:
        transport = NotionTransport(self._config.with_token(api_key), http_transport=self._http_transport)
        try:
            UserAPI(transport).list(page_size=1)
        except NotionAuthError:
            return ValidateTokenResult.UNAUTHORIZED
        except NotionError as exc:
            if exc.status_code == 401:
                return ValidateTokenResult.UNAUTHORIZED
            log.warning(
                "token validation failed",
                extra={"extra_fields": {"op": "validate_token", "code": str(exc.code), "error": str(exc)}},
            )
            return ValidateTokenResult.INTERNAL
        finally:
            transport.close()
        return ValidateTokenResult.OK
