"""Converter contract shared by every source format."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docimport.errors import ConvertError
from docimport.models import ImportRequest, Response
from docimport.progress import Progress


class Converter(ABC):
    """Turn one import request into snapshots.

    Implementations never raise for per-item failures; they collect them
    in the returned :class:`ConvertError` and consult ``request.mode`` at
    every item boundary.  :class:`~docimport.errors.CancelError` is the
    only exception expected to escape.
    """

    @abstractmethod
    def name(self) -> str:
        """Stable short identifier, e.g. ``"html"``."""

    @abstractmethod
    def get_snapshots(
        self,
        request: ImportRequest,
        progress: Progress,
    ) -> tuple[Response | None, ConvertError | None]:
        """Convert *request*.

        Returns
        -------
        tuple[Response | None, ConvertError | None]
            ``(None, None)`` when the request holds nothing this converter
            can use; ``(None, errors)`` when the mode required aborting;
            otherwise the (possibly partial) response and any errors.
        """
