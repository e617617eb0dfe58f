"""Trip import normalizer.

Single entry point turning an uploaded document into TripCandidates,
whatever its source:

- delimited-text: spreadsheet/CSV exports, one trip per row
- location-history: timeline JSON or KML, detected from the content

Normalization is stateless: the same input always yields the same
candidates, and nothing here touches the network or the clock.
"""

from datetime import date
from typing import Optional, Union

import structlog

from ..config import ImportConfig
from ..exceptions import ImportFormatError
from ..models import ImportBatch, SourceFormat, TripCandidate
from .delimited import parse_delimited
from .kml import parse_kml
from .timeline import parse_timeline_json

logger = structlog.get_logger()


def _coerce_format(source_format: Union[SourceFormat, str]) -> SourceFormat:
    if isinstance(source_format, SourceFormat):
        return source_format
    try:
        return SourceFormat(str(source_format).strip().lower())
    except ValueError as e:
        raise ImportFormatError(
            f"Unknown import format: {source_format}",
            source_format=str(source_format),
            details={"expected": [f.value for f in SourceFormat]},
        ) from e


def _decode(raw_content: Union[str, bytes]) -> str:
    if isinstance(raw_content, bytes):
        raw_content = raw_content.decode("utf-8-sig", errors="replace")
    return raw_content.lstrip("\ufeff")


class TripNormalizer:
    """
    Normalize trip documents into candidates.

    Location-history content is routed by its first significant character:
    '{' or '[' for JSON, '<' for KML/XML.
    """

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or ImportConfig()

    def normalize(
        self,
        raw_content: Union[str, bytes],
        source_format: Union[SourceFormat, str],
        *,
        fallback_date: Optional[date] = None,
    ) -> list[TripCandidate]:
        """
        Normalize a whole document.

        Args:
            raw_content: File content (bytes are decoded as UTF-8)
            source_format: "delimited-text" or "location-history"
            fallback_date: Date given to location-history trips that carry
                no timestamp; None leaves their date empty

        Returns:
            Candidates in document order

        Raises:
            ImportFormatError: for an unknown format name or location-history
                content that is neither JSON nor XML
        """
        fmt = _coerce_format(source_format)
        content = _decode(raw_content)

        if not content.strip():
            return []

        if fmt == SourceFormat.DELIMITED_TEXT:
            candidates = parse_delimited(content, delimiter=self.config.delimiter)
        else:
            candidates = self._normalize_location_history(content, fallback_date)

        logger.info(
            "import_normalized",
            format=fmt.value,
            total=len(candidates),
            valid=sum(1 for c in candidates if c.valid),
            invalid=sum(1 for c in candidates if not c.valid),
        )
        return candidates

    def normalize_batch(
        self,
        raw_content: Union[str, bytes],
        source_format: Union[SourceFormat, str],
        *,
        fallback_date: Optional[date] = None,
    ) -> ImportBatch:
        """Normalize a document and wrap the result with valid/invalid counts."""
        candidates = self.normalize(raw_content, source_format, fallback_date=fallback_date)
        return ImportBatch(
            source_format=_coerce_format(source_format),
            candidates=tuple(candidates),
        )

    def _normalize_location_history(
        self,
        content: str,
        fallback_date: Optional[date],
    ) -> list[TripCandidate]:
        head = content.lstrip()[:1]
        if head in ("{", "["):
            return parse_timeline_json(
                content, config=self.config, fallback_date=fallback_date
            )
        if head == "<":
            return parse_kml(content, fallback_date=fallback_date)

        raise ImportFormatError(
            "Location history must be a JSON or KML document",
            source_format=SourceFormat.LOCATION_HISTORY.value,
            sample=content.lstrip(),
        )


def normalize(
    raw_content: Union[str, bytes],
    source_format: Union[SourceFormat, str],
    *,
    fallback_date: Optional[date] = None,
    config: Optional[ImportConfig] = None,
) -> list[TripCandidate]:
    """Normalize a document with default (or given) import settings."""
    return TripNormalizer(config).normalize(
        raw_content, source_format, fallback_date=fallback_date
    )


def normalize_batch(
    raw_content: Union[str, bytes],
    source_format: Union[SourceFormat, str],
    *,
    fallback_date: Optional[date] = None,
    config: Optional[ImportConfig] = None,
) -> ImportBatch:
    """Like normalize(), returning an ImportBatch with counts."""
    return TripNormalizer(config).normalize_batch(
        raw_content, source_format, fallback_date=fallback_date
    )


__all__ = ["TripNormalizer", "normalize", "normalize_batch"]
