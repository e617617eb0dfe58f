"""Trip import: delimited text and location-history exports."""

from mileage_core.importer.dates import DATE_FORMATS, parse_trip_date, parse_timestamp_date
from mileage_core.importer.delimited import parse_delimited, parse_distance
from mileage_core.importer.kml import parse_kml
from mileage_core.importer.timeline import parse_timeline_json
from mileage_core.importer.normalizer import TripNormalizer, normalize, normalize_batch

__all__ = [
    "DATE_FORMATS",
    "parse_trip_date",
    "parse_timestamp_date",
    "parse_delimited",
    "parse_distance",
    "parse_kml",
    "parse_timeline_json",
    "TripNormalizer",
    "normalize",
    "normalize_batch",
]
