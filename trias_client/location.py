"""
Schemas for the LocationInformationRequest response.
"""

from dataclasses import dataclass

from .errors import TypeMismatch, UnknownKey
from .schema import DeliveryPayload, ScopedKey, TriasResponse


def _to_float(key, value):
    # float() would also take "4_2" or non-ASCII digits.
    if "_" in value or not value.isascii():
        raise TypeMismatch(key, value)
    try:
        return float(value)
    except ValueError:
        raise TypeMismatch(key, value) from None


def _to_bool(key, value):
    if value == "true":
        return True
    if value == "false":
        return False
    raise TypeMismatch(key, value)


@dataclass
class LocationResult(DeliveryPayload):
    """A single location (usually a stop) matching the request."""

    element_name = "trias:LocationResult"

    STOP_POINT_NAME = ScopedKey("trias:StopPointName", "trias:Text")
    LOCATION_NAME = ScopedKey("trias:LocationName", "trias:Text")

    property_keys = frozenset([
        "trias:StopPointRef",
        STOP_POINT_NAME,
        "trias:LocalityRef",
        LOCATION_NAME,
        "trias:Longitude",
        "trias:Latitude",
        "trias:Complete",
        "trias:Probability",
    ])

    stop_point_ref: str = ""
    stop_point_name: str = ""
    locality_ref: str = ""
    location_name: str = ""
    longitude: float = 0.0
    latitude: float = 0.0
    complete: bool = False
    probability: float = 0.0

    def set_value(self, key, value):
        if key == "trias:StopPointRef":
            self.stop_point_ref = value
        elif key == self.STOP_POINT_NAME:
            self.stop_point_name = value
        elif key == "trias:LocalityRef":
            self.locality_ref = value
        elif key == self.LOCATION_NAME:
            self.location_name = value
        elif key == "trias:Longitude":
            self.longitude = _to_float(key, value)
        elif key == "trias:Latitude":
            self.latitude = _to_float(key, value)
        elif key == "trias:Complete":
            self.complete = _to_bool(key, value)
        elif key == "trias:Probability":
            self.probability = _to_float(key, value)
        else:
            raise UnknownKey(key)

    def __str__(self):
        name = self.stop_point_name or self.location_name
        return f"LocationResult({self.stop_point_ref}, {name}, {self.latitude}, {self.longitude})"


@dataclass
class LocationInformationResponse(TriasResponse):
    """Response to a LocationInformationRequest."""

    payload_type = LocationResult
