"""
TRIAS Client

This module provides a client for TRIAS (VDV 431) public transit information services.
Includes request building, HTTP transport and a streaming decoder for TRIAS responses.

Example:
    from trias_client import TriasClient, InitialInput

    response = TriasClient().location_information(InitialInput.name("Stuttgart Hauptbahnhof"))
    if response:
        for location in response.payloads:
            print(location.stop_point_name, location.latitude, location.longitude)

Responses that were fetched some other way can be decoded directly:

    from trias_client import decode, LocationInformationResponse

    response = decode(raw_bytes, LocationInformationResponse)
"""

from .api_client import TriasClient
from .coordinate import Coordinate
from .decoder import decode
from .errors import (
    DecodeError,
    EncodingFailure,
    MalformedDocument,
    MissingValue,
    TriasError,
    TypeMismatch,
    UnknownKey,
)
from .location import LocationInformationResponse, LocationResult
from .schema import DeliveryPayload, ScopedKey, TriasResponse
from .trias_request import InitialInput, LocationInformationRequest, Restrictions

__all__ = [
    'TriasClient', 'Coordinate', 'decode',
    'TriasError', 'DecodeError', 'EncodingFailure', 'MalformedDocument',
    'MissingValue', 'TypeMismatch', 'UnknownKey',
    'LocationInformationResponse', 'LocationResult',
    'DeliveryPayload', 'ScopedKey', 'TriasResponse',
    'InitialInput', 'LocationInformationRequest', 'Restrictions',
]
