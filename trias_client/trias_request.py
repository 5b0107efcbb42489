"""
Request bodies for the TRIAS API.

Requests are plain string templates. The requestor token and the request
timestamp are not known when a request is built; the client injects them
right before sending.
"""

from typing import Optional
from xml.sax.saxutils import escape

from .coordinate import Coordinate
from .errors import MissingValue
from .location import LocationInformationResponse


class InitialInput:
    """
    What a LocationInformationRequest searches for: a name, a position,
    or every location within a circle.
    """

    def __init__(self, xml: str):
        self.xml = xml

    @classmethod
    def name(cls, name: str) -> "InitialInput":
        return cls(f"<LocationName>{escape(name)}</LocationName>")

    @classmethod
    def position(cls, coordinate: Coordinate) -> "InitialInput":
        return cls(
            "<GeoPosition>"
            f"<Longitude>{coordinate.lon}</Longitude>"
            f"<Latitude>{coordinate.lat}</Latitude>"
            "</GeoPosition>"
        )

    @classmethod
    def radius(cls, radius: float, center: Coordinate) -> "InitialInput":
        return cls(
            "<GeoRestriction><Circle><Center>"
            f"<Longitude>{center.lon}</Longitude>"
            f"<Latitude>{center.lat}</Latitude>"
            f"</Center><Radius>{radius}</Radius></Circle></GeoRestriction>"
        )

    def __str__(self):
        return self.xml


class Restrictions:
    def __init__(self, type: str = "stop", number_of_results: int = 10, include_pt_modes: bool = False):
        self.type = type
        self.number_of_results = number_of_results
        self.include_pt_modes = include_pt_modes

    @property
    def xml(self) -> str:
        return (
            f"<Type>{escape(self.type)}</Type>"
            f"<NumberOfResults>{self.number_of_results}</NumberOfResults>"
            f"<IncludePtModes>{str(self.include_pt_modes).lower()}</IncludePtModes>"
        )

    def __str__(self):
        return self.xml


class LocationInformationRequest:
    """
    Looks up stops and locations by name, position or area.
    """

    response_type = LocationInformationResponse

    def __init__(self, initial_input: InitialInput, restrictions: Optional[Restrictions] = None):
        self.initial_input = initial_input
        self.restrictions = restrictions or Restrictions()
        self.timestamp = None
        self.token = None

    def payload(self) -> bytes:
        """
        Render the request body.

        Raises:
            MissingValue: if the timestamp or the token have not been set.
        """
        if not self.timestamp or not self.token:
            raise MissingValue("Request timestamp and requestor token must be set before sending")

        payload = f"""<?xml version="1.0" encoding="utf-8" ?>
<Trias xmlns="http://www.vdv.de/trias" xmlns:siri="http://www.siri.org.uk/siri" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" version="1.2">
    <ServiceRequest>
        <siri:RequestTimestamp>{escape(self.timestamp)}</siri:RequestTimestamp>
        <siri:RequestorRef>{escape(self.token)}</siri:RequestorRef>
        <RequestPayload>
            <LocationInformationRequest>
                <InitialInput>
                    {self.initial_input.xml}
                </InitialInput>
                <Restrictions>
                    {self.restrictions.xml}
                </Restrictions>
            </LocationInformationRequest>
        </RequestPayload>
    </ServiceRequest>
</Trias>
"""
        return payload.encode("utf-8")
