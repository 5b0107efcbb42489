import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from xml.sax import SAXParseException

import pytest

from trias_client.decoder import decode
from trias_client.errors import (
    EncodingFailure,
    MalformedDocument,
    MissingValue,
    TypeMismatch,
    UnknownKey,
)
from trias_client.location import LocationInformationResponse, LocationResult
from trias_client.schema import DeliveryPayload, TriasResponse


def make_document(results, status="true", calc_time="42"):
    return """<?xml version="1.0" encoding="UTF-8"?>
<trias:Trias xmlns:siri="http://www.siri.org.uk/siri" xmlns:trias="http://www.vdv.de/trias" version="1.2">
  <trias:ServiceDelivery>
    <siri:ResponseTimestamp>2023-04-23T12:00:00Z</siri:ResponseTimestamp>
    <siri:ProducerRef>EFAController10.5.17.8-BW-WW33</siri:ProducerRef>
    <siri:Status>STATUS</siri:Status>
    <trias:Language>de</trias:Language>
    <trias:CalcTime>CALC_TIME</trias:CalcTime>
    <trias:DeliveryPayload>
      <trias:LocationInformationResponse>
RESULTS
      </trias:LocationInformationResponse>
    </trias:DeliveryPayload>
  </trias:ServiceDelivery>
</trias:Trias>
""".replace("STATUS", status).replace("CALC_TIME", calc_time).replace("RESULTS", results)


STOP_RESULT = """
<trias:LocationResult>
  <trias:Location>
    <trias:StopPoint>
      <trias:StopPointRef>de:08111:6118</trias:StopPointRef>
      <trias:StopPointName>
        <trias:Text>Stuttgart Hauptbahnhof (tief)</trias:Text>
        <trias:Language>de</trias:Language>
      </trias:StopPointName>
      <trias:LocalityRef>8111000:52</trias:LocalityRef>
    </trias:StopPoint>
    <trias:LocationName>
      <trias:Text>Stuttgart</trias:Text>
      <trias:Language>de</trias:Language>
    </trias:LocationName>
    <trias:GeoPosition>
      <trias:Longitude>9.18166</trias:Longitude>
      <trias:Latitude>48.78418</trias:Latitude>
    </trias:GeoPosition>
  </trias:Location>
  <trias:Complete>true</trias:Complete>
  <trias:Probability>0.95</trias:Probability>
</trias:LocationResult>
"""


def result_with(longitude="9.1", latitude="48.7", extra=""):
    return f"""
<trias:LocationResult>
  <trias:Location>
    <trias:StopPoint><trias:StopPointRef>de:1</trias:StopPointRef></trias:StopPoint>
    {extra}
    <trias:GeoPosition>
      <trias:Longitude>{longitude}</trias:Longitude>
      <trias:Latitude>{latitude}</trias:Latitude>
    </trias:GeoPosition>
  </trias:Location>
  <trias:Complete>false</trias:Complete>
  <trias:Probability>0.5</trias:Probability>
</trias:LocationResult>
"""


def test_decode_full_response():
    response = decode(make_document(STOP_RESULT).encode("utf-8"), LocationInformationResponse)

    assert isinstance(response, LocationInformationResponse)
    assert response.timestamp == "2023-04-23T12:00:00Z"
    assert response.reference == "EFAController10.5.17.8-BW-WW33"
    assert response.status is True
    assert response.language == "de"
    assert response.calc_time == 42

    assert len(response.payloads) == 1
    location = response.payloads[0]
    assert location == LocationResult(
        stop_point_ref="de:08111:6118",
        stop_point_name="Stuttgart Hauptbahnhof (tief)",
        locality_ref="8111000:52",
        location_name="Stuttgart",
        longitude=9.18166,
        latitude=48.78418,
        complete=True,
        probability=0.95,
    )


def test_decode_accepts_text():
    response = decode(make_document(STOP_RESULT), LocationInformationResponse)
    assert response.payloads[0].stop_point_ref == "de:08111:6118"


def test_decode_without_results():
    response = decode(make_document(""), LocationInformationResponse)
    assert response.status is True
    assert response.payloads == []


def test_reused_text_tag_is_assigned_by_parent():
    first = """
<trias:LocationResult>
  <trias:Location>
    <trias:StopPoint>
      <trias:StopPointName><trias:Text>A</trias:Text></trias:StopPointName>
    </trias:StopPoint>
  </trias:Location>
</trias:LocationResult>
"""
    second = """
<trias:LocationResult>
  <trias:Location>
    <trias:LocationName><trias:Text>B</trias:Text></trias:LocationName>
  </trias:Location>
</trias:LocationResult>
"""
    response = decode(make_document(first + second), LocationInformationResponse)

    assert response.status is True
    assert response.calc_time == 42
    assert [p.stop_point_name for p in response.payloads] == ["A", ""]
    assert [p.location_name for p in response.payloads] == ["", "B"]


def test_text_outside_observed_parents_is_ignored():
    result = """
<trias:LocationResult>
  <trias:Location>
    <trias:Address><trias:Text>Somewhere</trias:Text></trias:Address>
  </trias:Location>
</trias:LocationResult>
"""
    response = decode(make_document(result), LocationInformationResponse)
    assert response.payloads[0].stop_point_name == ""
    assert response.payloads[0].location_name == ""


def test_payload_order_follows_document():
    first = """
<trias:LocationResult>
  <trias:Probability>0.1</trias:Probability>
  <trias:Location><trias:StopPoint><trias:StopPointRef>first</trias:StopPointRef></trias:StopPoint></trias:Location>
</trias:LocationResult>
"""
    second = """
<trias:LocationResult>
  <trias:Location><trias:StopPoint><trias:StopPointRef>second</trias:StopPointRef></trias:StopPoint></trias:Location>
  <trias:Probability>0.2</trias:Probability>
</trias:LocationResult>
"""
    response = decode(make_document(first + second + STOP_RESULT), LocationInformationResponse)

    assert [p.stop_point_ref for p in response.payloads] == ["first", "second", "de:08111:6118"]
    assert [p.probability for p in response.payloads] == [0.1, 0.2, 0.95]


def test_type_mismatch_keeps_consuming_document():
    document = make_document(result_with(longitude="east") + result_with(longitude="9.5", latitude="48.5"))

    with pytest.raises(TypeMismatch) as excinfo:
        decode(document, LocationInformationResponse)

    error = excinfo.value
    assert error.key == "trias:Longitude"
    assert error.value == "east"

    partial = error.partial_response
    assert partial.calc_time == 42
    assert len(partial.payloads) == 2
    assert partial.payloads[0].longitude == 0.0
    assert partial.payloads[1].longitude == 9.5
    assert partial.payloads[1].latitude == 48.5


def test_only_first_error_is_reported():
    document = make_document(result_with(longitude="east") + result_with(latitude="north"))

    with pytest.raises(TypeMismatch) as excinfo:
        decode(document, LocationInformationResponse)

    assert excinfo.value.key == "trias:Longitude"


def test_field_outside_container_is_missing_value():
    document = make_document("<trias:StopPointRef>de:1</trias:StopPointRef>" + STOP_RESULT)

    with pytest.raises(MissingValue) as excinfo:
        decode(document, LocationInformationResponse)

    assert len(excinfo.value.partial_response.payloads) == 1


def test_malformed_document_never_succeeds():
    document = make_document(STOP_RESULT + "<trias:LocationResult><trias:Complete>true</trias:Probability>")

    with pytest.raises(MalformedDocument) as excinfo:
        decode(document, LocationInformationResponse)

    assert isinstance(excinfo.value.cause, SAXParseException)


def test_truncated_document_never_succeeds():
    document = make_document(STOP_RESULT)
    truncated = document[:document.index("</trias:DeliveryPayload>")]

    with pytest.raises(MalformedDocument):
        decode(truncated, LocationInformationResponse)


def test_empty_input_is_malformed():
    with pytest.raises(MalformedDocument):
        decode(b"", LocationInformationResponse)


def test_invalid_utf8_is_encoding_failure():
    raw = make_document(STOP_RESULT).encode("utf-8").replace(b"Stuttgart", b"Stuttg\xe4rt")

    with pytest.raises(EncodingFailure) as excinfo:
        decode(raw, LocationInformationResponse)

    assert excinfo.value.partial_response is None


def test_calc_time_defaults_to_zero():
    response = decode(make_document(STOP_RESULT, calc_time="not-a-number"), LocationInformationResponse)
    assert response.calc_time == 0
    assert len(response.payloads) == 1


def test_status_is_true_only_for_literal_true():
    response = decode(make_document("", status="TRUE"), LocationInformationResponse)
    assert response.status is False


def test_decoding_twice_gives_equal_results():
    raw = make_document(STOP_RESULT + result_with()).encode("utf-8")

    first = decode(raw, LocationInformationResponse)
    second = decode(raw, LocationInformationResponse)

    assert first == second
    assert first is not second
    assert first.payloads[0] is not second.payloads[0]


def test_concurrent_decodes_do_not_interfere():
    documents = [make_document(result_with(longitude=str(i))) for i in range(8)]

    with ThreadPoolExecutor(max_workers=4) as executor:
        responses = list(executor.map(lambda d: decode(d, LocationInformationResponse), documents))

    assert [r.payloads[0].longitude for r in responses] == [float(i) for i in range(8)]


@dataclass
class DeclaredButUnhandled(DeliveryPayload):
    element_name = "trias:LocationResult"
    property_keys = frozenset(["trias:StopPointRef", "trias:Probability"])

    stop_point_ref: str = ""

    def set_value(self, key, value):
        if key == "trias:StopPointRef":
            self.stop_point_ref = value
        else:
            raise UnknownKey(key)


@dataclass
class DeclaredButUnhandledResponse(TriasResponse):
    payload_type = DeclaredButUnhandled


def test_unknown_key_from_payload_is_reported():
    with pytest.raises(UnknownKey) as excinfo:
        decode(make_document(STOP_RESULT), DeclaredButUnhandledResponse)

    assert excinfo.value.key == "trias:Probability"
    assert excinfo.value.partial_response.payloads[0].stop_point_ref == "de:08111:6118"


@dataclass
class TextualKeyResult(DeliveryPayload):
    element_name = "trias:LocationResult"
    property_keys = frozenset(["trias:StopPointName>trias:Text", "trias:LocationName>trias:Text"])

    stop_point_name: str = ""
    location_name: str = ""

    def set_value(self, key, value):
        if key == "trias:StopPointName>trias:Text":
            self.stop_point_name = value
        elif key == "trias:LocationName>trias:Text":
            self.location_name = value
        else:
            raise UnknownKey(key)


@dataclass
class TextualKeyResponse(TriasResponse):
    payload_type = TextualKeyResult


def test_textual_composite_keys_are_resolved():
    response = decode(make_document(STOP_RESULT), TextualKeyResponse)

    assert response.payloads == [
        TextualKeyResult(stop_point_name="Stuttgart Hauptbahnhof (tief)", location_name="Stuttgart")
    ]


def test_calc_time_with_digit_grouping_defaults_to_zero():
    response = decode(make_document("", calc_time="4_2"), LocationInformationResponse)
    assert response.calc_time == 0


def test_soft_error_is_logged(caplog):
    with caplog.at_level(logging.WARNING):
        with pytest.raises(TypeMismatch):
            decode(make_document(result_with(longitude="east")), LocationInformationResponse)

    assert "could not be decoded cleanly" in caplog.text
