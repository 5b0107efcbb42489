"""
Streaming decoder for TRIAS response documents.

The decoder is a small state machine driven by SAX events. Every event has
a transition function below that takes the explicit ``DecodeState`` of one
decode call; ``_DecodeHandler`` merely forwards the events coming out of
``xml.sax`` to them. That keeps the state machine testable with synthetic
event sequences, no XML text needed.

Errors come in two flavours. Soft errors (unknown key, type mismatch,
missing value) are recorded and the document is consumed to its end.
Hard errors (the tokenizer choking on malformed XML) stop the parser
immediately. Either way only the first error is reported.
"""

import logging
import re
import xml.sax
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Set, Type, Union
from xml.sax.handler import ContentHandler, ErrorHandler, feature_namespaces

from .errors import DecodeError, EncodingFailure, MalformedDocument, MissingValue
from .observer import build_observer_table, declared_keys, parents_of
from .schema import DeliveryPayload, PropertyKey, ScopedKey, TriasResponse

ENCODING = "utf-8"

INTEGER = re.compile(r"^[+-]?[0-9]+$")


def _parse_status(text):
    return text == "true"


def _parse_calc_time(text):
    # int() would also take "4_2" or non-ASCII digits.
    if not INTEGER.match(text):
        return 0
    return int(text)


# Header tags every TRIAS response carries: tag -> (attribute, converter).
SCALAR_FIELDS = {
    "siri:ResponseTimestamp": ("timestamp", str),
    "siri:ProducerRef": ("reference", str),
    "siri:Status": ("status", _parse_status),
    "trias:Language": ("language", str),
    "trias:CalcTime": ("calc_time", _parse_calc_time),
}


@dataclass
class DecodeState:
    """Everything one decode call knows about the document so far."""

    response_type: Type[TriasResponse]
    response: Optional[TriasResponse] = None
    current_element: str = ""
    active_parent: Optional[str] = None
    text_buffer: str = ""
    in_progress: Optional[DeliveryPayload] = None
    observers: FrozenSet[ScopedKey] = frozenset()
    observer_parents: Set[str] = field(default_factory=set)
    # normalized key -> key as declared by the payload
    property_keys: Dict[PropertyKey, PropertyKey] = field(default_factory=dict)
    first_error: Optional[DecodeError] = None
    aborted: bool = False

    def __post_init__(self):
        if self.response is None:
            self.response = self.response_type.empty_instance()

    @property
    def payload_type(self) -> Type[DeliveryPayload]:
        return self.response_type.payload_type


def record_error(state: DecodeState, error: DecodeError) -> None:
    """Keep ``error`` unless an earlier one was already recorded."""
    if state.first_error is None:
        logging.warning("Response could not be decoded cleanly: %s", error)
        state.first_error = error
    else:
        logging.debug("Ignoring subsequent decode error: %s", error)


def start_document(state: DecodeState) -> None:
    state.property_keys = declared_keys(state.payload_type.property_keys)
    state.observers = build_observer_table(state.property_keys)
    state.observer_parents = parents_of(state.observers)


def open_element(state: DecodeState, name: str) -> None:
    state.current_element = name
    state.text_buffer = ""

    if name in state.observer_parents:
        state.active_parent = name

    # Containers do not nest, a second open simply starts over.
    if name == state.payload_type.element_name:
        state.in_progress = state.payload_type.empty_instance()


def append_text(state: DecodeState, text: str) -> None:
    # Trim per chunk: whitespace between nested tags must not leak into values.
    state.text_buffer += text.strip()


def resolve_key(state: DecodeState, name: str) -> PropertyKey:
    """
    Return the key the closing element ``name`` maps to.

    Inside an observed parent the key is scoped by that parent, provided
    ``name`` is one of its declared children. Otherwise it's the bare tag.
    """
    if state.active_parent is None:
        return name

    # open_element only activates observed parents; this guards states built by hand.
    if state.active_parent not in state.observer_parents:
        record_error(state, MissingValue(f"No observer registered for {state.active_parent}"))
        return name

    key = ScopedKey(state.active_parent, name)
    if key in state.observers:
        return key
    return name


def _assign_field(state: DecodeState, name: str) -> None:
    payload_type = state.payload_type
    key = resolve_key(state, name)

    # Not every closing tag is a tracked field.
    declared = state.property_keys.get(key)
    if declared is None:
        return

    if state.in_progress is None:
        record_error(state, MissingValue(f"{key} found outside of {payload_type.element_name}"))
        return

    try:
        state.in_progress.set_value(declared, state.text_buffer)
    except DecodeError as error:
        record_error(state, error)


def close_element(state: DecodeState, name: str) -> None:
    scalar = SCALAR_FIELDS.get(name)

    if scalar is not None:
        attribute, convert = scalar
        setattr(state.response, attribute, convert(state.text_buffer))
    elif name == state.payload_type.element_name:
        if state.in_progress is not None:
            state.response.payloads.append(state.in_progress)
            state.in_progress = None
    else:
        _assign_field(state, name)

    if name == state.active_parent:
        state.active_parent = None


def abort_on_parse_error(state: DecodeState, cause: Exception) -> None:
    logging.error("Aborting decode, malformed document: %s", cause)
    record_error(state, MalformedDocument(cause))
    state.aborted = True


def end_document(state: DecodeState) -> TriasResponse:
    """
    Finish the decode: return the response, or raise the first recorded error.
    """
    if state.first_error is not None:
        error = state.first_error
        error.partial_response = state.response
        raise error
    return state.response


class _DecodeHandler(ContentHandler, ErrorHandler):
    """Forwards xml.sax callbacks to the transition functions."""

    def __init__(self, state: DecodeState):
        ContentHandler.__init__(self)
        self.state = state

    def startDocument(self):
        start_document(self.state)

    def startElement(self, name, attrs):
        open_element(self.state, name)

    def characters(self, content):
        append_text(self.state, content)

    def endElement(self, name):
        close_element(self.state, name)

    def endDocument(self):
        logging.debug("Reached end of document, %d payload(s) decoded",
                      len(self.state.response.payloads))

    def error(self, exception):
        self.fatalError(exception)

    def fatalError(self, exception):
        abort_on_parse_error(self.state, exception)
        # Raising stops the parser, no further events are delivered.
        raise exception

    def warning(self, exception):
        logging.warning("XML parser warning: %s", exception)


def decode(raw: Union[bytes, str], response_type: Type[TriasResponse]) -> TriasResponse:
    """
    Decode a TRIAS response document into an instance of ``response_type``.

    Args:
        raw: The response body as received, or text that was already decoded.
        response_type: The TriasResponse subclass describing the document.

    Returns:
        A fully populated response.

    Raises:
        EncodingFailure: if ``raw`` is not valid UTF-8.
        MalformedDocument: if the XML is not well-formed.
        UnknownKey, TypeMismatch, MissingValue: if a field could not be assigned.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode(ENCODING)
        except UnicodeDecodeError as e:
            raise EncodingFailure(f"Response is not valid {ENCODING} text: {e}") from e
    else:
        text = raw

    state = DecodeState(response_type)
    handler = _DecodeHandler(state)

    parser = xml.sax.make_parser()
    parser.setFeature(feature_namespaces, False)
    parser.setContentHandler(handler)
    parser.setErrorHandler(handler)

    try:
        parser.feed(text)
        parser.close()
    except xml.sax.SAXParseException:
        if not state.aborted:
            raise

    return end_document(state)
