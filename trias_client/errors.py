class TriasError(Exception):
    """
    Base class for errors raised while talking to the TRIAS service.
    """


class DecodeError(TriasError):
    """
    Raised when a response document cannot be decoded cleanly.

    The decoder attaches whatever it had accumulated so far as
    ``partial_response``. It is there for diagnostics only; callers should
    treat a failed decode as "no response".
    """

    def __init__(self, message=""):
        super().__init__(message)
        self.partial_response = None


class EncodingFailure(DecodeError):
    """The raw bytes are not valid UTF-8 text."""


class MalformedDocument(DecodeError):
    """The XML tokenizer reported a syntax error."""

    def __init__(self, cause):
        super().__init__(f"Malformed response document: {cause}")
        self.cause = cause


class UnknownKey(DecodeError):
    """A value was assigned to a key the payload does not declare."""

    def __init__(self, key):
        super().__init__(f"Unknown property key: {key}")
        self.key = key


class TypeMismatch(DecodeError):
    """A textual value could not be converted to the field's type."""

    def __init__(self, key, value):
        super().__init__(f"Value {value!r} for {key} has the wrong type")
        self.key = key
        self.value = value


class MissingValue(DecodeError):
    """A required value (record, observer entry, token...) is not there."""
