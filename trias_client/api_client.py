import requests
import logging
import datetime
import pytz
from .config import Config
from .decoder import decode
from .errors import DecodeError, MissingValue
from .trias_request import LocationInformationRequest, Restrictions

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class TriasClient:
    """
    Client for the TRIAS public transit API.

    A client stamps every request it sends with the moment it was created,
    so create a fresh client per request rather than keeping one around.
    """

    def __init__(self, token=None, url=None):
        """
        Initialize the API client.
        """
        self.token = token or Config.TRIAS_REQUESTOR_REF
        self.url = url or Config.TRIAS_URL
        self.timezone = pytz.timezone(Config.TIMEZONE)
        self.timestamp = datetime.datetime.now(self.timezone).strftime(TIMESTAMP_FORMAT)

        self.headers = {"Content-Type": "application/xml"}
        if Config.TRIAS_SERVER_COOKIE:
            self.headers["Cookie"] = Config.TRIAS_SERVER_COOKIE

    def timestamp_as_datetime(self):
        """
        Returns the request timestamp as a timezone-aware datetime.
        """
        naive = datetime.datetime.strptime(self.timestamp, TIMESTAMP_FORMAT)
        return self.timezone.localize(naive)

    def request(self, trias_request):
        """
        Sends a TRIAS request and decodes the answer into the request's response type.

        Returns None if the request could not be sent, the server did not answer
        with 200, or the response document could not be decoded. A response that
        failed to decode is never returned partially.
        """
        trias_request.token = self.token
        trias_request.timestamp = self.timestamp

        try:
            payload = trias_request.payload()
        except MissingValue as e:
            logging.error("Could not build TRIAS request: %s", e)
            return None

        logging.info("Sending %s to %s", type(trias_request).__name__, self.url)
        logging.debug("Request payload: %s", payload)

        try:
            response = requests.post(
                self.url,
                data=payload,
                headers=self.headers,
                timeout=Config.REQUEST_TIMEOUT
            )
        except requests.exceptions.Timeout:
            logging.error("Timeout connecting to TRIAS endpoint %s", self.url)
            return None
        except requests.exceptions.RequestException as e:
            logging.error("Request to TRIAS endpoint %s failed: %s", self.url, e)
            return None

        if response.status_code != 200:
            logging.error("TRIAS request failed with %s: %s", response.status_code, response.text[:200])
            return None

        try:
            result = decode(response.content, trias_request.response_type)
        except DecodeError as e:
            logging.error("Could not decode TRIAS response: %s", e)
            return None

        logging.info("Received %d result(s), calculated in %s ms", len(result.payloads), result.calc_time)
        return result

    def location_information(self, initial_input, restrictions=None):
        """
        Looks up locations for a name, position or area.
        """
        return self.request(LocationInformationRequest(initial_input, restrictions or Restrictions()))
