import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """
    Configuration class for the TRIAS client.
    This class loads configuration values from environment variables or uses default values.
    """
    # General configuration
    DEBUG = os.environ.get('DEBUG', 'False') == 'True'

    # Timezone the request timestamps are written in
    TIMEZONE = os.environ.get('TIMEZONE', 'Europe/Berlin')

    TRIAS_URL = os.environ.get('TRIAS_URL', 'https://efa-bw.de/trias')
    TRIAS_REQUESTOR_REF = os.environ.get('TRIAS_REQUESTOR_REF', '')
    # The EFA-BW endpoint expects requests pinned to one backend
    TRIAS_SERVER_COOKIE = os.environ.get('TRIAS_SERVER_COOKIE', 'ServerID=bw-ww33')
    REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', 30))
