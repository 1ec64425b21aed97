"""Address to coordinates lookup against OpenStreetMap Nominatim.

``resolve`` either returns ``Coordinates`` or raises. An empty result set is
an ``AddressNotFoundError``; anything else that goes wrong (timeouts, HTTP
errors, garbage payloads) is a ``GeocodingProviderError`` naming the address.
"""
import logging

import requests

from cruiser.services.errors import AddressNotFoundError, GeocodingProviderError
from cruiser.services.models import Coordinates

logger = logging.getLogger(__name__)

geocoder = None


class NominatimGeocoder:

    def __init__(self, base_url, user_agent, timeout=10, session=None):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def resolve(self, address):
        address = (address or '').strip()
        if not address:
            raise AddressNotFoundError(address)

        headers = {'User-Agent': self.user_agent}
        params = {'q': address, 'format': 'json', 'limit': 1}
        try:
            response = self.session.get(self.base_url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Geocoding request failed for %r: %s", address, e)
            raise GeocodingProviderError(address, str(e)) from e

        if not isinstance(results, list):
            raise GeocodingProviderError(address, 'unexpected response payload')
        if not results:
            logger.info("No geocoding results for %r", address)
            raise AddressNotFoundError(address)

        first = results[0]
        try:
            return Coordinates(lat=float(first['lat']), lng=float(first['lon']))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingProviderError(address, f'malformed result: {e}') from e


def init_geocoder(app):
    global geocoder
    injected = app.config.get('GEOCODER')
    if injected is not None:
        geocoder = injected
        return
    geocoder = NominatimGeocoder(
        app.config['GEOCODER_URL'],
        app.config['GEOCODER_USER_AGENT'],
        timeout=app.config.get('GEOCODER_TIMEOUT', 10),
    )


def get_geocoder():
    return geocoder
