"""External routing and reverse-geocoding providers."""

from .routing import GoogleDirectionsProvider, RoutingProvider, parse_directions
from .geocoding import (
    AddressComponent,
    GoogleReverseGeocoder,
    NameResolver,
    NominatimReverseGeocoder,
    create_name_resolver,
)

__all__ = [
    "GoogleDirectionsProvider",
    "RoutingProvider",
    "parse_directions",
    "AddressComponent",
    "GoogleReverseGeocoder",
    "NameResolver",
    "NominatimReverseGeocoder",
    "create_name_resolver",
]
