#!/usr/bin/env python3
import argparse
import logging
import sys
import os

# Add the parent directory to the path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from trias_client.api_client import TriasClient
from trias_client.coordinate import Coordinate
from trias_client.decoder import decode
from trias_client.errors import DecodeError
from trias_client.location import LocationInformationResponse
from trias_client.trias_request import InitialInput, Restrictions


def setup_logging(debug=False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def print_response(response):
    """Print the header and every location of a decoded response."""
    print(f"✅ Response from {response.reference or 'unknown producer'}:")
    print(f"  🕒 Timestamp: {response.timestamp}")
    print(f"  🌐 Language: {response.language}")
    print(f"  ⏱️ Calculation time: {response.calc_time} ms")

    if not response.payloads:
        print("❌ No locations found.")
        return

    print(f"\n📍 Found {len(response.payloads)} location(s):")
    for i, location in enumerate(response.payloads):
        name = location.stop_point_name or location.location_name or "Unnamed location"
        print(f"  {i+1}. {name} ({location.stop_point_ref or location.locality_ref})")
        print(f"     🌐 Latitude: {location.latitude}, Longitude: {location.longitude}")
        print(f"     Probability: {location.probability:.2f}{'' if location.complete else ' (incomplete)'}")


def lookup(initial_input, restrictions):
    """Send a location information request and print what comes back."""
    client = TriasClient()
    if not client.token:
        print("⚠️  TRIAS_REQUESTOR_REF is not set, the server will most likely reject the request")

    response = client.location_information(initial_input, restrictions)
    if response is None:
        print("❌ Location lookup failed, see log for details")
        return False
    if not response.status:
        print("⚠️  Server reported an unsuccessful status")

    print_response(response)
    return True


def decode_file(path):
    """Decode a saved TRIAS response document."""
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except FileNotFoundError:
        print(f"❌ Response file not found: {path}")
        return False

    try:
        response = decode(raw, LocationInformationResponse)
    except DecodeError as e:
        print(f"❌ Could not decode {path}: {e}")
        return False

    print_response(response)
    return True


def main():
    parser = argparse.ArgumentParser(
        description="TRIAS client CLI - look up stops and locations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search stops by name
  ./main_cli.py search "Stuttgart Hauptbahnhof"

  # Locations at a position
  ./main_cli.py position 48.7841 9.1817

  # Stops within 500 metres of a position
  ./main_cli.py nearby 48.7841 9.1817 --radius 500 --results 5

  # Decode a saved response document
  ./main_cli.py decode response.xml
        """
    )

    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    # Options shared by all lookups
    lookup_options = argparse.ArgumentParser(add_help=False)
    lookup_options.add_argument('--results', type=int, default=10, help='Maximum number of results')
    lookup_options.add_argument('--type', type=str, default='stop', help='Location type to restrict to')

    subparsers = parser.add_subparsers(dest='command', help='Sub-command help')

    search_parser = subparsers.add_parser('search', parents=[lookup_options], help='Search locations by name')
    search_parser.add_argument('name', type=str, help='Name to search for')

    position_parser = subparsers.add_parser('position', parents=[lookup_options], help='Locations at a position')
    position_parser.add_argument('lat', type=float, help='Latitude')
    position_parser.add_argument('lon', type=float, help='Longitude')

    nearby_parser = subparsers.add_parser('nearby', parents=[lookup_options], help='Locations within a radius')
    nearby_parser.add_argument('lat', type=float, help='Latitude of the center')
    nearby_parser.add_argument('lon', type=float, help='Longitude of the center')
    nearby_parser.add_argument('--radius', type=float, default=500, help='Radius in metres')

    decode_parser = subparsers.add_parser('decode', help='Decode a saved response document')
    decode_parser.add_argument('response_file', type=str, help='XML file with a TRIAS response')

    args = parser.parse_args()
    setup_logging(args.debug)

    if args.command == 'decode':
        ok = decode_file(args.response_file)
    elif args.command in ('search', 'position', 'nearby'):
        restrictions = Restrictions(type=args.type, number_of_results=args.results)
        if args.command == 'search':
            initial_input = InitialInput.name(args.name)
        elif args.command == 'position':
            initial_input = InitialInput.position(Coordinate(args.lat, args.lon))
        else:
            initial_input = InitialInput.radius(args.radius, Coordinate(args.lat, args.lon))
        ok = lookup(initial_input, restrictions)
    else:
        parser.print_help()
        ok = True

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
