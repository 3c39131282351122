# File: src/parkflow/main.py
"""
Main application entry point for the parking facility

Commands:
  demo          replay a check-in and a check-out ten minutes later
  availability  print free spots by size
  serve         run the HTTP API with uvicorn
"""

from typing import List, Optional
import argparse
import json
import sys

import uvicorn

from .config import AppConfig, load_config, setup_logging
from .domain.models import Receipt, VehicleFactory
from .infrastructure.clock import ManualClock
from .infrastructure.factories import FacilityFactory
from .presentation.api import create_app


def run_demo(config: AppConfig) -> Receipt:
    """Check in a car, let ten minutes pass, check it out by card"""
    clock = ManualClock()
    service = FacilityFactory().create_service(config, clock=clock)

    car = VehicleFactory.create_vehicle(
        "car", "ABC123", "Blue",
        fast_tag="FT123", model="Sedan", fuel_type="Petrol", car_type="SUV"
    )
    ticket = service.park_vehicle(car)
    print(f"Ticket issued: {ticket.id} (spot {ticket.spot.id}, floor {ticket.floor_number})")

    clock.advance(minutes=10)

    receipt = service.exit_vehicle(ticket.id, "CARD")
    print(json.dumps(receipt.to_dict(), indent=2))
    return receipt


def show_availability(config: AppConfig) -> None:
    service = FacilityFactory().create_service(config)
    print(service.availability().to_json(indent=2))


def serve(config: AppConfig, host: str, port: int) -> None:
    app = create_app(FacilityFactory().create_service(config))
    uvicorn.run(app, host=host, port=port, log_config=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='parkflow',
        description='Parking spot allocation and billing'
    )
    parser.add_argument('--config',
                        help='YAML configuration file (default: $PARKFLOW_CONFIG or built-in facility)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Override the configured log level')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('demo', help='Replay a sample check-in and check-out')
    commands.add_parser('availability', help='Print free spots by size')

    serve_parser = commands.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default='127.0.0.1')
    serve_parser.add_argument('--port', type=int, default=8000)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    logger = setup_logging(args.log_level or config.logging.level, config.logging.file)
    logger.info(f"Starting parkflow ({args.command}) for {config.facility.name}")

    if args.command == 'demo':
        run_demo(config)
    elif args.command == 'availability':
        show_availability(config)
    elif args.command == 'serve':
        serve(config, args.host, args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
