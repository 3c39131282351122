#!/usr/bin/env python3
"""
Concurrency tests: many threads checking in and out against one facility.
"""

import threading
import unittest
from datetime import datetime

from parkflow.application.parking_service import ParkingService
from parkflow.domain.aggregates import ParkingFloor, ParkingLot
from parkflow.domain.exceptions import NoSpotAvailable, TicketAlreadyClosed
from parkflow.domain.models import Car, SpotSize, generate_spots
from parkflow.infrastructure.clock import ManualClock
from parkflow.infrastructure.display import RecordingDisplayBoard
from parkflow.infrastructure.payments import LoggingPaymentProcessor


def run_concurrently(target, count):
    """Start `count` threads on `target(index)` at the same moment"""
    barrier = threading.Barrier(count)
    results = [None] * count

    def worker(index):
        barrier.wait()
        try:
            results[index] = target(index)
        except Exception as e:
            results[index] = e

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


class ConcurrencyTestBase(unittest.TestCase):

    def build_service(self, *floor_mediums):
        self.board = RecordingDisplayBoard()
        floors = [
            ParkingFloor(number, generate_spots(number, medium=medium), display_board=self.board)
            for number, medium in enumerate(floor_mediums, start=1)
        ]
        self.payments = LoggingPaymentProcessor()
        return ParkingService(
            ParkingLot("Busy Lot", floors, display_board=self.board),
            clock=ManualClock(datetime(2024, 3, 1, 9, 0, 0)),
            payment_processor=self.payments
        )


class TestConcurrentCheckIn(ConcurrencyTestBase):

    def test_last_spot_goes_to_exactly_one_vehicle(self):
        service = self.build_service(1)

        results = run_concurrently(
            lambda i: service.park_vehicle(Car(f"CAR{i}", "Blue")), 20
        )

        tickets = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, NoSpotAvailable)]
        self.assertEqual(len(tickets), 1)
        self.assertEqual(len(rejected), 19)
        self.assertEqual(service.parking_lot.overall_availability()[SpotSize.MEDIUM], 0)

    def test_every_vehicle_gets_a_distinct_spot(self):
        service = self.build_service(25, 25)

        results = run_concurrently(
            lambda i: service.park_vehicle(Car(f"CAR{i}", "Blue")), 50
        )

        self.assertFalse([r for r in results if isinstance(r, Exception)])
        spot_ids = {ticket.spot.id for ticket in results}
        self.assertEqual(len(spot_ids), 50)
        for ticket in results:
            self.assertEqual(ticket.spot.vehicle.registration_number,
                             ticket.vehicle.registration_number)
        self.assertEqual(service.parking_lot.overall_availability()[SpotSize.MEDIUM], 0)


class TestConcurrentCheckOut(ConcurrencyTestBase):

    def test_one_ticket_is_charged_once(self):
        service = self.build_service(1)
        ticket = service.park_vehicle(Car("ABC123", "Blue"))

        results = run_concurrently(lambda i: service.exit_vehicle(ticket.id, "CARD"), 10)

        receipts = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, TicketAlreadyClosed)]
        self.assertEqual(len(receipts), 1)
        self.assertEqual(len(conflicts), 9)
        self.assertEqual(len(self.payments.ledger), 1)
        self.assertEqual(service.parking_lot.overall_availability()[SpotSize.MEDIUM], 1)

    def test_mixed_traffic_keeps_counts_consistent(self):
        service = self.build_service(5, 5)
        tickets = [service.park_vehicle(Car(f"OLD{i}", "Grey")) for i in range(10)]

        def traffic(i):
            if i % 2 == 0:
                return service.exit_vehicle(tickets[i // 2].id, "CASH")
            return service.park_vehicle(Car(f"NEW{i}", "Blue"))

        results = run_concurrently(traffic, 20)

        errors = [r for r in results if isinstance(r, Exception)]
        self.assertTrue(all(isinstance(e, NoSpotAvailable) for e in errors))

        lot = service.parking_lot
        occupied = sum(1 for floor in lot.floors for spot in floor.spots if spot.is_occupied)
        self.assertEqual(lot.overall_availability()[SpotSize.MEDIUM], 10 - occupied)
        for floor in lot.floors:
            free = sum(1 for spot in floor.spots if not spot.is_occupied)
            self.assertEqual(floor.available_counts()[SpotSize.MEDIUM], free)


if __name__ == "__main__":
    unittest.main()
