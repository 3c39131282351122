#!/usr/bin/env python3
"""
Unit tests for the allocation core and tickets:
SpotPool, ParkingFloor, ParkingLot and ParkingTicket.
"""

import unittest
from datetime import datetime, timedelta
from unittest.mock import Mock

from parkflow.domain.aggregates import ParkingFloor, ParkingLot, ParkingTicket, SpotPool
from parkflow.domain.exceptions import (
    NoSpotAvailable, NotYetExited, SpotAlreadyEmpty,
    TicketAlreadyClosed, UnknownVehicleType
)
from parkflow.domain.models import (
    Bus, Car, Money, Motorcycle, ParkingSpot, PaymentMethod, SpotSize,
    SpotStatus, TicketStatus, Vehicle, generate_spots
)
from parkflow.infrastructure.display import RecordingDisplayBoard


ENTRY = datetime(2024, 3, 1, 9, 0, 0)


def make_floor(number, small=0, medium=0, large=0, display_board=None):
    return ParkingFloor(
        number,
        generate_spots(number, small=small, medium=medium, large=large),
        display_board=display_board
    )


# ============================================================================
# SPOT POOL
# ============================================================================

class TestSpotPool(unittest.TestCase):

    def setUp(self):
        self.spots = generate_spots(1, medium=3)
        self.pool = SpotPool(SpotSize.MEDIUM, self.spots)

    def test_acquire_is_first_available(self):
        spot = self.pool.acquire(Car("C1", "Blue"))
        self.assertEqual(spot.id, self.spots[0].id)
        self.assertEqual(spot.status, SpotStatus.OCCUPIED)
        self.assertEqual(self.pool.available_count(), 2)

    def test_acquire_on_empty_pool_returns_none(self):
        for i in range(3):
            self.pool.acquire(Car(f"C{i}", "Blue"))
        self.assertIsNone(self.pool.acquire(Car("LATE", "Red")))

    def test_release_goes_to_the_back(self):
        first = self.pool.acquire(Car("C1", "Blue"))
        self.pool.release(first)
        self.assertEqual(self.pool.free_spot_ids(), ["L01M002", "L01M003", "L01M001"])
        self.assertEqual(first.status, SpotStatus.EMPTY)

    def test_acquire_release_acquire_round_trip(self):
        spots = [self.pool.acquire(Car(f"C{i}", "Blue")) for i in range(3)]
        self.pool.release(spots[1])
        again = self.pool.acquire(Car("C9", "Red"))
        self.assertIs(again, spots[1])
        self.assertEqual(again.vehicle.registration_number, "C9")

    def test_release_of_empty_spot_fails_and_changes_nothing(self):
        with self.assertRaises(SpotAlreadyEmpty):
            self.pool.release(self.spots[0])
        self.assertEqual(self.pool.available_count(), 3)

    def test_wrong_size_rejected(self):
        with self.assertRaises(ValueError):
            self.pool.release(ParkingSpot("L01S009", SpotSize.SMALL))
        with self.assertRaises(ValueError):
            SpotPool(SpotSize.LARGE, self.spots)


# ============================================================================
# PARKING FLOOR
# ============================================================================

class TestParkingFloor(unittest.TestCase):

    def setUp(self):
        self.board = RecordingDisplayBoard()
        self.floor = make_floor(1, small=1, medium=2, large=1, display_board=self.board)

    def test_counts(self):
        expected = {SpotSize.SMALL: 1, SpotSize.MEDIUM: 2, SpotSize.LARGE: 1}
        self.assertEqual(self.floor.available_counts(), expected)
        self.assertEqual(self.floor.total_counts(), expected)

    def test_try_assign_updates_counts_and_display(self):
        spot = self.floor.try_assign(Car("C1", "Blue"), SpotSize.MEDIUM)
        self.assertEqual(spot.size, SpotSize.MEDIUM)
        self.assertEqual(self.floor.available_counts()[SpotSize.MEDIUM], 1)
        self.assertEqual(self.board.latest("floor-1")[SpotSize.MEDIUM], 1)

    def test_try_assign_without_capacity(self):
        self.floor.try_assign(Bus("B1", "Yellow"), SpotSize.LARGE)
        updates = len(self.board.history)
        self.assertIsNone(self.floor.try_assign(Bus("B2", "Yellow"), SpotSize.LARGE))
        self.assertEqual(len(self.board.history), updates)

    def test_on_release(self):
        spot = self.floor.try_assign(Motorcycle("M1", "Red"), SpotSize.SMALL)
        self.floor.on_release(spot)
        self.assertEqual(self.floor.available_counts()[SpotSize.SMALL], 1)
        self.assertEqual(self.board.latest("floor-1")[SpotSize.SMALL], 1)

    def test_on_release_of_foreign_spot(self):
        other = make_floor(2, medium=1)
        spot = other.try_assign(Car("C1", "Blue"), SpotSize.MEDIUM)
        with self.assertRaises(ValueError):
            self.floor.on_release(spot)
        self.assertTrue(spot.is_occupied)

    def test_duplicate_spot_ids_rejected(self):
        spot = ParkingSpot("L01M001", SpotSize.MEDIUM)
        with self.assertRaises(ValueError):
            ParkingFloor(1, [spot, ParkingSpot("L01M001", SpotSize.MEDIUM)])

    def test_index_matches_spot_status(self):
        self.floor.try_assign(Car("C1", "Blue"), SpotSize.MEDIUM)
        empty = sum(1 for s in self.floor.spots if not s.is_occupied)
        self.assertEqual(sum(self.floor.available_counts().values()), empty)


# ============================================================================
# PARKING LOT
# ============================================================================

class TestParkingLot(unittest.TestCase):

    def setUp(self):
        self.board = RecordingDisplayBoard()
        # Floors deliberately given out of order
        self.lot = ParkingLot(
            "City Lot",
            [
                make_floor(2, small=1, medium=2, large=1),
                make_floor(1, small=1, medium=1, large=0),
            ],
            display_board=self.board
        )

    def test_floors_sorted(self):
        self.assertEqual([f.floor_number for f in self.lot.floors], [1, 2])

    def test_get_floor(self):
        self.assertEqual(self.lot.get_floor(2).floor_number, 2)
        self.assertIsNone(self.lot.get_floor(7))

    def test_lowest_floor_first(self):
        spot, floor = self.lot.assign_spot(Car("C1", "Blue"))
        self.assertEqual(floor.floor_number, 1)
        spot, floor = self.lot.assign_spot(Car("C2", "Blue"))
        self.assertEqual(floor.floor_number, 2)
        self.assertEqual(spot.floor_number, 2)

    def test_large_only_on_upper_floor(self):
        spot, floor = self.lot.assign_spot(Bus("B1", "Yellow"))
        self.assertEqual(floor.floor_number, 2)
        self.assertEqual(spot.size, SpotSize.LARGE)

    def test_no_spot_available(self):
        self.lot.assign_spot(Bus("B1", "Yellow"))
        before = self.lot.overall_availability()
        with self.assertRaises(NoSpotAvailable) as ctx:
            self.lot.assign_spot(Bus("B2", "Yellow"))
        self.assertEqual(ctx.exception.spot_size, SpotSize.LARGE)
        self.assertEqual(self.lot.overall_availability(), before)

    def test_unknown_vehicle(self):
        with self.assertRaises(UnknownVehicleType):
            self.lot.assign_spot(Vehicle("X1", "Grey"))

    def test_overall_is_sum_of_floors(self):
        self.lot.assign_spot(Car("C1", "Blue"))
        self.lot.assign_spot(Motorcycle("M1", "Red"))
        per_floor = self.lot.floor_availability()
        for size, count in self.lot.overall_availability().items():
            self.assertEqual(count, sum(c[size] for c in per_floor.values()))

    def test_release_spot_returns_owning_floor(self):
        spot, floor = self.lot.assign_spot(Car("C1", "Blue"))
        self.assertIs(self.lot.release_spot(spot), floor)
        self.assertEqual(self.lot.overall_availability()[SpotSize.MEDIUM], 3)

    def test_release_unknown_spot(self):
        with self.assertRaises(ValueError):
            self.lot.release_spot(ParkingSpot("L09M001", SpotSize.MEDIUM))

    def test_duplicate_floor_numbers_rejected(self):
        with self.assertRaises(ValueError):
            ParkingLot("Dup", [make_floor(1, small=1), make_floor(1, medium=1)])

    def test_requires_a_floor(self):
        with self.assertRaises(ValueError):
            ParkingLot("Empty", [])

    def test_update_display_board(self):
        self.lot.update_display_board()
        self.assertEqual(self.board.latest("lot"), self.lot.overall_availability())

    def test_uses_injected_strategy(self):
        strategy = Mock()
        strategy.allocate_spot.return_value = None
        lot = ParkingLot("Mocked", [make_floor(1, medium=1)], allocation_strategy=strategy)
        with self.assertRaises(NoSpotAvailable):
            lot.assign_spot(Car("C1", "Blue"))
        strategy.allocate_spot.assert_called_once()

    def test_status_report(self):
        self.lot.assign_spot(Car("C1", "Blue"))
        report = self.lot.status_report()
        self.assertEqual(report["total_spots"], 6)
        self.assertEqual(report["available_spots"], 5)
        self.assertEqual(report["allocation_strategy"], "LowestFloorFirst")
        self.assertEqual(len(report["floors"]), 2)


# ============================================================================
# PARKING TICKET
# ============================================================================

class TestParkingTicket(unittest.TestCase):

    def setUp(self):
        self.car = Car("ABC123", "Blue")
        self.spot = ParkingSpot("L01M001", SpotSize.MEDIUM)
        self.spot.park(self.car)
        self.ticket = ParkingTicket(self.car, self.spot, 1, ENTRY, parking_lot_id="lot-1")

    def test_id_format(self):
        self.assertRegex(self.ticket.id, r"^TKT-20240301090000-[0-9A-F]{8}$")
        other = ParkingTicket(self.car, self.spot, 1, ENTRY)
        self.assertNotEqual(other.id, self.ticket.id)

    def test_new_ticket_is_active(self):
        self.assertEqual(self.ticket.status, TicketStatus.ACTIVE)
        self.assertIsNone(self.ticket.exit_time)
        self.assertFalse(self.ticket.is_closed)

    def test_fee_before_exit(self):
        with self.assertRaises(NotYetExited):
            self.ticket.compute_fee()

    def test_close_freezes_fee(self):
        self.ticket.close(ENTRY + timedelta(minutes=45))
        self.assertEqual(self.ticket.status, TicketStatus.COMPLETED)
        self.assertEqual(self.ticket.duration_minutes, 45)
        self.assertEqual(self.ticket.compute_fee(), Money(50))
        self.assertEqual(self.ticket.compute_fee(), Money(50))

    def test_close_twice(self):
        exit_time = ENTRY + timedelta(minutes=130)
        self.ticket.close(exit_time)
        with self.assertRaises(TicketAlreadyClosed):
            self.ticket.close(exit_time + timedelta(hours=5))
        self.assertEqual(self.ticket.exit_time, exit_time)
        self.assertEqual(self.ticket.compute_fee(), Money(150))

    def test_exit_before_entry(self):
        with self.assertRaises(ValueError):
            self.ticket.close(ENTRY - timedelta(minutes=1))
        self.assertFalse(self.ticket.is_closed)

    def test_mark_paid(self):
        self.ticket.close(ENTRY + timedelta(minutes=10))
        self.ticket.mark_paid(PaymentMethod.CARD)
        self.assertEqual(self.ticket.status, TicketStatus.PAID)
        self.assertEqual(self.ticket.payment_method, PaymentMethod.CARD)

    def test_mark_paid_requires_close(self):
        with self.assertRaises(ValueError):
            self.ticket.mark_paid(PaymentMethod.CASH)

    def test_events(self):
        events = self.ticket.clear_events()
        self.assertEqual([e.event_type for e in events], ["vehicle.parked"])
        self.assertFalse(self.ticket.has_changes)

        self.ticket.close(ENTRY + timedelta(minutes=10))
        left = self.ticket.clear_events()[0]
        self.assertEqual(left.event_type, "vehicle.left")
        self.assertEqual(left.fee, Money(50))
        self.assertEqual(left.to_dict()["data"]["ticket_id"], self.ticket.id)

    def test_to_dict(self):
        data = self.ticket.to_dict()
        self.assertEqual(data["spot_id"], "L01M001")
        self.assertEqual(data["status"], "active")
        self.assertIsNone(data["fee"])


if __name__ == "__main__":
    unittest.main()
