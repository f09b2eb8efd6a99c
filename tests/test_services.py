from datetime import date

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query, Session

from app.errors import NotFoundError, StorageError, ValidationError
from app.models import Booking, Hotel, User
from app.services import (
    BookingWorkflow,
    get_or_create_default_user,
    list_hotels,
    parse_date,
    seed_demo_hotel,
)


@pytest.fixture
def room(session):
    return seed_demo_hotel(session).rooms[0]


@pytest.fixture
def workflow(session):
    return BookingWorkflow(session)


class TestDefaultUser:
    def test_creates_guest_on_first_call(self, session):
        user = get_or_create_default_user(session)

        assert user.email == 'guest@example.com'
        assert user.name == 'Guest User'
        assert user.password == 'dummy-password'

    def test_is_idempotent(self, session):
        first = get_or_create_default_user(session)
        second = get_or_create_default_user(session)

        assert first.id == second.id
        assert session.query(User).count() == 1

    def test_lost_race_returns_existing_row(self, session, monkeypatch):
        winner_id = get_or_create_default_user(session).id
        real_first = Query.first
        lookups = []

        def first_misses_once(query):
            lookups.append(query)
            if len(lookups) == 1:
                return None
            return real_first(query)

        monkeypatch.setattr(Query, 'first', first_misses_once)

        user = get_or_create_default_user(session)

        assert user.id == winner_id
        assert len(lookups) == 2
        assert session.query(User).count() == 1

    def test_identity_comes_from_config(self, app, session):
        app.config['DEFAULT_USER_EMAIL'] = 'front-desk@example.com'

        user = get_or_create_default_user(session)

        assert user.email == 'front-desk@example.com'
        assert user.name == 'Guest User'

    def test_storage_failure_raises_storage_error(self, session, broken_storage):
        with pytest.raises(StorageError):
            get_or_create_default_user(session)


class TestCatalog:
    def test_seed_creates_demo_hotel(self, session):
        hotel = seed_demo_hotel(session)

        assert (hotel.name, hotel.city, hotel.address) == ('Test Hotel', 'Seoul', '123 Test Street')
        assert [(r.room_number, r.type, r.price) for r in hotel.rooms] == [
            ('101', 'single', 100000),
            ('102', 'double', 150000),
        ]

    def test_seed_is_not_idempotent(self, session):
        seed_demo_hotel(session)
        seed_demo_hotel(session)

        assert session.query(Hotel).count() == 2

    def test_list_hotels_includes_rooms_in_insertion_order(self, session):
        first = seed_demo_hotel(session)
        second = seed_demo_hotel(session)

        hotels = list_hotels(session)

        assert [h.id for h in hotels] == [first.id, second.id]
        assert [r.room_number for r in hotels[0].rooms] == ['101', '102']

    def test_list_hotels_empty(self, session):
        assert list_hotels(session) == []

    def test_list_hotels_storage_failure(self, session, broken_storage):
        with pytest.raises(StorageError, match='Failed to fetch hotels'):
            list_hotels(session)


class TestParseDate:
    def test_plain_date(self):
        assert parse_date('2025-12-01') == date(2025, 12, 1)

    def test_iso_datetime_is_truncated_to_day(self):
        assert parse_date('2025-12-01T15:30:00.000Z') == date(2025, 12, 1)

    @pytest.mark.parametrize('value', ['not-a-date', '2025-13-01', '', 20251201])
    def test_rejects_unparseable(self, value):
        with pytest.raises(ValidationError, match='Invalid date format'):
            parse_date(value)


class TestCreateBooking:
    def test_valid_booking_is_confirmed_and_listed(self, workflow, room):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        assert booking.status == 'confirmed'
        assert booking.room.room_number == '101'
        assert booking.room.hotel.name == 'Test Hotel'
        assert [b.id for b in workflow.list_my_bookings()] == [booking.id]

    def test_dates_round_trip(self, workflow, room, session):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')
        session.expire_all()

        stored = workflow.get_booking(booking.id)

        assert stored.check_in.isoformat() == '2025-12-01'
        assert stored.check_out.isoformat() == '2025-12-03'

    def test_attributed_to_guest_user(self, workflow, room, session):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        assert booking.user.email == 'guest@example.com'

    @pytest.mark.parametrize('check_in, check_out', [
        ('2025-12-01', '2025-11-30'),
        ('2025-12-01', '2025-12-01'),
    ])
    def test_check_in_must_be_before_check_out(self, workflow, room, session, check_in, check_out):
        with pytest.raises(ValidationError, match='checkIn must be before checkOut'):
            workflow.create_booking(room.id, check_in, check_out)

        assert session.query(Booking).count() == 0

    @pytest.mark.parametrize('room_id, check_in, check_out', [
        (None, '2025-12-01', '2025-12-03'),
        (1, None, '2025-12-03'),
        (1, '2025-12-01', ''),
        (0, '2025-12-01', '2025-12-03'),
    ])
    def test_missing_fields(self, workflow, session, room_id, check_in, check_out):
        with pytest.raises(ValidationError, match='required'):
            workflow.create_booking(room_id, check_in, check_out)

        assert session.query(Booking).count() == 0

    def test_invalid_date(self, workflow, room, session):
        with pytest.raises(ValidationError, match='Invalid date format'):
            workflow.create_booking(room.id, 'tomorrow', '2025-12-03')

        assert session.query(Booking).count() == 0

    @pytest.mark.parametrize('room_id', ['abc', '²', '1.5', 1.0, 2 ** 63, str(10 ** 30), -2 ** 63 - 1])
    def test_invalid_room_id(self, workflow, session, room_id):
        with pytest.raises(ValidationError, match='roomId must be a number'):
            workflow.create_booking(room_id, '2025-12-01', '2025-12-03')

        assert session.query(Booking).count() == 0

    def test_numeric_string_room_id(self, workflow, room):
        booking = workflow.create_booking(str(room.id), '2025-12-01', '2025-12-03')

        assert booking.room_id == room.id

    def test_overlapping_bookings_are_allowed(self, workflow, room):
        first = workflow.create_booking(room.id, '2025-12-01', '2025-12-05')
        second = workflow.create_booking(room.id, '2025-12-02', '2025-12-04')

        assert first.status == second.status == 'confirmed'

    def test_unknown_room_is_not_rejected(self, workflow, session):
        # SQLite does not enforce foreign keys unless asked to.
        booking = workflow.create_booking(999, '2025-12-01', '2025-12-03')

        assert booking.room_id == 999
        assert booking.room is None

    def test_custom_identity_resolver(self, session, room):
        other = User(email='someone@example.com', name='Someone', password='x')
        session.add(other)
        session.commit()
        workflow = BookingWorkflow(session, resolve_user=lambda s: other)

        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        assert booking.user_id == other.id
        assert BookingWorkflow(session).list_my_bookings() == []

    def test_storage_failure(self, workflow, room, session, monkeypatch):
        get_or_create_default_user(session)
        room_id = room.id

        def fail(self):
            raise OperationalError('INSERT', {}, Exception('disk full'))

        monkeypatch.setattr(Session, 'commit', fail)

        with pytest.raises(StorageError, match='Failed to create booking'):
            workflow.create_booking(room_id, '2025-12-01', '2025-12-03')


class TestListMyBookings:
    def test_newest_first(self, workflow, room):
        older = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')
        newer = workflow.create_booking(room.id, '2026-01-01', '2026-01-03')

        assert [b.id for b in workflow.list_my_bookings()] == [newer.id, older.id]

    def test_creates_guest_when_missing(self, workflow, session):
        assert workflow.list_my_bookings() == []
        assert session.query(User).count() == 1


class TestCancelBooking:
    def test_cancel_transitions_to_cancelled(self, workflow, room):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        cancelled = workflow.cancel_booking(booking.id)

        assert cancelled.status == 'cancelled'
        assert workflow.get_booking(booking.id).status == 'cancelled'

    def test_cancel_is_idempotent(self, workflow, room):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        workflow.cancel_booking(booking.id)
        again = workflow.cancel_booking(booking.id)

        assert again.status == 'cancelled'

    def test_unknown_booking(self, workflow, room, session):
        booking = workflow.create_booking(room.id, '2025-12-01', '2025-12-03')

        with pytest.raises(NotFoundError, match='Booking not found'):
            workflow.cancel_booking(booking.id + 100)

        assert workflow.get_booking(booking.id).status == 'confirmed'
        assert session.query(Booking).count() == 1

    def test_id_outside_integer_range(self, workflow):
        with pytest.raises(NotFoundError, match='Booking not found'):
            workflow.cancel_booking(10 ** 30)
