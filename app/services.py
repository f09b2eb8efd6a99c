"""
Booking workflow and catalog queries.

Everything here takes the SQLAlchemy session explicitly; the HTTP layer passes
Flask-SQLAlchemy's scoped ``db.session``. Database failures are rolled back,
logged and re-raised as ``StorageError``.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from app.errors import NotFoundError, StorageError, ValidationError
from app.models import BOOKING_CANCELLED, BOOKING_CONFIRMED, Booking, Hotel, Room, User

logger = logging.getLogger(__name__)

# Ids are stored as signed 64-bit integers
MAX_ID = 2 ** 63 - 1

DEMO_HOTEL = {
    'name': 'Test Hotel',
    'city': 'Seoul',
    'address': '123 Test Street',
    'rooms': [
        {'room_number': '101', 'type': 'single', 'price': 100000},
        {'room_number': '102', 'type': 'double', 'price': 150000},
    ],
}


@contextmanager
def storage_errors(session, message):
    try:
        yield
    except SQLAlchemyError:
        logger.exception(message)
        session.rollback()
        raise StorageError(message)


def get_or_create_default_user(session, email=None, name=None, password=None):
    """Return the guest user, creating it on first use.

    Two requests may both miss the lookup; the unique constraint on
    ``User.email`` makes the slower insert fail, and it then reads the row the
    faster one committed.
    """
    config = current_app.config
    email = email or config['DEFAULT_USER_EMAIL']
    name = name or config['DEFAULT_USER_NAME']
    password = password or config['DEFAULT_USER_PASSWORD']

    with storage_errors(session, 'Failed to resolve default user'):
        user = session.query(User).filter_by(email=email).first()
        if user:
            return user

        user = User(email=email, name=name, password=password)
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            user = session.query(User).filter_by(email=email).first()
            if user is None:
                raise StorageError('Failed to resolve default user')
            return user

        logger.info('Created default user %s', email)
        return user


def list_hotels(session):
    with storage_errors(session, 'Failed to fetch hotels'):
        return (
            session.query(Hotel)
            .options(selectinload(Hotel.rooms))
            .order_by(Hotel.id)
            .all()
        )


def seed_demo_hotel(session):
    """Insert the demo hotel and its two rooms. Repeated calls add duplicates."""
    with storage_errors(session, 'Seeding failed'):
        hotel = Hotel(
            name=DEMO_HOTEL['name'],
            city=DEMO_HOTEL['city'],
            address=DEMO_HOTEL['address'],
            rooms=[Room(**room) for room in DEMO_HOTEL['rooms']],
        )
        session.add(hotel)
        session.commit()
        logger.info('Seeded hotel %s with %d rooms', hotel.id, len(hotel.rooms))
        return hotel


def parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError('Invalid date format')

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace('Z', '')).date()
    except ValueError:
        raise ValidationError('Invalid date format')


def parse_room_id(value):
    if isinstance(value, bool):
        raise ValidationError('roomId must be a number')
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value)
    if not isinstance(value, int) or not -MAX_ID - 1 <= value <= MAX_ID:
        raise ValidationError('roomId must be a number')
    return value


class BookingWorkflow:
    """Creates, lists and cancels bookings for the acting user.

    ``resolve_user`` is any callable taking the session and returning a User;
    it defaults to the single guest identity.
    """

    def __init__(self, session, resolve_user=get_or_create_default_user):
        self.session = session
        self.resolve_user = resolve_user

    def _bookings(self):
        return self.session.query(Booking).options(
            joinedload(Booking.room).joinedload(Room.hotel)
        )

    def get_booking(self, booking_id):
        if not -MAX_ID - 1 <= booking_id <= MAX_ID:
            raise NotFoundError('Booking not found')
        with storage_errors(self.session, 'Failed to fetch booking'):
            booking = self._bookings().filter(Booking.id == booking_id).first()
        if booking is None:
            raise NotFoundError('Booking not found')
        return booking

    def create_booking(self, room_id, check_in, check_out):
        # 1) Validacion de campos requeridos
        if not room_id or not check_in or not check_out:
            raise ValidationError('roomId, checkIn and checkOut are required')

        room_id = parse_room_id(room_id)
        check_in_date = parse_date(check_in)
        check_out_date = parse_date(check_out)

        # 2) Validacion de fechas
        if check_in_date >= check_out_date:
            raise ValidationError('checkIn must be before checkOut')

        user = self.resolve_user(self.session)

        with storage_errors(self.session, 'Failed to create booking'):
            booking = Booking(
                user_id=user.id,
                room_id=room_id,
                check_in=check_in_date,
                check_out=check_out_date,
                status=BOOKING_CONFIRMED,
            )
            self.session.add(booking)
            self.session.commit()
            booking_id = booking.id

        logger.info('Booking %s created for room %s (%s to %s)',
                    booking_id, room_id, check_in_date, check_out_date)
        return self.get_booking(booking_id)

    def list_my_bookings(self):
        user = self.resolve_user(self.session)
        with storage_errors(self.session, 'Failed to fetch bookings'):
            return (
                self._bookings()
                .filter(Booking.user_id == user.id)
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .all()
            )

    def cancel_booking(self, booking_id):
        booking = self.get_booking(booking_id)

        # Ya cancelada: se devuelve sin cambios
        if booking.is_cancelled:
            return booking

        with storage_errors(self.session, 'Failed to cancel booking'):
            booking.status = BOOKING_CANCELLED
            self.session.commit()

        logger.info('Booking %s cancelled', booking_id)
        return self.get_booking(booking_id)
