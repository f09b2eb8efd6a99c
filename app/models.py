# app/models.py
from datetime import datetime, timezone

from app import db

BOOKING_CONFIRMED = 'confirmed'
BOOKING_CANCELLED = 'cancelled'


def utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(100), nullable=False)  # Placeholder, sin hash
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)


class Hotel(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    rooms = db.relationship('Room', back_populates='hotel', order_by='Room.id', lazy=True)


class Room(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    hotel_id = db.Column(db.Integer, db.ForeignKey('hotel.id'), nullable=False)
    room_number = db.Column(db.String(10), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    price = db.Column(db.Integer, nullable=False)  # Precio por noche

    hotel = db.relationship('Hotel', back_populates='rooms')


class Booking(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False)
    check_in = db.Column(db.Date, nullable=False)
    check_out = db.Column(db.Date, nullable=False)
    status = db.Column(
        db.Enum(BOOKING_CONFIRMED, BOOKING_CANCELLED, name='booking_status'),
        nullable=False,
        default=BOOKING_CONFIRMED,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship('User', backref=db.backref('bookings', lazy=True))
    room = db.relationship('Room', backref=db.backref('bookings', lazy=True))

    @property
    def is_cancelled(self):
        return self.status == BOOKING_CANCELLED
