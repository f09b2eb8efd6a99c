from flask import Blueprint, jsonify, request

from app import db
from app.errors import BookingError, ValidationError
from app.services import (
    BookingWorkflow,
    list_hotels,
    seed_demo_hotel,
)

api = Blueprint('api', __name__)


def room_to_dict(room, include_hotel=False):
    data = {
        'id': room.id,
        'hotelId': room.hotel_id,
        'roomNumber': room.room_number,
        'type': room.type,
        'price': room.price,
    }
    if include_hotel:
        data['hotel'] = hotel_to_dict(room.hotel, include_rooms=False) if room.hotel else None
    return data


def hotel_to_dict(hotel, include_rooms=True):
    data = {
        'id': hotel.id,
        'name': hotel.name,
        'city': hotel.city,
        'address': hotel.address,
        'createdAt': hotel.created_at.isoformat(),
    }
    if include_rooms:
        data['rooms'] = [room_to_dict(room) for room in hotel.rooms]
    return data


def booking_to_dict(booking):
    room = booking.room
    return {
        'id': booking.id,
        'userId': booking.user_id,
        'roomId': booking.room_id,
        'checkIn': booking.check_in.isoformat(),
        'checkOut': booking.check_out.isoformat(),
        'status': booking.status,
        'createdAt': booking.created_at.isoformat(),
        'room': room_to_dict(room, include_hotel=True) if room else None,
        'hotel': hotel_to_dict(room.hotel, include_rooms=False) if room and room.hotel else None,
    }


def current_workflow():
    return BookingWorkflow(db.session)


@api.errorhandler(BookingError)
def handle_booking_error(err):
    return jsonify({'error': err.message}), err.status_code


@api.route('/', methods=['GET'])
def health():
    return 'API is running', 200, {'Content-Type': 'text/plain; charset=utf-8'}


@api.route('/seed', methods=['POST'])
def seed():
    hotel = seed_demo_hotel(db.session)
    return jsonify(hotel_to_dict(hotel)), 200


@api.route('/hotels', methods=['GET'])
def get_hotels():
    hotels = list_hotels(db.session)
    return jsonify([hotel_to_dict(hotel) for hotel in hotels]), 200


@api.route('/bookings', methods=['POST'])
def create_booking():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    booking = current_workflow().create_booking(
        data.get('roomId'), data.get('checkIn'), data.get('checkOut')
    )
    return jsonify(booking_to_dict(booking)), 201


@api.route('/bookings', methods=['GET'])
def get_bookings():
    bookings = current_workflow().list_my_bookings()
    return jsonify([booking_to_dict(booking) for booking in bookings]), 200


@api.route('/bookings/<booking_id>/cancel', methods=['POST'])
def cancel_booking(booking_id):
    try:
        booking_id = int(booking_id)
    except ValueError:
        raise ValidationError('Invalid booking id')

    booking = current_workflow().cancel_booking(booking_id)
    return jsonify(booking_to_dict(booking)), 200
