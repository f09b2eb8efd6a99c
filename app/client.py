"""
Client side of the booking demo.

``ApiClient`` talks to the JSON API with ``requests``; ``ClientView`` keeps the
state the browser page shows (hotel cards, the shared date range, the bookings
panel and toast notifications) and changes it only from the outcome of those
calls. ``render`` turns that state into plain text.
"""
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import date

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = 'http://localhost:3000'
TOAST_DURATION = 2.5


class ApiClient:
    def __init__(self, base_url=None, session=None, timeout=10):
        self.base_url = (base_url or os.getenv('API_BASE_URL', DEFAULT_API_BASE_URL)).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, **kwargs):
        response = self.session.request(
            method, f'{self.base_url}{path}', timeout=self.timeout, **kwargs
        )
        response.raise_for_status()
        return response.json()

    def get_hotels(self):
        return self._request('GET', '/hotels')

    def seed(self):
        return self._request('POST', '/seed')

    def create_booking(self, room_id, check_in, check_out):
        payload = {'roomId': room_id, 'checkIn': check_in, 'checkOut': check_out}
        return self._request('POST', '/bookings', json=payload)

    def get_bookings(self):
        return self._request('GET', '/bookings')

    def cancel_booking(self, booking_id):
        return self._request('POST', f'/bookings/{booking_id}/cancel')


@dataclass
class Toast:
    message: str
    kind: str = 'success'
    created_at: float = field(default_factory=time.monotonic)

    def expired(self, now):
        return now - self.created_at >= TOAST_DURATION


def _parse_day(value):
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError):
        return None


def validate_date_range(check_in, check_out):
    """Return an error message for the selected range, or None when it is usable."""
    if not check_in or not check_out:
        return 'Select check-in and check-out dates first.'
    start, end = _parse_day(check_in), _parse_day(check_out)
    if start is None or end is None:
        return 'Invalid date format.'
    if start >= end:
        return 'Check-in must be before check-out.'
    return None


def nights(booking):
    start, end = _parse_day(booking['checkIn']), _parse_day(booking['checkOut'])
    if start is None or end is None:
        return 0
    return (end - start).days


def _error_message(err):
    response = getattr(err, 'response', None)
    if response is not None:
        try:
            return response.json().get('error') or str(err)
        except ValueError:
            pass
    return str(err)


class ClientView:
    def __init__(self, api, clock=time.monotonic):
        self.api = api
        self.clock = clock
        self.hotels = []
        self.bookings = []
        self.check_in = ''
        self.check_out = ''
        self.loading = False
        self.error = None
        self.toasts = []

    def notify(self, message, kind='success'):
        self.toasts.append(Toast(message, kind, created_at=self.clock()))

    def dismiss_toast(self):
        if self.toasts:
            self.toasts.pop(0)

    def expire_toasts(self, now=None):
        now = self.clock() if now is None else now
        self.toasts = [toast for toast in self.toasts if not toast.expired(now)]

    def set_dates(self, check_in, check_out):
        self.check_in = check_in or ''
        self.check_out = check_out or ''

    def load_hotels(self):
        self.loading = True
        self.error = None
        try:
            self.hotels = self.api.get_hotels()
        except requests.RequestException as err:
            logger.warning('Failed to load hotels: %s', err)
            self.error = 'Failed to load hotels.'
        finally:
            self.loading = False

    def load_bookings(self):
        try:
            self.bookings = self.api.get_bookings()
        except requests.RequestException as err:
            logger.warning('Failed to load bookings: %s', err)
            self.notify('Failed to load bookings.', 'error')
            return False
        return True

    def book_room(self, room):
        problem = validate_date_range(self.check_in, self.check_out)
        if problem:
            self.notify(problem, 'error')
            return None

        try:
            booking = self.api.create_booking(room['id'], self.check_in, self.check_out)
        except requests.RequestException as err:
            logger.warning('Booking failed: %s', err)
            self.notify(f'Booking failed: {_error_message(err)}', 'error')
            return None

        self.notify(
            f"Booked room {room['roomNumber']} ({room['type']}) "
            f'from {self.check_in} to {self.check_out}.'
        )
        self.load_bookings()
        return booking

    def cancel_booking(self, booking_id, confirm=None):
        if confirm is not None and not confirm(f'Cancel booking #{booking_id}?'):
            return None

        try:
            updated = self.api.cancel_booking(booking_id)
        except requests.RequestException as err:
            logger.warning('Cancel failed: %s', err)
            self.notify(f'Cancel failed: {_error_message(err)}', 'error')
            return None

        # La respuesta reemplaza la reserva local, conservando room/hotel
        for index, booking in enumerate(self.bookings):
            if booking['id'] == updated['id']:
                self.bookings[index] = {**booking, **{k: v for k, v in updated.items() if v is not None}}
                break
        self.notify(f'Booking #{booking_id} cancelled.')
        return updated

    def render(self):
        lines = ['Hotel booking demo', '']
        lines.append(f'Check-in: {self.check_in or "-"}  Check-out: {self.check_out or "-"}')
        lines.append('')

        if self.loading:
            lines.append('Loading hotels...')
        elif self.error:
            lines.append(self.error)
        elif not self.hotels:
            lines.append('No hotels yet. Call /seed to add demo data.')
        for hotel in self.hotels:
            lines.append(f"{hotel['name']}")
            lines.append(f"  {hotel['city']} · {hotel['address']}")
            if not hotel['rooms']:
                lines.append('  No rooms.')
            for room in hotel['rooms']:
                lines.append(
                    f"  [book] {room['roomNumber']} · {room['type']} · {room['price']:,} / night"
                )

        if self.bookings:
            lines.append('')
            lines.append('My bookings')
            for booking in self.bookings:
                hotel = booking.get('hotel') or (booking.get('room') or {}).get('hotel') or {}
                room = booking.get('room') or {}
                lines.append(f"  #{booking['id']} {hotel.get('name', '?')} "
                             f"room {room.get('roomNumber', booking['roomId'])}")
                lines.append(f"    {booking['checkIn'][:10]} ~ {booking['checkOut'][:10]} "
                             f'({nights(booking)} nights) {booking["status"]}')
                if booking['status'] == 'cancelled':
                    lines.append('    Already cancelled.')
                else:
                    lines.append('    [cancel]')

        if self.toasts:
            lines.append('')
            for toast in self.toasts:
                lines.append(f'({toast.kind}) {toast.message}')

        return '\n'.join(lines)


def main():
    logging.basicConfig(level=logging.INFO)
    view = ClientView(ApiClient())
    view.load_hotels()
    view.load_bookings()
    print(view.render())


if __name__ == '__main__':
    main()
