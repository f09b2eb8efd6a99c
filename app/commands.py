import click

from app import db
from app.services import seed_demo_hotel


def register(app):
    @app.cli.command('seed')
    def seed_command():
        """Create the demo hotel with its two rooms."""
        hotel = seed_demo_hotel(db.session)
        click.echo(f'Created hotel {hotel.id} ({hotel.name}) with {len(hotel.rooms)} rooms')
