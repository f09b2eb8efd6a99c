import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///hotel_booking.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Usuario invitado al que se asignan todas las reservas
    DEFAULT_USER_EMAIL = os.getenv('DEFAULT_USER_EMAIL', 'guest@example.com')
    DEFAULT_USER_NAME = os.getenv('DEFAULT_USER_NAME', 'Guest User')
    DEFAULT_USER_PASSWORD = os.getenv('DEFAULT_USER_PASSWORD', 'dummy-password')

    PORT = int(os.getenv('PORT', '3000'))
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'WARNING'
