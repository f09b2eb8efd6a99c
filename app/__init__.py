import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_object='app.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    CORS(app, origins=app.config.get('CORS_ORIGINS', '*'))

    # Inicializar extensiones
    db.init_app(app)
    migrate.init_app(app, db)

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({'error': err.description}), err.code

    # Importar y registrar las rutas
    with app.app_context():
        from app import models  # noqa: F401
        from app import routes, commands
        app.register_blueprint(routes.api)
        commands.register(app)

        db.create_all()  # Crear tablas si no existen

    return app
