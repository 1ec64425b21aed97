import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import Config
from cruiser.services.errors import CruiserError
from cruiser.services.firebase_service import init_firebase
from cruiser.services.geocoding_service import init_geocoder
from cruiser.services.mail_service import init_mail

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # Initialize collaborators
    init_firebase(app)
    init_geocoder(app)
    init_mail(app)

    # Register Blueprints
    from cruiser.routes.routes_mgmt import routes_bp
    from cruiser.routes.students import students_bp
    from cruiser.routes.api import api_bp

    app.register_blueprint(routes_bp)
    app.register_blueprint(students_bp)
    app.register_blueprint(api_bp)

    @app.errorhandler(CruiserError)
    def handle_cruiser_error(e):
        return jsonify({'status': 'error', 'message': e.message}), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({'status': 'error', 'message': e.description}), e.code
        logger.exception("Unhandled error")
        return jsonify({'status': 'error', 'message': 'An unexpected error occurred.'}), 500

    return app
