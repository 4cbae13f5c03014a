import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime
from flask import Flask, jsonify
from flask_cors import CORS
from src.config import Config
from src.extensions import db, migrate
from src.exceptions import register_error_handlers
from src.logger import get_logger, init_request_logging
from locations.location_import import import_locations_command

# register blueprints
from routes import register_routes

logger = get_logger("app")


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.url_map.strict_slashes = False

    CORS(app, origins=app.config["CORS_ORIGINS"], methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"], supports_credentials=True)

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import all models within app context to resolve relationships
    with app.app_context():
        import models  # noqa: F401

    register_error_handlers(app)
    register_routes(app)
    init_request_logging(app)
    app.cli.add_command(import_locations_command)

    @app.get("/")
    def index():
        return jsonify({"message": "Printshop Management API"}), 200

    @app.get("/health")
    def health():
        return jsonify({
            "statusCode": 200,
            "message": "OK",
            "data": {"status": "healthy", "timestamp": datetime.utcnow().isoformat()},
        }), 200

    logger.info("Application created with %s", config_class.__name__)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=app.config["DEBUG"])
