# app.py

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from herbaltrace.app_config import load_config
from herbaltrace.errors import register_error_handlers
from herbaltrace.mongo import init_mongo
from herbaltrace.register_blueprints import register_all_blueprints
from herbaltrace.routes.portal_auth import register_jwt_handlers
from herbaltrace.services.auth.auth_service import bcrypt


def create_app(config=None, row_store=None):
    app = Flask(__name__)

    # -------------------------
    # Config & security
    # -------------------------
    load_config(app, config)

    CORS(app, resources={r"/*": {"origins": "*"}})
    bcrypt.init_app(app)

    jwt = JWTManager(app)
    register_jwt_handlers(jwt)

    # -------------------------
    # Row store (Mongo)
    # -------------------------
    if row_store is not None:
        app.extensions["row_store"] = row_store
    elif app.config.get("DISABLE_MONGO"):
        app.logger.warning("Mongo disabled by DISABLE_MONGO=1")
    else:
        init_mongo(app)

    # -------------------------
    # Errors & blueprints
    # -------------------------
    register_error_handlers(app)
    register_all_blueprints(app)

    return app


# Local run only
if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
