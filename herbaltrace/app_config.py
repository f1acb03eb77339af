# herbaltrace/app_config.py

import os
from datetime import timedelta


def load_config(app, overrides=None):
    """
    Load all Flask configuration in a clean centralized way.
    """
    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017/herbaltrace_db"
    )
    app.config["DISABLE_MONGO"] = os.getenv("DISABLE_MONGO", "0") == "1"

    # ------------------------------
    # Security Keys
    # ------------------------------
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", os.urandom(24))
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "change-me")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_H", "6")))
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(days=int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_D", "14")))
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # ------------------------------
    # Auth provider
    # ------------------------------
    app.config["USE_REMOTE_AUTH_API"] = os.getenv("USE_REMOTE_AUTH_API", "0") == "1"
    app.config["AUTH_API_BASE_URL"] = (os.getenv("AUTH_API_BASE_URL", "") or "").rstrip("/")

    # ------------------------------
    # Traceability / QR
    # ------------------------------
    # when set, printed QR codes carry a scan URL instead of the bare token
    app.config["PUBLIC_BASE_URL"] = (os.getenv("PUBLIC_BASE_URL", "") or "").rstrip("/")
    app.config["TRACE_MAX_WORKERS"] = int(os.getenv("TRACE_MAX_WORKERS", "3"))

    if overrides:
        app.config.update(overrides)

    app.logger.info("Config loaded")
