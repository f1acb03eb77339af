# herbaltrace/mongo.py
from __future__ import annotations

from flask_pymongo import PyMongo

from herbaltrace.row_store import init_row_store

mongo = PyMongo()


def init_mongo(app):
    """
    Initializes Flask-PyMongo and binds a RowStore to the app.
    Requires app.config["MONGO_URI"].
    Tests may pre-bind a store in app.extensions["row_store"]; that one is kept.
    """
    if app.extensions.get("row_store") is not None:
        return app.extensions["row_store"]

    if not app.config.get("MONGO_URI"):
        app.logger.warning("MONGO_URI not set. Row store will not be initialized.")
        return None

    mongo.init_app(app)
    store = init_row_store(app, mongo.db)

    try:
        store.ensure_indexes()
        app.logger.info("Mongo initialized")
    except Exception as e:
        # keep serving; store calls will surface StoreError on their own
        app.logger.warning("Mongo index setup failed: %s", e)

    return store
