"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""

from flask import jsonify


def register_all_blueprints(app):

    @app.get("/health")
    def health():
        return jsonify(ok=True, service="herbaltrace"), 200

    # Auth gate
    from herbaltrace.routes.auth.auth_routes import auth_bp
    app.register_blueprint(auth_bp)

    # Role portals
    from herbaltrace.routes.collector.collector_routes import collector_bp
    from herbaltrace.routes.lab.lab_routes import lab_bp
    from herbaltrace.routes.factory.factory_routes import factory_bp
    from herbaltrace.routes.admin.admin_routes import admin_bp
    from herbaltrace.routes.consumer.consumer_routes import consumer_bp

    app.register_blueprint(collector_bp)
    app.register_blueprint(lab_bp)
    app.register_blueprint(factory_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(consumer_bp)

    app.logger.info("All blueprints registered")
