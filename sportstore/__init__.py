import logging

from flask import Flask

from .config import Config
from .extensions import db, jwt, cors, migrate
from .utils.api import ok


def create_app(config_class=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    config_class.init_app(app)

    app.json.ensure_ascii = False
    app.json.sort_keys = False
    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    migrate.init_app(app, db)

    from .errors import register_error_handlers, register_jwt_callbacks
    register_error_handlers(app)
    register_jwt_callbacks(jwt)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .category import bp as category_bp; app.register_blueprint(category_bp)
    from .brand import bp as brand_bp; app.register_blueprint(brand_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .review import bp as review_bp; app.register_blueprint(review_bp)
    from .question import bp as question_bp; app.register_blueprint(question_bp)
    from .favorite import bp as favorite_bp; app.register_blueprint(favorite_bp)
    from .customer import bp as customer_bp; app.register_blueprint(customer_bp)
    from .dashboard import bp as dashboard_bp; app.register_blueprint(dashboard_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return ok("API running", {"ok": True})

    with app.app_context():
        from . import model  # noqa: F401
        db.create_all()

    app.logger.debug("registered blueprints: %s", sorted(app.blueprints.keys()))
    return app
