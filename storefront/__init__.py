# --- storefront/__init__.py ---
import logging

from flask import Flask
from sqlalchemy import text
from werkzeug.utils import import_string

from .config import get_config
from .extensions import db, cors, migrate
from .errors import register_error_handlers
from .services.cart_service import CartService
from .services.checkout_service import CheckoutService
from .utils.api import ok
from .utils.log import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_object=None, **overrides):
    app = Flask(__name__, instance_relative_config=True)

    if isinstance(config_object, str):
        config_object = import_string(config_object)
    config_object = config_object or get_config()
    app.config.from_object(config_object)
    app.config.update(overrides)
    config_object.init_app(app)

    configure_logging(app)

    # Init extensions
    db.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGIN"]}}, supports_credentials=True)
    migrate.init_app(app, db)

    # The cart is one shared resource; services are bound once per app
    cart_service = CartService(db.session)
    app.extensions["cart_service"] = cart_service
    app.extensions["checkout_service"] = CheckoutService(cart_service, id_prefix=app.config["RECEIPT_ID_PREFIX"])

    # Register blueprints
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.get("/api")
    def api_index():
        return ok("Storefront API", {
            "version": "1.0.0",
            "endpoints": {
                "health": "/api/health",
                "products": "/api/products",
                "cart": "/api/cart",
                "checkout": "/api/checkout",
            },
        })

    @app.get("/api/health")
    def health():
        try:
            db.session.execute(text("SELECT 1"))
            database = "ok"
        except Exception:
            logger.exception("health check: database unreachable")
            database = "unavailable"
        return ok("API running", {"status": "ok", "service": "storefront", "database": database})

    with app.app_context():
        db.create_all()
        logger.debug("database ready at %s", app.config["SQLALCHEMY_DATABASE_URI"])

    return app
