import logging

from flask import Flask, jsonify, request, abort, session

from .config import get_config
from .errors import CirculationError
from .extensions import db, migrate
from .security.security_events import record_security_event


def create_app(config_overrides: dict | None = None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(get_config())

    # ✅ Apply overrides BEFORE db.init_app so SQLAlchemy uses test DB
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(level=logging.INFO)
    app.logger.info("Library circulation - init app")

    db.init_app(app)

    # load models so Alembic detects tables / metadata exists
    from . import models  # noqa: F401

    migrate.init_app(app, db)

    from .blueprints.auth.routes import bp as auth_bp
    from .blueprints.users.routes import bp as users_bp
    from .blueprints.books.routes import bp as books_bp
    from .blueprints.borrow_requests.routes import bp as borrow_requests_bp
    from .blueprints.dashboard.routes import bp as dashboard_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(books_bp)
    app.register_blueprint(borrow_requests_bp)
    app.register_blueprint(dashboard_bp)

    from .security.access import Rule, is_public_endpoint, check_access

    ACCESS_RULES = [
        Rule(blueprint="users", methods={"*"}, roles={"admin"}),
        Rule(blueprint="dashboard", methods={"*"}, roles={"admin"}),

        Rule(blueprint="books", methods={"GET", "HEAD"}, roles={"member", "admin"}),
        Rule(blueprint="books", methods={"POST", "PATCH", "DELETE"}, roles={"admin"}),

        # endpoints solo-admin dentro del blueprint llevan @role_required("admin")
        Rule(blueprint="borrow_requests", methods={"*"}, roles={"member", "admin"}),
    ]

    # -----------------------------
    # Error handlers (JSON)
    # -----------------------------
    @app.errorhandler(CirculationError)
    def err_domain(e: CirculationError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(400)
    def err_400(e):
        return jsonify(error="bad_request", message=getattr(e, "description", None)), 400

    @app.errorhandler(401)
    def err_401(e):
        return jsonify(error="unauthorized"), 401

    @app.errorhandler(403)
    def err_403(e):
        return jsonify(error="forbidden"), 403

    @app.errorhandler(404)
    def err_404(e):
        return jsonify(error="not_found"), 404

    @app.errorhandler(429)
    def err_429(e):
        return jsonify(error="too_many_requests"), 429

    # -----------------------------
    # RBAC / Enforcement global + rate limit (auth)
    # -----------------------------
    @app.before_request
    def enforce_global_access_min():
        # endpoint None suele ser 404 / rutas no resueltas
        if request.endpoint is None:
            return

        # preflight CORS
        if request.method == "OPTIONS":
            return

        if request.endpoint == "static":
            return

        # rate limit SOLO para auth.* y NO en tests (auth.* es público, va antes)
        if (not app.config.get("TESTING")) and request.endpoint.startswith("auth."):
            from .security.rate_limit import hit, limit_for

            xff = request.headers.get("X-Forwarded-For")
            ip = (xff.split(",")[0].strip() if xff else request.remote_addr) or "unknown"

            limit, window_sec = limit_for(request.endpoint)
            key = f"{ip}:{request.endpoint}"
            if not hit(key, limit=limit, window_sec=window_sec):
                app.logger.info(
                    "RATE LIMIT 429: ip=%s endpoint=%s limit=%s window=%s",
                    ip, request.endpoint, limit, window_sec
                )
                record_security_event(
                    event_type="rate_limited",
                    status_code=429,
                    req=request,
                    user=None,
                    details=f"limit={limit} window={window_sec} key={key}",
                )
                abort(429)

        if is_public_endpoint(request.endpoint):
            return

        # a partir de aquí: requiere login
        user_id = session.get("user_id")
        if not user_id:
            app.logger.info(
                "RBAC DENY 401: no session user_id | endpoint=%s method=%s path=%s",
                request.endpoint, request.method, request.path,
            )
            record_security_event(
                event_type="deny_unauthorized",
                status_code=401,
                req=request,
                user=None,
                details="missing session user_id",
            )
            abort(401)

        from .models import User
        user = db.session.get(User, user_id)

        # sesión huérfana (usuario borrado)
        if user is None:
            session.clear()
            abort(401)

        if not check_access(user, request, ACCESS_RULES):
            app.logger.info(
                "RBAC DENY 403: forbidden user_id=%s role=%s bp=%s | endpoint=%s method=%s path=%s",
                user_id, user.role.value, request.blueprint,
                request.endpoint, request.method, request.path,
            )
            record_security_event(
                event_type="deny_forbidden",
                status_code=403,
                req=request,
                user=user,
                details=f"bp={request.blueprint}",
            )
            abort(403)

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    @app.get("/")
    def index():
        return jsonify(service="library-circulation", status="ok")

    return app
