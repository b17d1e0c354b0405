import logging
import secrets

from flask import Flask, jsonify, request, session, g
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import auth_service
import offer_service
import stats_service
import storage
import triage_service
from ai_service import AIService
from auth_service import require_admin, require_login
from config import Config
from errors import AppError, NotFoundError, RateLimitedError, ValidationError
from models import (
    db, BRIEF_TEMPLATES, ROLES,
    EVENT_PROJECT_CREATED, EVENT_AI_PROJECT_IMPROVE, EVENT_AI_PROJECT_REVIEW,
    EVENT_AI_OFFER_IMPROVE, EVENT_AI_OFFER_REVIEW,
)
from rate_limit import RateLimiter
from schemas import (
    LoginInput, BriefInput, OfferInput, StatusInput, BulkStatusInput, BulkDeleteInput,
    RoleInput, ResetPasswordInput, ProjectTextInput, OfferTextInput,
)

logger = logging.getLogger(__name__)


def _payload():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return data


def _flag(name):
    raw = request.args.get(name)
    if raw is None or raw == "" or raw == "all":
        return None
    return raw.lower() in ("1", "true", "yes", "blocked")


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    db.init_app(app)
    with app.app_context():
        db.create_all()

    rate_limiter = RateLimiter(
        app.config["AI_RATE_LIMIT"],
        app.config["AI_RATE_WINDOW_SECONDS"],
        max_keys=app.config["AI_RATE_MAX_KEYS"],
    )
    app.extensions["rate_limiter"] = rate_limiter
    app.extensions["ai_service"] = AIService.from_config(app.config)

    # --------- Errors ----------
    @app.errorhandler(AppError)
    def _app_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(PydanticValidationError)
    def _invalid_input(e):
        body = {"message": "Invalid input"}
        errs = e.errors()
        if errs and errs[0].get("loc"):
            body["field"] = ".".join(str(p) for p in errs[0]["loc"])
        return jsonify(body), 400

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return jsonify({"message": e.name}), e.code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(e):
        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def _unexpected(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500

    # --------- Session ----------
    @app.before_request
    def _load_account():
        g.account = None
        g.account_blocked = False
        account_id = session.get("account_id")
        if account_id is None:
            return None

        account = storage.find_account_by_id(account_id)
        if account is None:
            session.pop("account_id", None)
            return None
        if account.is_blocked:
            session.clear()
            g.account_blocked = True
            return None
        g.account = account
        return None

    # --------- Auth ----------
    @app.post("/auth/login")
    def login():
        data = LoginInput.model_validate(_payload())
        resolution = auth_service.login(data.username, data.password)
        session.clear()
        session.permanent = True
        session["account_id"] = resolution.account.id
        return jsonify(resolution.account.to_dict())

    @app.post("/auth/logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.get("/auth/me")
    def me():
        if g.account is None:
            return jsonify(None)
        return jsonify(g.account.to_dict())

    # --------- Briefs ----------
    @app.get("/projects/templates")
    def project_templates():
        return jsonify([
            {"key": key, "label": t["label"], "hint": t["hint"]}
            for key, t in BRIEF_TEMPLATES.items()
        ])

    @app.post("/projects")
    @require_login
    def create_project():
        data = BriefInput.model_validate(_payload())
        with storage.atomic():
            brief = storage.create_brief(g.account.id, data.model_dump())
            storage.log_event(
                EVENT_PROJECT_CREATED,
                user_id=g.account.id,
                metadata={"projectId": brief.id, "template": brief.template},
            )
        logger.info("Account %s created brief %s", g.account.id, brief.id)
        return jsonify(brief.to_dict()), 201

    @app.get("/projects")
    @require_login
    def list_projects():
        items = []
        for brief, offer_count in storage.list_briefs_by_owner(g.account.id):
            item = brief.to_dict()
            item["offerCount"] = offer_count
            items.append(item)
        return jsonify(items)

    @app.get("/projects/<int:project_id>")
    @require_login
    def get_project(project_id: int):
        brief = offer_service.get_owned_brief(project_id, g.account.id)
        offers = offer_service.list_offers(
            brief.id,
            status=request.args.get("status") or None,
            sort=request.args.get("sort") or None,
            direction=request.args.get("dir") or None,
        )
        data = brief.to_dict()
        data["offers"] = [o.to_dict() for o in offers]
        return jsonify(data)

    @app.get("/projects/public/<token>")
    def get_public_project(token: str):
        brief = storage.find_brief_by_token(token)
        if brief is None:
            raise NotFoundError("Project not found")
        return jsonify(brief.to_public_dict())

    # --------- Offers ----------
    @app.post("/projects/<token>/offers")
    def submit_offer(token: str):
        if storage.find_brief_by_token(token) is None:
            raise NotFoundError("Project not found")
        data = OfferInput.model_validate(_payload())
        offer = offer_service.submit_offer(token, data.model_dump())
        return jsonify(offer.to_dict()), 201

    @app.patch("/offers/bulk/status")
    @require_login
    def bulk_status():
        data = BulkStatusInput.model_validate(_payload())
        offers = triage_service.set_status_bulk(g.account.id, data.offer_ids, data.status)
        return jsonify({"updated": len(offers), "offers": [o.to_dict() for o in offers]})

    @app.delete("/offers/bulk")
    @require_login
    def bulk_delete():
        data = BulkDeleteInput.model_validate(_payload())
        deleted = triage_service.delete_bulk(g.account.id, data.offer_ids)
        return jsonify({"deleted": deleted})

    @app.patch("/offers/<int:offer_id>/status")
    @require_login
    def offer_status(offer_id: int):
        data = StatusInput.model_validate(_payload())
        offer = triage_service.set_status(g.account.id, offer_id, data.status)
        return jsonify(offer.to_dict())

    @app.delete("/offers/<int:offer_id>")
    @require_login
    def delete_offer(offer_id: int):
        triage_service.delete_one(g.account.id, offer_id)
        return jsonify({"deleted": 1})

    # --------- Admin ----------
    @app.get("/admin/users")
    @require_admin
    def admin_users():
        role = request.args.get("role")
        if role and role != "all" and role not in ROLES:
            raise ValidationError("Unknown role", field="role")
        accounts = storage.list_accounts(
            search=(request.args.get("search") or "").strip() or None,
            blocked=_flag("blocked"),
            role=role if role in ROLES else None,
        )
        return jsonify([a.to_dict() for a in accounts])

    @app.patch("/admin/users/<int:user_id>/block")
    @require_admin
    def admin_block(user_id: int):
        with storage.atomic():
            account = storage.set_blocked(user_id, True)
        logger.warning("Admin %s blocked account %s", g.account.id, user_id)
        return jsonify(account.to_dict())

    @app.patch("/admin/users/<int:user_id>/unblock")
    @require_admin
    def admin_unblock(user_id: int):
        with storage.atomic():
            account = storage.set_blocked(user_id, False)
        logger.info("Admin %s unblocked account %s", g.account.id, user_id)
        return jsonify(account.to_dict())

    @app.patch("/admin/users/<int:user_id>/role")
    @require_admin
    def admin_role(user_id: int):
        data = RoleInput.model_validate(_payload())
        with storage.atomic():
            account = storage.set_role(user_id, data.role)
        logger.warning("Admin %s set role of %s to %s", g.account.id, user_id, data.role)
        return jsonify(account.to_dict())

    @app.post("/admin/users/<int:user_id>/reset-password")
    @require_admin
    def admin_reset_password(user_id: int):
        data = ResetPasswordInput.model_validate(_payload())
        auth_service.check_new_password(data.new_password)
        with storage.atomic():
            account = storage.set_password_digest(user_id, auth_service.hash_password(data.new_password))
        logger.warning("Admin %s reset password of %s", g.account.id, user_id)
        return jsonify(account.to_dict())

    @app.get("/admin/stats")
    @require_admin
    def admin_stats():
        return jsonify(stats_service.collect_stats(request.args.get("days", 7)))

    # --------- Text generation ----------
    def _consume_quota():
        key = session.get("rl_key")
        if not key:
            key = secrets.token_hex(16)
            session["rl_key"] = key
        if not app.extensions["rate_limiter"].try_consume(key):
            raise RateLimitedError()

    def _ai_call(event_type, method_name, data):
        _consume_quota()
        ai = app.extensions["ai_service"]
        result = getattr(ai, method_name)(data)
        user_id = g.account.id if g.account is not None else None
        with storage.atomic():
            storage.log_event(event_type, user_id=user_id, metadata={"template": data.get("template")})
        return jsonify(result)

    @app.post("/ai/project/improve")
    @require_login
    def ai_project_improve():
        data = ProjectTextInput.model_validate(_payload())
        return _ai_call(EVENT_AI_PROJECT_IMPROVE, "improve_project", data.model_dump())

    @app.post("/ai/project/review")
    @require_login
    def ai_project_review():
        data = ProjectTextInput.model_validate(_payload())
        return _ai_call(EVENT_AI_PROJECT_REVIEW, "review_project", data.model_dump())

    @app.post("/ai/offer/improve")
    def ai_offer_improve():
        data = OfferTextInput.model_validate(_payload())
        return _ai_call(EVENT_AI_OFFER_IMPROVE, "improve_offer", data.model_dump())

    @app.post("/ai/offer/review")
    def ai_offer_review():
        data = OfferTextInput.model_validate(_payload())
        return _ai_call(EVENT_AI_OFFER_REVIEW, "review_offer", data.model_dump())

    @app.get("/health")
    def health():
        return {"ok": True, "version": app.config["APP_VERSION"]}

    @app.cli.command("seed")
    def seed_command():
        """Create sample data if the database is empty."""
        from seed import seed
        if seed():
            print("Sample data created.")
        else:
            print("Sample data already present.")

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
