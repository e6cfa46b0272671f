# app.py
from flask import Flask, jsonify, request, abort
from flask_login import LoginManager, login_required
from models import db
from auth import auth, form_data, get_directory, current_workspace
from reports import reports, price_per_bag, distribution_cost
from records import MANAGERS
from errors import LedgerError
import logging
import os

def create_app(test_config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "replace-with-a-strong-secret")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("SEED_LEDGER_DB", "sqlite:///seed_ledger.sqlite3")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    # "obfuscated" matches the browser app's stored users; "hashed" uses werkzeug
    app.config["PASSWORD_SCHEME"] = os.environ.get("SEED_LEDGER_PASSWORD_SCHEME", "obfuscated")
    if test_config:
        app.config.update(test_config)

    if not app.debug and not app.testing:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db.init_app(app)

    login_manager = LoginManager()
    login_manager.init_app(app)

    app.register_blueprint(auth)
    app.register_blueprint(reports)

    @login_manager.user_loader
    def load_user(user_id):
        return get_directory().get(int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Login required"}), 401

    @app.errorhandler(LedgerError)
    def ledger_error(exc):
        app.logger.info("%s: %s", type(exc).__name__, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    def manager_for(kind):
        if kind not in MANAGERS:
            abort(404)
        return current_workspace().manager(kind)

    def with_cost(distribution, inventory):
        return {**distribution,
                "pricePerBag": price_per_bag(distribution.get("seedType"), inventory),
                "cost": distribution_cost(distribution, inventory)}

    def present(kind, record):
        if kind == "distributions":
            return with_cost(record, current_workspace().records.inventory)
        return record

    @app.route("/api/<kind>")
    @login_required
    def list_records(kind):
        manager = manager_for(kind)
        filters = {name: request.args.get(name) for name in manager.exact_filters}
        items = manager.list(request.args.get("q"), **filters)
        return jsonify([present(kind, item) for item in items])

    @app.route("/api/<kind>", methods=["POST"])
    @login_required
    def create_record(kind):
        record = manager_for(kind).create(form_data())
        return jsonify(present(kind, record)), 201

    @app.route("/api/<kind>/<int:record_id>")
    @login_required
    def get_record(kind, record_id):
        return jsonify(present(kind, manager_for(kind).get(record_id)))

    @app.route("/api/<kind>/<int:record_id>", methods=["PUT", "POST"])
    @login_required
    def update_record(kind, record_id):
        record = manager_for(kind).update(record_id, form_data())
        return jsonify(present(kind, record))

    @app.route("/api/<kind>/<int:record_id>", methods=["DELETE"])
    @login_required
    def delete_record(kind, record_id):
        manager = manager_for(kind)
        manager.delete(record_id)
        return jsonify({"message": f"{manager.kind} deleted successfully!"})

    @app.cli.command("init-db")
    def init_db():
        with app.app_context():
            db.create_all()
            print("DB initialized.")

    # create tables automatically if file missing
    with app.app_context():
        db.create_all()

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", debug=True)
