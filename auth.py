# auth.py
from flask import Blueprint, current_app, g, jsonify, request
from flask_login import login_user, logout_user, current_user

from accounts import AccountDirectory, password_scheme
from records import Workspace
from store import RecordStore

auth = Blueprint("auth", __name__, url_prefix="/auth")

def form_data():
    """Raw field values from a JSON body or a submitted form."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()

def get_directory():
    if "directory" not in g:
        g.directory = AccountDirectory(scheme=password_scheme(current_app.config["PASSWORD_SCHEME"]))
    return g.directory

def current_workspace():
    """Workspace of the logged-in account, loaded once per request."""
    if "workspace" not in g:
        directory = get_directory()
        if directory.workspace and directory.session.username == current_user.username:
            g.workspace = directory.workspace
        else:
            store = RecordStore(directory.storage)
            session = current_user.session()
            g.workspace = Workspace(session, store.load(session.username), store)
    return g.workspace

@auth.route("/status")
def status():
    directory = get_directory()
    user = current_user.username if current_user.is_authenticated else None
    return jsonify({"hasAccounts": directory.has_accounts(), "user": user})

@auth.route("/signup", methods=["POST"])
def signup():
    data = form_data()
    directory = get_directory()
    session = directory.signup(data.get("username"), data.get("password"))
    login_user(directory.find(session.username))
    return jsonify({"message": "Account created. Logged in.", "user": session.to_dict()}), 201

@auth.route("/login", methods=["POST"])
def login():
    data = form_data()
    directory = get_directory()
    username = (data.get("username") or "").strip()
    session = directory.login(username, data.get("password"))
    login_user(directory.find(session.username), remember=bool(data.get("remember")))
    return jsonify({"message": "Logged in successfully", "user": session.to_dict()})

@auth.route("/logout", methods=["POST"])
def logout():
    get_directory().logout()
    g.pop("workspace", None)
    logout_user()
    return jsonify({"message": "Logged out"})
