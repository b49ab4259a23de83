from flask import Blueprint

bp = Blueprint("core", __name__)
# routes have to be imported for the handlers to register on bp
from . import routes  # noqa: E402,F401
