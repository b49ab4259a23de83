from flask import Blueprint

bp = Blueprint("days", __name__)
from . import routes  # noqa: E402,F401
