from flask import Blueprint

bp = Blueprint("timeslots", __name__)
from . import routes  # noqa: E402,F401
