from flask import Blueprint

bp = Blueprint("enrollments", __name__)
from . import routes  # noqa: E402,F401
