from flask import Blueprint

bp = Blueprint("semesters", __name__)
from . import routes  # noqa: E402,F401
