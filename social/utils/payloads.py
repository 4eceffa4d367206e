"""
Helpers for reading JSON request bodies and writing message responses.
"""
from flask import jsonify, make_response, request

from social.errors import BadRequest

# Ids and counters are 32-bit signed INTEGER columns
INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1


def in_int_range(value: int) -> bool:
    return INT_MIN <= value <= INT_MAX


def get_json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Bad request, expected a JSON object")
    return data


def get_str(data: dict, field: str) -> str:
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be a string")
    return value


def get_int(data: dict, field: str) -> int:
    value = data.get(field)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or not in_int_range(value):
        raise BadRequest(f"{field} must be an integer")
    return value


def get_bool(data: dict, field: str) -> bool:
    value = data.get(field)
    if not isinstance(value, bool):
        raise BadRequest(f"{field} must be a boolean")
    return value


def message_response(message: str, status: int = 200, **extra):
    body = {'message': message}
    body.update(extra)
    return make_response(jsonify(body), status)


def empty_response(status: int = 204):
    return make_response('', status)
