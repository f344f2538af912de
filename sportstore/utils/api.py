# --- sportstore/utils/api.py ---
from flask import jsonify


def api_ok(message, data=None):
    return {
        "success": True,
        "message": message,
        "data": data,
    }


def api_error(message, data=None):
    return {
        "success": False,
        "message": message,
        "data": data,
    }


# unified response helpers
def ok(message: str, data=None, status_code=200):
    resp = jsonify(api_ok(message, data))
    resp.status_code = status_code
    return resp


def err(message: str, status_code=400, data=None):
    resp = jsonify(api_error(message, data))
    resp.status_code = status_code
    return resp
