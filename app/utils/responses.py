from flask import jsonify


def ok(data=None, message="success", status=200):
    payload = {"status": "success", "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def error(message, status=400, code=None, kind=None, details=None):
    payload = {
        "status": "error",
        "message": message,
        "code": code or status
    }
    if kind:
        payload["error"] = kind
    if details is not None:
        payload["details"] = details
    return jsonify(payload), status


def validation_error_response(errors):
    return jsonify({
        "status": "error",
        "message": "Validation failed",
        "code": 422,
        "errors": errors,
    }), 422
