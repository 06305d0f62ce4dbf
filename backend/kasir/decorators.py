# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, g


def with_acting_user(f):
    """
    Establish the acting user for the request.

    There is no authentication: the id comes from ACTING_USER_ID
    configuration and is passed explicitly into every service call that
    records attribution.

    Sets g.acting_user_id.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.acting_user_id = current_app.config["ACTING_USER_ID"]
        return f(*args, **kwargs)

    return decorated_function
