"""
Controller Control-Plane API
============================

- ``GET  /all``               full registry snapshot
- ``POST /controller/set``    form ``id``, ``temperature``, ``level``
- ``POST /controller/state``  form ``id``, ``enable``

Wrong HTTP methods never reach these handlers; Flask answers 405 and the
app-wide error handler renders it as JSON. Automatic OPTIONS responses are
turned off so OPTIONS is a wrong method too.
"""

from __future__ import annotations

import logging

from flask import Blueprint

from scadahub.schemas.controller import SetEnabledRequest, SetValuesRequest
from scadahub.utils.http import json_text_response, safe_route, success_response

from ._common import get_actor, get_control_plane, get_form

controllers_api = Blueprint("controllers_api", __name__)
logger = logging.getLogger("controllers_api")


@controllers_api.get("/all", provide_automatic_options=False)
@safe_route("Failed to list controllers")
def list_controllers():
    return json_text_response(get_control_plane().list_all())


@controllers_api.post("/controller/set", provide_automatic_options=False)
@safe_route("Failed to set controller values")
def set_controller_values():
    body = SetValuesRequest.from_form(get_form())
    get_control_plane().set_values(body.id, body.temperature, body.level, actor=get_actor())
    return success_response()


@controllers_api.post("/controller/state", provide_automatic_options=False)
@safe_route("Failed to change controller state")
def set_controller_state():
    body = SetEnabledRequest.from_form(get_form())
    get_control_plane().set_enabled(body.id, body.enable, actor=get_actor())
    return success_response()
