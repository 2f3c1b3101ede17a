from flask import g

from . import bp
from ..schemas import LoginBody, RegisterBody
from ..services import auth_service
from ..utils.api import ok
from ..utils.decorators import auth_required, validate


@bp.post("/register")
@validate(body=RegisterBody)
def register(body: RegisterBody):
    user, token = auth_service.register(body.email, body.password, body.name)
    return ok("User registered successfully", {"user": user.as_auth(), "token": token}, status_code=201)


@bp.post("/login")
@validate(body=LoginBody)
def login(body: LoginBody):
    user, token = auth_service.login(body.email, body.password)
    return ok("Login successful", {"user": user.as_auth(), "token": token})


@bp.get("/me")
@auth_required
def me():
    user = auth_service.get_current_user(g.identity["userId"])
    return ok("User retrieved successfully", user.as_dict())
