"""
api/routes/v1/users.py -- Account creation (createUser) for the JSON surface.

Routes:
  POST /api/v1/users  -- public signup; 201 on success

Errors (rendered by the AppError handler):
  400 invalid_input  -- field-level messages in error.fields
  409 conflict       -- email already registered
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Request

from api.models import UserCreate, UserResponse
from auth.accounts import register_user

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate, background_tasks: BackgroundTasks) -> UserResponse:
    """Register a new account and send the signup confirmation mail."""
    identity = register_user(request.app.state.user_store, body.email, body.password, body.display_name)
    background_tasks.add_task(request.app.state.mailer.send_signup_confirmation, identity.email)
    return UserResponse(id=identity.user_id, email=identity.email, display_name=identity.display_name)
