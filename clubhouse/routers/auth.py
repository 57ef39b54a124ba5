"""Signup, login and logout pages."""

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from clubhouse.config import get_settings
from clubhouse.database import get_db
from clubhouse.dependencies import clear_session_cookie, get_identity, get_session_token, set_session_cookie
from clubhouse.rate_limit import limiter
from clubhouse.schemas.forms import LoginForm, first_error
from clubhouse.services.auth import get_auth_service
from clubhouse.services.sessions import ResolvedIdentity, get_session_service
from clubhouse.templating import templates

router = APIRouter(tags=["Authentication"])


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request, identity: ResolvedIdentity = Depends(get_identity)) -> HTMLResponse:
    """Render signup page."""
    if identity.is_authenticated:
        return RedirectResponse(url="/", status_code=302)  # type: ignore[return-value]
    return templates.TemplateResponse(
        request,
        "auth/signup.html",
        {"current_user": None, "form_data": {}, "allow_admin_signup": get_settings().ALLOW_ADMIN_SIGNUP},
    )


@router.post("/signup", response_class=HTMLResponse)
def signup_submit(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    is_admin: bool = Form(False),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Handle signup form submission."""
    result = get_auth_service().signup(db, first_name, last_name, email, password, confirm_password, is_admin)

    if not result.success:
        return templates.TemplateResponse(
            request,
            "auth/signup.html",
            {
                "current_user": None,
                "error": result.error,
                "form_data": {"first_name": first_name, "last_name": last_name, "email": email},
                "allow_admin_signup": get_settings().ALLOW_ADMIN_SIGNUP,
            },
        )

    return RedirectResponse(url="/login", status_code=302)  # type: ignore[return-value]


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, identity: ResolvedIdentity = Depends(get_identity)) -> HTMLResponse:
    """Render login page."""
    if identity.is_authenticated:
        return RedirectResponse(url="/", status_code=302)  # type: ignore[return-value]
    return templates.TemplateResponse(request, "auth/login.html", {"current_user": None, "form_data": {}})


@router.post("/login", response_class=HTMLResponse)
@limiter.limit(get_settings().LOGIN_RATE_LIMIT)
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    """Handle login form submission."""
    try:
        form = LoginForm(email=email, password=password)
    except ValidationError as e:
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"current_user": None, "error": first_error(e), "form_data": {"email": email}},
        )

    result = get_auth_service().authenticate(db, form.email, form.password)
    if not result.success:
        return templates.TemplateResponse(
            request,
            "auth/login.html",
            {"current_user": None, "error": result.error, "form_data": {"email": email}},
        )

    response = RedirectResponse(url="/", status_code=302)
    set_session_cookie(response, result.token)  # type: ignore[arg-type]
    return response  # type: ignore[return-value]


@router.get("/logout")
def logout(request: Request, db: Session = Depends(get_db)) -> RedirectResponse:
    """End the session, clear the cookie and go home."""
    get_session_service().invalidate(db, get_session_token(request))
    response = RedirectResponse(url="/", status_code=302)
    clear_session_cookie(response)
    return response
