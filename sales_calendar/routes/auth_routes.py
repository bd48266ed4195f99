import logging
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from fastapi import APIRouter, HTTPException, Request, Depends
from fastapi.responses import RedirectResponse, Response


from sales_calendar.auth import jwt_handler, saml
from sales_calendar.auth.access import AccessPolicy, get_user_role, normalize_email
from sales_calendar.auth.dependencies import get_access_policy, get_current_email

from sales_calendar.core import config

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


async def prepare_saml_request(request: Request) -> dict:
    form_data = await request.form()
    return saml.build_request_data(
        url=str(request.url),
        host=request.headers.get("host", ""),
        query_params=dict(request.query_params),
        form_data=dict(form_data),
    )


def build_frontend_redirect(token: str) -> str:
    parsed = urlparse(config.FRONTEND_SSO_REDIRECT_URL)
    query = dict(parse_qsl(parsed.query))
    query.update({"access_token": token, "token_type": "bearer"})
    return urlunparse(parsed._replace(query=urlencode(query)))


@router.get("/sso/login")
async def sso_login(request: Request):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    redirect_url = auth.login()
    return RedirectResponse(url=redirect_url)


@router.post("/sso/acs")
async def sso_acs(request: Request):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    auth.process_response()
    errors = auth.get_errors()
    if errors:
        raise HTTPException(status_code=400, detail={"saml_errors": errors})
    if not auth.is_authenticated():
        raise HTTPException(status_code=401, detail="SAML authentication failed")

    email = saml.extract_email(auth.get_attributes(), auth.get_nameid())
    if not email:
        raise HTTPException(status_code=400, detail="Email not found in SAML response")

    email = normalize_email(email)
    logger.info('SSO sign-in for %s', email)
    token = jwt_handler.create_access_token(subject=email)
    if config.FRONTEND_SSO_REDIRECT_URL:
        return RedirectResponse(url=build_frontend_redirect(token))
    return {"access_token": token, "token_type": "bearer"}


@router.get("/sso/metadata")
def sso_metadata():
    metadata, errors = saml.generate_sp_metadata()
    if errors:
        raise HTTPException(status_code=500, detail={"metadata_errors": errors})
    return Response(content=metadata, media_type="application/xml")


@router.get("/sso/logout")
async def sso_logout(request: Request):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    redirect_url = auth.logout()
    return RedirectResponse(url=redirect_url)


@router.get("/me")
def me(
    email: str | None = Depends(get_current_email),
    policy: AccessPolicy = Depends(get_access_policy),
):
    if email is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {"email": email, "role": get_user_role(email, policy)}
