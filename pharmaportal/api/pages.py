from fastapi import APIRouter
from fastapi.responses import FileResponse, HTMLResponse

from pharmaportal.config import get_settings

# Tag "Interface" para diferenciar visualmente no Swagger
router = APIRouter(tags=["Interface"])


def _page(filename: str):
    html_path = get_settings().static_dir / filename
    if html_path.is_file():
        return FileResponse(html_path, media_type="text/html")
    return HTMLResponse(content="<h1>Page not found</h1>", status_code=404)


@router.get("/home", response_class=HTMLResponse)
def home_page():
    return _page("Home.html")


@router.get("/profile", response_class=HTMLResponse)
def profile_page():
    return _page("profile.html")


@router.get("/login", response_class=HTMLResponse)
def login_page():
    return _page("login.html")


@router.get("/register", response_class=HTMLResponse)
def register_page():
    return _page("register.html")
