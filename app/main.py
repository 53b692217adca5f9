import logging
from pathlib import Path

import markdown
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup, escape
from starlette.responses import HTMLResponse

from app.config import settings
from app.routers import tools
from app.views import chat

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists", "nl2br"]


def render_markdown(text: str) -> Markup:
    """Render assistant text as Markdown; raw HTML in the text is escaped first."""
    return Markup(markdown.markdown(str(escape(text or "")), extensions=MARKDOWN_EXTENSIONS))


app = FastAPI(title=settings.app_name, debug=settings.debug)

# templates
templates_dir = Path(__file__).parent / "templates"
app.state.templates = Environment(loader=FileSystemLoader(str(templates_dir)), autoescape=True)
app.state.templates.filters["markdown"] = render_markdown


def _template_response(self, name, context):
    template = self.get_template(name)
    html = template.render(**context)
    return HTMLResponse(html)


app.state.templates.TemplateResponse = lambda name, ctx: _template_response(app.state.templates, name, ctx)

# static files
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# routers
app.include_router(chat.router)
app.include_router(tools.router)


@app.get("/")
async def index():
    return RedirectResponse("/chat/", status_code=303)
