"""Static contact form page."""

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import StartupConfigError
from contact_server.domain.http_types import HttpRequest, HttpResponse
from contact_server.domain.response_builders import html_response

PAGE_LOGGER = get_logger("handlers.page")


class FormPage:
    """A template loaded once at startup and rendered without data per request."""

    def __init__(self, template) -> None:
        self._template = template

    @classmethod
    def load(cls, template_path: Union[str, Path]) -> "FormPage":
        """Load the template file, raising StartupConfigError if it is unusable."""
        path = Path(template_path)
        environment = Environment(
            loader=FileSystemLoader(path.parent.as_posix() or "."),
            autoescape=select_autoescape(["html", "htm"]),
        )
        try:
            template = environment.get_template(path.name)
        except (TemplateError, OSError, UnicodeDecodeError) as error:
            raise StartupConfigError(
                f"form template {path.as_posix()} could not be loaded: {error}"
            ) from error
        PAGE_LOGGER.info(
            "Form template loaded",
            extra={"event": "template_loaded", "path": path.as_posix()},
        )
        return cls(template)

    def render(self) -> bytes:
        return self._template.render().encode()


def page_response(
    request: HttpRequest, page: FormPage, security_headers: dict[str, str]
) -> HttpResponse:
    """Render the form page for any method."""
    return html_response(page.render(), request, security_headers)
