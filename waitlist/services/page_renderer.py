import html
from pathlib import Path
from string import Template
from typing import Dict

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class PageRenderer:
    """Fill the HTML templates with plain, escaped values."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.template_dir = Path(template_dir)
        self._templates: Dict[str, Template] = {}

    def _load(self, name: str) -> Template:
        if name not in self._templates:
            path = self.template_dir / f"{name}.html"
            self._templates[name] = Template(path.read_text(encoding="utf-8"))
        return self._templates[name]

    def render(self, name: str, **values: str) -> str:
        escaped = {key: html.escape(str(value), quote=True) for key, value in values.items()}
        return self._load(name).substitute(escaped)

    def confirmation_email(self, confirm_url: str) -> str:
        return self.render("email-confirmation", confirm_url=confirm_url)

    def thank_you(self, email: str) -> str:
        return self.render("thank-you", email=email)

    def error(self, message: str) -> str:
        return self.render("error", error_message=message)
