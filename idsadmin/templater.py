"""
HTML pages of the admin UI.
Uses Jinja2 templates with the i18n extension and gettext catalogs per culture.
"""

from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from babel.messages.mofile import write_mo
from babel.messages.pofile import read_po
from babel.support import NullTranslations, Translations
from jinja2 import Environment, FileSystemLoader

_template_dir = Path(__file__).parent / "templates"
LOCALE_DIR = Path(__file__).parent / "locales"
TRANSLATION_DOMAIN = "messages"
DEFAULT_CULTURE = "en"

# Sections linked from the dashboard, (title, path).
SECTIONS = [
    ("Users", "/identity/users"),
    ("Roles", "/identity/roles"),
    ("Clients", "/configuration/clients"),
    ("API resources", "/configuration/api-resources"),
    ("Identity resources", "/configuration/identity-resources"),
    ("Persisted grants", "/grants"),
    ("Logs", "/logs"),
]


@lru_cache(maxsize=32)
def get_translations(culture: str) -> NullTranslations:
    """
    Catalog for the culture compiled from its .po source, trying the full
    culture first and then its language. Pass-through translations when
    neither has a catalog.
    """
    for language in dict.fromkeys([culture.replace("-", "_"), culture.split("-", 1)[0]]):
        path = LOCALE_DIR / language / "LC_MESSAGES" / f"{TRANSLATION_DOMAIN}.po"
        if not path.is_file():
            continue
        with path.open("rb") as fp:
            catalog = read_po(fp, domain=TRANSLATION_DOMAIN)
        compiled = BytesIO()
        write_mo(compiled, catalog)
        compiled.seek(0)
        return Translations(compiled, domain=TRANSLATION_DOMAIN)
    return NullTranslations()


@lru_cache(maxsize=32)
def get_environment(culture: str) -> Environment:
    env = Environment(
        loader=FileSystemLoader(_template_dir),
        autoescape=True,
        extensions=["jinja2.ext.i18n"],
    )
    env.install_gettext_translations(get_translations(culture), newstyle=True)
    return env


def home_page(
    user_name: str,
    cultures: List[str],
    culture: Optional[str] = None,
) -> str:
    """Generate the dashboard HTML."""
    culture = culture or DEFAULT_CULTURE
    template = get_environment(culture).get_template("home.jinja2")
    return template.render(
        user_name=user_name,
        sections=SECTIONS,
        cultures=cultures,
        culture=culture,
    )


def error_page(
    message: str,
    error_key: str = "",
    status_code: int = 500,
    culture: Optional[str] = None,
) -> str:
    """Generate an error page."""
    culture = culture or DEFAULT_CULTURE
    template = get_environment(culture).get_template("error.jinja2")
    return template.render(
        message=message,
        error_key=error_key,
        status_code=status_code,
        culture=culture,
    )
