import logging
import re
from typing import Optional

from jinja2 import StrictUndefined, TemplateError, nodes
from jinja2.sandbox import ImmutableSandboxedEnvironment

from .constants import UNSUPPORTED_TEMPLATE_FUNCTIONS
from .errors import TemplateRenderError, UnsupportedFunctionError
from .models import LabelSet
from .template_functions import TEMPLATE_FUNCTIONS, url_functions

logger = logging.getLogger(__name__)

_UNSUPPORTED_PATTERNS = [
    (name, re.compile(r'\{\{-?\s*' + re.escape(name) + r'(?![A-Za-z0-9_])'))
    for name in UNSUPPORTED_TEMPLATE_FUNCTIONS
]


class _AlertEnvironment(ImmutableSandboxedEnvironment):
    def getattr(self, obj, attribute):
        # Em labels/annotations a chave vence os métodos de dict (labels.values, labels.items)
        if isinstance(obj, LabelSet) and attribute in obj:
            return obj[attribute]
        return super().getattr(obj, attribute)


def _build_environment():
    env = _AlertEnvironment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.globals.update(TEMPLATE_FUNCTIONS)
    env.filters.update(TEMPLATE_FUNCTIONS)
    return env


# Ambiente compartilhado: só é lido após a criação, seguro entre threads
_environment = _build_environment()


def find_unsupported_function(template_text: str) -> Optional[str]:
    """Procura chamadas como "{{query" / "{{ query" sem avaliar o template."""
    for name, pattern in _UNSUPPORTED_PATTERNS:
        if pattern.search(template_text):
            return name
    return None


def _find_unsupported_in_ast(tree) -> Optional[str]:
    for node in tree.find_all((nodes.Call, nodes.Filter)):
        if isinstance(node, nodes.Filter):
            name = node.name
        elif isinstance(node.node, nodes.Name):
            name = node.node.name
        else:
            continue
        if name in UNSUPPORTED_TEMPLATE_FUNCTIONS:
            return name
    return None


def render_template(template_text: str, alert, external_url: Optional[str] = None) -> str:
    """
    Renderiza uma annotation como template Jinja2 com os dados de um único alerta.

    Levanta UnsupportedFunctionError antes de qualquer avaliação se o texto usa
    uma função que a bridge não oferece, e TemplateRenderError para qualquer
    outra falha (sintaxe, variável inexistente, erro dentro de uma função).
    """
    unsupported = find_unsupported_function(template_text)
    if unsupported:
        raise UnsupportedFunctionError(unsupported)

    try:
        tree = _environment.parse(template_text)
    except TemplateError as exc:
        raise TemplateRenderError(str(exc)) from exc

    unsupported = _find_unsupported_in_ast(tree)
    if unsupported:
        raise UnsupportedFunctionError(unsupported)

    context = alert.template_context(external_url)
    try:
        template = _environment.from_string(tree, globals=url_functions(external_url))
        return template.render(context)
    except TemplateError as exc:
        raise TemplateRenderError(str(exc)) from exc
    except Exception as exc:
        # Erros levantados pelas funções do template (regex inválida, conversões...)
        logger.debug(f"Template falhou durante a execução: {exc!r}")
        raise TemplateRenderError(f"{type(exc).__name__}: {exc}") from exc
