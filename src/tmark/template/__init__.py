"""tmark Template package — parsed templates and the directive interpreter.

Re-exports the public symbols so that ``from tmark.template import Template``
works.

"""

from tmark.template.conditions import ConditionChain
from tmark.template.core import Template
from tmark.template.interpreter import Interpreter
from tmark.template.loop_context import LoopContext
from tmark.template.scope import Scope
from tmark.template.sessions import TreeSession, TreeSessionStore
from tmark.utils.html import Markup

__all__ = [
    "ConditionChain",
    "Interpreter",
    "LoopContext",
    "Markup",
    "Scope",
    "Template",
    "TreeSession",
    "TreeSessionStore",
]
