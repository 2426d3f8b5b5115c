"""Template runtime package.

Provides execution (Executor), the function registry, value printing and
the TemplateOptions carried by the facade. Depends on the syntax package.

The Template/TemplateFactory facade lives in runtime.template and is not
imported here: it depends on the function library, which itself builds on
this package.

Python 3.13+.
"""

from .executor import ExecutionContext, Executor, Writer
from .function_bridge import FunctionRegistry, FunctionSignature, TemplateFunction
from .introspection import PropertyCache, get_shared_property_cache
from .options import TemplateOptions
from .scope import VariableScope
from .value_types import format_value, is_true, print_value

__all__ = [
    "ExecutionContext",
    "Executor",
    "FunctionRegistry",
    "FunctionSignature",
    "PropertyCache",
    "TemplateFunction",
    "TemplateOptions",
    "VariableScope",
    "Writer",
    "format_value",
    "get_shared_property_cache",
    "is_true",
    "print_value",
]
