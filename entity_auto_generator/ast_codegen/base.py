import logging
import ast
import keyword
import sys
from typing import List, Optional, Sequence, Tuple, Union

from inflect import engine as inflect_engine

from entity_auto_generator.domain.models import ClassMetadata, FieldMetadata, TypeRef
from entity_auto_generator.domain.naming import split_words

logger = logging.getLogger(__name__)

_INFLECT_ENGINE_ = inflect_engine()

# FunctionDef/ClassDef grew a required type_params list in 3.12
_TYPE_PARAMS = {"type_params": []} if sys.version_info >= (3, 12) else {}

Param = Tuple[str, Optional[ast.expr]]


def pluralize(word: str) -> str:
    """Plural of ``word`` via inflect, falling back to a trailing ``s``."""
    if not isinstance(word, str) or not word:
        return ""

    plural = _INFLECT_ENGINE_.plural(word)
    if plural:
        return plural
    return word + "s"


def safe_identifier(name: str) -> str:
    """Make ``name`` usable as a Python identifier: ``class`` -> ``class_``, ``1st`` -> ``_1st``."""
    if name and name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name


def module_name(table_name: str) -> str:
    """Module (file stem) a table's artifacts are written to."""
    return safe_identifier("_".join(split_words(table_name)))


def add_location(node):
    """Add location info to AST nodes"""
    node.lineno = 1
    node.col_offset = 0
    return node


def create_docstring(content: str) -> ast.Expr:
    """Creates an AST node for a docstring."""
    return add_location(ast.Expr(value=create_string_constant(content)))


def create_import(module: str, names: Optional[List[str]] = None) -> Union[ast.Import, ast.ImportFrom]:
    """Creates an AST node for an import statement."""
    if names:
        node = ast.ImportFrom(
            module=module,
            names=[ast.alias(name=name, lineno=1, col_offset=0) for name in names],
            level=0
        )
    else:
        node = ast.Import(names=[ast.alias(name=module, lineno=1, col_offset=0)])
    return add_location(node)


def create_name(identifier: str, ctx: Optional[ast.expr_context] = None) -> ast.Name:
    return add_location(ast.Name(id=identifier, ctx=ctx or ast.Load()))


def create_dotted_name(path: str, ctx: Optional[ast.expr_context] = None) -> ast.expr:
    """Creates a Name/Attribute chain for ``a.b.c``."""
    head, *attrs = path.split(".")
    if not attrs:
        return create_name(head, ctx)
    node: ast.expr = create_name(head)
    for index, attr in enumerate(attrs):
        last = index == len(attrs) - 1
        node = add_location(ast.Attribute(value=node, attr=attr, ctx=(ctx or ast.Load()) if last else ast.Load()))
    return node


def create_assign(target: str, value: ast.expr) -> ast.Assign:
    """Creates an AST node for an assignment; ``target`` may be dotted."""
    node = ast.Assign(
        targets=[create_dotted_name(target, ast.Store())],
        value=value
    )
    return add_location(node)


def create_annotated_assign(target: str, annotation: ast.expr, value: Optional[ast.expr] = None) -> ast.AnnAssign:
    """Creates ``target: annotation = value`` as a class-level declaration."""
    return add_location(ast.AnnAssign(
        target=create_name(target, ast.Store()),
        annotation=annotation,
        value=value,
        simple=1,
    ))


def create_call(func_name: str, args: Optional[List[ast.expr]] = None, keywords: Optional[List[ast.keyword]] = None) -> ast.Call:
    """Creates an AST node for a function call; ``func_name`` may be dotted."""
    node = ast.Call(
        func=create_dotted_name(func_name),
        args=args or [],
        keywords=keywords or []
    )
    return add_location(node)


def create_attribute_call(obj_name: str, attr_name: str, args: Optional[List[ast.expr]] = None, keywords: Optional[List[ast.keyword]] = None) -> ast.Call:
    """Creates an AST node for a method call on an object."""
    return create_call(f"{obj_name}.{attr_name}", args=args, keywords=keywords)


def create_subscript(value: str, items: Sequence[ast.expr]) -> ast.Subscript:
    """Creates ``value[a, b]`` (or ``value[a]`` for a single item)."""
    index = items[0] if len(items) == 1 else add_location(ast.Tuple(elts=list(items), ctx=ast.Load()))
    return add_location(ast.Subscript(value=create_dotted_name(value), slice=index, ctx=ast.Load()))


def create_return(value: Optional[ast.expr] = None) -> ast.Return:
    return add_location(ast.Return(value=value))


def create_raise(exception: ast.expr) -> ast.Raise:
    return add_location(ast.Raise(exc=exception, cause=None))


def create_expr(value: ast.expr) -> ast.Expr:
    return add_location(ast.Expr(value=value))


def create_if(test: ast.expr, body: List[ast.stmt]) -> ast.If:
    return add_location(ast.If(test=test, body=body, orelse=[]))


def create_function_def(
    name: str,
    params: Sequence[Param],
    body: List[ast.stmt],
    returns: Optional[ast.expr] = None,
    decorator_list: Optional[List[ast.expr]] = None,
) -> ast.FunctionDef:
    """Creates a function or method definition; include ``("self", None)`` for methods."""
    arguments = add_location(ast.arguments(
        posonlyargs=[],
        args=[add_location(ast.arg(arg=param, annotation=annotation)) for param, annotation in params],
        kwonlyargs=[],
        kw_defaults=[],
        defaults=[],
    ))
    return add_location(ast.FunctionDef(
        name=name,
        args=arguments,
        body=body,
        decorator_list=decorator_list or [],
        returns=returns,
        **_TYPE_PARAMS,
    ))


def create_class_def(name: str, bases: List[Union[str, ast.expr]], body: List[ast.stmt], decorator_list: Optional[List[ast.expr]] = None) -> ast.ClassDef:
    """Creates an AST node for a class definition."""
    node = ast.ClassDef(
        name=name,
        bases=[create_dotted_name(base) if isinstance(base, str) else base for base in bases],
        keywords=[],
        body=body,
        decorator_list=decorator_list or [],
        **_TYPE_PARAMS,
    )
    return add_location(node)


def create_tuple(items: List[ast.expr]) -> ast.Tuple:
    return add_location(ast.Tuple(elts=items, ctx=ast.Load()))


def create_tuple_of_strings(items: List[str]) -> ast.Tuple:
    """Creates an AST Tuple node containing string constants."""
    return create_tuple([create_string_constant(item) for item in items])


def create_dict_of_strings(items: List[Tuple[str, str]]) -> ast.Dict:
    """Creates a dict literal mapping string constants to string constants."""
    return add_location(ast.Dict(
        keys=[create_string_constant(key) for key, _ in items],
        values=[create_string_constant(value) for _, value in items],
    ))


def create_string_constant(value: str) -> ast.Constant:
    """Creates an AST Constant node for a string."""
    return add_location(ast.Constant(value=value))


def create_integer_constant(value: int) -> ast.Constant:
    """Creates an AST Constant node for an integer."""
    return add_location(ast.Constant(value=value))


def create_none_constant() -> ast.Constant:
    """Creates an AST Constant node for None."""
    return add_location(ast.Constant(value=None))


def create_keyword(arg: str, value: ast.expr) -> ast.keyword:
    """Creates an AST keyword argument."""
    return add_location(ast.keyword(arg=arg, value=value))


def create_fstring(parts: List[Union[str, ast.expr]]) -> ast.JoinedStr:
    """Creates an f-string from literal text and expressions."""
    values = []
    for part in parts:
        if isinstance(part, str):
            values.append(create_string_constant(part))
        else:
            values.append(add_location(ast.FormattedValue(value=part, conversion=-1, format_spec=None)))
    return add_location(ast.JoinedStr(values=values))


# --- Type annotations derived from metadata ---

def type_annotation(type_ref: TypeRef) -> ast.expr:
    """Annotation expression for a field type: ``int``, ``User`` or ``List[Order]``."""
    if type_ref.is_scalar:
        return create_name(type_ref.scalar.python_name)
    if type_ref.is_collection:
        return create_subscript("List", [create_name(safe_identifier(type_ref.class_name))])
    return create_name(safe_identifier(type_ref.class_name))


def field_annotation(field: FieldMetadata) -> ast.expr:
    """Record attribute annotation; every non-collection attribute is Optional."""
    annotation = type_annotation(field.type)
    if field.type.is_collection:
        return annotation
    return create_subscript("Optional", [annotation])


def scalar_imports(metadata: ClassMetadata) -> List[ast.ImportFrom]:
    """``from x import y`` statements for the non-typing scalar types a class uses, sorted by module."""
    by_module = {}
    for f in metadata.fields:
        scalar = f.type.scalar
        if f.type.is_scalar and scalar.import_from and scalar.import_from != "typing":
            by_module.setdefault(scalar.import_from, set()).add(scalar.python_name)
    return [create_import(module, sorted(names)) for module, names in sorted(by_module.items())]


def identifier_annotation(metadata: ClassMetadata) -> ast.expr:
    return type_annotation(metadata.identifier.type)


def identifier_imports(metadata: ClassMetadata) -> List[ast.ImportFrom]:
    """Import needed by the identifier type annotation, if any."""
    scalar = metadata.identifier.type.scalar
    if scalar.import_from:
        return [create_import(scalar.import_from, [scalar.python_name])]
    return []


def render_module(body: List[ast.stmt]) -> str:
    """Unparse a module body to source text."""
    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"
