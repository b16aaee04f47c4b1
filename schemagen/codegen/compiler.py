"""
Cross-file compiler for generated client packages.

Validates a set of in-memory Python modules as one unit before anything is
written: every file is compiled by CPython, then names are resolved across
files (relative imports against the sibling files, absolute imports
against the installed environment). The generated code is never imported
or executed; only the modules it imports from the environment are loaded
to check that the imported names exist.

On success the validated sources are returned, optionally with ``.pyi``
stubs and the PEP 561 ``py.typed`` marker.
"""

import ast
import builtins
import importlib
import importlib.util
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..logging_config import get_logger
from .core.generator import GeneratorError

logger = get_logger(__name__)

TYPED_MARKER = "py.typed"

BUILTIN_NAMES = frozenset(dir(builtins))

MODULE_IMPLICIT_NAMES = frozenset(
    {
        "__name__",
        "__doc__",
        "__file__",
        "__package__",
        "__spec__",
        "__loader__",
        "__builtins__",
        "__annotations__",
        "__path__",
        "__dict__",
    }
)

CLASS_IMPLICIT_NAMES = frozenset({"__module__", "__qualname__"})

# Subscripts whose contents are values rather than type names
LITERAL_NAMES = frozenset({"Literal"})

TYPEDDICT_NAMES = frozenset({"TypedDict"})
TYPE_ALIAS_NAMES = frozenset({"TypeAlias"})


@dataclass(frozen=True)
class Diagnostic:
    """A single compilation problem."""

    filename: str
    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}: {self.message}"


class CompilationError(GeneratorError):
    """The generated unit failed to compile; carries every diagnostic."""

    def __init__(self, diagnostics: List[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__(
            f"Generated code failed to compile ({len(self.diagnostics)} problem(s)):\n"
            + "\n".join(str(d) for d in self.diagnostics)
        )


@dataclass
class CompilationOutput:
    """Validated output files, keyed by relative file name."""

    files: Dict[str, str] = field(default_factory=dict)

    @property
    def file_names(self) -> List[str]:
        return list(self.files)


class VirtualFileHost:
    """
    Serves the in-memory files of the unit being compiled.

    Anything not among those files is looked up in the real environment.
    """

    def __init__(self, files: Mapping[str, str]):
        self._files = dict(files)
        self._spec_cache: Dict[str, bool] = {}
        self._module_cache: Dict[str, object] = {}

    def file_exists(self, name: str) -> bool:
        return name in self._files

    def read_file(self, name: str) -> Optional[str]:
        return self._files.get(name)

    def file_names(self) -> List[str]:
        return list(self._files)

    def module_file(self, module: str) -> Optional[str]:
        """File backing a relative module name (``""`` is the package itself)."""
        name = "__init__.py" if not module else f"{module.replace('.', '/')}.py"
        return name if self.file_exists(name) else None

    def external_module_exists(self, module: str) -> bool:
        """Check whether an absolute module can be found in the environment."""
        if module not in self._spec_cache:
            try:
                found = importlib.util.find_spec(module) is not None
            except (ImportError, ValueError):
                found = False
            self._spec_cache[module] = found
        return self._spec_cache[module]

    def load_external(self, module: str):
        """
        Import an environment module for attribute checks.

        Raises:
            ImportError: If the module cannot be loaded
        """
        if module not in self._module_cache:
            self._module_cache[module] = importlib.import_module(module)
        return self._module_cache[module]

    def external_has_name(self, module: str, name: str) -> bool:
        loaded = self.load_external(module)
        if hasattr(loaded, name):
            return True
        return self.external_module_exists(f"{module}.{name}")

    def external_exports(self, module: str) -> Set[str]:
        loaded = self.load_external(module)
        exported = getattr(loaded, "__all__", None)
        if exported is not None:
            return set(exported)
        return {name for name in vars(loaded) if not name.startswith("_")}


class Scope:
    """A name scope during resolution."""

    def __init__(self, kind: str, parent: Optional["Scope"], final: Set[str]):
        self.kind = kind  # module, class, function
        self.parent = parent
        self.final = set(final)
        self.bound: Set[str] = set()

    def lookup(self, name: str, eager: bool) -> str:
        """
        Resolve a name through the scope chain.

        Returns:
            ``"found"``, ``"later"`` (defined further down the module) or
            ``"missing"``
        """
        later = False
        scope: Optional[Scope] = self
        origin = self
        while scope is not None:
            skip = scope is not origin and scope.kind == "class" and origin.kind == "function"
            if not skip:
                if scope.kind == "function" or not eager:
                    if name in scope.final:
                        return "found"
                else:
                    if name in scope.bound:
                        return "found"
                    if name in scope.final:
                        later = True
            if scope.kind == "function":
                origin = scope
            scope = scope.parent
        if name in BUILTIN_NAMES:
            return "found"
        return "later" if later else "missing"


class _BindingCollector(ast.NodeVisitor):
    """Collect the names a block binds, without entering nested scopes."""

    def __init__(self):
        self.names: Set[str] = set()
        self.star_imports: List[ast.ImportFrom] = []

    def collect(self, statements: List[ast.stmt]) -> "_BindingCollector":
        for statement in statements:
            self.visit(statement)
        return self

    def visit_Name(self, node: ast.Name):
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self.names.add(node.id)

    def visit_FunctionDef(self, node: ast.FunctionDef):
        self.names.add(node.name)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_ClassDef(self, node: ast.ClassDef):
        self.names.add(node.name)

    def visit_Lambda(self, node: ast.Lambda):
        pass

    def visit_ListComp(self, node):
        pass

    visit_SetComp = visit_DictComp = visit_GeneratorExp = visit_ListComp

    def visit_AnnAssign(self, node: ast.AnnAssign):
        # A bare annotation declares but does not bind
        if node.value is not None:
            self.visit(node.target)
            self.visit(node.value)

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            self.names.add(alias.asname or alias.name.split(".")[0])

    def visit_ImportFrom(self, node: ast.ImportFrom):
        for alias in node.names:
            if alias.name == "*":
                self.star_imports.append(node)
            else:
                self.names.add(alias.asname or alias.name)

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if node.name:
            self.names.add(node.name)
        self.generic_visit(node)

    def visit_Global(self, node: ast.Global):
        self.names.update(node.names)

    visit_Nonlocal = visit_Global


def _argument_names(args: ast.arguments) -> Set[str]:
    names = {a.arg for a in args.posonlyargs + args.args + args.kwonlyargs}
    if args.vararg:
        names.add(args.vararg.arg)
    if args.kwarg:
        names.add(args.kwarg.arg)
    return names


def _subscript_name(node: ast.expr) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


class _ModuleUnit:
    """One parsed module of the unit."""

    def __init__(self, filename: str, module: str, tree: ast.Module):
        self.filename = filename
        self.module = module
        self.tree = tree
        self.future_annotations = any(
            isinstance(stmt, ast.ImportFrom)
            and stmt.module == "__future__"
            and any(alias.name == "annotations" for alias in stmt.names)
            for stmt in tree.body
        )


class CrossFileCompiler:
    """Compiles and cross-checks a unit of generated Python modules."""

    def __init__(self, emit_declarations: bool = True, declaration_only: bool = False):
        self.emit_declarations = emit_declarations or declaration_only
        self.declaration_only = declaration_only

    def compile(self, files: Mapping[str, str]) -> CompilationOutput:
        """
        Validate the unit and produce its output files.

        Args:
            files: Relative file name to source text

        Returns:
            CompilationOutput with sources, stubs and marker

        Raises:
            CompilationError: With every diagnostic found, if any
        """
        host = VirtualFileHost(files)
        diagnostics: List[Diagnostic] = []
        units: Dict[str, _ModuleUnit] = {}

        # Pass 1: real compilation of each file
        for filename in host.file_names():
            source = host.read_file(filename)
            try:
                compile(source, filename, "exec", dont_inherit=True)
                tree = ast.parse(source, filename=filename)
            except SyntaxError as e:
                diagnostics.append(
                    Diagnostic(
                        filename,
                        e.lineno or 1,
                        e.offset or 0,
                        f"{type(e).__name__}: {e.msg}",
                    )
                )
                continue
            except ValueError as e:
                diagnostics.append(Diagnostic(filename, 1, 0, f"ValueError: {e}"))
                continue
            module = filename[: -len(".py")] if filename.endswith(".py") else filename
            if module == "__init__":
                module = ""
            units[module] = _ModuleUnit(filename, module, tree)

        # Pass 2: cross-module name resolution
        resolver = _Resolver(host, units)
        for unit in units.values():
            resolver.check_module(unit)
        diagnostics.extend(resolver.diagnostics)

        if diagnostics:
            diagnostics.sort(key=lambda d: (d.filename, d.line, d.column, d.message))
            for diagnostic in diagnostics:
                logger.error("%s", diagnostic)
            raise CompilationError(diagnostics)

        output = CompilationOutput()
        if not self.declaration_only:
            for filename in host.file_names():
                output.files[filename] = host.read_file(filename)
        if self.emit_declarations:
            for unit in units.values():
                stub_name = unit.filename[: -len(".py")] + ".pyi"
                output.files[stub_name] = generate_stub(unit.tree)
            output.files[TYPED_MARKER] = ""

        logger.info("Compiled %d modules into %d files", len(units), len(output.files))
        return output


class _Resolver:
    """Scope-aware name resolution across the modules of a unit."""

    def __init__(self, host: VirtualFileHost, units: Dict[str, _ModuleUnit]):
        self.host = host
        self.units = units
        self.diagnostics: List[Diagnostic] = []
        self._names_cache: Dict[str, Set[str]] = {}
        self._exports_cache: Dict[str, Set[str]] = {}
        self._in_progress: Set[str] = set()
        self._reported: Set[Tuple[str, int, int, str]] = set()

        self._unit: Optional[_ModuleUnit] = None
        self._deferred: List[Tuple[str, ast.AST, Scope, Optional[ast.AST]]] = []

    # Reporting

    def report(self, node: ast.AST, message: str, anchor: Optional[ast.AST] = None):
        position = anchor or node
        line = getattr(position, "lineno", 1) or 1
        column = (getattr(position, "col_offset", 0) or 0) + 1
        key = (self._unit.filename, line, column, message)
        if key in self._reported:
            return
        self._reported.add(key)
        self.diagnostics.append(Diagnostic(self._unit.filename, line, column, message))

    # Module symbols

    def module_names(self, module: str) -> Set[str]:
        """Every name bound at the top level of a unit module."""
        if module in self._names_cache:
            return self._names_cache[module]
        unit = self.units.get(module)
        if unit is None or module in self._in_progress:
            return set()

        self._in_progress.add(module)
        try:
            collector = _BindingCollector().collect(unit.tree.body)
            names = set(collector.names) | MODULE_IMPLICIT_NAMES
            for node in collector.star_imports:
                names |= self._star_names(node)
        finally:
            self._in_progress.discard(module)
        self._names_cache[module] = names
        return names

    def module_exports(self, module: str) -> Set[str]:
        """Names a star import of a unit module provides."""
        if module in self._exports_cache:
            return self._exports_cache[module]
        unit = self.units.get(module)
        if unit is None:
            return set()
        declared = self._declared_all(unit)
        if declared is None:
            exports = {n for n in self.module_names(module) if not n.startswith("_")}
        else:
            exports = set(declared)
        self._exports_cache[module] = exports
        return exports

    def _declared_all(self, unit: _ModuleUnit) -> Optional[List[str]]:
        value = None
        for stmt in unit.tree.body:
            if isinstance(stmt, ast.Assign) and any(
                isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets
            ):
                value = stmt.value
        if value is None:
            return None
        return self._evaluate_all(unit, value)

    def _evaluate_all(self, unit: _ModuleUnit, node: ast.expr) -> Optional[List[str]]:
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.Add):
            left = self._evaluate_all(unit, node.left)
            right = self._evaluate_all(unit, node.right)
            if left is None or right is None:
                return None
            return left + right
        if isinstance(node, ast.Name):
            source = self._imported_all_source(unit, node.id)
            if source is None:
                return None
            return sorted(self.module_exports(source))
        if not isinstance(node, (ast.List, ast.Tuple)):
            return None

        names: List[str] = []
        for element in node.elts:
            if isinstance(element, ast.Constant) and isinstance(element.value, str):
                names.append(element.value)
            elif isinstance(element, ast.Starred):
                expanded = self._evaluate_all(unit, element.value)
                if expanded is None:
                    return None
                names.extend(expanded)
            else:
                return None
        return names

    def _imported_all_source(self, unit: _ModuleUnit, local: str) -> Optional[str]:
        """Sibling module whose ``__all__`` a local name was imported as."""
        for stmt in unit.tree.body:
            if isinstance(stmt, ast.ImportFrom) and stmt.level == 1:
                for alias in stmt.names:
                    if alias.name == "__all__" and (alias.asname or alias.name) == local:
                        return stmt.module or ""
        return None

    def _star_names(self, node: ast.ImportFrom) -> Set[str]:
        if node.level:
            return self.module_exports(node.module or "")
        try:
            return self.host.external_exports(node.module)
        except Exception:
            # Reported when the import itself is checked
            return set()

    # Module checking

    def check_module(self, unit: _ModuleUnit):
        self._unit = unit
        self._deferred = []

        module_scope = Scope("module", None, self.module_names(unit.module))
        module_scope.bound |= MODULE_IMPLICIT_NAMES
        self._exec_block(unit.tree.body, module_scope)
        self._check_all_entries(unit)

        # Function bodies and forward references resolve once the module is complete
        while self._deferred:
            kind, node, scope, anchor = self._deferred.pop(0)
            if kind == "body":
                self._check_function_body(node, scope)
            else:
                self._check_expr(node, scope, eager=False, annotation=True, anchor=anchor)

    def _check_all_entries(self, unit: _ModuleUnit):
        declared = self._declared_all(unit)
        if declared is None:
            return
        names = self.module_names(unit.module)
        anchor = next(
            stmt
            for stmt in unit.tree.body
            if isinstance(stmt, ast.Assign)
            and any(isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets)
        )
        for name in declared:
            if name not in names:
                self.report(anchor, f"name '{name}' is listed in __all__ but not defined")

    def _exec_block(self, statements: List[ast.stmt], scope: Scope):
        for statement in statements:
            self._exec_stmt(statement, scope)

    def _bind(self, scope: Scope, statement: ast.stmt):
        collector = _BindingCollector().collect([statement])
        scope.bound |= collector.names
        for node in collector.star_imports:
            scope.bound |= self._star_names(node)

    def _exec_stmt(self, stmt: ast.stmt, scope: Scope):
        """Evaluate a module or class level statement in execution order."""
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            self._check_signature(stmt, scope)
            self._deferred.append(("body", stmt, scope, None))
            scope.bound.add(stmt.name)
            return

        if isinstance(stmt, ast.ClassDef):
            for expr in [*stmt.decorator_list, *stmt.bases, *(k.value for k in stmt.keywords)]:
                self._check_expr(expr, scope, eager=True)
            collector = _BindingCollector().collect(stmt.body)
            class_scope = Scope("class", scope, collector.names | CLASS_IMPLICIT_NAMES)
            class_scope.bound |= CLASS_IMPLICIT_NAMES
            self._exec_block(stmt.body, class_scope)
            scope.bound.add(stmt.name)
            return

        if isinstance(stmt, ast.Import):
            for alias in stmt.names:
                if not self.host.external_module_exists(alias.name):
                    self.report(stmt, f"No module named '{alias.name}'")
            self._bind(scope, stmt)
            return

        if isinstance(stmt, ast.ImportFrom):
            self._check_import_from(stmt)
            self._bind(scope, stmt)
            return

        if isinstance(stmt, ast.AnnAssign):
            deferred = self._unit.future_annotations
            self._check_annotation(stmt.annotation, scope, deferred=deferred)
            if stmt.value is not None:
                if _subscript_name(stmt.annotation) in TYPE_ALIAS_NAMES:
                    self._check_annotation(stmt.value, scope, deferred=False)
                else:
                    self._check_expr(stmt.value, scope, eager=True)
            self._bind(scope, stmt)
            return

        if isinstance(stmt, ast.Assign):
            self._check_expr(stmt.value, scope, eager=True)
            for target in stmt.targets:
                self._check_expr(target, scope, eager=True)
            self._bind(scope, stmt)
            return

        # Any other statement: check its expressions, bind, then run nested blocks
        nested: List[List[ast.stmt]] = []
        for name, value in ast.iter_fields(stmt):
            if isinstance(value, list) and value and isinstance(value[0], ast.stmt):
                nested.append(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, ast.expr):
                        self._check_expr(item, scope, eager=True)
                    elif isinstance(item, ast.ExceptHandler):
                        if item.type is not None:
                            self._check_expr(item.type, scope, eager=True)
                        nested.append(item.body)
                    elif isinstance(item, ast.withitem):
                        self._check_expr(item.context_expr, scope, eager=True)
            elif isinstance(value, ast.expr):
                self._check_expr(value, scope, eager=True)
        self._bind(scope, stmt)
        for block in nested:
            self._exec_block(block, scope)

    def _check_signature(self, node: ast.AST, scope: Scope):
        """Decorators, defaults and annotations are evaluated at definition time."""
        args = node.args
        for expr in [*getattr(node, "decorator_list", []), *args.defaults]:
            self._check_expr(expr, scope, eager=True)
        for expr in args.kw_defaults:
            if expr is not None:
                self._check_expr(expr, scope, eager=True)

        if isinstance(node, ast.Lambda):
            return
        deferred = self._unit.future_annotations
        annotated = [*args.posonlyargs, *args.args, *args.kwonlyargs]
        if args.vararg:
            annotated.append(args.vararg)
        if args.kwarg:
            annotated.append(args.kwarg)
        for arg in annotated:
            if arg.annotation is not None:
                self._check_annotation(arg.annotation, scope, deferred=deferred)
        if node.returns is not None:
            self._check_annotation(node.returns, scope, deferred=deferred)

    def _check_function_body(self, node: ast.AST, parent: Scope):
        local_names = _argument_names(node.args)
        body = node.body if isinstance(node.body, list) else [ast.Expr(node.body)]
        local_names |= _BindingCollector().collect(body).names
        scope = Scope("function", parent, local_names)
        for stmt in body:
            self._check_deferred_stmt(stmt, scope)

    def _check_deferred_stmt(self, stmt: ast.AST, scope: Scope):
        """Check a statement inside a function body, where lookups happen at call time."""
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            self._check_signature(stmt, scope)
            self._check_function_body(stmt, scope)
            return
        if isinstance(stmt, ast.ClassDef):
            for expr in [*stmt.decorator_list, *stmt.bases, *(k.value for k in stmt.keywords)]:
                self._check_expr(expr, scope, eager=False)
            collector = _BindingCollector().collect(stmt.body)
            class_scope = Scope("class", scope, collector.names | CLASS_IMPLICIT_NAMES)
            class_scope.bound |= class_scope.final
            for inner in stmt.body:
                self._check_deferred_stmt(inner, class_scope)
            return
        if isinstance(stmt, ast.ImportFrom):
            self._check_import_from(stmt)
            return
        if isinstance(stmt, ast.Import):
            for alias in stmt.names:
                if not self.host.external_module_exists(alias.name):
                    self.report(stmt, f"No module named '{alias.name}'")
            return
        if isinstance(stmt, ast.AnnAssign):
            # Local variable annotations are never evaluated
            if stmt.value is not None:
                self._check_expr(stmt.value, scope, eager=False)
            return

        for child in ast.iter_child_nodes(stmt):
            if isinstance(child, ast.stmt):
                self._check_deferred_stmt(child, scope)
            elif isinstance(child, ast.ExceptHandler):
                if child.type is not None:
                    self._check_expr(child.type, scope, eager=False)
                for inner in child.body:
                    self._check_deferred_stmt(inner, scope)
            elif isinstance(child, ast.withitem):
                self._check_expr(child.context_expr, scope, eager=False)
            elif isinstance(child, ast.expr):
                self._check_expr(child, scope, eager=False)

    # Expressions

    def _check_annotation(self, node: ast.expr, scope: Scope, deferred: bool):
        if deferred:
            self._deferred.append(("annotation", node, scope, None))
        else:
            self._check_expr(node, scope, eager=True, annotation=True)

    def _check_expr(
        self,
        node: ast.AST,
        scope: Scope,
        eager: bool,
        annotation: bool = False,
        anchor: Optional[ast.AST] = None,
    ):
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Load):
                self._check_name(node, scope, eager, anchor)
            return

        if isinstance(node, ast.Constant):
            if annotation and isinstance(node.value, str):
                self._check_forward_reference(node, scope, anchor)
            return

        if isinstance(node, ast.Subscript) and annotation:
            self._check_expr(node.value, scope, eager, annotation, anchor)
            if _subscript_name(node.value) not in LITERAL_NAMES:
                self._check_expr(node.slice, scope, eager, annotation, anchor)
            return

        if isinstance(node, ast.Call) and _subscript_name(node.func) in TYPEDDICT_NAMES:
            self._check_typeddict_call(node, scope, eager, anchor)
            return

        if isinstance(node, ast.Lambda):
            self._check_signature(node, scope)
            self._deferred.append(("body", node, scope, None))
            return

        if isinstance(node, (ast.ListComp, ast.SetComp, ast.GeneratorExp, ast.DictComp)):
            self._check_comprehension(node, scope, eager, anchor)
            return

        for child in ast.iter_child_nodes(node):
            if isinstance(child, (ast.expr, ast.keyword, ast.comprehension, ast.arguments)):
                self._check_expr(child, scope, eager, annotation, anchor)

    def _check_name(
        self, node: ast.Name, scope: Scope, eager: bool, anchor: Optional[ast.AST]
    ):
        status = scope.lookup(node.id, eager)
        if status == "later":
            self.report(node, f"name '{node.id}' is used before its definition", anchor)
        elif status == "missing":
            self.report(node, f"name '{node.id}' is not defined", anchor)

    def _check_forward_reference(
        self, node: ast.Constant, scope: Scope, anchor: Optional[ast.AST]
    ):
        try:
            parsed = ast.parse(node.value.strip(), mode="eval")
        except SyntaxError as e:
            self.report(
                node, f"invalid forward reference {node.value!r}: {e.msg}", anchor
            )
            return
        # Positions inside the string point at the string itself
        self._deferred.append(("annotation", parsed.body, scope, anchor or node))

    def _check_typeddict_call(
        self, node: ast.Call, scope: Scope, eager: bool, anchor: Optional[ast.AST]
    ):
        self._check_expr(node.func, scope, eager, anchor=anchor)
        for index, arg in enumerate(node.args):
            if index == 1 and isinstance(arg, ast.Dict):
                for key, value in zip(arg.keys, arg.values):
                    if key is not None:
                        self._check_expr(key, scope, eager, anchor=anchor)
                    self._check_expr(value, scope, eager, annotation=True, anchor=anchor)
            else:
                self._check_expr(arg, scope, eager, anchor=anchor)
        for keyword in node.keywords:
            self._check_expr(keyword.value, scope, eager, anchor=anchor)

    def _check_comprehension(
        self, node: ast.AST, scope: Scope, eager: bool, anchor: Optional[ast.AST]
    ):
        targets: Set[str] = set()
        for generator in node.generators:
            for name in ast.walk(generator.target):
                if isinstance(name, ast.Name):
                    targets.add(name.id)
        # The first iterable is evaluated in the enclosing scope
        self._check_expr(node.generators[0].iter, scope, eager, anchor=anchor)
        inner = Scope("function", scope, targets)
        for index, generator in enumerate(node.generators):
            if index:
                self._check_expr(generator.iter, inner, eager, anchor=anchor)
            for condition in generator.ifs:
                self._check_expr(condition, inner, eager, anchor=anchor)
        elements = [node.key, node.value] if isinstance(node, ast.DictComp) else [node.elt]
        for element in elements:
            self._check_expr(element, inner, eager, anchor=anchor)

    def _check_import_from(self, stmt: ast.ImportFrom):
        if stmt.level:
            self._check_relative_import(stmt)
        else:
            self._check_absolute_import(stmt)

    def _check_relative_import(self, stmt: ast.ImportFrom):
        display = "." * stmt.level + (stmt.module or "")
        if stmt.level > 1:
            self.report(stmt, f"relative import '{display}' reaches outside the package")
            return

        module = stmt.module or ""
        if self.host.module_file(module) is None or module not in self.units:
            if self.host.module_file(module) is None:
                self.report(stmt, f"cannot find module '{display}'")
            return

        names = self.module_names(module)
        for alias in stmt.names:
            if alias.name == "*":
                continue
            if alias.name in names:
                continue
            # ``from . import client`` may name a sibling module
            if not module and self.host.module_file(alias.name):
                continue
            self.report(stmt, f"cannot import name '{alias.name}' from '{display}'")

    def _check_absolute_import(self, stmt: ast.ImportFrom):
        module = stmt.module or ""
        if module == "__future__":
            return
        if not self.host.external_module_exists(module):
            self.report(stmt, f"No module named '{module}'")
            return
        try:
            for alias in stmt.names:
                if alias.name == "*":
                    continue
                if not self.host.external_has_name(module, alias.name):
                    self.report(stmt, f"cannot import name '{alias.name}' from '{module}'")
        except Exception as e:
            self.report(stmt, f"module '{module}' could not be loaded: {e}")


def generate_stub(tree: ast.Module) -> str:
    """
    Produce a ``.pyi`` stub from a module.

    Function bodies are replaced by ``...``; everything else is kept.
    """
    stub = _StubTransformer().visit(_copy_tree(tree))
    ast.fix_missing_locations(stub)
    return ast.unparse(stub) + "\n"


def _copy_tree(tree: ast.Module) -> ast.Module:
    return ast.parse(ast.unparse(tree))


class _StubTransformer(ast.NodeTransformer):
    def visit_FunctionDef(self, node: ast.FunctionDef):
        node.body = [ast.Expr(ast.Constant(...))]
        return node

    visit_AsyncFunctionDef = visit_FunctionDef
