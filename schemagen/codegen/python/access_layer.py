"""
Access-layer emitter.

Renders the ``client`` module of a generated client: a ``Client`` class
with the default create/read/update/delete methods per record type, the
authentication namespace, one namespace class per controller for the
custom operations, and the type aliases the operation descriptors and
extra types carry.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ...logging_config import get_logger
from ..core.generator import CodeGenerator, GeneratorError, NameCollisionError
from ..core.naming import to_pascal_case, to_pascal_preserve
from ..core.schema import (
    PATH_PARAM,
    ExtraType,
    OperationDescriptor,
    RecordType,
    SchemaModel,
)
from .config import (
    AUTH_TYPE_NAMES,
    AUTH_USER_UID,
    BUILTIN_EXPORTS,
    FALLBACK_USER_TYPE,
    FILTER_OPERATOR_NAMES,
    TYPING_EXPORTS,
    TYPING_NAMES,
    get_required_imports,
)
from .declarations import TEMPLATE_DIR
from .naming import (
    AUTH_NAMESPACE_ATTRIBUTE,
    AUTH_NAMESPACE_CLASS,
    RUNTIME_MEMBER_NAMES,
    RUNTIME_NAMES,
    create_python_sanitizer,
    method_name,
    namespace_attribute,
    namespace_class_name,
    parameter_name,
)
from .symbols import SymbolTable, build_symbol_table

logger = get_logger(__name__)

RUNTIME_MODULE = "schemagen.runtime"
RUNTIME_IMPORTS = ("BaseAPI", "BaseClient", "ClientConfig", "QueryParams", "Result")

# Controllers the authentication namespace replaces
AUTH_CONTROLLERS = ("auth", "user")

_IDENTIFIER = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")


@dataclass
class MethodSpec:
    """One generated method."""

    name: str
    signature: str
    returns: str
    call: str
    doc: str = ""


@dataclass
class NamespaceSpec:
    """One controller namespace class."""

    controller: str
    class_name: str
    attribute: str
    description: str = ""
    methods: Dict[str, MethodSpec] = field(default_factory=dict)


def path_expression(path: str) -> Tuple[str, List[str]]:
    """
    Turn a route path into a Python string expression.

    ``/articles/:id/like`` -> ``f"/articles/{id}/like"`` plus the parameter
    names, in order.
    """
    params = []
    pieces = []
    last = 0
    for match in PATH_PARAM.finditer(path):
        pieces.append(_escape_literal(path[last : match.start()], braces=True))
        param = parameter_name(match.group(1))
        params.append(param)
        pieces.append("{" + param + "}")
        last = match.end()
    tail = path[last:]

    if not params:
        return f'"{_escape_literal(tail)}"', params
    pieces.append(_escape_literal(tail, braces=True))
    return 'f"' + "".join(pieces) + '"', params


def _escape_literal(text: str, braces: bool = False) -> str:
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    if braces:
        text = text.replace("{", "{{").replace("}", "}}")
    return text


class AccessLayerEmitter(CodeGenerator):
    """Emits the client module for one schema snapshot and its operations."""

    def __init__(
        self,
        client_class_name: str = "Client",
        api_prefix: str = "/api",
        types_module: str = "types",
        add_comments: bool = True,
        emit_auth: bool = True,
    ):
        super().__init__(add_comments=add_comments)
        self.client_class_name = client_class_name
        self.api_prefix = api_prefix
        self.types_module = types_module
        self.emit_auth = emit_auth
        self.sanitizer = create_python_sanitizer()

    @property
    def module_name(self) -> str:
        return "client.py"

    def get_template_directory(self) -> Path:
        return TEMPLATE_DIR

    def emit(
        self,
        schema: SchemaModel,
        operations: Iterable[OperationDescriptor] = (),
        extra_types: Iterable[ExtraType] = (),
        symbols: Optional[SymbolTable] = None,
    ) -> str:
        """
        Render the client module.

        Args:
            schema: Snapshot whose record types get default methods
            operations: Custom operation descriptors
            extra_types: Standalone types emitted as module aliases
            symbols: Identifier assignments shared with the declarations

        Returns:
            Module source text

        Raises:
            NameCollisionError: If a generated identifier is produced twice
            GeneratorError: If an extra type name is not an identifier
        """
        self.warnings = []
        symbols = symbols or build_symbol_table(
            schema, reserved_names=(self.client_class_name,)
        )

        type_names = {
            *BUILTIN_EXPORTS,
            *FILTER_OPERATOR_NAMES,
            *symbols.declared_names(),
        }
        if self.emit_auth:
            type_names.update(AUTH_TYPE_NAMES)
        owners: Dict[str, str] = {name: f"{self.types_module} module" for name in type_names}
        owners.update((name, "runtime") for name in RUNTIME_NAMES)
        owners.update((name, "typing") for name in TYPING_NAMES)

        def claim(name: str, owner: str):
            if name in owners:
                raise NameCollisionError(name, [owners[name], owner])
            owners[name] = owner

        claim(self.client_class_name, "client class")

        used_types: Set[str] = set()
        crud_methods = self._crud_methods(schema, symbols, used_types)

        aliases: List[Dict[str, str]] = []
        namespaces = self._namespaces(operations, aliases, claim)
        if self.emit_auth:
            claim(AUTH_NAMESPACE_CLASS, "authentication namespace")
            namespaces.insert(0, self._auth_namespace(symbols))
        for namespace in namespaces[1 if self.emit_auth else 0 :]:
            namespace.class_name = self._free_class_name(namespace, owners)

        for extra in extra_types:
            if not extra.type_name.isidentifier():
                raise GeneratorError(
                    f"Extra type name {extra.type_name!r} from controller "
                    f"{extra.controller!r} is not a valid identifier"
                )
            claim(extra.type_name, f"extra type of {extra.controller}")
            aliases.append(
                {
                    "name": extra.type_name,
                    "definition": extra.definition.strip(),
                    "comment": f"From the {extra.controller} controller",
                }
            )

        method_names = {m.name for m in crud_methods}
        for namespace in namespaces:
            if namespace.attribute in method_names:
                raise NameCollisionError(
                    namespace.attribute,
                    [f"{self.client_class_name} method", f"namespace of {namespace.controller}"],
                )
            method_names.add(namespace.attribute)

        referenced = self._referenced_names(
            [a["definition"] for a in aliases]
            + [m.signature + " " + m.returns for ns in namespaces for m in ns.methods.values()]
        )
        used_types.update(name for name in referenced if name in type_names)

        # Names the module defines or imports itself shadow the typing ones
        candidates = TYPING_EXPORTS - {n for n, o in owners.items() if o != "typing"}
        typing_imports = set(
            get_required_imports((a["definition"] for a in aliases), candidates)
        )
        typing_imports.add("Any")
        if aliases:
            typing_imports.add("TypeAlias")

        exports = [self.client_class_name]
        exports.extend(ns.class_name for ns in namespaces)
        exports.extend(a["name"] for a in aliases)

        logger.debug(
            "Emitting client with %d default methods, %d namespaces, %d aliases",
            len(crud_methods),
            len(namespaces),
            len(aliases),
        )
        return self.render_template(
            "client.py.j2",
            {
                "typing_imports": sorted(typing_imports),
                "runtime_module": RUNTIME_MODULE,
                "runtime_imports": list(RUNTIME_IMPORTS),
                "types_module": self.types_module,
                "type_imports": sorted(used_types),
                "exports": exports,
                "aliases": aliases,
                "namespaces": namespaces,
                "crud_methods": crud_methods,
                "client_class_name": self.client_class_name,
                "api_prefix": self.api_prefix,
                "add_comments": self.add_comments,
            },
        )

    # Default methods

    def _crud_methods(
        self, schema: SchemaModel, symbols: SymbolTable, used_types: Set[str]
    ) -> List[MethodSpec]:
        methods: List[MethodSpec] = []
        seen: Dict[str, str] = {}

        for record in schema.sorted_records():
            for spec in self._record_methods(record, symbols):
                if spec.name in seen or spec.name in RUNTIME_MEMBER_NAMES:
                    raise NameCollisionError(
                        spec.name, [seen.get(spec.name, "runtime client"), record.uid]
                    )
                seen[spec.name] = record.uid
                methods.append(spec)
            used_types.add(symbols.name_for(record.uid))
            used_types.add(symbols.input_name_for(record.uid))
            if not record.is_singleton:
                used_types.add(symbols.filters_name_for(record.uid))

        return methods

    def _record_methods(self, record: RecordType, symbols: SymbolTable) -> List[MethodSpec]:
        name = symbols.name_for(record.uid)
        input_name = symbols.input_name_for(record.uid)
        label = record.display_name or name

        if record.is_singleton:
            path = f'"/{_escape_literal(record.singular_name)}"'
            return [
                MethodSpec(
                    name=method_name("get", record.singular_name),
                    signature="self, params: QueryParams | None = None",
                    returns=f"Result[{name}]",
                    call=f'self._request("GET", {path}, params=params)',
                    doc=f"Fetch the {label} entry.",
                ),
                MethodSpec(
                    name=method_name("create", record.singular_name),
                    signature=f"self, data: {input_name}",
                    returns=f"Result[{name}]",
                    call=f'self._request("PUT", {path}, json={{"data": data}})',
                    doc=f"Create the {label} entry.",
                ),
                MethodSpec(
                    name=method_name("update", record.singular_name),
                    signature=f"self, data: {input_name}",
                    returns=f"Result[{name}]",
                    call=f'self._request("PUT", {path}, json={{"data": data}})',
                    doc=f"Update the {label} entry.",
                ),
                MethodSpec(
                    name=method_name("delete", record.singular_name),
                    signature="self",
                    returns="Result[None]",
                    call=f'self._request("DELETE", {path})',
                    doc=f"Delete the {label} entry.",
                ),
            ]

        query = f"QueryParams[{symbols.filters_name_for(record.uid)}]"
        base = _escape_literal(record.plural_name, braces=True)
        collection = f'"/{_escape_literal(record.plural_name)}"'
        item = f'f"/{base}/{{document_id}}"'
        return [
            MethodSpec(
                name=method_name("list", record.plural_name),
                signature=f"self, params: {query} | None = None",
                returns=f"Result[list[{name}]]",
                call=f'self._request("GET", {collection}, params=params)',
                doc=f"List {label} entries.",
            ),
            MethodSpec(
                name=method_name("get", record.singular_name),
                signature=f"self, document_id: str, params: {query} | None = None",
                returns=f"Result[{name}]",
                call=f'self._request("GET", {item}, params=params)',
                doc=f"Fetch one {label} entry by document id.",
            ),
            MethodSpec(
                name=method_name("create", record.singular_name),
                signature=f"self, data: {input_name}",
                returns=f"Result[{name}]",
                call=f'self._request("POST", {collection}, json={{"data": data}})',
                doc=f"Create a {label} entry.",
            ),
            MethodSpec(
                name=method_name("update", record.singular_name),
                signature=f"self, document_id: str, data: {input_name}",
                returns=f"Result[{name}]",
                call=f'self._request("PUT", {item}, json={{"data": data}})',
                doc=f"Update a {label} entry.",
            ),
            MethodSpec(
                name=method_name("delete", record.singular_name),
                signature="self, document_id: str",
                returns="Result[None]",
                call=f'self._request("DELETE", {item})',
                doc=f"Delete a {label} entry.",
            ),
        ]

    # Authentication

    def _auth_namespace(self, symbols: SymbolTable) -> NamespaceSpec:
        """Namespace for the users-permissions authentication routes."""
        user = symbols.record_name(AUTH_USER_UID)
        user_type = user or FALLBACK_USER_TYPE
        user_input = symbols.input_name_for(AUTH_USER_UID) if user else FALLBACK_USER_TYPE
        user_query = "QueryParams"
        if user:
            user_query = f"QueryParams[{symbols.filters_name_for(AUTH_USER_UID)}]"

        specs = [
            MethodSpec(
                name="login",
                signature="self, credentials: LoginCredentials",
                returns="Result[AuthResponse]",
                call='self._request("POST", "/auth/local", json=credentials)',
                doc="Log in with an email or username and a password.\n\nPOST /auth/local",
            ),
            MethodSpec(
                name="register",
                signature="self, data: RegisterData",
                returns="Result[AuthResponse]",
                call='self._request("POST", "/auth/local/register", json=data)',
                doc="Register a new user.\n\nPOST /auth/local/register",
            ),
            MethodSpec(
                name="me",
                signature=f"self, params: {user_query} | None = None",
                returns=f"Result[{user_type}]",
                call='self._request("GET", "/users/me", params=params)',
                doc="Fetch the authenticated user.\n\nGET /users/me",
            ),
            MethodSpec(
                name="update_me",
                signature=f"self, data: {user_input}, params: {user_query} | None = None",
                returns=f"Result[{user_type}]",
                call='self._request("PUT", "/users/me", json=data, params=params)',
                doc="Update the authenticated user.\n\nPUT /users/me",
            ),
            MethodSpec(
                name="callback",
                signature="self, provider: str, params: QueryParams | None = None",
                returns="Result[AuthResponse]",
                call='self._request("GET", f"/auth/{provider}/callback", params=params)',
                doc="Complete a login with an external provider.\n\nGET /auth/:provider/callback",
            ),
            MethodSpec(
                name="forgot_password",
                signature="self, data: ForgotPasswordData",
                returns="Result[dict[str, Any]]",
                call='self._request("POST", "/auth/forgot-password", json=data)',
                doc="Send a password reset email.\n\nPOST /auth/forgot-password",
            ),
            MethodSpec(
                name="reset_password",
                signature="self, data: ResetPasswordData",
                returns="Result[AuthResponse]",
                call='self._request("POST", "/auth/reset-password", json=data)',
                doc="Reset a password with the emailed code.\n\nPOST /auth/reset-password",
            ),
            MethodSpec(
                name="change_password",
                signature="self, data: ChangePasswordData",
                returns="Result[AuthResponse]",
                call='self._request("POST", "/auth/change-password", json=data)',
                doc="Change the password of the authenticated user.\n\nPOST /auth/change-password",
            ),
            MethodSpec(
                name="confirm_email",
                signature="self, confirmation: str",
                returns="Result[EmailConfirmationResponse]",
                call=(
                    'self._request("GET", "/auth/email-confirmation", '
                    'params={"confirmation": confirmation})'
                ),
                doc="Confirm an email address.\n\nGET /auth/email-confirmation",
            ),
            MethodSpec(
                name="send_email_confirmation",
                signature="self, email: str",
                returns="Result[dict[str, Any]]",
                call=(
                    'self._request("POST", "/auth/send-email-confirmation", '
                    'json={"email": email})'
                ),
                doc="Send the email confirmation again.\n\nPOST /auth/send-email-confirmation",
            ),
            MethodSpec(
                name="logout",
                signature="self",
                returns="None",
                call="self.client.set_token(None)",
                doc="Forget the token of the authenticated user.",
            ),
        ]
        return NamespaceSpec(
            controller="auth",
            class_name=AUTH_NAMESPACE_CLASS,
            attribute=AUTH_NAMESPACE_ATTRIBUTE,
            description="Authentication and account management.",
            methods={spec.name: spec for spec in specs},
        )

    # Custom operations

    def _namespaces(
        self,
        operations: Iterable[OperationDescriptor],
        aliases: List[Dict[str, str]],
        claim,
    ) -> List[NamespaceSpec]:
        # Last definition of a controller action wins
        latest: Dict[Tuple[str, str], OperationDescriptor] = {}
        for op in operations:
            if self.emit_auth and op.controller in AUTH_CONTROLLERS:
                logger.debug(
                    "Operation %s.%s is covered by the authentication namespace",
                    op.controller,
                    op.action,
                )
                continue
            key = (namespace_attribute(op.controller), self._action_name(op.action))
            if key in latest:
                previous = latest.pop(key)
                self.warn(
                    f"Operation {op.controller}.{op.action} ({op.method} {op.path}) "
                    f"overrides {previous.method} {previous.path}"
                )
            latest[key] = op

        namespaces: Dict[str, NamespaceSpec] = {}
        for (attribute, action_name), op in sorted(latest.items(), key=lambda kv: kv[0][0]):
            namespace = namespaces.get(attribute)
            if namespace is None:
                namespace = NamespaceSpec(
                    controller=op.controller,
                    class_name=namespace_class_name(op.controller),
                    attribute=attribute,
                    description=f"Custom operations of the {op.controller} controller.",
                )
                namespaces[attribute] = namespace
            namespace.methods[action_name] = self._operation_method(
                op, action_name, aliases, claim
            )

        return list(namespaces.values())

    def _free_class_name(self, namespace: NamespaceSpec, owners: Dict[str, str]) -> str:
        """Claim the namespace class name, numbering it when something else owns it."""
        name = namespace.class_name
        counter = 2
        while name in owners:
            name = f"{namespace.class_name}{counter}"
            counter += 1
        if name != namespace.class_name:
            self.warn(
                f"Namespace class {namespace.class_name!r} of {namespace.controller} "
                f"is taken; declared as {name!r}"
            )
        owners[name] = f"namespace of {namespace.controller}"
        return name

    def _action_name(self, action: str) -> str:
        name = self.sanitizer.sanitize_name(action)
        if name in RUNTIME_MEMBER_NAMES:
            name = f"{name}_"
        return name

    def _operation_method(
        self,
        op: OperationDescriptor,
        action_name: str,
        aliases: List[Dict[str, str]],
        claim,
    ) -> MethodSpec:
        prefix = f"{to_pascal_preserve(op.controller)}{to_pascal_case(op.action)}"
        types = op.types

        if not op.is_typed:
            self.warn(
                f"Operation {op.controller}.{op.action} has no declared types; "
                "request and response are typed as Any"
            )

        def alias_for(suffix: str, definition: Optional[str]) -> Optional[str]:
            if not definition:
                return None
            alias = f"{prefix}{suffix}"
            claim(alias, f"{op.controller}.{op.action}")
            aliases.append(
                {
                    "name": alias,
                    "definition": definition.strip(),
                    "comment": f"{op.method} {op.path}",
                }
            )
            return alias

        request = alias_for("Request", types.body if types else None)
        response = alias_for("Response", types.response if types else None)
        alias_for("Params", types.params if types else None)
        query = alias_for("Query", types.query if types else None)

        path, params = path_expression(op.path)
        arguments: List[str] = ["self"]
        arguments.extend(f"{param}: str" for param in params)
        call_args = [f'"{op.method}"', path]

        if op.has_body:
            arguments.append(f"data: {request or 'Any'} | None = None")
            call_args.append("json=data")
        arguments.append(f"params: {query or 'QueryParams'} | None = None")
        call_args.append("params=params")

        doc = f"{op.method} {op.path}"
        if op.handler:
            doc += f"\n\nHandler: {op.handler}"
        return MethodSpec(
            name=action_name,
            signature=", ".join(arguments),
            returns=f"Result[{response or 'Any'}]",
            call=f"self._request({', '.join(call_args)})",
            doc=doc,
        )

    def _referenced_names(self, texts: Sequence[str]) -> Set[str]:
        names: Set[str] = set()
        for text in texts:
            names.update(_IDENTIFIER.findall(text))
        return names
