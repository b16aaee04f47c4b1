"""
Python-specific type mappings.

Maps schema field kinds onto the type expressions used in the generated
declarations, lists the fixed declarations every generated package
carries, and tracks the ``typing`` imports those expressions need.
"""

import re
import typing
from typing import Iterable, List, Set

from ..core.schema import ScalarType

# Scalar attribute types
PYTHON_TYPE_MAP = {
    ScalarType.STRING: "str",
    ScalarType.TEXT: "str",
    ScalarType.RICHTEXT: "str",
    ScalarType.EMAIL: "str",
    ScalarType.PASSWORD: "str",
    ScalarType.UID: "str",
    ScalarType.INTEGER: "int",
    ScalarType.BIGINTEGER: "int",
    ScalarType.FLOAT: "float",
    ScalarType.DECIMAL: "float",
    ScalarType.BOOLEAN: "bool",
    ScalarType.DATE: "str",
    ScalarType.TIME: "str",
    ScalarType.DATETIME: "str",
    ScalarType.JSON: "JsonValue",
    ScalarType.BLOCKS: "BlocksContent",
}

# Scalar attribute types inside a <Name>Filters declaration
FILTER_TYPE_MAP = {
    ScalarType.STRING: "str | StringFilterOperators",
    ScalarType.TEXT: "str | StringFilterOperators",
    ScalarType.RICHTEXT: "str | StringFilterOperators",
    ScalarType.EMAIL: "str | StringFilterOperators",
    ScalarType.PASSWORD: "str | StringFilterOperators",
    ScalarType.UID: "str | StringFilterOperators",
    ScalarType.INTEGER: "int | NumberFilterOperators",
    ScalarType.BIGINTEGER: "int | NumberFilterOperators",
    ScalarType.FLOAT: "float | NumberFilterOperators",
    ScalarType.DECIMAL: "float | NumberFilterOperators",
    ScalarType.BOOLEAN: "bool | BooleanFilterOperators",
    ScalarType.DATE: "str | DateFilterOperators",
    ScalarType.TIME: "str | DateFilterOperators",
    ScalarType.DATETIME: "str | DateFilterOperators",
}

UNKNOWN_TYPE = "Any"

# Identifier types accepted by create/update payloads
ID_TYPE = "int | str"
MEDIA_ID_TYPE = "int"

# System members every record declaration carries ahead of its fields
RECORD_SYSTEM_MEMBERS = (
    ("id", "int"),
    ("documentId", "str"),
    ("createdAt", "str"),
    ("updatedAt", "str"),
)

# System members every <Name>Filters declaration accepts
FILTER_SYSTEM_MEMBERS = (
    ("id", "int | IdFilterOperators"),
    ("documentId", "str | StringFilterOperators"),
)

COMPONENT_TAG = "__component"

_NULL_OPERATORS = (("$null", "bool"), ("$notNull", "bool"))

# Operator declarations shared by every <Name>Filters declaration
FILTER_OPERATOR_DECLARATIONS = (
    (
        "StringFilterOperators",
        (
            *((op, "str") for op in ("$eq", "$eqi", "$ne", "$nei")),
            ("$in", "list[str]"),
            ("$notIn", "list[str]"),
            *(
                (op, "str")
                for op in (
                    "$contains",
                    "$notContains",
                    "$containsi",
                    "$notContainsi",
                    "$startsWith",
                    "$startsWithi",
                    "$endsWith",
                    "$endsWithi",
                )
            ),
            *_NULL_OPERATORS,
        ),
    ),
    (
        "NumberFilterOperators",
        (
            *((op, "float") for op in ("$eq", "$ne", "$lt", "$lte", "$gt", "$gte")),
            ("$in", "list[float]"),
            ("$notIn", "list[float]"),
            ("$between", "tuple[float, float]"),
            *_NULL_OPERATORS,
        ),
    ),
    (
        "BooleanFilterOperators",
        (("$eq", "bool"), ("$ne", "bool"), *_NULL_OPERATORS),
    ),
    (
        "DateFilterOperators",
        (
            *((op, "str") for op in ("$eq", "$ne", "$lt", "$lte", "$gt", "$gte")),
            ("$in", "list[str]"),
            ("$notIn", "list[str]"),
            ("$between", "tuple[str, str]"),
            *_NULL_OPERATORS,
        ),
    ),
    (
        "IdFilterOperators",
        (
            ("$eq", ID_TYPE),
            ("$ne", ID_TYPE),
            ("$in", f"list[{ID_TYPE}]"),
            ("$notIn", f"list[{ID_TYPE}]"),
            *_NULL_OPERATORS,
        ),
    ),
    (
        "MediaFilters",
        (
            ("id", "int | IdFilterOperators"),
            ("name", "str | StringFilterOperators"),
            ("url", "str | StringFilterOperators"),
            ("mime", "str | StringFilterOperators"),
        ),
    ),
)

# Logical operators every <Name>Filters declaration accepts; {name} is the declaration
LOGICAL_FILTER_MEMBERS = (
    ("$and", "list[{name}]"),
    ("$or", "list[{name}]"),
    ("$not", "{name}"),
)

# Uid of the users-permissions user, the account behind the authentication API
AUTH_USER_UID = "plugin::users-permissions.user"

# Payload declarations of the authentication API; {user} is the account type
AUTH_DECLARATIONS = (
    ("LoginCredentials", (("identifier", "str"), ("password", "str"))),
    (
        "RegisterData",
        (("username", "str"), ("email", "str"), ("password", "str")),
    ),
    ("AuthResponse", (("jwt", "str"), ("user", "{user}"))),
    ("ForgotPasswordData", (("email", "str"),)),
    (
        "ResetPasswordData",
        (("code", "str"), ("password", "str"), ("passwordConfirmation", "str")),
    ),
    (
        "ChangePasswordData",
        (
            ("currentPassword", "str"),
            ("password", "str"),
            ("passwordConfirmation", "str"),
        ),
    ),
    ("EmailConfirmationResponse", (("jwt", "str"), ("user", "{user}"))),
)

# Account type used when the snapshot has no users-permissions user
FALLBACK_USER_TYPE = "dict[str, Any]"

# Names the types module always defines ahead of the schema declarations
BUILTIN_EXPORTS = ("JsonValue", "BlocksContent", "MediaFile")

FILTER_OPERATOR_NAMES = tuple(name for name, _ in FILTER_OPERATOR_DECLARATIONS)
AUTH_TYPE_NAMES = tuple(name for name, _ in AUTH_DECLARATIONS)

# Names from typing the generated modules use themselves
TYPING_NAMES = ("Any", "Literal", "NotRequired", "TypeAlias", "TypedDict")

# Everything an explicit operation type may import from typing
TYPING_EXPORTS = frozenset(typing.__all__)


def get_python_type(scalar: ScalarType) -> str:
    """Get the Python type for a scalar attribute."""
    return PYTHON_TYPE_MAP.get(scalar, UNKNOWN_TYPE)


def get_filter_type(scalar: ScalarType) -> str:
    """Get the filter type for a scalar attribute."""
    return FILTER_TYPE_MAP.get(scalar, UNKNOWN_TYPE)


def get_required_imports(
    type_strings: Iterable[str], candidates: Iterable[str] = TYPING_NAMES
) -> List[str]:
    """
    Get the ``typing`` names referenced by the given type expressions.

    Args:
        type_strings: Rendered annotations
        candidates: Names that may be imported from ``typing``

    Returns:
        Sorted list of names to import from ``typing``
    """
    used: Set[str] = set()
    for type_string in type_strings:
        used.update(re.findall(r"\b([A-Za-z_][A-Za-z0-9_]*)\b", type_string))
    return sorted(used.intersection(candidates))
