"""Access rules: which requests may proceed, for which principals.

The whole policy is one explicit table of (path pattern, methods,
requirement) rows evaluated first-match, plus a pure decision function.
Nothing here touches HTTP machinery or the database, so every rule can be
unit-tested with plain strings.

Decision table (evaluated by decide()):

    rule        | anonymous        | unverified  | verified
    ------------+------------------+-------------+----------
    PUBLIC      | ALLOW            | ALLOW       | ALLOW
    VERIFIED    | UNAUTHENTICATED  | UNVERIFIED  | ALLOW
    (no match)  | UNAUTHENTICATED  | FORBIDDEN   | FORBIDDEN

Account creation and the verification callback are PUBLIC, which is what
lets an unverified user become verified at all.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from catalog_api.core.config import settings


class AccessRequirement(Enum):
    """What a matched route demands from the caller."""

    PUBLIC = "public"
    VERIFIED = "verified"


class PrincipalState(Enum):
    """Authentication state of the caller after credential checks."""

    ANONYMOUS = "anonymous"
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class Decision(Enum):
    """Outcome of the access gate for one request."""

    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    UNVERIFIED = "unverified"


_PLACEHOLDER_RE = re.compile(r"\{[^/{}]+\}")


@dataclass(frozen=True)
class AccessRule:
    """One row of the access table.

    Attributes:
        pattern: Path template; ``{name}`` matches exactly one segment.
        methods: Upper-case HTTP methods, or None for any method.
        requirement: What the caller must satisfy.
    """

    pattern: str
    methods: frozenset[str] | None
    requirement: AccessRequirement
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        parts = _PLACEHOLDER_RE.split(self.pattern)
        body = "[^/]+".join(re.escape(part) for part in parts)
        object.__setattr__(self, "_regex", re.compile(f"^{body}$"))

    def matches(self, path: str, method: str) -> bool:
        """Check whether this rule applies to a normalized path and method."""
        if self.methods is not None and method not in self.methods:
            return False
        return self._regex.match(path) is not None


def build_rules(prefix: str) -> tuple[AccessRule, ...]:
    """Build the access table for an API mounted at ``prefix``.

    Order matters: ``/user/verify`` must precede ``/user/{user_id}``.
    """
    public = AccessRequirement.PUBLIC
    verified = AccessRequirement.VERIFIED
    get = frozenset({"GET"})

    return (
        AccessRule("/healthz", None, public),
        AccessRule("/healthz/", None, public),
        AccessRule(f"{prefix}/user", frozenset({"POST"}), public),
        AccessRule(f"{prefix}/user/verify", get, public),
        AccessRule(f"{prefix}/user/{{user_id}}", frozenset({"GET", "PUT"}), verified),
        AccessRule(f"{prefix}/product", frozenset({"POST"}), verified),
        AccessRule(f"{prefix}/product/{{product_id}}", get, public),
        AccessRule(
            f"{prefix}/product/{{product_id}}",
            frozenset({"PUT", "PATCH", "DELETE"}),
            verified,
        ),
        AccessRule(f"{prefix}/product/{{product_id}}/image", get, public),
        AccessRule(
            f"{prefix}/product/{{product_id}}/image", frozenset({"POST"}), verified
        ),
        AccessRule(f"{prefix}/product/{{product_id}}/image/{{image_id}}", get, public),
        AccessRule(
            f"{prefix}/product/{{product_id}}/image/{{image_id}}",
            frozenset({"DELETE"}),
            verified,
        ),
    )


ACCESS_RULES = build_rules(settings.api_prefix)


def match_rule(
    path: str,
    method: str,
    rules: tuple[AccessRule, ...] = ACCESS_RULES,
) -> AccessRule | None:
    """Return the first rule covering (path, method), or None if unmatched.

    Paths are compared exactly; only the health check is registered with and
    without a trailing slash.
    """
    method = method.upper()
    for rule in rules:
        if rule.matches(path, method):
            return rule
    return None


def decide(
    path: str,
    method: str,
    principal: PrincipalState,
    rules: tuple[AccessRule, ...] = ACCESS_RULES,
) -> Decision:
    """Decide whether a request may proceed.

    Total over every (path, method, principal) combination: never raises.

    Args:
        path: Request path (no query string).
        method: HTTP method.
        principal: Caller state after credential verification.
        rules: Access table to evaluate.

    Returns:
        The gate decision.
    """
    rule = match_rule(path, method, rules)

    if rule is None:
        # Fail closed without revealing whether the route exists
        if principal is PrincipalState.ANONYMOUS:
            return Decision.UNAUTHENTICATED
        return Decision.FORBIDDEN

    if rule.requirement is AccessRequirement.PUBLIC:
        return Decision.ALLOW

    if principal is PrincipalState.ANONYMOUS:
        return Decision.UNAUTHENTICATED
    if principal is PrincipalState.UNVERIFIED:
        return Decision.UNVERIFIED
    return Decision.ALLOW


def is_public(
    path: str,
    method: str,
    rules: tuple[AccessRule, ...] = ACCESS_RULES,
) -> bool:
    """True if the request needs no authentication at all."""
    rule = match_rule(path, method, rules)
    return rule is not None and rule.requirement is AccessRequirement.PUBLIC
