from typegraph.type_definitions import Argument, Directive, DirectiveLocation, non_null

DEFAULT_DEPRECATION_REASON = "No longer supported"

SKIP = Directive(
    "skip",
    locations=(DirectiveLocation.FIELD, DirectiveLocation.FRAGMENT_SPREAD, DirectiveLocation.INLINE_FRAGMENT),
    args={"if": Argument(non_null("Boolean"), description="Skipped when true.")},
    description="Directs the executor to skip this field or fragment when the `if` argument is true.",
)

INCLUDE = Directive(
    "include",
    locations=(DirectiveLocation.FIELD, DirectiveLocation.FRAGMENT_SPREAD, DirectiveLocation.INLINE_FRAGMENT),
    args={"if": Argument(non_null("Boolean"), description="Included when true.")},
    description="Directs the executor to include this field or fragment only when the `if` argument is true.",
)

DEPRECATED = Directive(
    "deprecated",
    locations=(DirectiveLocation.FIELD_DEFINITION, DirectiveLocation.ENUM_VALUE),
    args={
        "reason": Argument(
            "String",
            default_value=DEFAULT_DEPRECATION_REASON,
            description="Explains why this element was deprecated.",
        )
    },
    description="Marks an element of a GraphQL schema as no longer supported.",
)

SPECIFIED_DIRECTIVES: tuple[Directive, ...] = (INCLUDE, SKIP, DEPRECATED)

__all__ = ["DEFAULT_DEPRECATION_REASON", "SKIP", "INCLUDE", "DEPRECATED", "SPECIFIED_DIRECTIVES"]
