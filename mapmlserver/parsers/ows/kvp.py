"""Parsing the Key-Value-Pair (KVP) request format."""

from __future__ import annotations

from mapmlserver.exceptions import (
    InvalidParameterValue,
    MissingParameterValue,
    wrap_parser_errors,
)

REQUIRED = ...  # sentinel value


class KVPRequest:
    """The Key-Value-Pair (KVP) request format.

    This handles parameters from the HTTP GET request.
    Some basic validation is performed, allowing to convert the data into Python types.
    """

    def __init__(self, query_string: dict[str, str]):
        # The parameters are case-insensitive.
        self.params = {name.upper(): value for name, value in query_string.items()}

    def __contains__(self, name: str) -> bool:
        """Tell whether a parameter is present."""
        return name.upper() in self.params

    def get_custom(
        self,
        name: str,
        *,
        alias: str | None = None,
        default=REQUIRED,
        parser=None,
        allow_empty=False,
    ):
        """Retrieve a value by name.

        Any parsing errors or validation checks are raised as MapML exceptions,
        meaning the client will get the appropriate response.

        :param name: The name of the parameter.
        :param alias: An alternative name, e.g. the WMS 1.1 ``X`` for the WMS 1.3 ``I`` parameter.
        :param default: The default value to return. If not provided, the parameter is required.
        :param parser: A custom Python function or type to convert the value with.
        :param allow_empty: Whether an empty value is accepted (e.g. ``STYLE=``).
        """
        kvp_name = name.upper()
        value = self.params.get(kvp_name)
        if value is None and alias:
            value = self.params.get(alias.upper())

        if value is None or (not value and not allow_empty):
            if default is REQUIRED:
                if value is None:
                    raise MissingParameterValue(
                        f"Mandatory {kvp_name} parameter missing in request.", locator=name
                    )
                else:
                    raise InvalidParameterValue(f"Empty '{kvp_name}' parameter", locator=name)
            return default

        # Allow conversion into a python object
        if parser is not None:
            with wrap_parser_errors(kvp_name, locator=name):
                return parser(value)
        else:
            return value

    def get_str(
        self,
        name: str,
        *,
        alias: str | None = None,
        default: str | None = REQUIRED,
        allow_empty=False,
    ) -> str | None:
        """Retrieve a string value from the request."""
        return self.get_custom(name, alias=alias, default=default, allow_empty=allow_empty)

    def get_int(
        self, name: str, *, alias: str | None = None, default: int | None = REQUIRED
    ) -> int | None:
        """Retrieve an integer value from the request."""
        return self.get_custom(name, alias=alias, default=default, parser=int)

    def get_list(
        self, name, *, alias: str | None = None, default: list | None = REQUIRED
    ) -> list[str] | None:
        """Retrieve a comma-separated list value from the request."""
        return self.get_custom(
            name,
            alias=alias,
            default=default,
            parser=lambda x: x.split(","),
        )
